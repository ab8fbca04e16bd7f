"""Tests for the fetch / decode / execute engine."""

from __future__ import annotations

import random

import pytest

from chipper.core.errors import (
    InterpreterHalted,
    InvalidOpcode,
    MemoryOutOfBounds,
    RomTooLarge,
    StackOverflow,
    StackUnderflow,
)
from chipper.core.interpreter import Interpreter
from chipper.core.logger import LEVEL_ERROR, LEVEL_INFO, LEVEL_TRACE, RecordingLogger
from chipper.core.quirks import Quirks
from chipper.core.types import (
    JumpQuirk,
    LoadStoreQuirk,
    ShiftQuirk,
    StepOutcome,
    VfOrderQuirk,
)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_step_before_load_is_halted():
    interp = Interpreter()
    with pytest.raises(InterpreterHalted) as excinfo:
        interp.step()
    assert excinfo.value.halt_reason is None


def test_second_load_is_rejected(machine_factory):
    interp = machine_factory(0x00E0)
    with pytest.raises(RuntimeError):
        interp.load(b"\x00\xE0")


def test_oversized_program_halts_instance():
    interp = Interpreter()
    with pytest.raises(RomTooLarge):
        interp.load(bytes(3585))
    assert interp.halted
    with pytest.raises(InterpreterHalted) as excinfo:
        interp.step()
    assert isinstance(excinfo.value.halt_reason, RomTooLarge)


def test_reload_after_failed_load_is_rejected():
    interp = Interpreter()
    with pytest.raises(RomTooLarge) as failed:
        interp.load(bytes(3585))
    with pytest.raises(InterpreterHalted) as excinfo:
        interp.load(b"\x60\x05")
    assert excinfo.value.halt_reason is failed.value
    assert not interp.loaded
    assert interp.memory[0x200] == 0


def test_invalid_opcode_halts_and_reports_address(machine_factory):
    interp = machine_factory(0x6001, 0xFFFF)
    interp.step()
    with pytest.raises(InvalidOpcode) as excinfo:
        interp.step()
    assert excinfo.value.word == 0xFFFF
    assert excinfo.value.address == 0x202
    assert interp.halted
    with pytest.raises(InterpreterHalted) as halted:
        interp.step()
    assert halted.value.halt_reason is excinfo.value


def test_add_with_carry_scenario(machine_factory):
    interp = machine_factory(0x6005, 0x610A, 0x8014)
    for _ in range(3):
        assert interp.step() is StepOutcome.EXECUTED
    assert interp.cpu.v[0] == 15
    assert interp.cpu.v[0xF] == 0
    assert interp.cpu.pc == 0x206
    assert interp.cycles == 3


def test_run_stops_after_max_steps(machine_factory):
    interp = machine_factory(0x7001, 0x1200)
    assert interp.run(10) == 10
    assert interp.cpu.v[0] == 5


# ---------------------------------------------------------------------------
# Flow control
# ---------------------------------------------------------------------------

def test_jump(machine_factory):
    interp = machine_factory(0x1300)
    interp.step()
    assert interp.cpu.pc == 0x300


def test_call_and_return(machine_factory):
    interp = machine_factory(0x2204, 0x0000, 0x00EE)
    interp.step()
    assert interp.cpu.pc == 0x204
    assert interp.cpu.stack == (0x202,)
    interp.step()
    assert interp.cpu.pc == 0x202
    assert interp.cpu.sp == 0


def test_sys_is_ignored(machine_factory):
    interp = machine_factory(0x0123)
    interp.step()
    assert interp.cpu.pc == 0x202


def test_seventeenth_call_overflows(machine_factory):
    # CALL 0x200 recursively.
    interp = machine_factory(0x2200)
    for _ in range(16):
        interp.step()
    with pytest.raises(StackOverflow):
        interp.step()
    assert interp.halted


def test_return_with_empty_stack_underflows(machine_factory):
    interp = machine_factory(0x00EE)
    with pytest.raises(StackUnderflow):
        interp.step()


@pytest.mark.parametrize("words, expected_pc", [
    ((0x6042, 0x3042), 0x206),  # SE taken
    ((0x6042, 0x3041), 0x204),  # SE not taken
    ((0x6042, 0x4041), 0x206),  # SNE taken
    ((0x6042, 0x4042), 0x204),  # SNE not taken
    ((0x6042, 0x5010), 0x204),  # SE V0, V1 not taken
    ((0x6000, 0x5010), 0x206),  # SE V0, V1 taken
    ((0x6042, 0x9010), 0x206),  # SNE V0, V1 taken
    ((0x6000, 0x9010), 0x204),  # SNE V0, V1 not taken
])
def test_conditional_skips(machine_factory, words, expected_pc):
    interp = machine_factory(*words)
    interp.step()
    interp.step()
    assert interp.cpu.pc == expected_pc


# ---------------------------------------------------------------------------
# Register ALU
# ---------------------------------------------------------------------------

def _alu(machine_factory, vx, vy, op_word, quirks=None):
    interp = machine_factory(0x6000 | vx, 0x6100 | vy, op_word, quirks=quirks)
    interp.cpu.vf = 0x55
    interp.run(3)
    return interp.cpu


@pytest.mark.parametrize("vx, vy, word, result, flag", [
    (0x05, 0x0A, 0x8014, 0x0F, 0),
    (0xFF, 0x01, 0x8014, 0x00, 1),
    (0xC8, 0x64, 0x8014, 0x2C, 1),
    (0x0A, 0x05, 0x8015, 0x05, 1),
    (0x05, 0x05, 0x8015, 0x00, 1),
    (0x05, 0x0A, 0x8015, 0xFB, 0),
    (0x05, 0x0A, 0x8017, 0x05, 1),
    (0x0A, 0x05, 0x8017, 0xFB, 0),
    (0x05, 0x00, 0x8016, 0x02, 1),
    (0x04, 0x00, 0x8016, 0x02, 0),
    (0x81, 0x00, 0x801E, 0x02, 1),
    (0x41, 0x00, 0x801E, 0x82, 0),
])
def test_arithmetic_result_and_flag(machine_factory, vx, vy, word, result, flag):
    cpu = _alu(machine_factory, vx, vy, word)
    assert cpu.v[0] == result
    assert cpu.vf == flag


@pytest.mark.parametrize("word, result", [
    (0x8010, 0x06),
    (0x8011, 0x0E),
    (0x8012, 0x04),
    (0x8013, 0x0A),
])
def test_logic_ops_leave_vf_by_default(machine_factory, word, result):
    cpu = _alu(machine_factory, 0x0C, 0x06, word)
    assert cpu.v[0] == result
    assert cpu.vf == 0x55


@pytest.mark.parametrize("word", [0x8011, 0x8012, 0x8013])
def test_logic_ops_reset_vf_with_quirk(machine_factory, word):
    cpu = _alu(machine_factory, 0x0C, 0x06, word, quirks=Quirks(logic_resets_vf=True))
    assert cpu.vf == 0


def test_shift_uses_vy_with_quirk(machine_factory):
    quirks = Quirks(shift=ShiftQuirk.SHIFT_Y_INTO_X)
    cpu = _alu(machine_factory, 0xFF, 0x04, 0x8016, quirks=quirks)
    assert cpu.v[0] == 0x02
    assert cpu.vf == 0
    cpu = _alu(machine_factory, 0x00, 0x81, 0x801E, quirks=quirks)
    assert cpu.v[0] == 0x02
    assert cpu.vf == 1


def test_add_immediate_wraps_without_touching_vf(machine_factory):
    interp = machine_factory(0x60FF, 0x7002)
    interp.cpu.vf = 7
    interp.run(2)
    assert interp.cpu.v[0] == 0x01
    assert interp.cpu.vf == 7


@pytest.mark.parametrize("order, expected_vf", [
    (VfOrderQuirk.FLAG_WINS, 1),
    (VfOrderQuirk.RESULT_WINS, 0x00),
])
def test_vf_destination_write_order(machine_factory, order, expected_vf):
    # VF = 0xFF; V1 = 0x01; ADD VF, V1 -> result 0x00, carry 1
    interp = machine_factory(0x6FFF, 0x6101, 0x8F14, quirks=Quirks(vf_order=order))
    interp.run(3)
    assert interp.cpu.vf == expected_vf


# ---------------------------------------------------------------------------
# Index, jumps, random
# ---------------------------------------------------------------------------

def test_load_index(machine_factory):
    interp = machine_factory(0xA2A0)
    interp.step()
    assert interp.cpu.i == 0x2A0


def test_jump_plus_v0(machine_factory):
    interp = machine_factory(0x6010, 0x6320, 0xB300)
    interp.run(3)
    assert interp.cpu.pc == 0x310


def test_jump_plus_vx_with_quirk(machine_factory):
    interp = machine_factory(0x6010, 0x6320, 0xB300, quirks=Quirks(jump=JumpQuirk.VX))
    interp.run(3)
    assert interp.cpu.pc == 0x320


def test_jump_plus_v0_wraps_to_twelve_bits(machine_factory):
    interp = machine_factory(0x60FF, 0xBFFF)
    interp.run(2)
    assert interp.cpu.pc == (0xFFF + 0xFF) & 0xFFF


def test_jump_past_memory_fails_on_next_fetch_when_strict(machine_factory):
    interp = machine_factory(0x60FF, 0xBFFF, quirks=Quirks(memory_wrap=False))
    interp.run(2)
    assert interp.cpu.pc == 0xFFF + 0xFF
    with pytest.raises(MemoryOutOfBounds):
        interp.step()


def test_random_is_masked_and_reproducible():
    program = bytes([0xC0, 0x0F, 0xC1, 0xFF])
    a = Interpreter(rng=random.Random(7))
    b = Interpreter(rng=random.Random(7))
    a.load(program)
    b.load(program)
    a.run(2)
    b.run(2)
    assert a.cpu.v[0] <= 0x0F
    assert a.cpu.v[:2] == b.cpu.v[:2]


def test_random_with_zero_mask(machine_factory):
    interp = machine_factory(0xC000)
    interp.step()
    assert interp.cpu.v[0] == 0


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def test_draw_font_glyph_and_collision(machine_factory):
    # V0 = 0; I = glyph 0; DRW V0, V0, 5 twice.
    interp = machine_factory(0x6000, 0xF029, 0xD005, 0xD005)
    interp.run(3)
    fb = interp.frame_buffer
    assert interp.cpu.i == 0x050
    assert fb.pixel(0, 0) and fb.pixel(3, 0) and not fb.pixel(4, 0)
    assert fb.pixel(0, 1) and not fb.pixel(1, 1)
    assert interp.cpu.vf == 0
    interp.step()
    assert fb.lit_count() == 0
    assert interp.cpu.vf == 1


def test_draw_zero_rows_clears_vf(machine_factory):
    interp = machine_factory(0xD000)
    interp.cpu.vf = 1
    interp.step()
    assert interp.cpu.vf == 0
    assert interp.frame_buffer.lit_count() == 0


def test_draw_clips_by_default_and_wraps_with_quirk(machine_factory):
    words = (0x603E, 0x6100, 0xA078, 0xD011)  # glyph 8 top row 0xF0 at x=62
    clipped = machine_factory(*words)
    clipped.run(4)
    wrapped = machine_factory(*words, quirks=Quirks(draw_wrap=True))
    wrapped.run(4)
    assert clipped.frame_buffer.lit_count() == 2
    assert wrapped.frame_buffer.lit_count() == 4
    assert not clipped.frame_buffer.pixel(0, 0)
    assert wrapped.frame_buffer.pixel(0, 0)
    assert wrapped.frame_buffer.pixel(1, 0)


def test_clear_screen(machine_factory):
    interp = machine_factory(0xF029, 0xD005, 0x00E0)
    interp.run(3)
    assert interp.frame_buffer.lit_count() == 0


def test_frame_view_is_read_only_and_live(machine_factory):
    interp = machine_factory(0xF029, 0xD005)
    view = interp.frame_view()
    assert view.readonly
    with pytest.raises(TypeError):
        view[0] = 1
    interp.run(2)
    assert view[0] == 1
    assert sum(view) == interp.frame_buffer.lit_count()


def test_take_frame_dirty_reports_each_change_once(machine_factory):
    interp = machine_factory(0x6000, 0xD005, 0x00E0)
    assert interp.take_frame_dirty()
    assert not interp.take_frame_dirty()
    interp.step()
    assert not interp.take_frame_dirty()
    interp.step()
    assert interp.take_frame_dirty()
    assert not interp.take_frame_dirty()
    interp.step()
    assert interp.take_frame_dirty()


# ---------------------------------------------------------------------------
# Keypad
# ---------------------------------------------------------------------------

def test_skip_if_key_pressed(machine_factory):
    interp = machine_factory(0x6007, 0xE09E)
    interp.set_key_state(7, True)
    interp.run(2)
    assert interp.cpu.pc == 0x206


def test_skip_if_key_not_pressed(machine_factory):
    interp = machine_factory(0x6007, 0xE0A1)
    interp.run(2)
    assert interp.cpu.pc == 0x206
    interp = machine_factory(0x6007, 0xE0A1)
    interp.set_key_state(7, True)
    interp.run(2)
    assert interp.cpu.pc == 0x204


def test_wait_for_key_blocks_until_new_press(machine_factory):
    interp = machine_factory(0xF30A, 0x6001)
    interp.set_key_state(0x2, True)  # held before the wait starts

    assert interp.step() is StepOutcome.BLOCKED
    assert interp.waiting_for_key
    assert interp.cpu.pc == 0x200
    assert interp.step() is StepOutcome.BLOCKED
    assert interp.cycles == 0

    interp.set_key_state(0xB, True)
    assert interp.step() is StepOutcome.EXECUTED
    assert interp.cpu.v[3] == 0xB
    assert interp.cpu.pc == 0x202
    assert not interp.waiting_for_key


def test_run_stops_when_blocked(machine_factory):
    interp = machine_factory(0x6001, 0xF00A)
    assert interp.run(100) == 1
    assert interp.waiting_for_key


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------

def test_timer_registers(machine_factory):
    interp = machine_factory(0x6009, 0xF015, 0xF018, 0xF107)
    interp.run(3)
    assert interp.delay_timer() == 9
    assert interp.sound_active()
    for _ in range(4):
        interp.tick_timers()
    interp.step()
    assert interp.cpu.v[1] == 5
    for _ in range(20):
        interp.tick_timers()
    assert interp.delay_timer() == 0
    assert not interp.sound_active()


def test_timers_tick_without_program():
    interp = Interpreter()
    interp.cpu.delay_timer = 3
    interp.tick_timers()
    assert interp.cpu.delay_timer == 2


# ---------------------------------------------------------------------------
# Index register and memory
# ---------------------------------------------------------------------------

def test_add_to_index_leaves_vf(machine_factory):
    interp = machine_factory(0xAFFF, 0x6002, 0xF01E)
    interp.cpu.vf = 9
    interp.run(3)
    assert interp.cpu.i == 0x1001
    assert interp.cpu.vf == 9


def test_bcd(machine_factory):
    interp = machine_factory(0x60FE, 0xA300, 0xF033)
    interp.run(3)
    assert interp.memory.read_block(0x300, 3) == bytes([2, 5, 4])


@pytest.mark.parametrize("load_store, expected_i", [
    (LoadStoreQuirk.INVARIANT_INDEX, 0x300),
    (LoadStoreQuirk.INCREMENT_INDEX, 0x303),
])
def test_store_and_load_registers(machine_factory, load_store, expected_i):
    quirks = Quirks(load_store=load_store)
    interp = machine_factory(0x6011, 0x6122, 0x6233, 0xA300, 0xF255, quirks=quirks)
    interp.run(5)
    assert interp.memory.read_block(0x300, 4) == bytes([0x11, 0x22, 0x33, 0x00])
    assert interp.cpu.i == expected_i

    interp = machine_factory(0xA050, 0xF165, quirks=quirks)
    interp.run(2)
    assert interp.cpu.v[:3] == [0xF0, 0x90, 0x00]
    assert interp.cpu.i == 0x050 + (2 if load_store == LoadStoreQuirk.INCREMENT_INDEX else 0)


def test_store_past_end_of_memory(machine_factory):
    words = (0x6107, 0xAFFF, 0xF155)
    wrapped = machine_factory(*words)
    wrapped.run(3)
    assert wrapped.memory[0x000] == 0x07

    strict = machine_factory(*words, quirks=Quirks(memory_wrap=False))
    strict.run(2)
    with pytest.raises(MemoryOutOfBounds):
        strict.step()
    assert strict.halted


# ---------------------------------------------------------------------------
# Instances and observation
# ---------------------------------------------------------------------------

def test_instances_share_no_state(machine_factory):
    a = machine_factory(0x6042)
    b = machine_factory(0x6042)
    a.step()
    assert a.cpu.v[0] == 0x42
    assert b.cpu.v[0] == 0
    a.memory[0x300] = 1
    assert b.memory[0x300] == 0


def test_debug_state_and_current_instruction(machine_factory):
    interp = machine_factory(0x6005, 0x2300)
    interp.step()
    assert str(interp.current_instruction()) == "CALL 0x300"
    state = interp.debug_state()
    assert state["pc"] == 0x202
    assert state["v"][0] == 5
    assert state["cycles"] == 1
    assert state["instruction"] == "CALL 0x300"
    assert state["halted"] is False


def test_logger_receives_load_trace_and_halt(machine_factory):
    log = RecordingLogger(LEVEL_TRACE)
    interp = machine_factory(0x6005, 0xFFFF, logger=log)
    interp.step()
    with pytest.raises(InvalidOpcode):
        interp.step()
    levels = [level for level, _ in log.records]
    assert levels[0] == LEVEL_INFO
    assert (LEVEL_TRACE, "200: 6005  LD V0, 0x05") in log.records
    assert levels[-1] == LEVEL_ERROR
