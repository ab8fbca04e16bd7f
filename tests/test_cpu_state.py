"""Tests for registers, the call stack and timers."""

from __future__ import annotations

import pytest

from chipper.core.cpu_state import CpuState
from chipper.core.errors import StackOverflow, StackUnderflow


def test_initial_state():
    cpu = CpuState()
    assert cpu.pc == 0x200
    assert cpu.i == 0
    assert cpu.v == [0] * 16
    assert cpu.sp == 0
    assert cpu.delay_timer == 0
    assert cpu.sound_timer == 0


def test_register_writes_are_masked():
    cpu = CpuState()
    cpu.write_register(3, 0x1FF)
    assert cpu.read_register(3) == 0xFF
    cpu.vf = 2
    assert cpu.v[0xF] == 2
    cpu.set_index(0x1FFFF)
    assert cpu.i == 0xFFFF


def test_advance_moves_whole_instructions():
    cpu = CpuState()
    cpu.advance()
    assert cpu.pc == 0x202
    cpu.advance(2)
    assert cpu.pc == 0x206


def test_stack_holds_sixteen_entries():
    cpu = CpuState()
    for n in range(16):
        cpu.push(0x200 + 2 * n)
    assert cpu.sp == 16
    with pytest.raises(StackOverflow):
        cpu.push(0x300)
    assert cpu.sp == 16


def test_pop_returns_last_pushed():
    cpu = CpuState()
    cpu.push(0x202)
    cpu.push(0x404)
    assert cpu.stack == (0x202, 0x404)
    assert cpu.pop() == 0x404
    assert cpu.pop() == 0x202


def test_pop_on_empty_stack_underflows():
    with pytest.raises(StackUnderflow):
        CpuState().pop()


@pytest.mark.parametrize("start, ticks, expected", [
    (0, 1, 0),
    (5, 3, 2),
    (5, 5, 0),
    (5, 9, 0),
    (255, 1, 254),
])
def test_timers_floor_at_zero(start, ticks, expected):
    cpu = CpuState()
    cpu.delay_timer = start
    cpu.sound_timer = start
    for _ in range(ticks):
        cpu.tick_timers()
    assert cpu.delay_timer == expected
    assert cpu.sound_timer == expected
