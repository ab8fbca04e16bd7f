"""
Interpreter -- the fetch / decode / execute engine of Chipper.

An :class:`Interpreter` owns every piece of mutable machine state:

* **Memory** -- 4 KB, font glyphs at 0x050, program at 0x200.
* **CpuState** -- ``V0``..``VF``, ``I``, the program counter, the call
  stack and both timers.
* **FrameBuffer** -- the 64x32 display.
* **InputState** -- the sixteen-key keypad.

The host drives two independent operations:

* :meth:`Interpreter.step` executes exactly one instruction (or reports
  that ``LD Vx, K`` is still waiting for a key), and
* :meth:`Interpreter.tick_timers` decrements the delay and sound timers
  once.

How often each is called is up to the host; :mod:`chipper.core.clock`
provides the usual "hundreds of steps, sixty ticks per second" driver.

Hosts read the display through :meth:`Interpreter.frame_view`, a
read-only view, and learn about changes from
:meth:`Interpreter.take_frame_dirty`.  The component attributes
(``memory``, ``cpu``, ``frame_buffer``) are exposed for debuggers and
tests, not for hosts to write through.

The first error raised by a step halts the instance.  Every later call to
:meth:`step` raises :class:`~chipper.core.errors.InterpreterHalted`;
recovering means constructing a new interpreter.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Optional

from chipper.core.cpu_state import CpuState
from chipper.core.errors import Chip8Error, InterpreterHalted, InvalidOpcode
from chipper.core.frame_buffer import FrameBuffer
from chipper.core.input_state import InputState
from chipper.core.logger import (
    DEFAULT_LOGGER,
    LEVEL_ERROR,
    LEVEL_INFO,
    LEVEL_TRACE,
    ILogger,
)
from chipper.core.memory import Memory
from chipper.core.opcode import Instruction, Op, decode
from chipper.core.quirks import Quirks
from chipper.core.types import (
    JumpQuirk,
    LoadStoreQuirk,
    ShiftQuirk,
    StepOutcome,
    VfOrderQuirk,
)

Handler = Callable[[Instruction], Optional[StepOutcome]]


class Interpreter:
    """A single CHIP-8 machine.

    Parameters
    ----------
    quirks:
        Compatibility toggles.  Defaults to :meth:`Quirks.modern`.
    rng:
        Source for ``RND``.  Each instance gets its own
        :class:`random.Random` unless one is supplied (tests pass a seeded
        generator).
    logger:
        Core logger, see :mod:`chipper.core.logger`.
    """

    def __init__(
        self,
        quirks: Optional[Quirks] = None,
        *,
        rng: Optional[random.Random] = None,
        logger: ILogger = DEFAULT_LOGGER,
    ) -> None:
        self.quirks: Quirks = quirks if quirks is not None else Quirks.modern()
        self.logger: ILogger = logger

        self.memory: Memory = Memory(wrap=self.quirks.memory_wrap)
        self.cpu: CpuState = CpuState(pc=Memory.LOAD_OFFSET)
        self.frame_buffer: FrameBuffer = FrameBuffer()
        self.input_state: InputState = InputState()
        self._rng: random.Random = rng if rng is not None else random.Random()

        # Run-state.
        self.loaded: bool = False
        self.halted: bool = False
        self.halt_reason: Optional[Chip8Error] = None
        self.cycles: int = 0

        # Register awaiting a key while LD Vx, K is in progress.
        self._waiting_register: Optional[int] = None

        self._dispatch: Dict[Op, Handler] = self._build_dispatch_table()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self, program: bytes) -> None:
        """Load a raw program image at 0x200.

        Raises:
            RomTooLarge: If the image exceeds the space above 0x200.  The
                         instance is halted and cannot be stepped.
            RuntimeError: If a program was already loaded.
            InterpreterHalted: If an earlier load failed.  A halted
                               instance cannot be reused; construct a new
                               one.
        """
        if self.halted:
            raise InterpreterHalted(self.halt_reason)
        if self.loaded:
            raise RuntimeError(
                "A program is already loaded; construct a new Interpreter"
            )
        try:
            self.memory.load(bytes(program))
        except Chip8Error as exc:
            self._halt(exc)
            raise
        self.loaded = True
        self.logger.log(
            LEVEL_INFO,
            f"Loaded {len(program)} bytes at {Memory.LOAD_OFFSET:03X}",
        )

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self) -> StepOutcome:
        """Execute one instruction.

        Returns:
            :attr:`StepOutcome.EXECUTED` normally, or
            :attr:`StepOutcome.BLOCKED` while ``LD Vx, K`` waits for a key
            (the program counter is left on that instruction).

        Raises:
            InterpreterHalted: If no program is loaded or an earlier error
                               halted the instance.
            Chip8Error: The error that halted the instance on this step.
        """
        if self.halted:
            raise InterpreterHalted(self.halt_reason)
        if not self.loaded:
            raise InterpreterHalted(None)
        try:
            return self._execute_one()
        except Chip8Error as exc:
            self._halt(exc)
            raise

    def run(self, max_steps: int) -> int:
        """Step until *max_steps* instructions ran or a key wait blocks.

        Returns:
            The number of instructions executed.
        """
        executed = 0
        while executed < max_steps:
            if self.step() is StepOutcome.BLOCKED:
                break
            executed += 1
        return executed

    def tick_timers(self) -> None:
        """Decrement the delay and sound timers once (never below zero)."""
        self.cpu.tick_timers()

    def _execute_one(self) -> StepOutcome:
        cpu = self.cpu
        pc = cpu.pc
        word = self.memory.read_word(pc)
        try:
            ins = decode(word)
        except InvalidOpcode:
            raise InvalidOpcode(word, pc) from None

        cpu.advance()
        if self.logger.enabled_for(LEVEL_TRACE):
            self.logger.log(LEVEL_TRACE, f"{pc:03X}: {word:04X}  {ins.mnemonic()}")

        outcome = self._dispatch[ins.op](ins)
        if outcome is StepOutcome.BLOCKED:
            cpu.pc = pc
            return StepOutcome.BLOCKED

        self.cycles += 1
        return StepOutcome.EXECUTED

    def _halt(self, exc: Chip8Error) -> None:
        self.halted = True
        self.halt_reason = exc
        self.logger.log(LEVEL_ERROR, f"Halted: {exc}")

    # ------------------------------------------------------------------
    # Host interface
    # ------------------------------------------------------------------

    def set_key_state(self, key: int, pressed: bool) -> None:
        """Set the pressed state of logical key 0-15."""
        self.input_state.set_key_state(key, pressed)

    def sound_active(self) -> bool:
        """``True`` while the buzzer should sound."""
        return self.cpu.sound_timer > 0

    def delay_timer(self) -> int:
        return self.cpu.delay_timer

    def frame_view(self) -> memoryview:
        """Read-only view of the display, ``pixels[y * 64 + x]`` is 0 or 1."""
        return self.frame_buffer.view()

    def take_frame_dirty(self) -> bool:
        """Return ``True`` if the display changed since the previous call."""
        dirty = self.frame_buffer.dirty
        self.frame_buffer.dirty = False
        return dirty

    @property
    def waiting_for_key(self) -> bool:
        return self._waiting_register is not None

    def current_instruction(self) -> Optional[Instruction]:
        """Decode, without executing, the instruction at the program
        counter.  Returns ``None`` if it cannot be fetched or decoded."""
        try:
            return decode(self.memory.read_word(self.cpu.pc))
        except Chip8Error:
            return None

    def debug_state(self) -> dict:
        """Return a printable snapshot of the registers for debug views."""
        cpu = self.cpu
        ins = self.current_instruction()
        return {
            "pc": cpu.pc,
            "i": cpu.i,
            "sp": cpu.sp,
            "v": list(cpu.v),
            "stack": list(cpu.stack),
            "delay_timer": cpu.delay_timer,
            "sound_timer": cpu.sound_timer,
            "cycles": self.cycles,
            "halted": self.halted,
            "waiting_for_key": self.waiting_for_key,
            "instruction": ins.mnemonic() if ins is not None else None,
        }

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _write_result_and_flag(self, x: int, result: int, flag: int) -> None:
        """Store an arithmetic result in ``Vx`` and its flag in ``VF``.

        The order matters only when ``x`` is ``0xF``.
        """
        cpu = self.cpu
        if self.quirks.vf_order == VfOrderQuirk.FLAG_WINS:
            cpu.write_register(x, result)
            cpu.vf = flag
        else:
            cpu.vf = flag
            cpu.write_register(x, result)

    def _shift_source(self, ins: Instruction) -> int:
        if self.quirks.shift == ShiftQuirk.SHIFT_Y_INTO_X:
            return self.cpu.v[ins.y]
        return self.cpu.v[ins.x]

    # ------------------------------------------------------------------
    # 0nnn / 1nnn / 2nnn -- flow control
    # ------------------------------------------------------------------

    def _op_cls(self, ins: Instruction) -> None:
        self.frame_buffer.clear()

    def _op_ret(self, ins: Instruction) -> None:
        self.cpu.jump(self.cpu.pop())

    def _op_sys(self, ins: Instruction) -> None:
        # Native machine-code call on the COSMAC VIP; nothing to run here.
        self.logger.log(LEVEL_TRACE, f"Ignoring SYS 0x{ins.nnn:03X}")

    def _op_jp(self, ins: Instruction) -> None:
        self.cpu.jump(ins.nnn)

    def _op_call(self, ins: Instruction) -> None:
        self.cpu.push(self.cpu.pc)
        self.cpu.jump(ins.nnn)

    # ------------------------------------------------------------------
    # 3xkk / 4xkk / 5xy0 / 9xy0 -- conditional skips
    # ------------------------------------------------------------------

    def _op_se_vx_kk(self, ins: Instruction) -> None:
        if self.cpu.v[ins.x] == ins.kk:
            self.cpu.advance()

    def _op_sne_vx_kk(self, ins: Instruction) -> None:
        if self.cpu.v[ins.x] != ins.kk:
            self.cpu.advance()

    def _op_se_vx_vy(self, ins: Instruction) -> None:
        if self.cpu.v[ins.x] == self.cpu.v[ins.y]:
            self.cpu.advance()

    def _op_sne_vx_vy(self, ins: Instruction) -> None:
        if self.cpu.v[ins.x] != self.cpu.v[ins.y]:
            self.cpu.advance()

    # ------------------------------------------------------------------
    # 6xkk / 7xkk -- immediate loads
    # ------------------------------------------------------------------

    def _op_ld_vx_kk(self, ins: Instruction) -> None:
        self.cpu.write_register(ins.x, ins.kk)

    def _op_add_vx_kk(self, ins: Instruction) -> None:
        self.cpu.write_register(ins.x, self.cpu.v[ins.x] + ins.kk)

    # ------------------------------------------------------------------
    # 8xyN -- register ALU
    # ------------------------------------------------------------------

    def _op_ld_vx_vy(self, ins: Instruction) -> None:
        self.cpu.write_register(ins.x, self.cpu.v[ins.y])

    def _op_or(self, ins: Instruction) -> None:
        cpu = self.cpu
        cpu.write_register(ins.x, cpu.v[ins.x] | cpu.v[ins.y])
        if self.quirks.logic_resets_vf:
            cpu.vf = 0

    def _op_and(self, ins: Instruction) -> None:
        cpu = self.cpu
        cpu.write_register(ins.x, cpu.v[ins.x] & cpu.v[ins.y])
        if self.quirks.logic_resets_vf:
            cpu.vf = 0

    def _op_xor(self, ins: Instruction) -> None:
        cpu = self.cpu
        cpu.write_register(ins.x, cpu.v[ins.x] ^ cpu.v[ins.y])
        if self.quirks.logic_resets_vf:
            cpu.vf = 0

    def _op_add_vx_vy(self, ins: Instruction) -> None:
        total = self.cpu.v[ins.x] + self.cpu.v[ins.y]
        self._write_result_and_flag(ins.x, total & 0xFF, 1 if total > 0xFF else 0)

    def _op_sub(self, ins: Instruction) -> None:
        vx = self.cpu.v[ins.x]
        vy = self.cpu.v[ins.y]
        self._write_result_and_flag(ins.x, (vx - vy) & 0xFF, 1 if vx >= vy else 0)

    def _op_subn(self, ins: Instruction) -> None:
        vx = self.cpu.v[ins.x]
        vy = self.cpu.v[ins.y]
        self._write_result_and_flag(ins.x, (vy - vx) & 0xFF, 1 if vy >= vx else 0)

    def _op_shr(self, ins: Instruction) -> None:
        src = self._shift_source(ins)
        self._write_result_and_flag(ins.x, src >> 1, src & 0x1)

    def _op_shl(self, ins: Instruction) -> None:
        src = self._shift_source(ins)
        self._write_result_and_flag(ins.x, (src << 1) & 0xFF, (src >> 7) & 0x1)

    # ------------------------------------------------------------------
    # Annn / Bnnn / Cxkk
    # ------------------------------------------------------------------

    def _op_ld_i(self, ins: Instruction) -> None:
        self.cpu.set_index(ins.nnn)

    def _op_jp_v0(self, ins: Instruction) -> None:
        reg = ins.x if self.quirks.jump == JumpQuirk.VX else 0
        target = ins.nnn + self.cpu.v[reg]
        if self.quirks.memory_wrap:
            target &= 0xFFF
        self.cpu.jump(target)

    def _op_rnd(self, ins: Instruction) -> None:
        self.cpu.write_register(ins.x, self._rng.getrandbits(8) & ins.kk)

    # ------------------------------------------------------------------
    # Dxyn -- sprites
    # ------------------------------------------------------------------

    def _op_drw(self, ins: Instruction) -> None:
        cpu = self.cpu
        sprite = self.memory.read_block(cpu.i, ins.n)
        collision = self.frame_buffer.draw(
            cpu.v[ins.x], cpu.v[ins.y], sprite, self.quirks.draw_wrap
        )
        cpu.vf = 1 if collision else 0

    # ------------------------------------------------------------------
    # Ex9E / ExA1 / Fx0A -- keypad
    # ------------------------------------------------------------------

    def _op_skp(self, ins: Instruction) -> None:
        if self.input_state.is_pressed(self.cpu.v[ins.x]):
            self.cpu.advance()

    def _op_sknp(self, ins: Instruction) -> None:
        if not self.input_state.is_pressed(self.cpu.v[ins.x]):
            self.cpu.advance()

    def _op_ld_vx_k(self, ins: Instruction) -> Optional[StepOutcome]:
        if self._waiting_register is None:
            self._waiting_register = ins.x
            self.input_state.arm_wait()
        key = self.input_state.take_latched_press()
        if key is None:
            return StepOutcome.BLOCKED
        self._waiting_register = None
        self.cpu.write_register(ins.x, key)
        return None

    # ------------------------------------------------------------------
    # Fx07 / Fx15 / Fx18 -- timers
    # ------------------------------------------------------------------

    def _op_ld_vx_dt(self, ins: Instruction) -> None:
        self.cpu.write_register(ins.x, self.cpu.delay_timer)

    def _op_ld_dt_vx(self, ins: Instruction) -> None:
        self.cpu.delay_timer = self.cpu.v[ins.x]

    def _op_ld_st_vx(self, ins: Instruction) -> None:
        self.cpu.sound_timer = self.cpu.v[ins.x]

    # ------------------------------------------------------------------
    # Fx1E / Fx29 / Fx33 / Fx55 / Fx65 -- index register and memory
    # ------------------------------------------------------------------

    def _op_add_i_vx(self, ins: Instruction) -> None:
        self.cpu.set_index(self.cpu.i + self.cpu.v[ins.x])

    def _op_ld_f_vx(self, ins: Instruction) -> None:
        self.cpu.set_index(self.memory.glyph_address(self.cpu.v[ins.x]))

    def _op_ld_b_vx(self, ins: Instruction) -> None:
        value = self.cpu.v[ins.x]
        self.memory.write_block(
            self.cpu.i, (value // 100, (value // 10) % 10, value % 10)
        )

    def _op_ld_mem_vx(self, ins: Instruction) -> None:
        cpu = self.cpu
        for r in range(ins.x + 1):
            self.memory.write_byte(cpu.i + r, cpu.v[r])
        if self.quirks.load_store == LoadStoreQuirk.INCREMENT_INDEX:
            cpu.set_index(cpu.i + ins.x + 1)

    def _op_ld_vx_mem(self, ins: Instruction) -> None:
        cpu = self.cpu
        for r in range(ins.x + 1):
            cpu.write_register(r, self.memory.read_byte(cpu.i + r))
        if self.quirks.load_store == LoadStoreQuirk.INCREMENT_INDEX:
            cpu.set_index(cpu.i + ins.x + 1)

    # ------------------------------------------------------------------
    # Dispatch table
    # ------------------------------------------------------------------

    def _build_dispatch_table(self) -> Dict[Op, Handler]:
        table: Dict[Op, Handler] = {
            Op.CLS: self._op_cls,
            Op.RET: self._op_ret,
            Op.SYS: self._op_sys,
            Op.JP: self._op_jp,
            Op.CALL: self._op_call,
            Op.SE_VX_KK: self._op_se_vx_kk,
            Op.SNE_VX_KK: self._op_sne_vx_kk,
            Op.SE_VX_VY: self._op_se_vx_vy,
            Op.LD_VX_KK: self._op_ld_vx_kk,
            Op.ADD_VX_KK: self._op_add_vx_kk,
            Op.LD_VX_VY: self._op_ld_vx_vy,
            Op.OR: self._op_or,
            Op.AND: self._op_and,
            Op.XOR: self._op_xor,
            Op.ADD_VX_VY: self._op_add_vx_vy,
            Op.SUB: self._op_sub,
            Op.SHR: self._op_shr,
            Op.SUBN: self._op_subn,
            Op.SHL: self._op_shl,
            Op.SNE_VX_VY: self._op_sne_vx_vy,
            Op.LD_I: self._op_ld_i,
            Op.JP_V0: self._op_jp_v0,
            Op.RND: self._op_rnd,
            Op.DRW: self._op_drw,
            Op.SKP: self._op_skp,
            Op.SKNP: self._op_sknp,
            Op.LD_VX_DT: self._op_ld_vx_dt,
            Op.LD_VX_K: self._op_ld_vx_k,
            Op.LD_DT_VX: self._op_ld_dt_vx,
            Op.LD_ST_VX: self._op_ld_st_vx,
            Op.ADD_I_VX: self._op_add_i_vx,
            Op.LD_F_VX: self._op_ld_f_vx,
            Op.LD_B_VX: self._op_ld_b_vx,
            Op.LD_MEM_VX: self._op_ld_mem_vx,
            Op.LD_VX_MEM: self._op_ld_vx_mem,
        }
        missing = set(Op) - set(table)
        if missing:
            raise RuntimeError(f"No handler for: {sorted(m.name for m in missing)}")
        return table

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"pc={self.cpu.pc:03X}, "
            f"cycles={self.cycles}, "
            f"halted={self.halted})"
        )
