"""
CpuState -- registers, program counter, call stack and timers.

Pure state plus structural invariants; no instruction interpretation lives
here.  The dispatcher in :mod:`chipper.core.interpreter` is the only code
that mutates it during execution.
"""

from __future__ import annotations

from typing import List

from chipper.core.errors import StackOverflow, StackUnderflow


class CpuState:
    """Register file of the interpreter.

    Attributes:
        v:           Sixteen 8-bit general registers ``V0``..``VF``.
                     ``VF`` doubles as the carry / borrow / collision flag.
        i:           16-bit index register.
        pc:          16-bit program counter.
        delay_timer: 8-bit delay timer.
        sound_timer: 8-bit sound timer; non-zero means the buzzer sounds.
    """

    NUM_REGISTERS: int = 16
    FLAG: int = 0xF
    STACK_DEPTH: int = 16
    INSTRUCTION_BYTES: int = 2

    def __init__(self, pc: int = 0x200) -> None:
        self.v: List[int] = [0] * self.NUM_REGISTERS
        self.i: int = 0
        self.pc: int = pc & 0xFFFF
        self._stack: List[int] = []
        self.delay_timer: int = 0
        self.sound_timer: int = 0

    # ------------------------------------------------------------------
    # General registers
    # ------------------------------------------------------------------

    def read_register(self, index: int) -> int:
        return self.v[index]

    def write_register(self, index: int, value: int) -> None:
        self.v[index] = value & 0xFF

    @property
    def vf(self) -> int:
        return self.v[self.FLAG]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[self.FLAG] = value & 0xFF

    def set_index(self, value: int) -> None:
        self.i = value & 0xFFFF

    # ------------------------------------------------------------------
    # Program counter
    # ------------------------------------------------------------------

    def advance(self, instructions: int = 1) -> None:
        """Move the program counter forward by whole instructions."""
        self.pc = (self.pc + instructions * self.INSTRUCTION_BYTES) & 0xFFFF

    def jump(self, address: int) -> None:
        self.pc = address & 0xFFFF

    # ------------------------------------------------------------------
    # Stack
    # ------------------------------------------------------------------

    @property
    def sp(self) -> int:
        """Stack pointer: the number of return addresses held."""
        return len(self._stack)

    @property
    def stack(self) -> tuple[int, ...]:
        """Snapshot of the stack, oldest entry first."""
        return tuple(self._stack)

    def push(self, address: int) -> None:
        """Push a return address.

        Raises:
            StackOverflow: If sixteen addresses are already held.
        """
        if len(self._stack) >= self.STACK_DEPTH:
            raise StackOverflow()
        self._stack.append(address & 0xFFFF)

    def pop(self) -> int:
        """Pop the most recent return address.

        Raises:
            StackUnderflow: If the stack is empty.
        """
        if not self._stack:
            raise StackUnderflow()
        return self._stack.pop()

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def tick_timers(self) -> None:
        """Decrement both timers by one, flooring at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def __repr__(self) -> str:
        regs = " ".join(f"V{n:X}={val:02X}" for n, val in enumerate(self.v))
        return (
            f"CpuState(pc={self.pc:03X}, i={self.i:03X}, sp={self.sp}, "
            f"dt={self.delay_timer}, st={self.sound_timer}, {regs})"
        )
