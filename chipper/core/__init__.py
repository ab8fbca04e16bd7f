# Chipper interpreter core
"""
Interpreter core: memory, registers, display, keypad and the opcode
dispatcher.  Nothing in this package imports a third-party library.

Use :class:`Interpreter` with a :class:`Quirks` record::

    interp = Interpreter(Quirks.preset("cosmac_vip"))
    interp.load(program_bytes)
    interp.step()
"""

from chipper.core.clock import ClockDriver, ClockReport
from chipper.core.cpu_state import CpuState
from chipper.core.errors import (
    Chip8Error,
    InterpreterHalted,
    InvalidOpcode,
    MemoryOutOfBounds,
    RomTooLarge,
    StackOverflow,
    StackUnderflow,
)
from chipper.core.frame_buffer import FrameBuffer
from chipper.core.input_state import InputState
from chipper.core.interpreter import Interpreter
from chipper.core.memory import Memory
from chipper.core.opcode import Instruction, Op, decode, disassemble
from chipper.core.quirks import Quirks
from chipper.core.types import (
    JumpQuirk,
    LoadStoreQuirk,
    QuirkPreset,
    ShiftQuirk,
    StepOutcome,
    VfOrderQuirk,
)

__all__ = [
    "Interpreter",
    "ClockDriver",
    "ClockReport",
    "CpuState",
    "FrameBuffer",
    "InputState",
    "Memory",
    "Quirks",
    # decoding
    "Instruction",
    "Op",
    "decode",
    "disassemble",
    # enums
    "JumpQuirk",
    "LoadStoreQuirk",
    "QuirkPreset",
    "ShiftQuirk",
    "StepOutcome",
    "VfOrderQuirk",
    # errors
    "Chip8Error",
    "InterpreterHalted",
    "InvalidOpcode",
    "MemoryOutOfBounds",
    "RomTooLarge",
    "StackOverflow",
    "StackUnderflow",
]
