"""
Exception hierarchy for the Chipper core.

Every failure the interpreter can report derives from :class:`Chip8Error`
so a host can catch a single class.  None of them are retryable: each one
means the loaded program is malformed or was built for a different quirk
configuration.
"""

from __future__ import annotations

from typing import Optional


class Chip8Error(Exception):
    """Base class for all interpreter errors."""


class RomTooLarge(Chip8Error):
    """The program image does not fit between the load offset and the end
    of memory."""

    def __init__(self, size: int, capacity: int) -> None:
        super().__init__(
            f"program is {size} bytes but only {capacity} bytes are available"
        )
        self.size = size
        self.capacity = capacity


class InvalidOpcode(Chip8Error):
    """The fetched instruction word matches no known instruction form."""

    def __init__(self, word: int, address: Optional[int] = None) -> None:
        if address is None:
            message = f"unsupported opcode: {word:04X}"
        else:
            message = f"unsupported opcode: {word:04X} at {address:03X}"
        super().__init__(message)
        self.word = word
        self.address = address


class MemoryOutOfBounds(Chip8Error):
    """An address escaped the valid range while memory wrap-around is off."""

    def __init__(self, address: int) -> None:
        super().__init__(f"memory access out of bounds: {address:#06x}")
        self.address = address


class StackOverflow(Chip8Error):
    def __init__(self) -> None:
        super().__init__("stack overflow!")


class StackUnderflow(Chip8Error):
    def __init__(self) -> None:
        super().__init__("stack underflow!")


class InterpreterHalted(Chip8Error):
    """Raised by ``step()`` once the instance can no longer execute.

    Attributes:
        halt_reason: The error that halted the interpreter, or ``None`` if
                     no program was ever loaded.
    """

    def __init__(self, halt_reason: Optional[Chip8Error] = None) -> None:
        if halt_reason is None:
            message = "interpreter halted: no program loaded"
        else:
            message = f"interpreter halted: {halt_reason}"
        super().__init__(message)
        self.halt_reason = halt_reason
