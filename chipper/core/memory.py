"""
Memory -- the 4 KB address space of the interpreter.

Layout
------

=============  ==============================================
Range          Use
=============  ==============================================
0x000-0x04F    unused (the original interpreter lived here)
0x050-0x09F    built-in 4x5 hexadecimal font, 5 bytes a glyph
0x0A0-0x1FF    unused
0x200-0xFFF    program image and working RAM
=============  ==============================================

Nothing in the instruction set protects the font region; a program may
overwrite it, exactly as on the original hardware.
"""

from __future__ import annotations

from typing import Iterable

from chipper.core.errors import MemoryOutOfBounds, RomTooLarge


FONTSET: bytes = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """Flat byte-addressable memory with font data and program loading.

    Parameters
    ----------
    wrap:
        When ``True`` every address is reduced modulo :attr:`SIZE`.  When
        ``False`` an address outside ``0..SIZE-1`` raises
        :class:`~chipper.core.errors.MemoryOutOfBounds`.
    """

    SIZE: int = 0x1000
    LOAD_OFFSET: int = 0x200
    FONT_BASE: int = 0x050
    GLYPH_BYTES: int = 5
    CAPACITY: int = SIZE - LOAD_OFFSET

    def __init__(self, wrap: bool = True) -> None:
        self.wrap: bool = wrap
        self._data: bytearray = bytearray(self.SIZE)
        self.program_size: int = 0
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Zero all memory and write the font glyphs."""
        self._data[:] = bytes(self.SIZE)
        self._data[self.FONT_BASE:self.FONT_BASE + len(FONTSET)] = FONTSET
        self.program_size = 0

    def load(self, program: bytes) -> None:
        """Write *program* starting at :attr:`LOAD_OFFSET`.

        Raises:
            RomTooLarge: If the program would run past the end of memory.
                         Memory is left untouched in that case.
        """
        if len(program) > self.capacity:
            raise RomTooLarge(len(program), self.capacity)
        start = self.LOAD_OFFSET
        self._data[start:start + len(program)] = program
        self.program_size = len(program)

    @property
    def capacity(self) -> int:
        """Largest program, in bytes, that :meth:`load` accepts."""
        return self.CAPACITY

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def resolve(self, addr: int) -> int:
        """Map *addr* into the valid range according to the wrap setting."""
        if 0 <= addr < self.SIZE:
            return addr
        if self.wrap:
            return addr % self.SIZE
        raise MemoryOutOfBounds(addr)

    def read_byte(self, addr: int) -> int:
        return self._data[self.resolve(addr)]

    def write_byte(self, addr: int, value: int) -> None:
        self._data[self.resolve(addr)] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Read a big-endian 16-bit word from *addr* and *addr + 1*."""
        return (self.read_byte(addr) << 8) | self.read_byte(addr + 1)

    def read_block(self, addr: int, length: int) -> bytes:
        """Read *length* consecutive bytes, honouring the wrap setting."""
        return bytes(self.read_byte(addr + i) for i in range(length))

    def write_block(self, addr: int, values: Iterable[int]) -> None:
        for offset, value in enumerate(values):
            self.write_byte(addr + offset, value)

    def glyph_address(self, digit: int) -> int:
        """Address of the font glyph for hexadecimal *digit* (low nibble)."""
        return self.FONT_BASE + (digit & 0xF) * self.GLYPH_BYTES

    def __getitem__(self, addr: int) -> int:
        return self.read_byte(addr)

    def __setitem__(self, addr: int, value: int) -> None:
        self.write_byte(addr, value)

    def __len__(self) -> int:
        return self.SIZE

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def dump(self) -> bytes:
        """Return an immutable copy of the memory contents."""
        return bytes(self._data)

    def __repr__(self) -> str:
        return f"Memory(size={self.SIZE}, program={self.program_size}, wrap={self.wrap})"
