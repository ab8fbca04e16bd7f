"""
Program image service for Chipper.

Responsibilities:
  - Read raw program images from disk.
  - Check that an image fits in the interpreter's program area.
  - Describe and disassemble images for ``--info`` / ``--disassemble``.

Program images have no header: they are big-endian 16-bit instruction
words loaded verbatim at 0x200.
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass

from chipper.core.errors import RomTooLarge
from chipper.core.memory import Memory
from chipper.core.opcode import disassemble as disassemble_word

# Extensions commonly used for CHIP-8 program images.
_KNOWN_EXTENSIONS: frozenset[str] = frozenset({".ch8", ".c8", ".rom", ".bin", ""})


@dataclass(frozen=True)
class ListingLine:
    """One line of a disassembly listing."""

    address: int
    word: int
    text: str

    def __str__(self) -> str:
        return f"{self.address:03X}: {self.word:04X}  {self.text}"


class RomService:
    """Static utility for loading and inspecting program images."""

    # -- reading -----------------------------------------------------------

    @staticmethod
    def read(path: str) -> bytes:
        """Read a program image from *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            RomTooLarge: If the image does not fit above 0x200.
            OSError: On general I/O failure.
        """
        with open(path, "rb") as fh:
            data = fh.read()
        RomService.validate(data)
        return data

    @staticmethod
    def validate(data: bytes) -> None:
        """Raise :class:`RomTooLarge` if *data* cannot be loaded."""
        if len(data) > Memory.CAPACITY:
            raise RomTooLarge(len(data), Memory.CAPACITY)

    # -- inspection --------------------------------------------------------

    @staticmethod
    def disassemble(data: bytes, origin: int = Memory.LOAD_OFFSET) -> list[ListingLine]:
        """Return a listing of *data* as if loaded at *origin*.

        Words are read on even offsets.  Undecodable words, including data
        tables mixed into the code, are shown as ``DW 0xNNNN``; a trailing
        odd byte is shown as ``DB 0xNN``.
        """
        lines: list[ListingLine] = []
        for offset in range(0, len(data) - 1, 2):
            word = (data[offset] << 8) | data[offset + 1]
            lines.append(ListingLine(origin + offset, word, disassemble_word(word)))
        if len(data) % 2:
            last = data[-1]
            lines.append(ListingLine(origin + len(data) - 1, last, f"DB 0x{last:02X}"))
        return lines

    @staticmethod
    def describe(path: str) -> dict[str, str]:
        """Return a human-readable description of a program image.

        Returns a dict with keys: ``title``, ``size``, ``free``,
        ``instructions``, ``undecodable``, ``sha1``.
        """
        data = RomService.read(path)
        listing = RomService.disassemble(data)
        undecodable = sum(
            1 for line in listing if line.text.startswith(("DW", "DB"))
        )
        title = os.path.splitext(os.path.basename(path))[0]
        ext = os.path.splitext(path)[1].lower()
        if ext not in _KNOWN_EXTENSIONS:
            title = os.path.basename(path)

        return {
            "title": title,
            "size": f"{len(data)} bytes",
            "free": f"{Memory.CAPACITY - len(data)} bytes",
            "instructions": str(len(listing) - undecodable),
            "undecodable": str(undecodable),
            "sha1": hashlib.sha1(data).hexdigest(),
        }
