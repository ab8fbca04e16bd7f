"""
FrameBuffer -- the 64x32 monochrome display of the interpreter.

One byte per pixel, ``0`` for off and ``1`` for on, laid out in row
order: ``pixels[y * WIDTH + x]``.  The colours used for "on" and "off" are
a rendering concern and live in :mod:`chipper.shell.frame_renderer`.

Only two instructions touch the grid: ``CLS`` clears it and ``DRW`` XORs
a sprite onto it.  ``DRW`` reports a *collision* when at least one pixel
that was on is turned off.
"""

from __future__ import annotations

from typing import Sequence


class FrameBuffer:
    """Pixel grid with XOR sprite drawing.

    Attributes:
        pixels: The raw grid, ``WIDTH * HEIGHT`` bytes of ``0``/``1``.
        dirty:  Set whenever the grid changes; hosts clear it after they
                have redrawn.
    """

    WIDTH: int = 64
    HEIGHT: int = 32
    PIXELS: int = WIDTH * HEIGHT
    SPRITE_WIDTH: int = 8

    def __init__(self) -> None:
        self.pixels: bytearray = bytearray(self.PIXELS)
        self.dirty: bool = True

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Turn every pixel off."""
        self.pixels[:] = bytes(self.PIXELS)
        self.dirty = True

    def draw(self, x: int, y: int, sprite: Sequence[int], wrap: bool) -> bool:
        """XOR an 8-pixel-wide *sprite* onto the grid at ``(x, y)``.

        The starting coordinate is always reduced modulo the grid size.
        Pixels that then fall past the right or bottom edge either wrap to
        the opposite edge (*wrap* ``True``) or are dropped (*wrap*
        ``False``).

        Args:
            x: Horizontal position of the sprite's left column.
            y: Vertical position of the sprite's top row.
            sprite: One byte per row, most significant bit leftmost.
            wrap: Wrap around the edges instead of clipping.

        Returns:
            ``True`` if any previously-on pixel was turned off.
        """
        width = self.WIDTH
        height = self.HEIGHT
        pixels = self.pixels
        x0 = x % width
        y0 = y % height
        collision = False

        for row, bits in enumerate(sprite):
            py = y0 + row
            if py >= height:
                if not wrap:
                    break
                py %= height
            offset = py * width
            for col in range(self.SPRITE_WIDTH):
                if not (bits >> (7 - col)) & 0x1:
                    continue
                px = x0 + col
                if px >= width:
                    if not wrap:
                        break
                    px %= width
                idx = offset + px
                if pixels[idx]:
                    collision = True
                pixels[idx] ^= 1

        self.dirty = True
        return collision

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def pixel(self, x: int, y: int) -> bool:
        """Return ``True`` if the pixel at ``(x, y)`` is on.

        Raises:
            IndexError: If the coordinate lies outside the grid.
        """
        if not (0 <= x < self.WIDTH and 0 <= y < self.HEIGHT):
            raise IndexError(f"pixel ({x}, {y}) out of range")
        return self.pixels[y * self.WIDTH + x] != 0

    def rows(self) -> list[bytes]:
        """Return the grid as ``HEIGHT`` immutable rows of ``WIDTH`` bytes."""
        w = self.WIDTH
        return [bytes(self.pixels[y * w:(y + 1) * w]) for y in range(self.HEIGHT)]

    def lit_count(self) -> int:
        """Number of pixels currently on."""
        return sum(self.pixels)

    def to_text(self, on: str = "1", off: str = "0") -> str:
        """Render the grid as ``HEIGHT`` lines of text."""
        return "\n".join(
            "".join(on if p else off for p in row) for row in self.rows()
        )

    def snapshot(self) -> bytes:
        """Return an immutable copy of the pixels."""
        return bytes(self.pixels)

    def view(self) -> memoryview:
        """Return a read-only, zero-copy view of the pixels.

        The view tracks later draws; use :meth:`snapshot` for a frozen copy.
        """
        return memoryview(self.pixels).toreadonly()

    def __repr__(self) -> str:
        return (
            f"FrameBuffer(width={self.WIDTH}, height={self.HEIGHT}, "
            f"lit={self.lit_count()})"
        )
