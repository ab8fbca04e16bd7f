"""
Frame renderer for Chipper.
Converts the interpreter's on/off FrameBuffer into an RGB pygame Surface.

The core keeps one byte per pixel (``0`` or ``1``).  This module maps
those through a two-entry colour table and blits the result into a
64x32 surface that the window scales up for display.

Performance notes
-----------------
The conversion uses **numpy** fancy indexing: the whole grid is turned
into an ``(H, W, 3)`` array in one operation and handed to
``pygame.surfarray``.
"""

from __future__ import annotations

import logging

import numpy as np
import pygame

from chipper.core.frame_buffer import FrameBuffer

logger = logging.getLogger(__name__)


# Default colours (0xRRGGBB).
DEFAULT_OFF_COLOUR: int = 0x000000
DEFAULT_ON_COLOUR: int = 0xFFFFFF


def _rgb(colour: int) -> tuple[int, int, int]:
    return ((colour >> 16) & 0xFF, (colour >> 8) & 0xFF, colour & 0xFF)


class FrameRenderer:
    """Render an interpreter's :class:`FrameBuffer` into a pygame Surface.

    Parameters
    ----------
    machine:
        The interpreter.  Expected interface:

        * ``frame_view()`` -- read-only view of the 64x32 grid
        * ``take_frame_dirty()`` -- ``True`` once after each change
    on_colour, off_colour:
        ``0xRRGGBB`` colours for lit and unlit pixels.
    """

    def __init__(
        self,
        machine: object,
        on_colour: int = DEFAULT_ON_COLOUR,
        off_colour: int = DEFAULT_OFF_COLOUR,
    ) -> None:
        self._machine = machine
        self._lut: np.ndarray = self.build_lut(on_colour, off_colour)
        self._surface: pygame.Surface = pygame.Surface(
            (FrameBuffer.WIDTH, FrameBuffer.HEIGHT)
        )
        self._render_count: int = 0

        logger.info(
            "FrameRenderer: %dx%d (on=%06X, off=%06X)",
            FrameBuffer.WIDTH,
            FrameBuffer.HEIGHT,
            on_colour,
            off_colour,
        )

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def render_count(self) -> int:
        """How many times the surface was actually regenerated."""
        return self._render_count

    def render(self, force: bool = False) -> pygame.Surface:
        """Redraw the surface if the display changed and return it.

        Pass *force* to redraw regardless.
        """
        changed = self._machine.take_frame_dirty()  # type: ignore[attr-defined]
        if changed or force:
            pixels = self._machine.frame_view()  # type: ignore[attr-defined]
            rgb = self.to_rgb_array(pixels, self._lut)
            # pygame surfarray expects (W, H, 3) -- transpose width and height.
            pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))
            self._render_count += 1
        return self._surface

    # ------------------------------------------------------------------
    # Conversion helpers
    # ------------------------------------------------------------------

    @staticmethod
    def build_lut(on_colour: int, off_colour: int) -> np.ndarray:
        """Build the ``(2, 3)`` uint8 colour table, index 0 = off."""
        return np.array([_rgb(off_colour), _rgb(on_colour)], dtype=np.uint8)

    @staticmethod
    def to_rgb_array(pixels: bytes, lut: np.ndarray) -> np.ndarray:
        """Convert raw frame-buffer bytes to an ``(H, W, 3)`` uint8 array."""
        grid = np.frombuffer(bytes(pixels), dtype=np.uint8).reshape(
            (FrameBuffer.HEIGHT, FrameBuffer.WIDTH)
        )
        return lut[np.minimum(grid, 1)]
