"""
Main application window for Chipper.
Uses pygame to create a display, drive the emulation main loop, and
coordinate audio, video, and input subsystems.

Typical usage::

    from chipper.platform.window import Window

    interp = MachineFactory.create("PONG.ch8")
    window = Window(interp, scale=10)
    window.run()
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import pygame

from chipper.core.clock import ClockDriver, DEFAULT_INSTRUCTIONS_PER_SECOND
from chipper.core.errors import Chip8Error
from chipper.core.frame_buffer import FrameBuffer
from chipper.platform.audio import AudioDevice
from chipper.platform.input_handler import InputHandler
from chipper.shell.frame_renderer import FrameRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "Chipper"

# Minimum / maximum allowed display scale factors.
_MIN_SCALE: int = 1
_MAX_SCALE: int = 20

# Host refresh rate; independent of the instruction and timer rates.
_DISPLAY_HZ: int = 60


class Window:
    """Pygame window that owns the emulation main loop.

    Parameters
    ----------
    machine:
        A loaded :class:`~chipper.core.interpreter.Interpreter`.
    scale:
        Integer scale factor applied to the 64x32 native resolution.
    instructions_per_second:
        Instruction rate handed to the :class:`ClockDriver`.
    enable_audio:
        Set to ``False`` to mute the buzzer entirely.
    start_paused:
        Open the window paused so the program can be single-stepped.
    """

    def __init__(
        self,
        machine: object,
        scale: int = 10,
        *,
        instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND,
        enable_audio: bool = True,
        start_paused: bool = False,
    ) -> None:
        # ---- basic state -------------------------------------------------
        self._machine = machine
        self._scale: int = max(_MIN_SCALE, min(_MAX_SCALE, scale))
        self._running: bool = False
        self._paused: bool = start_paused
        self._error: Optional[Chip8Error] = None

        # ---- init pygame display -----------------------------------------
        if not pygame.get_init():
            pygame.init()

        self._display_width: int = FrameBuffer.WIDTH * self._scale
        self._display_height: int = FrameBuffer.HEIGHT * self._scale

        self._screen: pygame.Surface = pygame.display.set_mode(
            (self._display_width, self._display_height),
            pygame.RESIZABLE,
        )
        pygame.display.set_caption(self._build_title())

        self._clock: pygame.time.Clock = pygame.time.Clock()

        # ---- subsystems --------------------------------------------------
        self._driver: ClockDriver = ClockDriver(
            machine, instructions_per_second=instructions_per_second  # type: ignore[arg-type]
        )
        self._frame_renderer: FrameRenderer = FrameRenderer(machine)
        self._audio: AudioDevice = AudioDevice(machine, enabled=enable_audio)
        self._input: InputHandler = InputHandler(machine)

        # ---- performance counters ----------------------------------------
        self._last_time: float = 0.0
        self._step_count: int = 0
        self._ips_update_time: float = 0.0
        self._ips_display: float = 0.0

        logger.info(
            "Window: %dx%d display (scale=%d, %d instructions/s)",
            self._display_width,
            self._display_height,
            self._scale,
            instructions_per_second,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @paused.setter
    def paused(self, value: bool) -> None:
        self._paused = value
        self._driver.reset_budget()

    @property
    def error(self) -> Optional[Chip8Error]:
        """The error that stopped emulation, if any."""
        return self._error

    @property
    def scale(self) -> int:
        return self._scale

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Enter the main emulation loop.

        This method blocks until the user closes the window, presses
        Escape, or the interpreter halts with an error.  Each iteration:

        1. Polls input events and forwards them to the machine.
        2. Advances the :class:`ClockDriver` by the elapsed real time.
        3. Starts or stops the buzzer.
        4. Renders the frame buffer to the display.
        5. Throttles to the display refresh rate.
        """
        self._running = True
        self._last_time = time.monotonic()
        self._ips_update_time = self._last_time

        logger.info("Entering main loop")

        try:
            while self._running:
                self._tick()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._shutdown()

    # ------------------------------------------------------------------
    # Per-frame tick
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        """Execute one iteration of the main loop."""
        # ---- input -------------------------------------------------------
        self._input.poll()
        if self._input.quit_requested:
            self._running = False
            return

        if self._input.take_pause_toggle():
            self.paused = not self._paused
            logger.info("Paused" if self._paused else "Resumed")

        if self._input.take_dump():
            print(self._machine.frame_buffer.to_text())  # type: ignore[attr-defined]

        # ---- emulation ---------------------------------------------------
        now = time.monotonic()
        elapsed = now - self._last_time
        self._last_time = now

        if not self._emulate(elapsed):
            return

        # ---- audio -------------------------------------------------------
        self._audio.update()

        # ---- video -------------------------------------------------------
        surface = self._frame_renderer.render()
        current_size = self._screen.get_size()
        scaled = pygame.transform.scale(surface, current_size)
        self._screen.blit(scaled, (0, 0))
        pygame.display.flip()

        # ---- timing ------------------------------------------------------
        self._clock.tick(_DISPLAY_HZ)
        self._update_ips(now)

    def _emulate(self, elapsed: float) -> bool:
        """Advance the machine by *elapsed* seconds, or by one instruction
        if paused and F6 was pressed.  Returns ``False`` once halted."""
        # F6 only counts while paused; drop presses made while running.
        step_requested = self._input.take_step()

        try:
            if not self._paused:
                report = self._driver.advance(elapsed)
                self._step_count += report.steps
            elif step_requested:
                self._machine.step()  # type: ignore[attr-defined]
                self._machine.tick_timers()  # type: ignore[attr-defined]
                logger.info("Step: %s", self._machine.debug_state())  # type: ignore[attr-defined]
        except Chip8Error as exc:
            logger.error("Emulation halted: %s", exc)
            self._error = exc
            self._running = False
            return False
        return True

    # ------------------------------------------------------------------
    # Speed tracking
    # ------------------------------------------------------------------

    def _update_ips(self, now: float) -> None:
        """Update the instructions-per-second readout roughly once per second."""
        elapsed = now - self._ips_update_time
        if elapsed >= 1.0:
            self._ips_display = self._step_count / elapsed
            self._step_count = 0
            self._ips_update_time = now

            state = " [paused]" if self._paused else ""
            pygame.display.set_caption(
                f"{self._build_title()}  [{self._ips_display:.0f} ips]{state}"
            )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        """Clean up all subsystems."""
        logger.info("Shutting down")
        self._audio.shutdown()
        pygame.quit()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_title(self) -> str:
        return f"{_WINDOW_TITLE}  (F5 pause, F6 step)"
