"""
Buzzer output for Chipper.
Uses pygame.mixer to sound a tone while the interpreter's sound timer is
non-zero.

The original hardware has a single fixed-pitch buzzer with no volume or
pitch control, so the device pre-renders one period-aligned square-wave
buffer and simply starts looping it when the sound timer becomes
non-zero and stops it when the timer reaches zero.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pygame

logger = logging.getLogger(__name__)

_SAMPLE_RATE: int = 44100
_MIXER_BUFFER_SAMPLES: int = 512
_TONE_HZ: int = 440
_AMPLITUDE: int = 6000


class AudioDevice:
    """Drive the buzzer from the emulated machine.

    Parameters
    ----------
    machine:
        The interpreter.  Expected interface:

        * ``sound_active()`` -- ``bool``
    enabled:
        Set to ``False`` to create the device in a silent / no-op mode.
    tone_hz:
        Pitch of the buzzer.
    """

    def __init__(
        self,
        machine: object,
        *,
        enabled: bool = True,
        tone_hz: int = _TONE_HZ,
    ) -> None:
        self._machine = machine
        self._enabled: bool = enabled
        self._tone_hz: int = tone_hz
        self._channel: Optional[pygame.mixer.Channel] = None
        self._tone: Optional[pygame.mixer.Sound] = None
        self._playing: bool = False

        if not self._enabled:
            logger.info("AudioDevice: disabled (silent mode)")
            return

        self._init_mixer()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def playing(self) -> bool:
        return self._playing

    def update(self) -> None:
        """Start or stop the tone to match the machine's sound timer.

        Call this once per frame, after the interpreter has advanced.
        """
        if not self._enabled or self._channel is None or self._tone is None:
            return

        active = self._machine.sound_active()  # type: ignore[attr-defined]
        if active and not self._playing:
            self._channel.play(self._tone, loops=-1)
            self._playing = True
        elif not active and self._playing:
            self._channel.stop()
            self._playing = False

    def shutdown(self) -> None:
        """Stop playback and release the mixer."""
        self._shutdown_mixer()

    # ------------------------------------------------------------------
    # Tone generation
    # ------------------------------------------------------------------

    @staticmethod
    def square_wave(tone_hz: int, sample_rate: int, amplitude: int = _AMPLITUDE) -> np.ndarray:
        """Return one period-aligned block of a signed 16-bit square wave.

        The block length is a whole number of periods so that looping it
        produces no click at the seam.
        """
        period = max(2, sample_rate // max(1, tone_hz))
        periods = max(1, sample_rate // (10 * period))
        t = np.arange(period * periods)
        wave = np.where((t % period) < period // 2, amplitude, -amplitude)
        return wave.astype(np.int16)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _init_mixer(self) -> None:
        """Initialise the pygame mixer and pre-render the tone."""
        try:
            pygame.mixer.init(
                frequency=_SAMPLE_RATE,
                size=-16,       # signed 16-bit
                channels=1,     # mono
                buffer=_MIXER_BUFFER_SAMPLES,
            )
        except pygame.error as exc:
            logger.error("AudioDevice: mixer init failed: %s", exc)
            self._enabled = False
            return

        actual_freq, actual_size, actual_channels = pygame.mixer.get_init()

        samples = self.square_wave(self._tone_hz, actual_freq)
        if actual_channels > 1:
            samples = np.repeat(samples[:, np.newaxis], actual_channels, axis=1)
        self._tone = pygame.mixer.Sound(buffer=np.ascontiguousarray(samples).tobytes())

        pygame.mixer.set_num_channels(1)
        self._channel = pygame.mixer.Channel(0)

        logger.info(
            "AudioDevice: mixer ready at %d Hz, %d-bit, %d ch (tone=%d Hz)",
            actual_freq,
            abs(actual_size),
            actual_channels,
            self._tone_hz,
        )

    def _shutdown_mixer(self) -> None:
        """Stop the mixer channel and release resources."""
        if self._channel is not None:
            try:
                self._channel.stop()
            except pygame.error:
                logger.debug("AudioDevice: channel already stopped")
            self._channel = None
        self._tone = None
        self._playing = False

        try:
            pygame.mixer.quit()
        except pygame.error:
            logger.debug("AudioDevice: mixer already shut down")
