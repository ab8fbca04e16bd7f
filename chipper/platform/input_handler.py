"""
Input handler for Chipper.
Maps keyboard keys to the sixteen logical keypad keys.

Keyboard layout
---------------

The left-hand block of a QWERTY keyboard stands in for the 4x4 keypad:

===============  ===============
Keyboard         Keypad
===============  ===============
1  2  3  4       1  2  3  C
Q  W  E  R       4  5  6  D
A  S  D  F       7  8  9  E
Z  X  C  V       A  0  B  F
===============  ===============

Host controls
-------------

=============  ==================================
Key            Action
=============  ==================================
F5             Pause / resume
F6             Single-step one instruction (paused)
Shift+F1       Print the frame buffer to stdout
Escape         Quit
=============  ==================================
"""

from __future__ import annotations

import logging

import pygame

logger = logging.getLogger(__name__)


# pygame key constant -> keypad index.
_KEY_MAP: dict[int, int] = {
    pygame.K_1: 0x1,
    pygame.K_2: 0x2,
    pygame.K_3: 0x3,
    pygame.K_4: 0xC,

    pygame.K_q: 0x4,
    pygame.K_w: 0x5,
    pygame.K_e: 0x6,
    pygame.K_r: 0xD,

    pygame.K_a: 0x7,
    pygame.K_s: 0x8,
    pygame.K_d: 0x9,
    pygame.K_f: 0xE,

    pygame.K_z: 0xA,
    pygame.K_x: 0x0,
    pygame.K_c: 0xB,
    pygame.K_v: 0xF,
}


class InputHandler:
    """Translates pygame keyboard events into keypad state and host
    requests.

    Parameters
    ----------
    machine:
        The interpreter.  Expected interface:

        * ``set_key_state(key: int, pressed: bool)``

    Host requests (pause toggle, single step, frame dump) are exposed as
    flags that the window consumes with the ``take_*`` methods.
    """

    def __init__(self, machine: object) -> None:
        self._machine = machine
        self._quit_requested: bool = False
        self._pause_toggle_requested: bool = False
        self._step_requested: bool = False
        self._dump_requested: bool = False

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def poll(self) -> None:
        """Pump the pygame event queue and process all pending events.

        This should be called once at the top of each frame.
        """
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
            return

        if event.type == pygame.KEYDOWN:
            self._on_key_down(event)
        elif event.type == pygame.KEYUP:
            self._on_key_up(event)
        elif event.type == pygame.WINDOWFOCUSLOST:
            # Keys released while unfocused never send KEYUP.
            self.clear_all()

    def clear_all(self) -> None:
        """Release every keypad key."""
        for key in _KEY_MAP.values():
            self._send(key, False)

    def take_pause_toggle(self) -> bool:
        requested = self._pause_toggle_requested
        self._pause_toggle_requested = False
        return requested

    def take_step(self) -> bool:
        requested = self._step_requested
        self._step_requested = False
        return requested

    def take_dump(self) -> bool:
        requested = self._dump_requested
        self._dump_requested = False
        return requested

    # ------------------------------------------------------------------
    # Keyboard handlers
    # ------------------------------------------------------------------

    def _on_key_down(self, event: pygame.event.Event) -> None:
        key = event.key

        if key == pygame.K_ESCAPE:
            self._quit_requested = True
            return
        if key == pygame.K_F5:
            self._pause_toggle_requested = True
            return
        if key == pygame.K_F6:
            self._step_requested = True
            return
        if key == pygame.K_F1 and (event.mod & pygame.KMOD_SHIFT):
            self._dump_requested = True
            return

        keypad = _KEY_MAP.get(key)
        if keypad is not None:
            self._send(keypad, True)

    def _on_key_up(self, event: pygame.event.Event) -> None:
        keypad = _KEY_MAP.get(event.key)
        if keypad is not None:
            self._send(keypad, False)

    # ------------------------------------------------------------------
    # Machine bridge
    # ------------------------------------------------------------------

    def _send(self, keypad: int, pressed: bool) -> None:
        logger.debug("Keypad %X %s", keypad, "down" if pressed else "up")
        self._machine.set_key_state(keypad, pressed)  # type: ignore[attr-defined]
