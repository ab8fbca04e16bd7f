"""
InputState -- pressed state of the sixteen logical keypad keys.

The original keypad is a 4x4 grid labelled ``0``-``F``::

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

Host code translates physical input into :meth:`set_key_state` calls; the
interpreter reads the result inside ``SKP``/``SKNP`` and ``LD Vx, K``.

Besides the level state, the keypad latches the most recent *transition*
to pressed.  ``LD Vx, K`` arms the latch when it starts waiting and
completes once a key goes down after that point, so a key that was
already held when the wait began does not satisfy it.
"""

from __future__ import annotations

from typing import List, Optional

NUM_KEYS: int = 16


class InputState:
    """Level and edge state of the keypad."""

    def __init__(self) -> None:
        self._keys: List[bool] = [False] * NUM_KEYS
        self._latched: Optional[int] = None

    # ------------------------------------------------------------------
    # Host-side input injection
    # ------------------------------------------------------------------

    def set_key_state(self, key: int, pressed: bool) -> None:
        """Record that logical *key* (0-15) is now *pressed* or released.

        Raises:
            ValueError: If *key* is not a keypad index.
        """
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"key index must be in 0..{NUM_KEYS - 1}, got {key}")
        if pressed and not self._keys[key]:
            self._latched = key
        self._keys[key] = pressed

    def clear_all_input(self) -> None:
        """Release every key and drop any latched press."""
        for i in range(NUM_KEYS):
            self._keys[i] = False
        self._latched = None

    # ------------------------------------------------------------------
    # Sampling (interpreter side)
    # ------------------------------------------------------------------

    def is_pressed(self, key: int) -> bool:
        return self._keys[key & 0xF]

    def pressed_keys(self) -> List[int]:
        return [k for k in range(NUM_KEYS) if self._keys[k]]

    def arm_wait(self) -> None:
        """Forget earlier presses; only presses from now on count."""
        self._latched = None

    def take_latched_press(self) -> Optional[int]:
        """Return and clear the key pressed since :meth:`arm_wait`."""
        key = self._latched
        self._latched = None
        return key

    def __repr__(self) -> str:
        held = "".join(f"{k:X}" for k in self.pressed_keys())
        return f"InputState(pressed=[{held}])"
