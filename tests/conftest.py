"""Shared fixtures for the Chipper test suite."""

from __future__ import annotations

import random
from typing import Callable, Iterable, Optional

import pytest

from chipper.core.interpreter import Interpreter
from chipper.core.quirks import Quirks


def assemble(words: Iterable[int]) -> bytes:
    """Pack 16-bit instruction words into a big-endian program image."""
    out = bytearray()
    for word in words:
        out += bytes(((word >> 8) & 0xFF, word & 0xFF))
    return bytes(out)


@pytest.fixture
def machine_factory() -> Callable[..., Interpreter]:
    """Return a helper that builds a loaded interpreter from words."""

    def _make(
        *words: int,
        quirks: Optional[Quirks] = None,
        seed: int = 1234,
        **kwargs,
    ) -> Interpreter:
        interp = Interpreter(quirks, rng=random.Random(seed), **kwargs)
        interp.load(assemble(words))
        return interp

    return _make
