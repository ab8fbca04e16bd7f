"""
Machine creation factory for Chipper.

Creates a loaded :class:`~chipper.core.interpreter.Interpreter` from a
program path, a quirk preset and optional individual quirk overrides.

Typical usage::

    interp = MachineFactory.create("games/PONG.ch8")
    interp = MachineFactory.create("games/BLINKY.ch8", quirks="cosmac_vip")
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Union

from chipper.core.interpreter import Interpreter
from chipper.core.logger import DEFAULT_LOGGER, ILogger
from chipper.core.quirks import Quirks
from chipper.core.types import QuirkPreset
from chipper.shell.services.rom_service import RomService

logger = logging.getLogger(__name__)


class MachineFactory:
    """Create an interpreter from a program file."""

    @staticmethod
    def resolve_quirks(
        quirks: Union[Quirks, QuirkPreset, str, None] = None,
        **overrides,
    ) -> Quirks:
        """Turn a preset name, preset enum or :class:`Quirks` into
        :class:`Quirks`, then apply any non-``None`` *overrides*.

        Raises:
            ValueError: If *quirks* names no known preset.
            TypeError: If an override names no quirk field.
        """
        if quirks is None:
            resolved = Quirks.modern()
        elif isinstance(quirks, Quirks):
            resolved = quirks
        else:
            resolved = Quirks.preset(quirks)

        changes = {k: v for k, v in overrides.items() if v is not None}
        if changes:
            resolved = resolved.replace(**changes)
        return resolved

    @staticmethod
    def create(
        rom_path: str,
        quirks: Union[Quirks, QuirkPreset, str, None] = None,
        *,
        seed: Optional[int] = None,
        core_logger: ILogger = DEFAULT_LOGGER,
        **overrides,
    ) -> Interpreter:
        """Build and return an interpreter with the program loaded.

        Parameters
        ----------
        rom_path:
            Filesystem path to the raw program image.
        quirks:
            A :class:`Quirks`, a :class:`QuirkPreset`, a preset name, or
            ``None`` for the modern defaults.
        seed:
            Seed for the ``RND`` generator; ``None`` for a random seed.
        core_logger:
            Logger handed to the interpreter core.
        overrides:
            Individual :class:`Quirks` fields to change after the preset is
            applied (``None`` values are ignored).

        Raises
        ------
        FileNotFoundError
            If *rom_path* does not exist.
        RomTooLarge
            If the image does not fit in memory.
        ValueError
            If *quirks* names no known preset.
        """
        resolved = MachineFactory.resolve_quirks(quirks, **overrides)
        logger.info("Quirks: %s", resolved.describe())

        logger.info("Loading program: %s", rom_path)
        program = RomService.read(rom_path)
        logger.info("Program size: %d bytes", len(program))

        rng = random.Random(seed) if seed is not None else None
        interp = Interpreter(resolved, rng=rng, logger=core_logger)
        interp.load(program)
        logger.info("Interpreter created: %r", interp)
        return interp

    @staticmethod
    def describe(rom_path: str) -> dict[str, str]:
        """Return a human-readable description of a program file."""
        return RomService.describe(rom_path)
