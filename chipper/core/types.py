"""
Core enumerations and type definitions for Chipper.

Quirk choices are expressed as enums rather than bare booleans wherever the
historical implementations disagreed on *which* operand or *which* write
wins, so the choice reads clearly at the call site.
"""

from enum import IntEnum


class ShiftQuirk(IntEnum):
    """Source operand of ``SHR`` / ``SHL`` (8xy6 / 8xyE).

    * ``SHIFT_X`` -- ``Vx = Vx >> 1`` (Super-CHIP and most modern programs).
    * ``SHIFT_Y_INTO_X`` -- ``Vx = Vy >> 1`` (original COSMAC VIP).
    """
    SHIFT_X = 0
    SHIFT_Y_INTO_X = 1


class LoadStoreQuirk(IntEnum):
    """Effect of ``LD [I], Vx`` / ``LD Vx, [I]`` (Fx55 / Fx65) on ``I``."""
    INVARIANT_INDEX = 0
    INCREMENT_INDEX = 1


class JumpQuirk(IntEnum):
    """Register added by ``JP V0, nnn`` (Bnnn).

    * ``V0`` -- always ``V0``.
    * ``VX`` -- the register named by the high nibble of ``nnn``.
    """
    V0 = 0
    VX = 1


class VfOrderQuirk(IntEnum):
    """Which write survives when an arithmetic destination is ``VF``.

    * ``FLAG_WINS`` -- result written first, flag last.
    * ``RESULT_WINS`` -- flag written first, result last.
    """
    FLAG_WINS = 0
    RESULT_WINS = 1


class QuirkPreset(IntEnum):
    MODERN = 0
    COSMAC_VIP = 1
    SUPERCHIP = 2


class StepOutcome(IntEnum):
    """Result of :meth:`Interpreter.step`."""
    EXECUTED = 0
    BLOCKED = 1
