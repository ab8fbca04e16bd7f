"""
Quirk configuration for Chipper.

Historical CHIP-8 interpreters disagreed on a handful of instructions and
real programs depend on one behaviour or the other.  :class:`Quirks` is an
immutable record of those choices, fixed when an
:class:`~chipper.core.interpreter.Interpreter` is constructed.

Decision points
---------------

=====================  ======================  ==============================
Field                  Instructions            Meaning
=====================  ======================  ==============================
``shift``              8xy6, 8xyE              shift ``Vx`` or ``Vy`` into Vx
``load_store``         Fx55, Fx65              whether ``I`` advances
``jump``               Bnnn                    add ``V0`` or ``Vx``
``draw_wrap``          Dxyn                    wrap sprites or clip at edges
``logic_resets_vf``    8xy1, 8xy2, 8xy3        ``VF = 0`` afterwards
``vf_order``           8xy4-8xy7, 8xyE         result/flag write ordering
``memory_wrap``        all memory accesses     wrap at 4 KB or raise
=====================  ======================  ==============================
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Union

from chipper.core.types import (
    JumpQuirk,
    LoadStoreQuirk,
    QuirkPreset,
    ShiftQuirk,
    VfOrderQuirk,
)


@dataclass(frozen=True)
class Quirks:
    """Compatibility toggles consulted by the opcode dispatcher."""

    shift: ShiftQuirk = ShiftQuirk.SHIFT_X
    load_store: LoadStoreQuirk = LoadStoreQuirk.INVARIANT_INDEX
    jump: JumpQuirk = JumpQuirk.V0
    draw_wrap: bool = False
    logic_resets_vf: bool = False
    vf_order: VfOrderQuirk = VfOrderQuirk.FLAG_WINS
    memory_wrap: bool = True

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    @classmethod
    def modern(cls) -> Quirks:
        """Behaviour most programs written since the 1990s assume."""
        return cls()

    @classmethod
    def cosmac_vip(cls) -> Quirks:
        """The original 1977 COSMAC VIP interpreter."""
        return cls(
            shift=ShiftQuirk.SHIFT_Y_INTO_X,
            load_store=LoadStoreQuirk.INCREMENT_INDEX,
            jump=JumpQuirk.V0,
            draw_wrap=False,
            logic_resets_vf=True,
        )

    @classmethod
    def superchip(cls) -> Quirks:
        """Super-CHIP 1.1 on the HP48."""
        return cls(
            shift=ShiftQuirk.SHIFT_X,
            load_store=LoadStoreQuirk.INVARIANT_INDEX,
            jump=JumpQuirk.VX,
            draw_wrap=False,
            logic_resets_vf=False,
        )

    @classmethod
    def preset(cls, preset: Union[QuirkPreset, str]) -> Quirks:
        """Return the quirks for a named preset.

        Args:
            preset: A :class:`QuirkPreset` or its name (case-insensitive,
                    ``-`` accepted for ``_``).

        Raises:
            ValueError: If *preset* names no known preset.
        """
        if isinstance(preset, str):
            key = preset.strip().upper().replace("-", "_")
            try:
                preset = QuirkPreset[key]
            except KeyError:
                names = ", ".join(p.name.lower() for p in QuirkPreset)
                raise ValueError(
                    f"Unknown quirk preset {preset!r} (expected one of: {names})"
                ) from None

        if preset == QuirkPreset.MODERN:
            return cls.modern()
        elif preset == QuirkPreset.COSMAC_VIP:
            return cls.cosmac_vip()
        elif preset == QuirkPreset.SUPERCHIP:
            return cls.superchip()
        raise ValueError(f"Unsupported quirk preset: {preset}")

    def replace(self, **changes) -> Quirks:
        """Return a copy with *changes* applied."""
        return dataclasses.replace(self, **changes)

    def describe(self) -> dict[str, str]:
        """Return a printable ``field -> value`` mapping."""
        out: dict[str, str] = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            out[field.name] = value.name if hasattr(value, "name") else str(value)
        return out
