"""Tests for quirk presets and overrides."""

from __future__ import annotations

import dataclasses

import pytest

from chipper.core.quirks import Quirks
from chipper.core.types import (
    JumpQuirk,
    LoadStoreQuirk,
    QuirkPreset,
    ShiftQuirk,
    VfOrderQuirk,
)


def test_modern_defaults():
    q = Quirks.modern()
    assert q == Quirks()
    assert q.shift == ShiftQuirk.SHIFT_X
    assert q.load_store == LoadStoreQuirk.INVARIANT_INDEX
    assert q.jump == JumpQuirk.V0
    assert q.draw_wrap is False
    assert q.logic_resets_vf is False
    assert q.vf_order == VfOrderQuirk.FLAG_WINS
    assert q.memory_wrap is True


def test_cosmac_vip_preset():
    q = Quirks.cosmac_vip()
    assert q.shift == ShiftQuirk.SHIFT_Y_INTO_X
    assert q.load_store == LoadStoreQuirk.INCREMENT_INDEX
    assert q.logic_resets_vf is True


def test_superchip_preset():
    assert Quirks.superchip().jump == JumpQuirk.VX


@pytest.mark.parametrize("name, expected", [
    ("modern", Quirks.modern()),
    ("COSMAC_VIP", Quirks.cosmac_vip()),
    ("cosmac-vip", Quirks.cosmac_vip()),
    (" superchip ", Quirks.superchip()),
    (QuirkPreset.SUPERCHIP, Quirks.superchip()),
])
def test_preset_lookup(name, expected):
    assert Quirks.preset(name) == expected


def test_unknown_preset_lists_choices():
    with pytest.raises(ValueError, match="cosmac_vip"):
        Quirks.preset("xo-chip")


def test_quirks_are_immutable():
    q = Quirks()
    with pytest.raises(dataclasses.FrozenInstanceError):
        q.draw_wrap = True  # type: ignore[misc]
    wrapped = q.replace(draw_wrap=True)
    assert wrapped.draw_wrap is True
    assert q.draw_wrap is False


def test_describe_uses_enum_names():
    info = Quirks.cosmac_vip().describe()
    assert info["shift"] == "SHIFT_Y_INTO_X"
    assert info["draw_wrap"] == "False"
    assert set(info) == {f.name for f in dataclasses.fields(Quirks)}
