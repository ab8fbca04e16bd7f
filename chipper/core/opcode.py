"""
Instruction decoding for Chipper.

:func:`decode` turns one 16-bit instruction word into an
:class:`Instruction` whose :attr:`~Instruction.op` is a member of the
closed :class:`Op` enumeration.  Decoding is pure: it never touches
interpreter state, so the same function serves the dispatcher, the
disassembler and the debugger views.

Operand naming follows the classic reference:

* ``x``, ``y`` -- register nibbles (bits 11-8 and 7-4)
* ``n``        -- low nibble
* ``kk``       -- low byte
* ``nnn``      -- low 12 bits (an address)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict

from chipper.core.errors import InvalidOpcode


class Op(IntEnum):
    CLS = 0          # 00E0
    RET = 1          # 00EE
    SYS = 2          # 0nnn
    JP = 3           # 1nnn
    CALL = 4         # 2nnn
    SE_VX_KK = 5     # 3xkk
    SNE_VX_KK = 6    # 4xkk
    SE_VX_VY = 7     # 5xy0
    LD_VX_KK = 8     # 6xkk
    ADD_VX_KK = 9    # 7xkk
    LD_VX_VY = 10    # 8xy0
    OR = 11          # 8xy1
    AND = 12         # 8xy2
    XOR = 13         # 8xy3
    ADD_VX_VY = 14   # 8xy4
    SUB = 15         # 8xy5
    SHR = 16         # 8xy6
    SUBN = 17        # 8xy7
    SHL = 18         # 8xyE
    SNE_VX_VY = 19   # 9xy0
    LD_I = 20        # Annn
    JP_V0 = 21       # Bnnn
    RND = 22         # Cxkk
    DRW = 23         # Dxyn
    SKP = 24         # Ex9E
    SKNP = 25        # ExA1
    LD_VX_DT = 26    # Fx07
    LD_VX_K = 27     # Fx0A
    LD_DT_VX = 28    # Fx15
    LD_ST_VX = 29    # Fx18
    ADD_I_VX = 30    # Fx1E
    LD_F_VX = 31     # Fx29
    LD_B_VX = 32     # Fx33
    LD_MEM_VX = 33   # Fx55
    LD_VX_MEM = 34   # Fx65


# 8xyN -> Op
_ALU_OPS: Dict[int, Op] = {
    0x0: Op.LD_VX_VY,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_VX_VY,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# ExKK -> Op
_KEY_OPS: Dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

# FxKK -> Op
_MISC_OPS: Dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}

# High nibble -> Op for forms that need no further inspection.
_SIMPLE_OPS: Dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_VX_KK,
    0x4: Op.SNE_VX_KK,
    0x6: Op.LD_VX_KK,
    0x7: Op.ADD_VX_KK,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction word."""

    op: Op
    word: int

    @property
    def x(self) -> int:
        return (self.word >> 8) & 0xF

    @property
    def y(self) -> int:
        return (self.word >> 4) & 0xF

    @property
    def n(self) -> int:
        return self.word & 0xF

    @property
    def kk(self) -> int:
        return self.word & 0xFF

    @property
    def nnn(self) -> int:
        return self.word & 0xFFF

    def mnemonic(self) -> str:
        """Assembly text for this instruction, e.g. ``"LD V0, 0x05"``."""
        return _FORMATTERS[self.op](self)

    def __str__(self) -> str:
        return self.mnemonic()


def decode(word: int) -> Instruction:
    """Decode a 16-bit instruction word.

    Raises:
        InvalidOpcode: If *word* matches no instruction form.
    """
    word &= 0xFFFF
    high = word >> 12

    op = _SIMPLE_OPS.get(high)
    if op is not None:
        return Instruction(op, word)

    if high == 0x0:
        if word == 0x00E0:
            return Instruction(Op.CLS, word)
        if word == 0x00EE:
            return Instruction(Op.RET, word)
        return Instruction(Op.SYS, word)

    if high == 0x5 and word & 0xF == 0x0:
        return Instruction(Op.SE_VX_VY, word)

    if high == 0x8:
        op = _ALU_OPS.get(word & 0xF)
        if op is not None:
            return Instruction(op, word)

    if high == 0x9 and word & 0xF == 0x0:
        return Instruction(Op.SNE_VX_VY, word)

    if high == 0xE:
        op = _KEY_OPS.get(word & 0xFF)
        if op is not None:
            return Instruction(op, word)

    if high == 0xF:
        op = _MISC_OPS.get(word & 0xFF)
        if op is not None:
            return Instruction(op, word)

    raise InvalidOpcode(word)


def disassemble(word: int) -> str:
    """Return assembly text for *word*, or ``DW 0xNNNN`` if undecodable."""
    try:
        return decode(word).mnemonic()
    except InvalidOpcode:
        return f"DW 0x{word & 0xFFFF:04X}"


# ----------------------------------------------------------------------
# Assembly formatting
# ----------------------------------------------------------------------

def _vx_vy(name: str) -> Callable[[Instruction], str]:
    return lambda ins: f"{name} V{ins.x:X}, V{ins.y:X}"


def _vx_kk(name: str) -> Callable[[Instruction], str]:
    return lambda ins: f"{name} V{ins.x:X}, 0x{ins.kk:02X}"


def _vx(name: str) -> Callable[[Instruction], str]:
    return lambda ins: f"{name} V{ins.x:X}"


_FORMATTERS: Dict[Op, Callable[[Instruction], str]] = {
    Op.CLS: lambda ins: "CLS",
    Op.RET: lambda ins: "RET",
    Op.SYS: lambda ins: f"SYS 0x{ins.nnn:03X}",
    Op.JP: lambda ins: f"JP 0x{ins.nnn:03X}",
    Op.CALL: lambda ins: f"CALL 0x{ins.nnn:03X}",
    Op.SE_VX_KK: _vx_kk("SE"),
    Op.SNE_VX_KK: _vx_kk("SNE"),
    Op.SE_VX_VY: _vx_vy("SE"),
    Op.LD_VX_KK: _vx_kk("LD"),
    Op.ADD_VX_KK: _vx_kk("ADD"),
    Op.LD_VX_VY: _vx_vy("LD"),
    Op.OR: _vx_vy("OR"),
    Op.AND: _vx_vy("AND"),
    Op.XOR: _vx_vy("XOR"),
    Op.ADD_VX_VY: _vx_vy("ADD"),
    Op.SUB: _vx_vy("SUB"),
    Op.SHR: _vx_vy("SHR"),
    Op.SUBN: _vx_vy("SUBN"),
    Op.SHL: _vx_vy("SHL"),
    Op.SNE_VX_VY: _vx_vy("SNE"),
    Op.LD_I: lambda ins: f"LD I, 0x{ins.nnn:03X}",
    Op.JP_V0: lambda ins: f"JP V0, 0x{ins.nnn:03X}",
    Op.RND: _vx_kk("RND"),
    Op.DRW: lambda ins: f"DRW V{ins.x:X}, V{ins.y:X}, {ins.n}",
    Op.SKP: _vx("SKP"),
    Op.SKNP: _vx("SKNP"),
    Op.LD_VX_DT: lambda ins: f"LD V{ins.x:X}, DT",
    Op.LD_VX_K: lambda ins: f"LD V{ins.x:X}, K",
    Op.LD_DT_VX: lambda ins: f"LD DT, V{ins.x:X}",
    Op.LD_ST_VX: lambda ins: f"LD ST, V{ins.x:X}",
    Op.ADD_I_VX: lambda ins: f"ADD I, V{ins.x:X}",
    Op.LD_F_VX: lambda ins: f"LD F, V{ins.x:X}",
    Op.LD_B_VX: lambda ins: f"LD B, V{ins.x:X}",
    Op.LD_MEM_VX: lambda ins: f"LD [I], V{ins.x:X}",
    Op.LD_VX_MEM: lambda ins: f"LD V{ins.x:X}, [I]",
}

assert len(_FORMATTERS) == len(Op), "every Op needs an assembly formatter"
