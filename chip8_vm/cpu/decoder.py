"""
CHIP-8 VM — Opcode Decoder

Maps a 16-bit instruction word to an Instruction: a closed Op tag plus
the operand fields that family uses. Decoding is pure; fetching is a
separate step so the two can be tested on their own.

Word layout (nibbles):  [ T ][ X ][ Y ][ N ]
  nnn = low 12 bits (address)
  kk  = low 8 bits  (immediate byte)
  x   = bits 11-8   (register)
  y   = bits 7-4    (register)
  n   = bits 3-0    (sprite height / sub-opcode)

Dispatch is on the top nibble T. Families that share a nibble are
sub-dispatched: nibble 8 by N (ALU_OPS), nibbles E and F by kk
(KEY_OPS, MISC_OPS), nibble 0 by the full word.

Operand layouts:
  NONE   no operands
  ADDR   nnn
  X      x
  X_KK   x, kk
  X_Y    x, y
  X_Y_N  x, y, n
"""

from dataclasses import dataclass
from enum import Enum

from ..config import INSTRUCTION_SIZE
from ..errors import DecodeFailure, OutOfBoundsMemoryAccess

# ──────────────────────────────────────────────
# Operand layouts
# ──────────────────────────────────────────────

NONE  = 'NONE'
ADDR  = 'ADDR'
X     = 'X'
X_KK  = 'X_KK'
X_Y   = 'X_Y'
X_Y_N = 'X_Y_N'


class Op(Enum):
    """One tag per opcode family. Value = (pattern, mnemonic, layout)."""

    # ── System / flow control ──
    CLS       = ('00E0', 'CLS',  NONE)
    RET       = ('00EE', 'RET',  NONE)
    SYS       = ('0nnn', 'SYS',  ADDR)
    JP        = ('1nnn', 'JP',   ADDR)
    CALL      = ('2nnn', 'CALL', ADDR)
    JP_V0     = ('Bnnn', 'JP',   ADDR)

    # ── Conditional skips ──
    SE_VX_KK  = ('3xkk', 'SE',   X_KK)
    SNE_VX_KK = ('4xkk', 'SNE',  X_KK)
    SE_VX_VY  = ('5xy0', 'SE',   X_Y)
    SNE_VX_VY = ('9xy0', 'SNE',  X_Y)
    SKP       = ('Ex9E', 'SKP',  X)
    SKNP      = ('ExA1', 'SKNP', X)

    # ── Immediate load / add ──
    LD_VX_KK  = ('6xkk', 'LD',   X_KK)
    ADD_VX_KK = ('7xkk', 'ADD',  X_KK)

    # ── Register ALU ──
    LD_VX_VY  = ('8xy0', 'LD',   X_Y)
    OR        = ('8xy1', 'OR',   X_Y)
    AND       = ('8xy2', 'AND',  X_Y)
    XOR       = ('8xy3', 'XOR',  X_Y)
    ADD_VX_VY = ('8xy4', 'ADD',  X_Y)
    SUB       = ('8xy5', 'SUB',  X_Y)
    SHR       = ('8xy6', 'SHR',  X_Y)
    SUBN      = ('8xy7', 'SUBN', X_Y)
    SHL       = ('8xyE', 'SHL',  X_Y)

    # ── Index / random / draw ──
    LD_I      = ('Annn', 'LD',   ADDR)
    RND       = ('Cxkk', 'RND',  X_KK)
    DRW       = ('Dxyn', 'DRW',  X_Y_N)

    # ── Timers / keypad / memory transfer ──
    LD_VX_DT  = ('Fx07', 'LD',   X)
    LD_VX_K   = ('Fx0A', 'LD',   X)
    LD_DT_VX  = ('Fx15', 'LD',   X)
    LD_ST_VX  = ('Fx18', 'LD',   X)
    ADD_I_VX  = ('Fx1E', 'ADD',  X)
    LD_F_VX   = ('Fx29', 'LD',   X)
    LD_B_VX   = ('Fx33', 'LD',   X)
    LD_I_VX   = ('Fx55', 'LD',   X)
    LD_VX_I   = ('Fx65', 'LD',   X)

    @property
    def mnemonic(self) -> str:
        return self.value[1]

    @property
    def layout(self) -> str:
        return self.value[2]


# ──────────────────────────────────────────────
# Sub-dispatch tables
# ──────────────────────────────────────────────

# Top nibble → family, for nibbles that hold exactly one family
SIMPLE_OPS = {
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

# Nibble 8: keyed by low nibble
ALU_OPS = {
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

# Nibble E: keyed by low byte
KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

# Nibble F: keyed by low byte
MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_I_VX,
    0x65: Op.LD_VX_I,
}


# Trace formatting for families whose operands include an implicit register
_OPERAND_TEMPLATES = {
    Op.JP_V0:    'V0, ${nnn:03X}',
    Op.LD_I:     'I, ${nnn:03X}',
    Op.LD_VX_DT: 'V{x:X}, DT',
    Op.LD_VX_K:  'V{x:X}, K',
    Op.LD_DT_VX: 'DT, V{x:X}',
    Op.LD_ST_VX: 'ST, V{x:X}',
    Op.ADD_I_VX: 'I, V{x:X}',
    Op.LD_F_VX:  'F, V{x:X}',
    Op.LD_B_VX:  'B, V{x:X}',
    Op.LD_I_VX:  '[I], V{x:X}',
    Op.LD_VX_I:  'V{x:X}, [I]',
}


@dataclass(frozen=True)
class Instruction:
    """A decoded opcode. Operand fields not used by `op` are still filled
    in from the word; handlers only read what their layout names."""
    op: Op
    word: int
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    def __str__(self) -> str:
        layout = self.op.layout
        mnem = self.op.mnemonic
        if self.op in _OPERAND_TEMPLATES:
            return f"{mnem} " + _OPERAND_TEMPLATES[self.op].format(
                x=self.x, nnn=self.nnn)
        if layout == NONE:
            return mnem
        if layout == ADDR:
            return f"{mnem} ${self.nnn:03X}"
        if layout == X:
            return f"{mnem} V{self.x:X}"
        if layout == X_KK:
            return f"{mnem} V{self.x:X}, #${self.kk:02X}"
        if layout == X_Y:
            return f"{mnem} V{self.x:X}, V{self.y:X}"
        return f"{mnem} V{self.x:X}, V{self.y:X}, {self.n}"


def _classify(word: int) -> Op:
    top = (word >> 12) & 0xF
    n = word & 0x000F
    kk = word & 0x00FF

    if top in SIMPLE_OPS:
        return SIMPLE_OPS[top]

    if top == 0x0:
        if word == 0x00E0:
            return Op.CLS
        if word == 0x00EE:
            return Op.RET
        return Op.SYS

    if top == 0x5 and n == 0x0:
        return Op.SE_VX_VY

    if top == 0x9 and n == 0x0:
        return Op.SNE_VX_VY

    if top == 0x8 and n in ALU_OPS:
        return ALU_OPS[n]

    if top == 0xE and kk in KEY_OPS:
        return KEY_OPS[kk]

    if top == 0xF and kk in MISC_OPS:
        return MISC_OPS[kk]

    raise DecodeFailure(word)


def decode_word(word: int) -> Instruction:
    """Decode one 16-bit word. Raises DecodeFailure for unknown patterns."""
    word &= 0xFFFF
    op = _classify(word)
    return Instruction(
        op=op,
        word=word,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0xFFF,
    )


def fetch_word(memory, pc: int) -> int:
    """Read the big-endian instruction word at pc.

    Raises OutOfBoundsMemoryAccess(pc) when either byte lies outside
    memory, reporting the PC rather than the second byte's address.
    """
    if pc < 0 or pc + INSTRUCTION_SIZE > len(memory):
        raise OutOfBoundsMemoryAccess(pc)
    return memory.read16(pc)


def decode_opcode(memory, pc: int) -> Instruction:
    """Fetch and decode the instruction at pc."""
    return decode_word(fetch_word(memory, pc))
