"""
CHIP-8 VM — ALU Operations

Pure 8-bit helpers. The flag-producing ones return (result, flag) and
leave it to the caller to write VF last. Operands are plain ints that
the caller has already copied out of the register file, so a handler
whose destination or source is VF still computes from the values it
read first.

Flag conventions:
  add8   VF = 1 on carry out of bit 7
  sub8   VF = 1 when NO borrow occurs (a >= b)
  shr8   VF = bit shifted out of bit 0
  shl8   VF = bit shifted out of bit 7
"""


# ══════════════════════════════════════════════
# Arithmetic — return (result, flag)
# ══════════════════════════════════════════════

def add8(a: int, b: int) -> tuple:
    """a + b mod 256. Flag = carry."""
    result = a + b
    return (result & 0xFF, 1 if result > 0xFF else 0)


def sub8(a: int, b: int) -> tuple:
    """a - b mod 256. Flag = NOT borrow."""
    return ((a - b) & 0xFF, 1 if a >= b else 0)


def shr8(val: int) -> tuple:
    """Logical shift right. Flag = old bit 0."""
    return ((val & 0xFF) >> 1, val & 0x01)


def shl8(val: int) -> tuple:
    """Shift left. Flag = old bit 7."""
    return ((val << 1) & 0xFF, (val >> 7) & 0x01)


# ══════════════════════════════════════════════
# Logic — result only
# ══════════════════════════════════════════════

def or8(a: int, b: int) -> int:
    return (a | b) & 0xFF


def and8(a: int, b: int) -> int:
    return a & b & 0xFF


def xor8(a: int, b: int) -> int:
    return (a ^ b) & 0xFF


def add_wrap8(a: int, b: int) -> int:
    """7xkk add: wraps, never touches the flag."""
    return (a + b) & 0xFF


# ══════════════════════════════════════════════
# Misc
# ══════════════════════════════════════════════

def bcd3(val: int) -> bytes:
    """Hundreds, tens and ones digits of an 8-bit value."""
    val &= 0xFF
    return bytes([val // 100, (val // 10) % 10, val % 10])


def lcg8(seed: int, multiplier: int, increment: int, modulus: int) -> int:
    """Advance the 8-bit linear-congruential generator by one step."""
    return ((multiplier * seed + increment) & 0xFF) % modulus
