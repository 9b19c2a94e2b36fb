"""
CHIP-8 VM — CPU Register Set

Register model:
  V0–VF  16 × 8-bit general registers
         VF doubles as the flag output (carry, NOT borrow, shifted-out
         bit, sprite collision)
  I      16-bit index register (sprite and block memory address)
  PC     16-bit program counter
  stack  fixed-capacity list of return addresses + explicit depth (SP)
"""

from typing import List

from ..config import NUM_REGISTERS, FLAG_REGISTER, MAX_STACK_SIZE, PROGRAM_BEGIN_ADDR
from ..errors import StackOverflow, StackUnderflow


class Registers:
    """CHIP-8 register file and return stack."""

    __slots__ = ('V', 'I', 'PC', 'stack', 'SP')

    def __init__(self, stack_size: int = MAX_STACK_SIZE):
        self.V = bytearray(NUM_REGISTERS)      # bytearray keeps every value 8-bit
        self.I: int = 0
        self.PC: int = PROGRAM_BEGIN_ADDR
        self.stack: List[int] = [0] * stack_size
        self.SP: int = 0                        # number of live stack entries

    # --- Flag register ---

    @property
    def VF(self) -> int:
        return self.V[FLAG_REGISTER]

    @VF.setter
    def VF(self, value: int):
        self.V[FLAG_REGISTER] = value & 0xFF

    # --- Stack operations ---

    @property
    def stack_capacity(self) -> int:
        return len(self.stack)

    def push(self, addr: int):
        """Push a return address. Raises StackOverflow when full."""
        if self.SP >= len(self.stack):
            raise StackOverflow(len(self.stack))
        self.stack[self.SP] = addr & 0xFFFF
        self.SP += 1

    def pop(self) -> int:
        """Pop a return address. Raises StackUnderflow when empty."""
        if self.SP == 0:
            raise StackUnderflow()
        self.SP -= 1
        return self.stack[self.SP]

    # --- Display ---

    def display(self) -> str:
        """One-line register dump for trace logging."""
        regs = ' '.join(f'{v:02X}' for v in self.V)
        return f"PC={self.PC:04X} I={self.I:04X} SP={self.SP:02d} V=[{regs}]"
