"""
CHIP-8 VM — Fault Taxonomy

Every fault is fatal to the tick that raised it and is never retried
internally. Each exception also has a 32-bit fault code for hosts that
cannot carry Python exceptions across their boundary:

  bits 31-16  fault kind (0x1001..0x1005)
  bits 15-0   payload (raw word or address, 0 when unused)
"""

from typing import Optional


class Chip8Error(Exception):
    """Base class for all interpreter faults."""

    KIND = 0x1000

    def __init__(self, message: str, data: int = 0):
        self.data = data & 0xFFFF
        super().__init__(message)

    @property
    def code(self) -> int:
        return (self.KIND << 16) | self.data

    @staticmethod
    def from_code(code: int) -> Optional['Chip8Error']:
        """Rebuild an exception from its fault code. Returns None for 0."""
        if code == 0:
            return None
        kind = (code >> 16) & 0xFFFF
        data = code & 0xFFFF
        if kind == DecodeFailure.KIND:
            return DecodeFailure(data)
        if kind == OutOfBoundsMemoryAccess.KIND:
            return OutOfBoundsMemoryAccess(data)
        if kind == ProgramTooLarge.KIND:
            return ProgramTooLarge()
        if kind == StackOverflow.KIND:
            return StackOverflow()
        if kind == StackUnderflow.KIND:
            return StackUnderflow()
        raise ValueError(f"Unknown fault code 0x{code:08X}")


class DecodeFailure(Chip8Error):
    """Raised when a word matches no opcode pattern."""

    KIND = 0x1001

    def __init__(self, word: int):
        self.word = word & 0xFFFF
        super().__init__(f"Unknown opcode ${self.word:04X}", self.word)


class OutOfBoundsMemoryAccess(Chip8Error):
    """Raised when a fetch, load, store or sprite read leaves memory."""

    KIND = 0x1002

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"Memory access out of bounds at ${address:04X}", address)


class ProgramTooLarge(Chip8Error):
    """Raised when a program image does not fit above the load address."""

    KIND = 0x1003

    def __init__(self, size: Optional[int] = None, capacity: Optional[int] = None):
        self.size = size
        self.capacity = capacity
        if size is None:
            message = "Not enough memory for program"
        else:
            message = f"Program is {size} bytes, only {capacity} bytes available"
        super().__init__(message)


class StackOverflow(Chip8Error):
    """Raised when CALL finds the return stack full."""

    KIND = 0x1004

    def __init__(self, depth: Optional[int] = None):
        self.depth = depth
        if depth is None:
            message = "Return stack overflow"
        else:
            message = f"Return stack overflow (capacity {depth})"
        super().__init__(message)


class StackUnderflow(Chip8Error):
    """Raised when RET finds the return stack empty."""

    KIND = 0x1005

    def __init__(self):
        super().__init__("Return from empty stack")
