"""
CHIP-8 VM — 4K Flat Memory

Memory map:
  $000–$04F  Font glyphs (copied in at construction)
  $200–$FFF  Program space

Unlike a real bus, nothing here wraps: every address outside
0..MEMORY_SIZE-1 raises OutOfBoundsMemoryAccess. Block reads and writes
check the whole range before touching a byte, so a failing access never
leaves a partial write behind.
"""

from typing import Iterable

from ..config import MEMORY_SIZE
from ..errors import OutOfBoundsMemoryAccess


class Memory:
    """Byte-addressable memory backed by a bytearray."""

    def __init__(self, size: int = MEMORY_SIZE):
        self._mem = bytearray(size)

    def __len__(self) -> int:
        return len(self._mem)

    @property
    def size(self) -> int:
        return len(self._mem)

    # --- Bounds ---

    def check_range(self, addr: int, length: int = 1):
        """Raise OutOfBoundsMemoryAccess unless addr..addr+length-1 is mapped.

        The reported address is the first one that falls outside memory.
        """
        if addr < 0:
            raise OutOfBoundsMemoryAccess(addr & 0xFFFF)
        end = addr + length
        if end > len(self._mem):
            raise OutOfBoundsMemoryAccess(max(addr, len(self._mem)))

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        self.check_range(addr)
        return self._mem[addr]

    def write8(self, addr: int, value: int):
        self.check_range(addr)
        self._mem[addr] = value & 0xFF

    def read16(self, addr: int) -> int:
        """Read a big-endian word (first byte high)."""
        self.check_range(addr, 2)
        return (self._mem[addr] << 8) | self._mem[addr + 1]

    # --- Block access ---

    def read_block(self, addr: int, length: int) -> bytes:
        self.check_range(addr, length)
        return bytes(self._mem[addr:addr + length])

    def write_block(self, addr: int, data: Iterable[int]):
        data = bytes(data)
        self.check_range(addr, len(data))
        self._mem[addr:addr + len(data)] = data

    # --- Bulk load ---

    def load_binary(self, data: bytes, base_addr: int):
        """Copy raw bytes into memory at base_addr (all-or-nothing)."""
        self.write_block(base_addr, data)

    # --- Snapshots ---

    def snapshot(self) -> bytes:
        """Immutable copy of the whole memory."""
        return bytes(self._mem)
