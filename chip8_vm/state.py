"""
CHIP-8 VM — Machine State

Owns everything an instruction can touch: register file, return stack,
memory, timers, framebuffer, RNG seed and the pending key-wait (if any).
Built once per session from a MachineConfig; there is no partial reset.

Only the executor mutates state after construction. Hosts read it via
the emulator's read-only accessors.
"""

import logging
from typing import Optional

from .config import (
    MachineConfig, DEFAULT_CONFIG,
    FONT_BEGIN_ADDR, PROGRAM_BEGIN_ADDR, MEMORY_SIZE,
)
from .cpu.alu import lcg8
from .cpu.regs import Registers
from .errors import ProgramTooLarge
from .mem.memory import Memory
from .periph.display import Display
from .periph.keypad import KeyWait
from .periph.timer import TimerPeripheral

logger = logging.getLogger(__name__)


class MachineState:

    def __init__(self, config: MachineConfig = DEFAULT_CONFIG):
        self.config = config
        self.regs = Registers(stack_size=config.stack_size)
        self.mem = Memory(MEMORY_SIZE)
        self.timer = TimerPeripheral()
        self.display = Display(edge=config.draw_edge)
        self.rng_seed: int = config.random.seed
        self.key_wait: Optional[KeyWait] = None

        self.mem.load_binary(config.font, FONT_BEGIN_ADDR)

    # --- Program image ---

    @property
    def program_capacity(self) -> int:
        return len(self.mem) - PROGRAM_BEGIN_ADDR

    def load_program(self, program: bytes):
        """Copy a program image to PROGRAM_BEGIN_ADDR.

        Raises ProgramTooLarge (memory untouched) if it does not fit.
        """
        data = bytes(program)
        if len(data) > self.program_capacity:
            raise ProgramTooLarge(len(data), self.program_capacity)
        self.mem.load_binary(data, PROGRAM_BEGIN_ADDR)
        logger.info(f"Loaded program: {len(data)} bytes at ${PROGRAM_BEGIN_ADDR:03X}")

    # --- RNG ---

    def next_random(self) -> int:
        rnd = self.config.random
        self.rng_seed = lcg8(self.rng_seed, rnd.multiplier, rnd.increment, rnd.modulus)
        return self.rng_seed

    # --- Key wait ---

    @property
    def waiting_for_key(self) -> bool:
        return self.key_wait is not None

    def font_address(self, digit: int) -> int:
        return FONT_BEGIN_ADDR + (digit & 0xF) * self.config.font_glyph_size
