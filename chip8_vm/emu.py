"""
CHIP-8 VM — Main Emulator Class (step driver)

Integrates:
  - Machine state (state.py): registers, memory, timers, display, RNG
  - Opcode decoder (cpu/decoder.py)
  - Instruction handlers (cpu/executor.py)

Tick model (one call = one timer decrement):
  1. If an Fx0A key wait is pending, feed it the keypad snapshot.
     Confirmation writes Vx and advances PC; no instruction is fetched
     on a tick spent waiting.
  2. Otherwise fetch the word at PC, decode it, execute it.
  3. Decrement the delay and sound timers (when nonzero).

A fault raised in step 1 or 2 propagates before step 3, so a failed tick
leaves the timers alone. The caller decides whether to halt, rebuild the
machine or report.

Stop reasons for run():
  TIMEOUT  max_ticks reached
  ILLEGAL  DecodeFailure
  FAULT    any other Chip8Error (memory bounds, stack)
"""

import logging
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from .config import MachineConfig, DEFAULT_CONFIG, INSTRUCTION_SIZE
from .cpu.decoder import decode_opcode
from .cpu.executor import Executor
from .errors import Chip8Error, DecodeFailure
from .periph.keypad import normalize_keypad
from .state import MachineState

logger = logging.getLogger(__name__)


class StopReason(Enum):
    TIMEOUT = 'TIMEOUT'
    ILLEGAL = 'ILLEGAL'
    FAULT = 'FAULT'


class Chip8Emulator:
    """CHIP-8 interpreter.

    Usage:
        emu = Chip8Emulator()
        emu.load_program(rom_bytes)
        while True:
            emu.tick(keypad)          # 16 bools, fresh each call
            host.blit(emu.framebuffer)
            host.beep(emu.should_beep)
    """

    def __init__(self, config: MachineConfig = DEFAULT_CONFIG):
        self.config = config
        self.state = MachineState(config)
        self.executor = Executor()
        self.ticks: int = 0
        self.last_error: Optional[Chip8Error] = None
        self._trace = False

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, program: bytes):
        """Copy a program image to $200. Raises ProgramTooLarge."""
        self.state.load_program(program)

    # ══════════════════════════════════════════════
    # Host-facing accessors (read-only)
    # ══════════════════════════════════════════════

    @property
    def framebuffer(self) -> np.ndarray:
        """Read-only (height, width) copy; 1 = lit."""
        return self.state.display.get_display_buffer()

    @property
    def should_beep(self) -> bool:
        return self.state.timer.beeping

    @property
    def waiting_for_key(self) -> bool:
        return self.state.waiting_for_key

    @property
    def program_counter(self) -> int:
        return self.state.regs.PC

    def memory_snapshot(self) -> bytes:
        return self.state.mem.snapshot()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def tick(self, keypad: Optional[Sequence] = None):
        """Run one tick. Raises Chip8Error on a fault."""
        keys = normalize_keypad(keypad)
        state = self.state

        if state.key_wait is not None:
            self._resolve_key_wait(keys)
        else:
            ins = decode_opcode(state.mem, state.regs.PC)
            if self._trace:
                logger.debug(f"${state.regs.PC:04X}: {str(ins):18s} {state.regs.display()}")
            self.executor.execute(state, ins, keys)

        state.timer.update()
        self.ticks += 1

    def _resolve_key_wait(self, keys):
        state = self.state
        wait = state.key_wait
        next_wait, key = wait.advance(keys, self.config.key_wait)
        state.key_wait = next_wait
        if key is None:
            if next_wait is not wait:
                logger.debug(f"Captured key {next_wait.captured_key:X}, waiting for release")
            return
        state.regs.V[wait.register] = key
        state.regs.PC = (state.regs.PC + INSTRUCTION_SIZE) & 0xFFFF
        logger.debug(f"Key {key:X} confirmed -> V{wait.register:X}")

    def run(self, max_ticks: int, keypad: Optional[Sequence] = None) -> StopReason:
        """Tick until a fault or max_ticks. The same keypad snapshot is
        used for every tick.
        """
        self.last_error = None
        for _ in range(max_ticks):
            try:
                self.tick(keypad)
            except DecodeFailure as e:
                self.last_error = e
                logger.warning(f"Stopped at ${self.state.regs.PC:04X}: {e}")
                return StopReason.ILLEGAL
            except Chip8Error as e:
                self.last_error = e
                logger.warning(f"Stopped at ${self.state.regs.PC:04X}: {e}")
                return StopReason.FAULT
        return StopReason.TIMEOUT

    # ══════════════════════════════════════════════
    # Trace
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Log every executed instruction at DEBUG level."""
        self._trace = enable
