"""
chip8_vm — CHIP-8 bytecode interpreter core
===========================================
Fetches, decodes and executes CHIP-8 instructions against an in-memory
register / stack / display model. Loading ROM files, drawing the
framebuffer, playing the beep and reading the keyboard are left to the
host.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────────┐
    │  Memory  │───>│ Decoder  │───>│ Executor │───>│ Machine state │
    │ (word@PC)│    │ (Op tag) │    │(handlers)│    │ (regs/fb/...) │
    └──────────┘    └──────────┘    └──────────┘    └───────────────┘
          ^                                                 │
          └──────────── Chip8Emulator.tick(keypad) ─────────┘

    - cpu/decoder.py:   word → Instruction (closed Op enum + operands)
    - cpu/executor.py:  Op → handler table, one handler per family
    - cpu/alu.py:       8-bit arithmetic returning (result, flag)
    - state.py:         everything an instruction can touch
    - emu.py:           tick / run, key-wait resolution, timers
"""

__version__ = "0.1.0"

from .config import MachineConfig, RandomConfig, DrawEdge, KeyWaitPolicy
from .cpu.decoder import Op, Instruction, decode_word
from .emu import Chip8Emulator, StopReason
from .errors import (
    Chip8Error, DecodeFailure, OutOfBoundsMemoryAccess, ProgramTooLarge,
    StackOverflow, StackUnderflow,
)

__all__ = [
    'Chip8Emulator', 'StopReason',
    'MachineConfig', 'RandomConfig', 'DrawEdge', 'KeyWaitPolicy',
    'Op', 'Instruction', 'decode_word',
    'Chip8Error', 'DecodeFailure', 'OutOfBoundsMemoryAccess', 'ProgramTooLarge',
    'StackOverflow', 'StackUnderflow',
]
