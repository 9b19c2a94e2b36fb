"""
CHIP-8 VM — Machine Constants and Behaviour Policies

Memory map:
  $000–$04F  Font glyphs (16 glyphs × 5 bytes)
  $050–$1FF  Unused (interpreter area on the original hardware)
  $200–$FFF  Program space

Three historical ambiguities are configuration points rather than
hard-coded guesses. Defaults:
  draw_edge        WRAP     every sprite pixel wraps modulo width/height
  index_increment  True     Fx55/Fx65 leave I = I + x + 1
  key_wait         RELEASE  Fx0A confirms on press-then-release

Two smaller quirks ride along:
  shift_uses_vy    True     8xy6/8xyE shift Vy into Vx
  logic_resets_vf  False    8xy1/8xy2/8xy3 leave VF alone
"""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional

from .font import FONT_SET, FONT_SIZE


# =============================================================================
#  ADDRESS SPACE
# =============================================================================
MEMORY_SIZE = 4096
FONT_BEGIN_ADDR = 0x000
PROGRAM_BEGIN_ADDR = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_BEGIN_ADDR

INSTRUCTION_SIZE = 2      # bytes per opcode word


# =============================================================================
#  CPU
# =============================================================================
NUM_REGISTERS = 16
FLAG_REGISTER = NUM_REGISTERS - 1   # VF
MAX_STACK_SIZE = 32
NUM_KEYS = 16
FONT_GLYPHS = 16         # hex digits 0-F


# =============================================================================
#  DISPLAY
# =============================================================================
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
SPRITE_WIDTH = 8


# =============================================================================
#  RANDOM NUMBER GENERATOR (8-bit LCG)
#  seed' = ((MULTIPLIER * seed + INCREMENT) & 0xFF) % MODULUS
# =============================================================================
RANDOM_SEED = 123
RANDOM_MULTIPLIER = 42
RANDOM_INCREMENT = 31
RANDOM_MODULUS = 13


class DrawEdge(Enum):
    """How DRW treats sprite pixels that cross the screen edge."""
    WRAP = 'wrap'
    CLIP = 'clip'


class KeyWaitPolicy(Enum):
    """What confirms a pending Fx0A."""
    PRESS = 'press'        # any key currently down
    RELEASE = 'release'    # a key goes down and then comes back up


@dataclass(frozen=True)
class RandomConfig:
    seed: int = RANDOM_SEED
    multiplier: int = RANDOM_MULTIPLIER
    increment: int = RANDOM_INCREMENT
    modulus: int = RANDOM_MODULUS

    def __post_init__(self):
        if not 0 <= self.seed <= 0xFF:
            raise ValueError(f"RNG seed must fit in 8 bits, got {self.seed}")
        if not 1 <= self.modulus <= 0x100:
            raise ValueError(f"RNG modulus must be 1..256, got {self.modulus}")


@dataclass(frozen=True)
class MachineConfig:
    """Immutable per-session configuration, injected at construction.

    Use ``dataclasses.replace`` (or :meth:`with_changes`) to derive
    variants; a running machine never sees its config change.
    """
    draw_edge: DrawEdge = DrawEdge.WRAP
    index_increment: bool = True
    key_wait: KeyWaitPolicy = KeyWaitPolicy.RELEASE
    shift_uses_vy: bool = True
    logic_resets_vf: bool = False
    stack_size: int = MAX_STACK_SIZE
    random: RandomConfig = field(default_factory=RandomConfig)
    font: bytes = FONT_SET
    font_glyph_size: int = FONT_SIZE

    def __post_init__(self):
        if self.stack_size < 16:
            raise ValueError(f"stack_size must be at least 16, got {self.stack_size}")
        if FONT_BEGIN_ADDR + len(self.font) > PROGRAM_BEGIN_ADDR:
            raise ValueError(
                f"Font table ({len(self.font)} bytes) overlaps program space")
        if self.font_glyph_size < 1 or FONT_GLYPHS * self.font_glyph_size > len(self.font):
            raise ValueError(
                f"Font table ({len(self.font)} bytes) cannot hold {FONT_GLYPHS} glyphs "
                f"of {self.font_glyph_size} bytes")
        # Normalise to immutable bytes so the table cannot be mutated later
        object.__setattr__(self, 'font', bytes(self.font))

    def with_changes(self, **changes) -> 'MachineConfig':
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['draw_edge'] = self.draw_edge.value
        data['key_wait'] = self.key_wait.value
        data['font'] = self.font.hex()
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'MachineConfig':
        """Build a config from a plain dict; missing keys keep defaults."""
        data = dict(data or {})
        if 'draw_edge' in data:
            data['draw_edge'] = DrawEdge(data['draw_edge'])
        if 'key_wait' in data:
            data['key_wait'] = KeyWaitPolicy(data['key_wait'])
        if 'random' in data and isinstance(data['random'], dict):
            data['random'] = RandomConfig(**data['random'])
        if 'font' in data and isinstance(data['font'], str):
            data['font'] = bytes.fromhex(data['font'])
        return cls(**data)


DEFAULT_CONFIG = MachineConfig()
