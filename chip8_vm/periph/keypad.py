"""
CHIP-8 VM — Hex Keypad Snapshot + Key-Wait State Machine

The host hands the machine a fresh 16-entry snapshot on every tick
(index = key code 0x0–0xF, truthy = down). There is no debouncing.

Fx0A suspends the program until a key is confirmed:

  Running ──Fx0A──> AwaitingKey(reg) ──key down──> Captured(reg, key)
     ^                    │                              │
     │                    │ PRESS policy: confirm now    │ RELEASE policy:
     │                    v                              v key seen up
     └──────────── Confirmed(reg, key) <─────────────────┘

Under PRESS the lowest-numbered key that is down confirms on the same
tick. Under RELEASE the first key seen down is captured and confirmed
on the first later tick where that key is up; other keys are ignored
meanwhile. The machine writes the key to Vreg and advances PC only on
confirmation.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..config import NUM_KEYS, KeyWaitPolicy


def normalize_keypad(keypad: Optional[Sequence]) -> Tuple[bool, ...]:
    """Turn a host snapshot into a tuple of NUM_KEYS bools.

    None means no keys down. Any other length raises ValueError.
    """
    if keypad is None:
        return (False,) * NUM_KEYS
    keys = tuple(bool(k) for k in keypad)
    if len(keys) != NUM_KEYS:
        raise ValueError(f"Keypad snapshot must have {NUM_KEYS} entries, got {len(keys)}")
    return keys


def first_pressed(keys: Sequence[bool]) -> Optional[int]:
    for index, down in enumerate(keys):
        if down:
            return index
    return None


@dataclass(frozen=True)
class KeyWait:
    """Pending Fx0A. `captured_key` is set once a key has gone down
    under the RELEASE policy."""
    register: int
    captured_key: Optional[int] = None

    def advance(self, keys: Sequence[bool], policy: KeyWaitPolicy):
        """Feed one snapshot.

        Returns (next_state, confirmed_key). Exactly one of the two is
        None: either the wait continues with next_state, or it is over
        and confirmed_key is the key to commit.
        """
        if policy is KeyWaitPolicy.PRESS:
            key = first_pressed(keys)
            if key is None:
                return self, None
            return None, key

        if self.captured_key is None:
            key = first_pressed(keys)
            if key is None:
                return self, None
            return KeyWait(self.register, key), None

        if keys[self.captured_key]:
            return self, None
        return None, self.captured_key
