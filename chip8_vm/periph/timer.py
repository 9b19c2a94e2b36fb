"""
CHIP-8 VM — Delay and Sound Timers

Two independent 8-bit down-counters. Each tick of the step driver
decrements both by one while they are nonzero; nothing here knows about
wall-clock time. The host paces ticks (classically 60 Hz).

  DT  delay timer  read by Fx07, written by Fx15
  ST  sound timer  written by Fx18; ST > 0 is the beep signal
"""


class TimerPeripheral:
    """Delay + sound counter pair."""

    __slots__ = ('delay', 'sound')

    def __init__(self):
        self.delay: int = 0
        self.sound: int = 0

    @property
    def beeping(self) -> bool:
        return self.sound > 0

    def set_delay(self, value: int):
        self.delay = value & 0xFF

    def set_sound(self, value: int):
        self.sound = value & 0xFF

    def update(self):
        """Advance one tick."""
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1
