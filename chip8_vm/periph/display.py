"""
CHIP-8 VM — Monochrome Framebuffer

The display is a DISPLAY_HEIGHT × DISPLAY_WIDTH grid of single bits,
held row-major in a numpy uint8 array of 0/1 values. It is changed only
by clear() (00E0) and draw_sprite() (Dxyn). Sprites are XORed onto the
grid; the return value of draw_sprite() is the collision bit: 1 if any
lit pixel was switched off.

Edge handling follows MachineConfig.draw_edge:
  WRAP  every pixel lands at ((x + col) % W, (y + row) % H)
  CLIP  the origin wraps (x % W, y % H); pixels that run past the
        right or bottom edge are dropped
"""

import numpy as np

from ..config import DISPLAY_WIDTH, DISPLAY_HEIGHT, SPRITE_WIDTH, DrawEdge


class Display:
    """Framebuffer with XOR sprite composition."""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT,
                 edge: DrawEdge = DrawEdge.WRAP):
        self.width = width
        self.height = height
        self.edge = edge
        self._buffer = np.zeros((height, width), dtype=np.uint8)

    @property
    def shape(self) -> tuple:
        return self._buffer.shape

    def get_display_buffer(self) -> np.ndarray:
        """Read-only copy of the framebuffer (shape (height, width)).

        The copy owns its data, so unlocking it never reaches the machine.
        """
        frame = self._buffer.copy()
        frame.flags.writeable = False
        return frame

    def pixel(self, x: int, y: int) -> int:
        return int(self._buffer[y, x])

    def clear(self):
        self._buffer.fill(0)

    def draw_sprite(self, x: int, y: int, sprite: bytes) -> int:
        """XOR an 8-pixel-wide sprite onto the grid at (x, y).

        `sprite` holds one byte per row, MSB = leftmost pixel.
        Returns 1 on collision, else 0.
        """
        x0 = x % self.width
        y0 = y % self.height
        collision = 0

        for row, line in enumerate(sprite):
            py = y0 + row
            if py >= self.height:
                if self.edge is DrawEdge.CLIP:
                    break
                py %= self.height

            for col in range(SPRITE_WIDTH):
                if not (line >> (7 - col)) & 1:
                    continue
                px = x0 + col
                if px >= self.width:
                    if self.edge is DrawEdge.CLIP:
                        break
                    px %= self.width
                if self._buffer[py, px]:
                    collision = 1
                self._buffer[py, px] ^= 1

        return collision

