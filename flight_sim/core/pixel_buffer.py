"""RGBA8 raster target shared by every front-end.

Pixels are stored row-major with a top-left origin as a ``(height, width, 4)``
uint8 array. Writes outside the buffer are dropped, never raised.
"""

from __future__ import annotations

import numpy as np

from .types import Color

DEFAULT_WIDTH = 320
DEFAULT_HEIGHT = 240
BLACK: Color = (0, 0, 0, 255)


class PixelBuffer:
    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"PixelBuffer size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.pixels = np.empty((self.height, self.width, 4), dtype=np.uint8)
        self.pixels[:] = BLACK

    def __len__(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def clear(self, color: Color) -> None:
        self.pixels[:] = color

    def set_pixel(self, x: int, y: int, color: Color) -> bool:
        """Write one pixel; returns False (and writes nothing) when out of bounds."""
        x, y = int(x), int(y)
        if not self.in_bounds(x, y):
            return False
        self.pixels[y, x] = color
        return True

    def get_pixel(self, x: int, y: int) -> Color | None:
        x, y = int(x), int(y)
        if not self.in_bounds(x, y):
            return None
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, color: Color) -> None:
        """Bresenham line from (x0, y0) to (x1, y1), both ends inclusive.

        Off-buffer pixels are skipped by ``set_pixel``; the line is not clipped.
        """
        x0, y0, x1, y1 = int(x0), int(y0), int(x1), int(y1)
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy

        x, y = x0, y0
        while True:
            self.set_pixel(x, y, color)
            if x == x1 and y == y1:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x += sx
            if e2 < dx:
                err += dx
                y += sy

    def draw_rect(self, x: int, y: int, w: int, h: int, color: Color) -> None:
        """Fill the axis-aligned rectangle; the off-buffer part is dropped."""
        x0 = max(0, int(x))
        y0 = max(0, int(y))
        x1 = min(self.width, int(x) + int(w))
        y1 = min(self.height, int(y) + int(h))
        if x0 >= x1 or y0 >= y1:
            return
        self.pixels[y0:y1, x0:x1] = color

    def to_bytes(self) -> bytes:
        """Flat RGBA8 bytes, e.g. for canvas ``ImageData`` or a texture upload."""
        return self.pixels.tobytes()

    def copy(self) -> "PixelBuffer":
        clone = PixelBuffer(self.width, self.height)
        clone.pixels[:] = self.pixels
        return clone
