"""RGBA colour type, hex parsing and palette distance computation."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np


def _clamp(value: float) -> int:
    return min(255, max(0, int(value)))


class RGBA(NamedTuple):
    """A 32-bit colour with integer channels in ``[0, 255]``.

    Hashable, so it can be used directly as a cache key.
    """

    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def clamped(cls, r: float, g: float, b: float, a: float = 255) -> RGBA:
        """Truncate each channel to an int and clamp it to ``[0, 255]``."""
        return cls(_clamp(r), _clamp(g), _clamp(b), _clamp(a))

    @classmethod
    def from_array(cls, values: np.ndarray) -> RGBA:
        r, g, b, a = (int(v) for v in values[:4])
        return cls(r, g, b, a)

    def with_alpha(self, a: int) -> RGBA:
        return self._replace(a=a)

    def intensity(self) -> int:
        """Luma byte of the colour (alpha ignored)."""
        return (7471 * self.b + 38470 * self.g + 19595 * self.r) >> 16

    def to_hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}"


BLACK = RGBA(0, 0, 0, 255)
WHITE = RGBA(255, 255, 255, 255)


def parse_hex_color(hex_str: str) -> RGBA:
    """Parse ``'#RRGGBB'`` or ``'#RRGGBBAA'`` into an :class:`RGBA`."""
    h = hex_str.strip().lstrip("#")
    if len(h) not in (6, 8):
        msg = f"Invalid hex colour '{hex_str}': expected #RRGGBB or #RRGGBBAA"
        raise ValueError(msg)
    try:
        channels = [int(h[i : i + 2], 16) for i in range(0, len(h), 2)]
    except ValueError:
        msg = f"Invalid hex colour '{hex_str}'"
        raise ValueError(msg) from None
    return RGBA(*channels)


def squared_distance(palette_rgb: np.ndarray, color_rgb: np.ndarray) -> np.ndarray:
    """Squared Euclidean RGB distance from one colour to every palette entry.

    Args:
        palette_rgb: (N, 3) int array.
        color_rgb:   (3,) int array.

    Returns:
        (N,) int64 distances.
    """
    diff = palette_rgb.astype(np.int64) - np.asarray(color_rgb, dtype=np.int64)
    return np.sum(diff * diff, axis=1)
