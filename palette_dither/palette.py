"""Palette acquisition: palette files, hex lists, or extracted from an image.

Palettes are (N, 4) uint8 RGBA arrays in palette order.  Order matters:
the matcher resolves ties in favour of the earlier entry.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from palette_dither.color_utils import BLACK, WHITE, parse_hex_color

logger = logging.getLogger(__name__)

# Paint.NET palette files hold at most this many colours
MAX_PALETTE_FILE_SIZE = 96

DEFAULT_PALETTE = np.array([BLACK, WHITE], dtype=np.uint8)


def palette_from_hex(hex_colors: list[str]) -> np.ndarray:
    """Build a palette from ``'#RRGGBB'`` / ``'#RRGGBBAA'`` strings."""
    colors = [parse_hex_color(h) for h in hex_colors]
    return np.array(colors, dtype=np.uint8).reshape(-1, 4)


def load_palette(path: str | Path) -> np.ndarray:
    """Read a Paint.NET palette file.

    One colour per line as ``AARRGGBB`` (or ``RRGGBB``, fully opaque)
    hex digits.  Lines starting with ``;`` are comments.  Entries beyond
    the 96th are ignored.

    Returns:
        (N, 4) uint8 RGBA array.
    """
    path = Path(path)
    colors: list[tuple[int, int, int, int]] = []

    for lineno, raw in enumerate(path.read_text(encoding="utf-8-sig").splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith(";"):
            continue
        if len(line) == 6:
            line = "FF" + line
        if len(line) != 8:
            msg = f"{path}:{lineno}: expected AARRGGBB, got '{line}'"
            raise ValueError(msg)
        try:
            a, r, g, b = (int(line[i : i + 2], 16) for i in (0, 2, 4, 6))
        except ValueError:
            msg = f"{path}:{lineno}: invalid hex colour '{line}'"
            raise ValueError(msg) from None
        colors.append((r, g, b, a))

    if len(colors) > MAX_PALETTE_FILE_SIZE:
        logger.warning(
            "%s has %d colours; only the first %d are used",
            path, len(colors), MAX_PALETTE_FILE_SIZE,
        )
        colors = colors[:MAX_PALETTE_FILE_SIZE]

    return np.array(colors, dtype=np.uint8).reshape(-1, 4)


def extract_palette_from_image(
    path: str | Path,
    num_colors: int,
) -> np.ndarray:
    """Take the *num_colors* most frequent colours of an image.

    Most frequent first; equally frequent colours keep their sorted RGBA
    order, so the result is deterministic.

    Returns:
        (<= num_colors, 4) uint8 array.
    """
    img = Image.open(path).convert("RGBA")
    pixels = np.asarray(img, dtype=np.uint8).reshape(-1, 4)

    colors, counts = np.unique(pixels, axis=0, return_counts=True)
    order = np.argsort(-counts, kind="stable")
    return colors[order[:num_colors]].astype(np.uint8)


def slice_palette(palette: np.ndarray, start: int, end: int) -> np.ndarray:
    """Select palette entries *start* through *end* (1-based, inclusive).

    The range is truncated to the palette length, so the result can be
    shorter than requested or even empty.
    """
    if start < 1:
        msg = f"Palette start index must be >= 1, got {start}"
        raise ValueError(msg)
    if end < start:
        msg = f"Palette end index {end} is before start index {start}"
        raise ValueError(msg)
    return palette[start - 1 : end]
