"""Map whole images to a palette, region by region.

Each region gets its own :class:`ErrorDiffusion` engine and its own
:class:`PaletteMatcher`, so error never crosses region boundaries and
regions could be rendered independently.  Within a region rows are
processed strictly top to bottom, pixels strictly left to right.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

from palette_dither.color_utils import RGBA
from palette_dither.diffusion import ErrorDiffusion
from palette_dither.kernel import DitherKernel, DitherMethod, get_kernel
from palette_dither.matching import ColorQuantizer, PaletteMatcher

logger = logging.getLogger(__name__)


class Region(NamedTuple):
    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


def split_strips(width: int, height: int, strip_height: int | None = None) -> list[Region]:
    """Cover a *width* x *height* image with full-width horizontal strips."""
    if width < 1 or height < 1:
        return []
    step = height if strip_height is None else strip_height
    if step < 1:
        msg = f"strip_height must be >= 1, got {strip_height}"
        raise ValueError(msg)
    return [
        Region(0, top, width, min(step, height - top))
        for top in range(0, height, step)
    ]


def _to_colors(row: np.ndarray) -> list[RGBA]:
    return [RGBA(*px) for px in row.tolist()]


def quantize_row(row: np.ndarray, quantize: ColorQuantizer) -> np.ndarray:
    """Map one (W, 4) row without dithering."""
    mapped = [quantize(c) for c in _to_colors(row)]
    return np.array(mapped, dtype=np.uint8).reshape(-1, 4)


def dither_row(
    row: np.ndarray,
    quantize: ColorQuantizer,
    engine: ErrorDiffusion,
) -> np.ndarray:
    """Push one (W, 4) row through *engine*, then advance it to the next line."""
    mapped = [
        engine.final_color(x, color, quantize)
        for x, color in enumerate(_to_colors(row))
    ]
    engine.move_to_next_line()
    return np.array(mapped, dtype=np.uint8).reshape(-1, 4)


def render_region(
    source: np.ndarray,
    dest: np.ndarray,
    region: Region,
    quantize: ColorQuantizer,
    kernel: DitherKernel | None = None,
    amount: float = 0.0,
) -> None:
    """Render *region* of *source* into *dest* (both (H, W, 4) uint8).

    Without a kernel, or with ``amount == 0``, pixels are mapped directly.
    """
    rows = range(region.top, region.bottom)
    cols = slice(region.left, region.right)

    if kernel is None or amount <= 0.0:
        for y in rows:
            dest[y, cols] = quantize_row(source[y, cols], quantize)
        return

    engine = ErrorDiffusion(kernel, amount, region.width)
    for y in rows:
        dest[y, cols] = dither_row(source[y, cols], quantize, engine)


def render(
    source: np.ndarray,
    palette: np.ndarray,
    method: DitherMethod | str = DitherMethod.FLOYD_STEINBERG,
    amount: float = 1.0,
    preserve_alpha: bool = True,
    strip_height: int | None = None,
    regions: Sequence[Region] | None = None,
) -> np.ndarray:
    """Map every pixel of *source* to *palette*.

    Args:
        source:         (H, W, 4) uint8 RGBA image.
        palette:        (N, 4) uint8 palette, N >= 1.
        method:         Kernel preset, or ``"none"`` for plain mapping.
        amount:         Dithering strength in [0, 1].
        preserve_alpha: Keep source alpha instead of palette alpha.
        strip_height:   Rows per independent strip (None = one region).
        regions:        Explicit regions; overrides *strip_height*.

    Returns:
        (H, W, 4) uint8 - the mapped image.
    """
    if not 0.0 <= amount <= 1.0:
        msg = f"amount must be within [0, 1], got {amount}"
        raise ValueError(msg)

    kernel = get_kernel(method)
    h, w = source.shape[:2]
    if regions is None:
        regions = split_strips(w, h, strip_height)

    dest = np.zeros_like(source, dtype=np.uint8)

    label = kernel.name if kernel is not None and amount > 0.0 else "no dithering"
    logger.info(
        "Rendering %dx%d over %d region(s) with %s (amount=%.2f) …",
        w, h, len(regions), label, amount,
    )
    t0 = time.perf_counter()
    for region in regions:
        matcher = PaletteMatcher(palette, preserve_alpha=preserve_alpha)
        render_region(source, dest, region, matcher, kernel, amount)
        logger.debug(
            "Region %s done, %d distinct colours matched", region, matcher.cache_size,
        )
    logger.info("Render finished  (%.2f s)", time.perf_counter() - t0)
    return dest


def dither_image_row(
    row: np.ndarray,
    palette: np.ndarray,
    kernel: DitherKernel | None,
    amount: float,
    preserve_alpha: bool = True,
) -> np.ndarray:
    """Map a single (W, 4) row on its own, dithered when *kernel* is given."""
    matcher = PaletteMatcher(palette, preserve_alpha=preserve_alpha)
    if kernel is None or amount <= 0.0:
        return quantize_row(row, matcher)
    engine = ErrorDiffusion(kernel, amount, len(row))
    return dither_row(row, matcher, engine)
