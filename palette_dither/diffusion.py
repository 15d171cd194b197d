"""Row-bounded error-diffusion engine.

Instead of a full-image error buffer the engine keeps a sliding window of
``kernel.rows`` error rows per channel.  Row 0 holds the error pending for
the row being scanned; rows 1.. hold error queued for the rows below,
aligned on the same columns.  Each window row is ``kernel.padding``
columns wider than the image row so that diffusion from the last pixels
of a row lands in the padding.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from palette_dither.color_utils import RGBA
from palette_dither.kernel import DitherKernel

logger = logging.getLogger(__name__)

_CHANNELS = 3  # R, G, B - alpha is never diffused


class ErrorDiffusion:
    """Apply a dithering kernel while scanning one horizontal strip.

    Pixels must be fed left to right through :meth:`final_color`, and
    :meth:`move_to_next_line` must be called once after each full row.

    Args:
        kernel:         Dithering kernel (shared, read-only).
        amount:         Diffusion strength in ``[0, 1]``.
        pixels_per_row: Width of the strip in pixels.

    Raises:
        TypeError: if *kernel* is ``None``.
        ValueError: if *amount* or *pixels_per_row* is out of range.
    """

    def __init__(
        self,
        kernel: DitherKernel,
        amount: float,
        pixels_per_row: int,
    ) -> None:
        if kernel is None:
            msg = "kernel must not be None"
            raise TypeError(msg)
        if pixels_per_row < 1:
            msg = f"Invalid pixels per row: {pixels_per_row}"
            raise ValueError(msg)

        self.amount = amount
        self._kernel = kernel
        self._pixels_per_row = pixels_per_row
        self._errors = np.zeros(
            (_CHANNELS, kernel.rows, pixels_per_row + kernel.padding),
            dtype=np.int32,
        )
        logger.debug(
            "Error window %s for %r (amount=%.2f)",
            self._errors.shape, kernel, self._amount,
        )

    @property
    def amount(self) -> float:
        return self._amount

    @amount.setter
    def amount(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            msg = f"amount must be within [0, 1], got {value}"
            raise ValueError(msg)
        self._amount = float(value)

    @property
    def kernel(self) -> DitherKernel:
        return self._kernel

    @property
    def pixels_per_row(self) -> int:
        return self._pixels_per_row

    @property
    def errors(self) -> np.ndarray:
        """Copy of the (3, rows, pixels_per_row + padding) error window."""
        return self._errors.copy()

    def final_color(
        self,
        x: int,
        original: RGBA,
        quantize: Callable[[RGBA], RGBA],
    ) -> RGBA:
        """Map the pixel at column *x* and diffuse its quantisation error.

        The colour handed to *quantize* is the original plus the pending
        error, rounded to nearest.  The diffused residual, however, is
        taken against the *original* colour, not the biased one.
        """
        if not 0 <= x < self._pixels_per_row:
            msg = f"Column {x} outside row of {self._pixels_per_row} pixels"
            raise IndexError(msg)

        pending = self._errors[:, 0, x]
        biased = RGBA.clamped(
            original.r + int(pending[0]) + 0.5,
            original.g + int(pending[1]) + 0.5,
            original.b + int(pending[2]) + 0.5,
            original.a,
        )
        mapped = quantize(biased)

        residual = np.array(
            [original.r - mapped.r, original.g - mapped.g, original.b - mapped.b],
            dtype=np.float64,
        )
        self._diffuse(x, residual)
        return mapped

    def move_to_next_line(self) -> None:
        """Advance the window by one row and clear the new last row."""
        self._errors[:, :-1] = self._errors[:, 1:]
        self._errors[:, -1] = 0

    # -- Internals -----------------------------------------------------

    def _diffuse(self, x: int, residual: np.ndarray) -> None:
        kernel = self._kernel
        centre = kernel.centre
        weights = kernel.matrix * self._amount

        # Same row: only the pixels right of the current one
        self._accumulate(0, x + 1, weights[0, centre + 1 :], residual)
        # Rows below: full kernel width, centred on x
        for row in range(1, kernel.rows):
            self._accumulate(row, x - centre, weights[row], residual)

    def _accumulate(
        self,
        row: int,
        start: int,
        weights: np.ndarray,
        residual: np.ndarray,
    ) -> None:
        # Left edge: skip the kernel columns that would land before column 0
        if start < 0:
            weights = weights[-start:]
            start = 0
        stop = min(start + len(weights), self._errors.shape[2])
        if stop <= start:
            return
        weights = weights[: stop - start]

        target = self._errors[:, row, start:stop]
        spread = target + residual[:, np.newaxis] * weights[np.newaxis, :]
        target[...] = np.clip(np.trunc(spread), 0, 255)
