"""Error-diffusion dithering kernels.

A kernel is an MxN matrix of coefficients describing how much of a
pixel's quantisation error is pushed to each not-yet-processed neighbour.
Row 0 holds the current scan line (only columns right of :attr:`centre`
are used); rows 1.. hold the lines below.

Kernels are immutable once built, so the presets below are shared by
every engine, including engines running in different threads.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

import numpy as np


class DitherKernel:
    """Normalised, read-only dithering kernel.

    Args:
        coefficients: Integer weights in row-major order.
        columns:      Width of the kernel matrix.
        factor:       Normalisation factor. Defaults to the sum of the
                      coefficients (at least 1).
        name:         Display name.

    Raises:
        ValueError: if *factor* < 1 or the coefficients do not form a
            matrix with *columns* columns.
    """

    __slots__ = ("_columns", "_weights", "name")

    def __init__(
        self,
        coefficients: Iterable[int],
        columns: int,
        factor: int | None = None,
        name: str = "",
    ) -> None:
        raw = [int(c) for c in coefficients]
        if factor is None:
            factor = max(1, sum(raw))
        elif factor < 1:
            msg = f"Factor must be greater than zero, got {factor}"
            raise ValueError(msg)

        scale = np.float32(1.0 / factor)
        self._init(np.asarray(raw, dtype=np.float32) * scale, columns, name)

    @classmethod
    def from_weights(
        cls, weights: Iterable[float], columns: int, name: str = "",
    ) -> DitherKernel:
        """Build a kernel from already normalised weights (no division)."""
        kernel = cls.__new__(cls)
        kernel._init(np.asarray(list(weights), dtype=np.float32), columns, name)
        return kernel

    def _init(self, weights: np.ndarray, columns: int, name: str) -> None:
        if columns < 1:
            msg = f"Invalid kernel width {columns}"
            raise ValueError(msg)
        if len(weights) < columns:
            msg = f"Not enough coefficients ({len(weights)}) for {columns} columns"
            raise ValueError(msg)
        if len(weights) % columns != 0:
            msg = f"{len(weights)} coefficients are incompatible with width {columns}"
            raise ValueError(msg)

        weights.flags.writeable = False
        self._weights = weights
        self._columns = columns
        self.name = name

    # -- Geometry ------------------------------------------------------

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return len(self._weights) // self._columns

    @property
    def centre(self) -> int:
        """Column of the pixel being diffused from."""
        return (self._columns - 1) // 2

    @property
    def padding(self) -> int:
        """Extra error-window columns an engine allocates past the row end."""
        return self.centre

    # -- Coefficients --------------------------------------------------

    @property
    def coefficients(self) -> np.ndarray:
        """Flattened, read-only float32 weights."""
        return self._weights

    @property
    def matrix(self) -> np.ndarray:
        """(rows, columns) read-only view of the weights."""
        return self._weights.reshape(self.rows, self._columns)

    def at(self, col: int, row: int) -> float:
        """Weight at kernel position (*col*, *row*)."""
        if not (0 <= col < self._columns and 0 <= row < self.rows):
            msg = f"Kernel position ({col}, {row}) outside {self._columns}x{self.rows}"
            raise IndexError(msg)
        return float(self._weights[row * self._columns + col])

    def __getitem__(self, pos: tuple[int, int]) -> float:
        col, row = pos
        return self.at(col, row)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<DitherKernel{label} {self._columns}x{self.rows}>"


# -- Presets -----------------------------------------------------------

FLOYD_STEINBERG = DitherKernel([
    0, 0, 7,
    3, 5, 1,
], columns=3, name="Floyd-Steinberg")

JARVIS_JUDICE_NINKE = DitherKernel([
    0, 0, 0, 7, 5,
    3, 5, 7, 5, 3,
    1, 3, 5, 3, 1,
], columns=5, name="Jarvis-Judice-Ninke")

STUCKI = DitherKernel([
    0, 0, 0, 8, 4,
    2, 4, 8, 4, 2,
    1, 2, 4, 2, 1,
], columns=5, name="Stucki")

BURKES = DitherKernel([
    0, 0, 0, 8, 4,
    2, 4, 8, 4, 2,
], columns=5, name="Burkes")

SIERRA = DitherKernel([
    0, 0, 0, 5, 3,
    2, 4, 5, 4, 2,
    0, 2, 3, 2, 0,
], columns=5, name="Sierra")


class DitherMethod(str, Enum):
    NONE = "none"
    FLOYD_STEINBERG = "floyd-steinberg"
    JARVIS_JUDICE_NINKE = "jarvis-judice-ninke"
    STUCKI = "stucki"
    BURKES = "burkes"
    SIERRA = "sierra"


KERNELS: dict[DitherMethod, DitherKernel | None] = {
    DitherMethod.NONE: None,
    DitherMethod.FLOYD_STEINBERG: FLOYD_STEINBERG,
    DitherMethod.JARVIS_JUDICE_NINKE: JARVIS_JUDICE_NINKE,
    DitherMethod.STUCKI: STUCKI,
    DitherMethod.BURKES: BURKES,
    DitherMethod.SIERRA: SIERRA,
}


def get_kernel(method: DitherMethod | str) -> DitherKernel | None:
    """Return the preset kernel for *method*, or ``None`` for ``"none"``."""
    try:
        return KERNELS[DitherMethod(method)]
    except ValueError:
        available = ", ".join(m.value for m in DitherMethod)
        msg = f"Unknown dithering method '{method}'. Available: {available}"
        raise ValueError(msg) from None
