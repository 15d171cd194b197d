"""Nearest-palette-colour matching with per-pass memoisation."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from typing import Protocol, TypeVar

import numpy as np

from palette_dither.color_utils import RGBA, squared_distance

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ColorQuantizer(Protocol):
    """Anything that maps a colour to a (palette) colour."""

    def __call__(self, color: RGBA) -> RGBA: ...


class EmptyPaletteError(ValueError):
    """Raised when matching against a palette without entries."""


def memoise(fn: Callable[[K], V]) -> Callable[[K], V]:
    """Return a caching version of the unary function *fn*.

    The cache is unbounded and lives as long as the returned function.
    *fn* must be pure: the cache cannot tell when it is not.
    """
    cache: dict[K, V] = {}

    def lookup(value: K) -> V:
        try:
            return cache[value]
        except KeyError:
            result = cache[value] = fn(value)
            return result

    lookup.cache = cache  # type: ignore[attr-defined]
    return lookup


class PaletteMatcher:
    """Map colours to the closest entry of a fixed, ordered palette.

    Distance is computed over R, G and B only.  When several entries are
    equally close the first one in palette order wins.

    Calling the matcher goes through a memoised lookup keyed by the full
    RGBA input, so one instance should serve exactly one rendering pass
    over an unchanging palette.  Instances are not thread-safe.

    Args:
        palette:        (N, 4) uint8 array or sequence of RGBA colours.
        preserve_alpha: Keep the input colour's alpha instead of the
                        palette entry's.
        distance:       Vectorised distance ``(palette_rgb, rgb) -> (N,)``.

    Raises:
        EmptyPaletteError: if *palette* has no entries.
    """

    def __init__(
        self,
        palette: np.ndarray | Sequence[RGBA],
        preserve_alpha: bool = True,
        distance: Callable[[np.ndarray, np.ndarray], np.ndarray] = squared_distance,
    ) -> None:
        entries = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
        if len(entries) == 0:
            msg = "Cannot match colours against an empty palette"
            raise EmptyPaletteError(msg)

        self._entries = [RGBA.from_array(e) for e in entries]
        self._rgb = entries[:, :3].astype(np.int32)
        self._distance = distance
        self.preserve_alpha = preserve_alpha
        self._lookup = memoise(
            self.match_preserving_alpha if preserve_alpha else self.match_keeping_alpha
        )

    def __call__(self, color: RGBA) -> RGBA:
        return self._lookup(color)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cache_size(self) -> int:
        return len(self._lookup.cache)  # type: ignore[attr-defined]

    def nearest_index(self, color: RGBA) -> int:
        """Index of the closest palette entry (first one on ties)."""
        d = self._distance(self._rgb, np.array(color[:3], dtype=np.int32))
        return int(np.argmin(d))

    def match_keeping_alpha(self, color: RGBA) -> RGBA:
        """Closest palette entry, including its own alpha."""
        return self._entries[self.nearest_index(color)]

    def match_preserving_alpha(self, color: RGBA) -> RGBA:
        """Closest palette entry with the alpha of *color*."""
        return self._entries[self.nearest_index(color)].with_alpha(color.a)
