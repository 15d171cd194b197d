"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from palette_dither.kernel import DitherMethod


@dataclass(frozen=True)
class DitherConfig:
    """All tuneable parameters for a dithering run.

    Attributes:
        palette_start:  First palette entry to use (1-based).
        palette_end:    Last palette entry to use (inclusive).
        ignore_palette_alpha: Keep each pixel's own alpha instead of the
                        alpha of the matched palette entry.
        method:         Error-diffusion kernel, or ``none`` to disable dithering.
        amount:         Dithering strength in [0, 1].
        strip_height:   Rows per independently dithered strip (None = whole image).
        max_side:       Downscale inputs so the longest side fits (None = keep size).
        pixel_upscale:  Each output pixel becomes n x n in saved images.
        output_format:  Image format for saved files.
        save_comparison: Generate a side-by-side comparison grid.
        input_dir:      Folder to scan for source images.
        output_dir:     Folder for results.

    Raises:
        ValueError: on out-of-range or contradictory values.
    """

    # Palette
    palette_start: int = 1
    palette_end: int = 96
    ignore_palette_alpha: bool = True

    # Dithering
    method: DitherMethod = DitherMethod.NONE
    amount: float = 0.3
    strip_height: int | None = None

    # Input
    max_side: int | None = None

    # Output
    pixel_upscale: int = 1
    output_format: str = "png"
    save_comparison: bool = False

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".gif"}
    )

    def __post_init__(self) -> None:
        # Accept plain strings for the method, e.g. from a settings file
        object.__setattr__(self, "method", DitherMethod(self.method))

        if self.palette_start < 1:
            msg = f"palette_start must be >= 1, got {self.palette_start}"
            raise ValueError(msg)
        if self.palette_end < self.palette_start:
            msg = (
                f"palette_end ({self.palette_end}) must not be lower than "
                f"palette_start ({self.palette_start})"
            )
            raise ValueError(msg)
        if not 0.0 <= self.amount <= 1.0:
            msg = f"amount must be within [0, 1], got {self.amount}"
            raise ValueError(msg)
        if self.strip_height is not None and self.strip_height < 1:
            msg = f"strip_height must be >= 1, got {self.strip_height}"
            raise ValueError(msg)
        if self.max_side is not None and self.max_side < 1:
            msg = f"max_side must be >= 1, got {self.max_side}"
            raise ValueError(msg)
        if self.pixel_upscale < 1:
            msg = f"pixel_upscale must be >= 1, got {self.pixel_upscale}"
            raise ValueError(msg)

    @property
    def uses_dithering(self) -> bool:
        """True when a kernel is selected and the amount is non-zero."""
        return self.method is not DitherMethod.NONE and self.amount > 0.0
