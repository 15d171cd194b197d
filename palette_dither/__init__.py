"""
Palette Dither
==============

Map continuous-tone images onto a small, fixed palette while spreading
each pixel's quantisation error to its unprocessed neighbours.
Ships five error-diffusion kernels:

- **Floyd-Steinberg**
- **Jarvis-Judice-Ninke**, **Stucki**, **Burkes** and **Sierra**
"""

__version__ = "1.0.0"

from palette_dither.color_utils import BLACK, RGBA, WHITE, parse_hex_color
from palette_dither.config import DitherConfig
from palette_dither.diffusion import ErrorDiffusion
from palette_dither.image_io import load_image, make_comparison_grid, save_image
from palette_dither.kernel import (
    BURKES,
    FLOYD_STEINBERG,
    JARVIS_JUDICE_NINKE,
    SIERRA,
    STUCKI,
    DitherKernel,
    DitherMethod,
    get_kernel,
)
from palette_dither.matching import (
    ColorQuantizer,
    EmptyPaletteError,
    PaletteMatcher,
    memoise,
)
from palette_dither.palette import (
    DEFAULT_PALETTE,
    extract_palette_from_image,
    load_palette,
    palette_from_hex,
    slice_palette,
)
from palette_dither.render import dither_image_row, render

__all__ = [
    "BLACK",
    "BURKES",
    "DEFAULT_PALETTE",
    "FLOYD_STEINBERG",
    "JARVIS_JUDICE_NINKE",
    "RGBA",
    "SIERRA",
    "STUCKI",
    "WHITE",
    "ColorQuantizer",
    "DitherConfig",
    "DitherKernel",
    "DitherMethod",
    "EmptyPaletteError",
    "ErrorDiffusion",
    "PaletteMatcher",
    "dither_image_row",
    "extract_palette_from_image",
    "get_kernel",
    "load_image",
    "load_palette",
    "make_comparison_grid",
    "memoise",
    "palette_from_hex",
    "parse_hex_color",
    "render",
    "save_image",
    "slice_palette",
]
