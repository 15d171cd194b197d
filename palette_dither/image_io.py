"""Image loading, saving, and comparison-grid generation."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

# Formats Pillow cannot write with an alpha channel
_NO_ALPHA_FORMATS = {".jpg", ".jpeg", ".bmp"}


def compute_target_size(
    original_width: int,
    original_height: int,
    max_side: int,
) -> tuple[int, int]:
    """Compute downscaled (w, h) preserving aspect ratio.

    The longest side becomes *max_side*; the other is scaled
    proportionally (rounded to the nearest integer, minimum 1).
    """
    if original_width >= original_height:
        w = max_side
        h = max(1, round(original_height * max_side / original_width))
    else:
        h = max_side
        w = max(1, round(original_width * max_side / original_height))
    return w, h


def load_image(path: str | Path, max_side: int | None = None) -> np.ndarray:
    """Load an image as RGBA, optionally downscaled so the longest side is *max_side*.

    Returns:
        (H, W, 4) uint8 array.
    """
    img = Image.open(path).convert("RGBA")
    if max_side is not None:
        w, h = compute_target_size(img.width, img.height, max_side)
        img = img.resize((w, h), Image.LANCZOS)
    return np.array(img, dtype=np.uint8)


def save_image(
    array: np.ndarray,
    path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Save an (H, W, 4) array, nearest-neighbour upscaled by *pixel_upscale*."""
    path = Path(path)
    img = Image.fromarray(array.astype(np.uint8))
    if pixel_upscale > 1:
        h, w = array.shape[:2]
        img = img.resize((w * pixel_upscale, h * pixel_upscale), Image.NEAREST)
    if path.suffix.lower() in _NO_ALPHA_FORMATS:
        img = img.convert("RGB")
    img.save(path)


def _flatten(array: np.ndarray, size: tuple[int, int]) -> Image.Image:
    """Composite RGBA over the canvas colour and resize with nearest-neighbour."""
    rgba = Image.fromarray(array.astype(np.uint8))
    background = Image.new("RGBA", rgba.size, (30, 30, 30, 255))
    return Image.alpha_composite(background, rgba).convert("RGB").resize(size, Image.NEAREST)


def make_comparison_grid(
    original: np.ndarray,
    dithered: np.ndarray,
    palette: np.ndarray,
    output_path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Create a 3-panel comparison: Original | Palette | Dithered.

    The palette panel shows the entries as equal-width vertical bands.
    """
    th, tw = original.shape[:2]
    panel_w = tw * pixel_upscale
    panel_h = th * pixel_upscale
    label_height = 36

    swatch = palette.reshape(1, -1, 4)
    panels = [
        _flatten(original, (panel_w, panel_h)),
        _flatten(swatch, (panel_w, panel_h)),
        _flatten(dithered, (panel_w, panel_h)),
    ]
    labels = [
        f"Original {tw}x{th}",
        f"Palette ({len(palette)})",
        "Dithered",
    ]

    gap = 8
    total_w = len(panels) * panel_w + (len(panels) - 1) * gap
    total_h = panel_h + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=False)):
        x = i * (panel_w + gap)
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel_w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    canvas.save(output_path)
