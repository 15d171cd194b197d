"""Tests for configuration, palettes, the render pipeline, image I/O and the CLI."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image
from typer.testing import CliRunner

from palette_dither.cli import app
from palette_dither.color_utils import BLACK, RGBA, WHITE, parse_hex_color
from palette_dither.config import DitherConfig
from palette_dither.image_io import (
    compute_target_size,
    load_image,
    make_comparison_grid,
    save_image,
)
from palette_dither.kernel import FLOYD_STEINBERG, DitherMethod
from palette_dither.matching import EmptyPaletteError
from palette_dither.palette import (
    DEFAULT_PALETTE,
    MAX_PALETTE_FILE_SIZE,
    extract_palette_from_image,
    load_palette,
    palette_from_hex,
    slice_palette,
)
from palette_dither.render import Region, dither_image_row, render, split_strips

# -- Fixtures ----------------------------------------------------------

W, H = 12, 7  # non-square


@pytest.fixture
def palette() -> np.ndarray:
    return np.array(
        [BLACK, WHITE, RGBA(255, 0, 0, 255), RGBA(0, 0, 255, 128)], dtype=np.uint8,
    )


@pytest.fixture
def source() -> np.ndarray:
    rng = np.random.default_rng(456)
    img = rng.integers(0, 256, size=(H, W, 4), dtype=np.uint8)
    img[..., 3] = 255
    return img


@pytest.fixture
def tmp_image(tmp_path: Path) -> Path:
    """Write a small non-square grayscale ramp to disk."""
    ramp = np.tile(np.linspace(0, 255, 32, dtype=np.uint8), (24, 1))
    p = tmp_path / "ramp.png"
    Image.fromarray(ramp).save(p)
    return p


@pytest.fixture
def palette_file(tmp_path: Path) -> Path:
    p = tmp_path / "test.txt"
    p.write_text(
        "; paint.net Palette File\n"
        "; Lines that start with a semicolon are comments\n"
        "FF000000\n"
        "ffffffff\n"
        "\n"
        "80FF0000\n"
        "00FF00\n",
        encoding="utf-8",
    )
    return p


def _colors(image: np.ndarray) -> set[tuple[int, ...]]:
    return {tuple(c) for c in image.reshape(-1, 4).tolist()}


# -- Config ------------------------------------------------------------

class TestConfig:
    def test_defaults(self) -> None:
        cfg = DitherConfig()
        assert cfg.palette_start == 1
        assert cfg.palette_end == 96
        assert cfg.ignore_palette_alpha is True
        assert cfg.method is DitherMethod.NONE
        assert cfg.amount == pytest.approx(0.3)
        assert cfg.uses_dithering is False

    def test_frozen(self) -> None:
        cfg = DitherConfig()
        with pytest.raises(AttributeError):
            cfg.amount = 1.0  # type: ignore[misc]

    def test_method_from_string(self) -> None:
        cfg = DitherConfig(method="sierra")  # type: ignore[arg-type]
        assert cfg.method is DitherMethod.SIERRA
        assert cfg.uses_dithering is True

    def test_zero_amount_disables_dithering(self) -> None:
        cfg = DitherConfig(method=DitherMethod.BURKES, amount=0.0)
        assert cfg.uses_dithering is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"palette_start": 0},
            {"palette_start": 10, "palette_end": 5},
            {"amount": -0.1},
            {"amount": 1.5},
            {"strip_height": 0},
            {"max_side": 0},
            {"pixel_upscale": 0},
            {"method": "bayer"},
        ],
    )
    def test_rejects_invalid(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            DitherConfig(**kwargs)  # type: ignore[arg-type]


# -- Colours and palettes ----------------------------------------------

class TestPalette:
    def test_parse_hex(self) -> None:
        assert parse_hex_color("#FF8000") == RGBA(255, 128, 0, 255)
        assert parse_hex_color("ff800040") == RGBA(255, 128, 0, 64)

    @pytest.mark.parametrize("bad", ["#FFF", "#GGGGGG", ""])
    def test_parse_hex_invalid(self, bad: str) -> None:
        with pytest.raises(ValueError):
            parse_hex_color(bad)

    def test_from_hex(self) -> None:
        p = palette_from_hex(["#000000", "#FFFFFF80"])
        assert p.shape == (2, 4)
        assert p.dtype == np.uint8
        assert p.tolist() == [[0, 0, 0, 255], [255, 255, 255, 128]]

    def test_default_palette(self) -> None:
        assert DEFAULT_PALETTE.tolist() == [list(BLACK), list(WHITE)]

    def test_load_palette_file(self, palette_file: Path) -> None:
        p = load_palette(palette_file)
        assert p.tolist() == [
            [0, 0, 0, 255],
            [255, 255, 255, 255],
            [255, 0, 0, 128],
            [0, 255, 0, 255],
        ]

    def test_load_palette_bad_entry(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.txt"
        p.write_text("FF000000\nnot-hex!\n", encoding="utf-8")
        with pytest.raises(ValueError, match=":2:"):
            load_palette(p)

    def test_load_palette_truncates(self, tmp_path: Path) -> None:
        p = tmp_path / "big.txt"
        p.write_text("FF102030\n" * (MAX_PALETTE_FILE_SIZE + 4), encoding="utf-8")
        assert len(load_palette(p)) == MAX_PALETTE_FILE_SIZE

    def test_extract_from_image(self, tmp_path: Path) -> None:
        img = np.zeros((4, 4, 4), dtype=np.uint8)
        img[...] = (10, 20, 30, 255)
        img[0, :3] = (200, 0, 0, 255)
        img[1, 0] = (0, 0, 200, 255)
        path = tmp_path / "few.png"
        Image.fromarray(img).save(path)

        p = extract_palette_from_image(path, 2)
        assert p.tolist() == [[10, 20, 30, 255], [200, 0, 0, 255]]

    def test_slice_palette(self, palette: np.ndarray) -> None:
        np.testing.assert_array_equal(slice_palette(palette, 2, 3), palette[1:3])
        np.testing.assert_array_equal(slice_palette(palette, 1, 96), palette)
        assert len(slice_palette(palette, 10, 20)) == 0

    @pytest.mark.parametrize(("start", "end"), [(0, 2), (3, 2)])
    def test_slice_palette_invalid(self, palette: np.ndarray, start: int, end: int) -> None:
        with pytest.raises(ValueError):
            slice_palette(palette, start, end)


# -- Rendering ---------------------------------------------------------

class TestRender:
    def test_split_strips(self) -> None:
        strips = split_strips(10, 7, 3)
        assert strips == [Region(0, 0, 10, 3), Region(0, 3, 10, 3), Region(0, 6, 10, 1)]
        assert split_strips(10, 7) == [Region(0, 0, 10, 7)]
        assert split_strips(0, 7) == []

    def test_output_shape_and_palette(
        self, source: np.ndarray, palette: np.ndarray,
    ) -> None:
        out = render(source, palette, method="floyd-steinberg", amount=1.0,
                     preserve_alpha=False)
        assert out.shape == source.shape
        assert out.dtype == np.uint8
        assert _colors(out) <= _colors(palette)

    def test_no_dithering_is_nearest_colour(self, palette: np.ndarray) -> None:
        src = np.array([[[20, 20, 20, 255], [240, 240, 240, 255], [250, 10, 0, 255]]],
                       dtype=np.uint8)
        out = render(src, palette, method=DitherMethod.NONE, preserve_alpha=False)
        assert out.tolist() == [[[0, 0, 0, 255], [255, 255, 255, 255], [255, 0, 0, 255]]]

    def test_zero_amount_matches_undithered(
        self, source: np.ndarray, palette: np.ndarray,
    ) -> None:
        plain = render(source, palette, method="none")
        zero = render(source, palette, method="jarvis-judice-ninke", amount=0.0)
        np.testing.assert_array_equal(plain, zero)

    def test_dithering_changes_output(self, palette: np.ndarray) -> None:
        src = np.full((8, 8, 4), 100, dtype=np.uint8)
        src[..., 3] = 255
        plain = render(src, palette, method="none")
        dithered = render(src, palette, method="stucki", amount=1.0)
        assert len(_colors(plain)) == 1
        assert len(_colors(dithered)) > 1

    def test_preserve_alpha(self, palette: np.ndarray) -> None:
        src = np.full((2, 3, 4), 10, dtype=np.uint8)
        src[..., 3] = 77
        kept = render(src, palette, amount=1.0, preserve_alpha=True)
        assert (kept[..., 3] == 77).all()

        src[..., 2] = 250  # nearest is the half-transparent blue
        replaced = render(src, palette, method="none", preserve_alpha=False)
        assert (replaced[..., 3] == 128).all()

    def test_strips_are_independent(
        self, source: np.ndarray, palette: np.ndarray,
    ) -> None:
        out = render(source, palette, method="floyd-steinberg", amount=1.0, strip_height=1)
        for y in range(H):
            row = dither_image_row(source[y], palette, FLOYD_STEINBERG, 1.0)
            np.testing.assert_array_equal(out[y], row)

    def test_explicit_regions(self, source: np.ndarray, palette: np.ndarray) -> None:
        left = Region(0, 0, W // 2, H)
        out = render(source, palette, amount=1.0, regions=[left])
        assert not out[:, W // 2 :].any()
        assert out[:, : W // 2, 3].all()

    def test_single_row_undithered(self, palette: np.ndarray) -> None:
        row = np.array([[20, 20, 20, 9], [240, 240, 240, 9]], dtype=np.uint8)
        out = dither_image_row(row, palette, None, 1.0)
        assert out.tolist() == [[0, 0, 0, 9], [255, 255, 255, 9]]

    def test_invalid_amount(self, source: np.ndarray, palette: np.ndarray) -> None:
        with pytest.raises(ValueError):
            render(source, palette, amount=1.2)

    def test_empty_palette(self, source: np.ndarray) -> None:
        with pytest.raises(EmptyPaletteError):
            render(source, np.zeros((0, 4), dtype=np.uint8))


# -- Image I/O ---------------------------------------------------------

class TestImageIO:
    def test_target_size(self) -> None:
        assert compute_target_size(1920, 1080, 64) == (64, 36)
        assert compute_target_size(1080, 1920, 64) == (36, 64)
        assert compute_target_size(1000, 1, 32)[1] >= 1

    def test_load_is_rgba(self, tmp_image: Path) -> None:
        arr = load_image(tmp_image)
        assert arr.shape == (24, 32, 4)
        assert arr.dtype == np.uint8
        assert (arr[..., 3] == 255).all()

    def test_load_resized(self, tmp_image: Path) -> None:
        arr = load_image(tmp_image, max_side=16)
        assert arr.shape == (12, 16, 4)

    def test_save_upscaled(self, tmp_path: Path, source: np.ndarray) -> None:
        out = tmp_path / "up.png"
        save_image(source, out, pixel_upscale=3)
        img = Image.open(out)
        assert img.size == (W * 3, H * 3)
        assert img.mode == "RGBA"

    def test_save_jpeg_drops_alpha(self, tmp_path: Path, source: np.ndarray) -> None:
        out = tmp_path / "out.jpg"
        save_image(source, out)
        assert Image.open(out).mode == "RGB"

    def test_comparison_grid(
        self, tmp_path: Path, source: np.ndarray, palette: np.ndarray,
    ) -> None:
        out = tmp_path / "grid.png"
        make_comparison_grid(source, source, palette, out, pixel_upscale=2)
        img = Image.open(out)
        assert img.size == (3 * W * 2 + 2 * 8, H * 2 + 36)


# -- CLI ---------------------------------------------------------------

runner = CliRunner()


class TestCli:
    def test_single(self, tmp_image: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "dithered.png"
        result = runner.invoke(app, [
            "single", str(tmp_image), "-o", str(out),
            "--colors", "#000000,#FFFFFF",
            "--method", "floyd-steinberg", "--amount", "1",
            "--comparison",
        ])
        assert result.exit_code == 0, result.output
        assert out.exists()
        assert (tmp_path / "out" / "ramp_comparison.png").exists()

        arr = np.asarray(Image.open(out).convert("RGB"))
        assert {tuple(c) for c in arr.reshape(-1, 3).tolist()} <= {(0, 0, 0), (255, 255, 255)}

    def test_single_palette_file_range(
        self, tmp_image: Path, tmp_path: Path, palette_file: Path,
    ) -> None:
        out = tmp_path / "range.png"
        result = runner.invoke(app, [
            "single", str(tmp_image), "-o", str(out),
            "--palette-file", str(palette_file), "--start", "2", "--end", "2",
        ])
        assert result.exit_code == 0, result.output
        arr = np.asarray(Image.open(out))
        assert (arr[..., :3] == 255).all()

    def test_invalid_range(self, tmp_image: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "single", str(tmp_image), "-o", str(tmp_path / "x.png"),
            "--start", "5", "--end", "2",
        ])
        assert result.exit_code != 0
        assert not (tmp_path / "x.png").exists()

    def test_range_selecting_nothing(self, tmp_image: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "single", str(tmp_image), "-o", str(tmp_path / "x.png"),
            "--start", "10", "--end", "12",
        ])
        assert result.exit_code != 0

    def test_batch(self, tmp_image: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "results"
        result = runner.invoke(app, [
            "batch", "-i", str(tmp_image.parent), "-o", str(out_dir),
            "--method", "sierra", "--amount", "0.5", "--strip-height", "8",
        ])
        assert result.exit_code == 0, result.output
        assert (out_dir / "ramp_dithered.png").exists()

    def test_batch_empty_folder(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(app, ["batch", "-i", str(empty), "-o", str(tmp_path / "o")])
        assert result.exit_code == 0
        assert "No images found" in result.output

    def test_kernels(self) -> None:
        result = runner.invoke(app, ["kernels"])
        assert result.exit_code == 0
        for name in ("floyd-steinberg", "stucki", "sierra"):
            assert name in result.output
