"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from palette_dither.config import DitherConfig
from palette_dither.image_io import load_image, make_comparison_grid, save_image
from palette_dither.kernel import KERNELS, DitherMethod
from palette_dither.palette import (
    DEFAULT_PALETTE,
    extract_palette_from_image,
    load_palette,
    palette_from_hex,
    slice_palette,
)
from palette_dither.render import render

app = typer.Typer(
    name="palette-dither",
    help="Map images to a fixed palette with error-diffusion dithering.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _quality_metric(original: np.ndarray, dithered: np.ndarray) -> float:
    o = original[..., :3].reshape(-1, 3).astype(np.float64)
    d = dithered[..., :3].reshape(-1, 3).astype(np.float64)
    return float(np.mean(np.sqrt(np.sum((o - d) ** 2, axis=1))))


def _make_config(**kwargs: object) -> DitherConfig:
    try:
        return DitherConfig(**kwargs)  # type: ignore[arg-type]
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _resolve_palette(
    cfg: DitherConfig,
    palette_file: Path | None,
    colors: str | None,
    palette_from: Path | None,
) -> np.ndarray:
    """Pick the palette source, then apply the configured index range."""
    logger = logging.getLogger("palette_dither")
    try:
        if palette_file is not None:
            palette = load_palette(palette_file)
            logger.info("Palette loaded from %s", palette_file)
        elif colors:
            palette = palette_from_hex([c.strip() for c in colors.split(",")])
        elif palette_from is not None:
            palette = extract_palette_from_image(palette_from, cfg.palette_end)
            logger.info("Palette extracted from %s", palette_from)
        else:
            palette = DEFAULT_PALETTE
        palette = slice_palette(palette, cfg.palette_start, cfg.palette_end)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    if len(palette) == 0:
        msg = (
            f"Palette range {cfg.palette_start}-{cfg.palette_end} "
            "selects no colours"
        )
        raise typer.BadParameter(msg)
    logger.info("Palette: %d colour(s)", len(palette))
    return palette


def _process(
    img_path: Path,
    out_path: Path,
    palette: np.ndarray,
    cfg: DitherConfig,
) -> tuple[np.ndarray, np.ndarray]:
    original = load_image(img_path, cfg.max_side)
    dithered = render(
        original,
        palette,
        method=cfg.method,
        amount=cfg.amount if cfg.uses_dithering else 0.0,
        preserve_alpha=cfg.ignore_palette_alpha,
        strip_height=cfg.strip_height,
    )
    save_image(dithered, out_path, cfg.pixel_upscale)

    if cfg.save_comparison:
        comp_path = out_path.with_name(f"{img_path.stem}_comparison.{cfg.output_format}")
        make_comparison_grid(original, dithered, palette, comp_path, cfg.pixel_upscale)
    return original, dithered


# Defaults come from DitherConfig - single source of truth
_DEFAULTS = DitherConfig()


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    method: DitherMethod = typer.Option(
        _DEFAULTS.method, "--method", "-d", help="Error-diffusion kernel",
    ),
    amount: float = typer.Option(
        _DEFAULTS.amount, "--amount", "-a", help="Dithering amount, 0 to 1",
    ),
    palette_file: Path | None = typer.Option(
        None, "--palette-file", "-p", help="Paint.NET palette file",
    ),
    colors: str | None = typer.Option(
        None, "--colors",
        help="Comma-separated hex colours, e.g. '#000000,#FFFFFF'",
    ),
    palette_from: Path | None = typer.Option(
        None, "--palette-from", help="Use the most frequent colours of an image",
    ),
    palette_start: int = typer.Option(
        _DEFAULTS.palette_start, "--start", help="First palette index (1-based)",
    ),
    palette_end: int = typer.Option(
        _DEFAULTS.palette_end, "--end", help="Last palette index (inclusive)",
    ),
    ignore_palette_alpha: bool = typer.Option(
        _DEFAULTS.ignore_palette_alpha,
        "--ignore-palette-alpha/--use-palette-alpha",
        help="Keep pixel opacity instead of the palette entry's",
    ),
    strip_height: int | None = typer.Option(
        None, "--strip-height", help="Dither in independent strips of N rows",
    ),
    max_side: int | None = typer.Option(
        None, "--max-side", "-m", help="Downscale so the longest side is N",
    ),
    upscale: int = typer.Option(
        _DEFAULTS.pixel_upscale, "--upscale", "-u", help="Pixel upscale factor",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Save a side-by-side comparison grid",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Dither all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)

    cfg = _make_config(
        palette_start=palette_start,
        palette_end=palette_end,
        ignore_palette_alpha=ignore_palette_alpha,
        method=method,
        amount=amount,
        strip_height=strip_height,
        max_side=max_side,
        pixel_upscale=upscale,
        save_comparison=comparison,
        input_dir=input_dir,
        output_dir=output_dir,
    )
    palette = _resolve_palette(cfg, palette_file, colors, palette_from)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    output_dir.mkdir(parents=True, exist_ok=True)

    console.print(Panel.fit(
        f"[bold]PALETTE DITHER[/bold]\n"
        f"Method: {cfg.method.value}  |  Amount: {cfg.amount:.2f}\n"
        f"Palette: {len(palette)} colours  |  Images: {len(images)}",
        border_style="cyan",
    ))

    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        out_path = output_dir / f"{img_path.stem}_dithered.{cfg.output_format}"
        original, dithered = _process(img_path, out_path, palette, cfg)

        h, w = original.shape[:2]
        err = _quality_metric(original, dithered)
        elapsed = time.perf_counter() - t_total
        console.print(
            f"  [green]✓[/green] {out_path.name}  "
            f"[dim]{w}x{h}  error={err:.1f}  time={elapsed:.1f}s[/dim]"
        )

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


# -- single-image command ----------------------------------------------

@app.command()
def single(
    target: Path = typer.Argument(..., help="Path to the source image"),
    output: Path = typer.Option(Path("output/dithered.png"), "--output", "-o"),
    method: DitherMethod = typer.Option(_DEFAULTS.method, "--method", "-d"),
    amount: float = typer.Option(_DEFAULTS.amount, "--amount", "-a"),
    palette_file: Path | None = typer.Option(None, "--palette-file", "-p"),
    colors: str | None = typer.Option(None, "--colors"),
    palette_from: Path | None = typer.Option(None, "--palette-from"),
    palette_start: int = typer.Option(_DEFAULTS.palette_start, "--start"),
    palette_end: int = typer.Option(_DEFAULTS.palette_end, "--end"),
    ignore_palette_alpha: bool = typer.Option(
        _DEFAULTS.ignore_palette_alpha, "--ignore-palette-alpha/--use-palette-alpha",
    ),
    strip_height: int | None = typer.Option(None, "--strip-height"),
    max_side: int | None = typer.Option(None, "--max-side", "-m"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u"),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Dither a single image."""
    _setup_logging(verbose)

    cfg = _make_config(
        palette_start=palette_start,
        palette_end=palette_end,
        ignore_palette_alpha=ignore_palette_alpha,
        method=method,
        amount=amount,
        strip_height=strip_height,
        max_side=max_side,
        pixel_upscale=upscale,
        output_format=output.suffix.lstrip(".") or _DEFAULTS.output_format,
        save_comparison=comparison,
    )
    palette = _resolve_palette(cfg, palette_file, colors, palette_from)

    output.parent.mkdir(parents=True, exist_ok=True)
    original, dithered = _process(target, output, palette, cfg)

    h, w = original.shape[:2]
    err = _quality_metric(original, dithered)
    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{w}x{h}  error={err:.1f}[/dim]"
    )


# -- kernel listing ----------------------------------------------------

@app.command()
def kernels() -> None:
    """List the available error-diffusion kernels."""
    table = Table(title="Dithering kernels")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Weights")

    for method, kernel in KERNELS.items():
        if kernel is None:
            table.add_row(method.value, "-", "-", "no dithering")
            continue
        rows = " / ".join(
            " ".join(f"{w:.3f}" for w in row) for row in kernel.matrix
        )
        table.add_row(method.value, kernel.name, f"{kernel.columns}x{kernel.rows}", rows)

    console.print(table)


if __name__ == "__main__":
    app()
