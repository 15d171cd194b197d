#!/usr/bin/env python3
"""
main.py - Quick-start entry point.

Drop images into ``images/`` and run:

    python main.py batch --method floyd-steinberg --amount 1

Or use the full CLI:

    python -m palette_dither.cli batch --help
    python -m palette_dither.cli single my_photo.jpg --colors "#000000,#FFFFFF"
"""

from palette_dither.cli import app

if __name__ == "__main__":
    app()
