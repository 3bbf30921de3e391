#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

Drop tile images into ``pool/`` and run:

    python main.py run my_photo.jpg

Or use the full CLI:

    python -m gaze.cli run --help
    python -m gaze.cli fetch photosets --api-key KEY
"""

from gaze.cli import app

if __name__ == "__main__":
    app()
