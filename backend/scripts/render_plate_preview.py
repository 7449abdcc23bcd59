"""Render a plate preview to a PNG file without running the API.

Usage (from backend/):
    python -m scripts.render_plate_preview --plate 250x128 --plate "120,5x90" [--motif path-or-url] [--out plates_preview.png]

Plate sizes are parsed in the given --locale, so "120,5" works with --locale de.
The motif goes through the usual user -> remote -> local fallback chain.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from domain.models import Locale, PlateBoard, SurfaceSize
from services.exporter import EXPORT_FILENAME
from services.locale_format import parse_locale_number
from services.motif_resolver import MotifController, MotifResolver
from services.plate_board import add_plate, board_summary, new_board
from services.plate_preview import PlatePreview

logger = logging.getLogger("render_plate_preview")


def parse_plate_arg(raw: str, locale: Locale) -> Optional[tuple]:
    """'WIDTHxHEIGHT' in centimetres; None when either side does not parse."""
    width_raw, sep, height_raw = raw.lower().partition("x")
    if not sep:
        return None
    width = parse_locale_number(width_raw, locale)
    height = parse_locale_number(height_raw, locale)
    if width is None or height is None:
        return None
    return width, height


def build_board(plate_args: List[str], locale: Locale) -> PlateBoard:
    """A board holding the requested plates (clamped), or the default plate."""
    board = new_board(locale=locale)
    if not plate_args:
        return board
    board = board.with_changes(plates=[])
    for raw in plate_args:
        size = parse_plate_arg(raw, locale)
        if size is None:
            raise SystemExit(f"invalid --plate value: {raw!r} (expected WIDTHxHEIGHT)")
        before = len(board.plates)
        board = add_plate(board, width_cm=size[0], height_cm=size[1])
        if len(board.plates) == before:
            logger.warning("plate limit reached; ignoring %s", raw)
    return board


def main() -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Render plates with a tiled motif to PNG.")
    parser.add_argument("--plate", action="append", default=[], help="Plate size WIDTHxHEIGHT in cm; repeatable.")
    parser.add_argument("--motif", default=None, help="User motif: file path, http(s) URL or data: URI.")
    parser.add_argument("--width", type=float, default=800, help="Surface width in pixels.")
    parser.add_argument("--height", type=float, default=500, help="Surface height in pixels.")
    parser.add_argument("--pixel-ratio", type=float, default=1.0, help="Device pixel ratio (clamped to 1..2).")
    parser.add_argument("--locale", choices=[l.value for l in Locale], default=Locale.EN.value)
    parser.add_argument("--timeout", type=float, default=None, help="Per-source motif load timeout in seconds.")
    parser.add_argument("--out", default=EXPORT_FILENAME)
    args = parser.parse_args()

    locale = Locale(args.locale)
    board = build_board(args.plate, locale)
    controller = MotifController(MotifResolver(timeout=args.timeout))
    preview = PlatePreview(
        plates=board.plates,
        surface=SurfaceSize(args.width, args.height),
        pixel_ratio=args.pixel_ratio,
        controller=controller,
    )
    try:
        preview.set_motif_source(args.motif)
        motif = preview.wait_for_motif()
        if preview.advisory:
            logger.warning(preview.advisory)

        data = preview.export_png()
        if data is None:
            logger.error("Preview cannot be exported (cross-origin motif without permission)")
            return 1
        out_path = Path(args.out)
        out_path.write_bytes(data)
    finally:
        preview.close()

    summary = board_summary(board)
    logger.info(
        "Rendered %d/%d plates, total width %s %s, motif=%s -> %s",
        summary.plate_count,
        summary.max_plates,
        summary.total_width_display,
        summary.unit,
        motif.tier.value,
        out_path,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
