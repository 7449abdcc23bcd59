"""
Plate compositor using Pillow.

Paints the card background and one rounded, clipped plate per layout rect,
each showing its horizontal slice of the tiled motif strip. Without a strip
the inner area gets a flat placeholder fill. Every call paints a fresh
canvas; nothing is patched incrementally.
"""
import logging
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from domain.models import LayoutResult, Rect, SurfaceSize

logger = logging.getLogger(__name__)

# Card styling
CARD_RADIUS = 18
CARD_SHADOW_COLOR = (0, 0, 0, 64)
CARD_SHADOW_BLUR = 10  # gaussian radius, roughly half a CSS shadow blur of 20
CARD_SHADOW_OFFSET_Y = 10
CARD_GRADIENT_TOP = (250, 250, 250)
CARD_GRADIENT_BOTTOM = (227, 229, 233)
CARD_STROKE_COLOR = (0, 0, 0, 20)

# Plate styling
PLATE_RADIUS = 10
PLATE_BORDER_COLOR = (0, 0, 0, 46)
PLACEHOLDER_COLOR = (207, 211, 217, 255)

MIN_PIXEL_RATIO = 1.0
MAX_PIXEL_RATIO = 2.0


def clamp_pixel_ratio(pixel_ratio: Optional[float]) -> float:
    if not pixel_ratio:
        return MIN_PIXEL_RATIO
    return min(MAX_PIXEL_RATIO, max(MIN_PIXEL_RATIO, float(pixel_ratio)))


def canvas_size(surface: SurfaceSize, pixel_ratio: float) -> Tuple[int, int]:
    return (
        max(1, int(round(surface.width_px * pixel_ratio))),
        max(1, int(round(surface.height_px * pixel_ratio))),
    )


def _corner_radius(radius: float, width: int, height: int) -> int:
    return max(0, int(min(radius, width / 2, height / 2)))


def rounded_mask(size: Tuple[int, int], radius: float) -> Image.Image:
    """An 'L' mask that is opaque inside a rounded rectangle of `size`."""
    w, h = size
    mask = Image.new("L", (w, h), 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, w - 1, h - 1), radius=_corner_radius(radius, w, h), fill=255
    )
    return mask


def vertical_gradient(
    size: Tuple[int, int],
    top: Tuple[int, int, int],
    bottom: Tuple[int, int, int],
) -> Image.Image:
    """Returns an RGBA image with a linear top->bottom colour gradient."""
    w, h = size
    t = np.linspace(0.0, 1.0, num=h, dtype=np.float32)[:, None]
    top_arr = np.array(top, dtype=np.float32)
    bottom_arr = np.array(bottom, dtype=np.float32)
    rows = top_arr + (bottom_arr - top_arr) * t
    pixels = np.repeat(rows[:, None, :], w, axis=1)
    pixels = np.clip(np.rint(pixels), 0, 255).astype(np.uint8)
    return Image.fromarray(pixels).convert("RGBA")


def _box_size(box: Tuple[int, int, int, int]) -> Tuple[int, int]:
    return box[2] - box[0], box[3] - box[1]


def _draw_card(canvas: Image.Image, card: Rect, pixel_ratio: float) -> None:
    """Shadow, gradient fill and soft stroke for the card behind the plates."""
    box = card.scaled(pixel_ratio).as_box()
    w, h = _box_size(box)
    if w <= 0 or h <= 0:
        return
    radius = _corner_radius(CARD_RADIUS * pixel_ratio, w, h)

    shadow = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    offset_y = int(round(CARD_SHADOW_OFFSET_Y * pixel_ratio))
    ImageDraw.Draw(shadow).rounded_rectangle(
        (box[0], box[1] + offset_y, box[2], box[3] + offset_y),
        radius=radius,
        fill=CARD_SHADOW_COLOR,
    )
    shadow = shadow.filter(ImageFilter.GaussianBlur(radius=CARD_SHADOW_BLUR * pixel_ratio))
    canvas.alpha_composite(shadow)

    gradient = vertical_gradient((w, h), CARD_GRADIENT_TOP, CARD_GRADIENT_BOTTOM)
    canvas.paste(gradient, (box[0], box[1]), rounded_mask((w, h), radius))

    stroke = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(stroke).rounded_rectangle(
        box, radius=radius, outline=CARD_STROKE_COLOR, width=max(1, int(round(pixel_ratio)))
    )
    canvas.alpha_composite(stroke)


def _draw_placeholder(canvas: Image.Image, inner: Rect, pixel_ratio: float) -> None:
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(overlay).rectangle(inner.scaled(pixel_ratio).as_box(), fill=PLACEHOLDER_COLOR)
    canvas.alpha_composite(overlay)


def _draw_plates(
    canvas: Image.Image,
    layout: LayoutResult,
    strip: Image.Image,
    pixel_ratio: float,
) -> None:
    borders = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    border_draw = ImageDraw.Draw(borders)
    border_width = max(1, int(round(pixel_ratio)))

    strip_offset = 0.0  # running sum of preceding plate widths, gaps excluded
    for rect in layout.plates:
        box = rect.scaled(pixel_ratio).as_box()
        w, h = _box_size(box)
        sx = int(round(strip_offset * pixel_ratio))
        strip_offset += rect.w
        if w <= 0 or h <= 0:
            continue

        # Bottom-aligned sample window, matching the shared baseline.
        sy = strip.height - h
        window = strip.crop((sx, sy, sx + w, sy + h))
        radius = PLATE_RADIUS * pixel_ratio
        canvas.paste(window, (box[0], box[1]), rounded_mask((w, h), radius))
        border_draw.rounded_rectangle(
            box,
            radius=_corner_radius(radius, w, h),
            outline=PLATE_BORDER_COLOR,
            width=border_width,
        )

    canvas.alpha_composite(borders)


def paint_plates(
    layout: LayoutResult,
    surface: SurfaceSize,
    strip: Optional[Image.Image],
    pixel_ratio: float = 1.0,
) -> Image.Image:
    """
    Paint the full preview surface.

    Args:
        layout: Geometry from compute_layout for this pass
        surface: Logical surface size; the canvas is surface * pixel_ratio
        strip: Tiled motif strip at device resolution, or None for the placeholder
        pixel_ratio: Device pixel ratio, clamped to [1, 2]

    Returns:
        A new RGBA image; the area outside the card stays transparent.
    """
    ratio = clamp_pixel_ratio(pixel_ratio)
    canvas = Image.new("RGBA", canvas_size(surface, ratio), (0, 0, 0, 0))

    _draw_card(canvas, layout.card, ratio)
    if strip is not None:
        _draw_plates(canvas, layout, strip, ratio)
    else:
        _draw_placeholder(canvas, layout.inner, ratio)

    logger.debug(
        "[compositor] painted %d plates on %dx%d (strip=%s)",
        len(layout.plates),
        canvas.width,
        canvas.height,
        "yes" if strip is not None else "no",
    )
    return canvas
