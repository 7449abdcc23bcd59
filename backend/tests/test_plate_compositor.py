from PIL import Image

from domain.models import PlateSpec, SurfaceSize, UsableAreaPolicy
from services.layout_calculator import compute_layout
from services.plate_compositor import (
    CARD_GRADIENT_BOTTOM,
    CARD_GRADIENT_TOP,
    PLACEHOLDER_COLOR,
    clamp_pixel_ratio,
    paint_plates,
    vertical_gradient,
)

SURFACE = SurfaceSize(400, 300)


def _layout(plates=None):
    plates = plates or [PlateSpec(id="a", width_cm=250, height_cm=128)]
    return compute_layout(plates, SURFACE, policy=UsableAreaPolicy.PADDING)


def _centre(rect, ratio=1.0):
    return int((rect.x + rect.w / 2) * ratio), int((rect.y + rect.h / 2) * ratio)


def test_clamp_pixel_ratio():
    assert clamp_pixel_ratio(None) == 1.0
    assert clamp_pixel_ratio(0.5) == 1.0
    assert clamp_pixel_ratio(1.5) == 1.5
    assert clamp_pixel_ratio(3) == 2.0


def test_vertical_gradient_endpoints():
    img = vertical_gradient((5, 10), CARD_GRADIENT_TOP, CARD_GRADIENT_BOTTOM)
    assert img.size == (5, 10)
    assert img.getpixel((2, 0))[:3] == CARD_GRADIENT_TOP
    assert img.getpixel((2, 9))[:3] == CARD_GRADIENT_BOTTOM


def test_placeholder_fills_inner_area_without_strip():
    layout = _layout()
    canvas = paint_plates(layout, SURFACE, None)

    assert canvas.size == (400, 300)
    assert canvas.getpixel(_centre(layout.inner)) == PLACEHOLDER_COLOR


def test_plates_show_strip_pixels():
    layout = _layout([PlateSpec(id="a", width_cm=100, height_cm=100), PlateSpec(id="b", width_cm=100, height_cm=60)])
    strip = Image.new("RGBA", layout.strip_size(), (255, 0, 0, 255))
    canvas = paint_plates(layout, SURFACE, strip)

    for rect in layout.plates:
        assert canvas.getpixel(_centre(rect)) == (255, 0, 0, 255)


def test_gap_between_plates_keeps_card_background():
    layout = _layout([PlateSpec(id="a", width_cm=100, height_cm=100), PlateSpec(id="b", width_cm=100, height_cm=100)])
    strip = Image.new("RGBA", layout.strip_size(), (255, 0, 0, 255))
    canvas = paint_plates(layout, SURFACE, strip)

    left, right = layout.plates
    gap_x = int((left.right + right.x) / 2)
    gap_y = int(left.y + left.h / 2)
    assert canvas.getpixel((gap_x, gap_y))[:3] != (255, 0, 0)


def test_plate_samples_its_own_slice_of_strip():
    layout = _layout([PlateSpec(id="a", width_cm=100, height_cm=100), PlateSpec(id="b", width_cm=100, height_cm=100)])
    strip_w, strip_h = layout.strip_size()
    strip = Image.new("RGBA", (strip_w, strip_h), (255, 0, 0, 255))
    strip.paste(Image.new("RGBA", (strip_w - strip_w // 2, strip_h), (0, 0, 255, 255)), (strip_w // 2, 0))
    canvas = paint_plates(layout, SURFACE, strip)

    left, right = layout.plates
    assert canvas.getpixel(_centre(left)) == (255, 0, 0, 255)
    assert canvas.getpixel(_centre(right)) == (0, 0, 255, 255)


def test_pixel_ratio_scales_canvas():
    layout = _layout()
    strip = Image.new("RGBA", layout.strip_size(2.0), (0, 128, 0, 255))
    canvas = paint_plates(layout, SURFACE, strip, pixel_ratio=2.0)

    assert canvas.size == (800, 600)
    assert canvas.getpixel(_centre(layout.plates[0], 2.0)) == (0, 128, 0, 255)


def test_repaint_is_idempotent():
    layout = _layout()
    strip = Image.new("RGBA", layout.strip_size(), (10, 20, 30, 255))
    first = paint_plates(layout, SURFACE, strip)
    second = paint_plates(layout, SURFACE, strip)
    assert first.tobytes() == second.tobytes()
