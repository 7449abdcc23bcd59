from PIL import Image

from services.motif_tiler import TilePlacement, build_motif_strip, plan_tiles, tile_width_for

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _half_red_half_blue(w=40, h=20) -> Image.Image:
    img = Image.new("RGBA", (w, h), BLUE)
    img.paste(Image.new("RGBA", (w // 2, h), RED), (0, 0))
    return img


def test_tile_width_preserves_aspect_ratio():
    assert tile_width_for((400, 200), 100) == 200
    assert tile_width_for((0, 200), 100) == 1


def test_plan_starts_with_unflipped_centre_tile():
    placements = plan_tiles(1000, 300)
    centre = placements[0]
    assert centre == TilePlacement(x=350, ring=0, mirrored=False)


def test_plan_alternates_mirroring_by_ring():
    placements = plan_tiles(1000, 300)

    assert sorted((p.x, p.ring, p.mirrored) for p in placements) == [
        (-250, 2, False),
        (50, 1, True),
        (350, 0, False),
        (650, 1, True),
        (950, 2, False),
    ]


def test_plan_is_symmetric_around_strip_centre():
    placements = plan_tiles(1000, 300)
    centre = 350 + 150
    by_ring = {}
    for p in placements:
        by_ring.setdefault(p.ring, []).append(p.x + 150)
    for ring, centres in by_ring.items():
        if ring == 0:
            continue
        left, right = sorted(centres)
        assert centre - left == right - centre


def test_plan_covers_whole_strip():
    for strip_width, tile_width in [(1000, 300), (37, 5), (512, 512), (90, 7)]:
        placements = plan_tiles(strip_width, tile_width)
        assert min(p.x for p in placements) <= 0
        assert max(p.x + tile_width for p in placements) >= strip_width


def test_tile_wider_than_strip_needs_only_centre():
    placements = plan_tiles(100, 300)
    assert placements == [TilePlacement(x=-100, ring=0, mirrored=False)]


def test_strip_has_requested_size():
    strip = build_motif_strip(_half_red_half_blue(), 333, 57)
    assert strip.size == (333, 57)
    assert strip.mode == "RGBA"


def test_neighbouring_tiles_meet_at_mirrored_edges():
    # 40px tiles in a 120px strip: mirrored at 0, centre at 40, mirrored at 80
    strip = build_motif_strip(_half_red_half_blue(), 120, 20)

    assert strip.getpixel((5, 10)) == BLUE
    assert strip.getpixel((35, 10)) == RED
    assert strip.getpixel((45, 10)) == RED
    assert strip.getpixel((75, 10)) == BLUE
    assert strip.getpixel((85, 10)) == BLUE
    assert strip.getpixel((115, 10)) == RED


def test_source_image_is_not_modified():
    source = _half_red_half_blue()
    before = source.tobytes()
    build_motif_strip(source, 500, 60)
    assert source.tobytes() == before
