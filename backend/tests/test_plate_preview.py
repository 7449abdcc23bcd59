import io
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image

from domain.models import MotifTier, PlateSpec, ResolvedMotif, SurfaceSize
from services.motif_resolver import LOCAL_FALLBACK_ADVISORY, MotifController, MotifResolver
from services.plate_preview import (
    MIN_SURFACE_HEIGHT,
    MIN_SURFACE_WIDTH,
    PlatePreview,
    clamp_surface,
    render_preview,
)


class StaticResolver:
    def __init__(self, motif):
        self.motif = motif
        self.requests = []

    def resolve(self, user_src=None):
        self.requests.append(user_src)
        return self.motif


def _motif(tier=MotifTier.USER, origin_clean=True, color=(0, 0, 200, 255)):
    return ResolvedMotif(
        image=Image.new("RGBA", (32, 16), color),
        tier=tier,
        locator="motif",
        origin_clean=origin_clean,
    )


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


def _preview(resolver, executor, **kwargs):
    controller = MotifController(resolver=resolver, executor=executor)
    plates = kwargs.pop("plates", [PlateSpec(id="a", width_cm=250, height_cm=128)])
    return PlatePreview(plates=plates, surface=SurfaceSize(400, 300), controller=controller, **kwargs)


def test_clamp_surface_enforces_minimum():
    assert clamp_surface(SurfaceSize(10, 10)) == SurfaceSize(MIN_SURFACE_WIDTH, MIN_SURFACE_HEIGHT)
    assert clamp_surface(SurfaceSize(900, 600)) == SurfaceSize(900, 600)


@pytest.mark.parametrize("size", [SurfaceSize(float("inf"), 300), SurfaceSize(400, float("nan"))])
def test_clamp_surface_rejects_non_finite(size):
    with pytest.raises(ValueError):
        clamp_surface(size)


def test_render_preview_without_motif_uses_placeholder():
    surface = render_preview([PlateSpec(id="a", width_cm=100, height_cm=50)], SurfaceSize(400, 300))

    assert surface.tier == MotifTier.NONE
    assert surface.origin_clean
    assert surface.image.size == (400, 300)


def test_render_preview_taints_with_foreign_motif():
    surface = render_preview(
        [PlateSpec(id="a", width_cm=100, height_cm=50)],
        SurfaceSize(400, 300),
        _motif(tier=MotifTier.REMOTE, origin_clean=False),
    )
    assert surface.tier == MotifTier.REMOTE
    assert not surface.origin_clean


def test_initial_render_has_placeholder(executor):
    preview = _preview(StaticResolver(_motif()), executor)

    assert preview.render_count == 1
    assert preview.motif_tier == MotifTier.NONE
    assert preview.surface.image.size == (400, 300)
    assert preview.advisory is None


def test_every_input_change_repaints(executor):
    preview = _preview(StaticResolver(_motif()), executor)

    preview.set_plates([PlateSpec(id="a", width_cm=100, height_cm=50), PlateSpec(id="b", width_cm=80, height_cm=50)])
    assert preview.render_count == 2
    assert len(preview.surface.layout.plates) == 2

    preview.resize(SurfaceSize(600, 400), pixel_ratio=2.0)
    assert preview.render_count == 3
    assert preview.surface.image.size == (1200, 800)


def test_applied_motif_repaints_surface(executor):
    resolver = StaticResolver(_motif())
    preview = _preview(resolver, executor)

    preview.set_motif_source("https://example.com/m.jpg")
    motif = preview.wait_for_motif(timeout=5)

    assert resolver.requests == ["https://example.com/m.jpg"]
    assert motif.tier == MotifTier.USER
    assert preview.surface.tier == MotifTier.USER
    assert preview.render_count == 2
    rect = preview.surface.layout.plates[0]
    centre = (int(rect.x + rect.w / 2), int(rect.y + rect.h / 2))
    assert preview.surface.image.getpixel(centre) == (0, 0, 200, 255)


def test_local_fallback_sets_advisory(executor):
    preview = _preview(StaticResolver(_motif(tier=MotifTier.LOCAL)), executor)

    preview.set_motif_source(None)
    preview.wait_for_motif(timeout=5)

    assert preview.advisory == LOCAL_FALLBACK_ADVISORY


def test_tainted_preview_cannot_export(executor):
    preview = _preview(StaticResolver(_motif(tier=MotifTier.REMOTE, origin_clean=False)), executor)
    assert preview.export_png() is not None

    preview.set_motif_source(None)
    preview.wait_for_motif(timeout=5)

    assert preview.export_png() is None
    assert preview.export_data_url() is None


def test_set_motif_bytes_resolves_as_user_motif(executor):
    buf = io.BytesIO()
    Image.new("RGB", (20, 10), (10, 200, 10)).save(buf, format="PNG")
    resolver = MotifResolver(remote_url="", local_path="", timeout=2.0)
    preview = _preview(resolver, executor)

    preview.set_motif_bytes(buf.getvalue())
    motif = preview.wait_for_motif(timeout=5)

    assert motif.tier == MotifTier.USER
    assert preview.export_png().startswith(b"\x89PNG")
