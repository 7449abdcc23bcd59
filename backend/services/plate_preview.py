"""
Plate preview pipeline.

render_preview runs one full synchronous pass: layout -> motif strip ->
compositing. PlatePreview keeps the inputs of a live preview (plates,
surface size, resolved motif) and re-renders the whole surface whenever
any of them changes.
"""
import base64
import logging
import math
import threading
from concurrent.futures import Future
from typing import Optional, Sequence, Tuple

from domain.models import (
    MotifTier,
    PlateSpec,
    PlateSurface,
    ResolvedMotif,
    SurfaceSize,
    UsableAreaPolicy,
)
from services.exporter import export_data_url, export_png
from services.layout_calculator import compute_layout
from services.motif_resolver import MotifController, advisory_for
from services.motif_tiler import build_motif_strip
from services.plate_compositor import clamp_pixel_ratio, paint_plates

logger = logging.getLogger(__name__)

MIN_SURFACE_WIDTH = 200
MIN_SURFACE_HEIGHT = 220
DEFAULT_SURFACE = SurfaceSize(800, 500)


def clamp_surface(surface: SurfaceSize) -> SurfaceSize:
    """Raise the surface to the minimum size; infinite or NaN sizes raise ValueError."""
    for value in (surface.width_px, surface.height_px):
        if value is not None and not math.isfinite(value):
            raise ValueError(f"surface size must be finite, got {value!r}")
    return SurfaceSize(
        max(MIN_SURFACE_WIDTH, surface.width_px or 0),
        max(MIN_SURFACE_HEIGHT, surface.height_px or 0),
    )


def render_preview(
    plates: Sequence[PlateSpec],
    surface: SurfaceSize,
    motif: Optional[ResolvedMotif] = None,
    pixel_ratio: float = 1.0,
    policy: Optional[UsableAreaPolicy] = None,
) -> PlateSurface:
    """
    Render one complete preview pass.

    A motif that is not origin-clean taints the returned surface, which
    then cannot be exported.
    """
    surface = clamp_surface(surface)
    ratio = clamp_pixel_ratio(pixel_ratio)
    layout = compute_layout(plates, surface, policy=policy)

    strip = None
    tier = MotifTier.NONE
    origin_clean = True
    if motif is not None and motif.image is not None:
        strip_w, strip_h = layout.strip_size(ratio)
        strip = build_motif_strip(motif.image, strip_w, strip_h)
        tier = motif.tier
        origin_clean = motif.origin_clean

    image = paint_plates(layout, surface, strip, pixel_ratio=ratio)
    logger.info(
        "[preview] %d plates scale=%.3f px/cm tier=%s size=%dx%d",
        len(layout.plates),
        layout.scale,
        tier.value,
        image.width,
        image.height,
    )
    return PlateSurface(image=image, layout=layout, tier=tier, origin_clean=origin_clean)


class PlatePreview:
    """
    A live preview surface.

    State changes (plates, size, motif) are pushed in and each one triggers a
    full re-render; readers always see the surface of the latest complete pass.
    """

    def __init__(
        self,
        plates: Sequence[PlateSpec] = (),
        surface: Optional[SurfaceSize] = None,
        pixel_ratio: float = 1.0,
        controller: Optional[MotifController] = None,
        policy: Optional[UsableAreaPolicy] = None,
    ):
        self._lock = threading.RLock()
        self._plates: Tuple[PlateSpec, ...] = tuple(plates)
        self._surface_size = surface or DEFAULT_SURFACE
        self._pixel_ratio = pixel_ratio
        self._policy = policy
        self._motif = ResolvedMotif.none()
        self._surface: Optional[PlateSurface] = None
        self.render_count = 0

        self.controller = controller or MotifController()
        self.controller.subscribe(self._on_motif)
        self.repaint()

    # --- inputs ---

    def set_plates(self, plates: Sequence[PlateSpec]) -> None:
        with self._lock:
            self._plates = tuple(plates)
            self.repaint()

    def resize(self, surface: SurfaceSize, pixel_ratio: Optional[float] = None) -> None:
        with self._lock:
            self._surface_size = surface
            if pixel_ratio is not None:
                self._pixel_ratio = pixel_ratio
            self.repaint()

    def set_motif_source(self, user_src: Optional[str]) -> Future:
        """Start resolving a new motif locator; the surface repaints once it applies."""
        return self.controller.request(user_src)

    def set_motif_bytes(self, data: bytes, mime_type: str = "image/png") -> Future:
        """Use in-memory upload bytes as the user motif."""
        encoded = base64.b64encode(data).decode("ascii")
        return self.set_motif_source(f"data:{mime_type};base64,{encoded}")

    def wait_for_motif(self, timeout: Optional[float] = None) -> ResolvedMotif:
        self.controller.wait(timeout=timeout)
        return self.motif

    def _on_motif(self, motif: ResolvedMotif) -> None:
        with self._lock:
            self._motif = motif
            self.repaint()

    # --- rendering ---

    def repaint(self) -> PlateSurface:
        with self._lock:
            self._surface = render_preview(
                self._plates,
                self._surface_size,
                self._motif,
                pixel_ratio=self._pixel_ratio,
                policy=self._policy,
            )
            self.render_count += 1
            return self._surface

    # --- outputs ---

    @property
    def surface(self) -> PlateSurface:
        with self._lock:
            return self._surface

    @property
    def motif(self) -> ResolvedMotif:
        with self._lock:
            return self._motif

    @property
    def motif_tier(self) -> MotifTier:
        return self.motif.tier

    @property
    def advisory(self) -> Optional[str]:
        return advisory_for(self.motif_tier)

    def export_png(self) -> Optional[bytes]:
        return export_png(self.surface)

    def export_data_url(self) -> Optional[str]:
        return export_data_url(self.surface)

    def close(self) -> None:
        self.controller.close()
