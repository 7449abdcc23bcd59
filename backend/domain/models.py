"""
Core domain models for the plate preview generator.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import uuid

from PIL import Image


# Editor limits (centimetres / plate count)
WIDTH_MIN_CM = 20.0
WIDTH_MAX_CM = 300.0
HEIGHT_MIN_CM = 30.0
HEIGHT_MAX_CM = 128.0
MIN_PLATES = 1
MAX_PLATES = 10
DEFAULT_WIDTH_CM = 250.0
DEFAULT_HEIGHT_CM = 128.0


class MotifTier(str, Enum):
    """Which fallback source supplied the motif."""
    USER = "user"
    REMOTE = "remote"
    LOCAL = "local"
    NONE = "none"


class Locale(str, Enum):
    DE = "de"
    EN = "en"


class Unit(str, Enum):
    CM = "cm"
    INCH = "in"


class UsableAreaPolicy(str, Enum):
    """
    How the usable drawing region is derived from the surface.

    - PADDING: surface minus a fixed outer padding on every side
    - FRACTION: a fixed fraction of the surface, centred
    """
    PADDING = "padding"
    FRACTION = "fraction"


@dataclass(frozen=True)
class PlateSpec:
    """A single plate with real-world dimensions in centimetres."""
    id: str
    width_cm: float
    height_cm: float

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "width_cm": self.width_cm, "height_cm": self.height_cm}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlateSpec":
        return cls(
            id=data.get("id") or "",
            width_cm=float(data.get("width_cm", DEFAULT_WIDTH_CM)),
            height_cm=float(data.get("height_cm", DEFAULT_HEIGHT_CM)),
        )


@dataclass(frozen=True)
class SurfaceSize:
    """Available drawing area in CSS-like pixels."""
    width_px: float
    height_px: float


@dataclass(frozen=True)
class Rect:
    """A positioned rectangle in surface pixels."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def scaled(self, factor: float) -> "Rect":
        return Rect(self.x * factor, self.y * factor, self.w * factor, self.h * factor)

    def as_box(self) -> Tuple[int, int, int, int]:
        """Integer (left, top, right, bottom) box for Pillow drawing calls."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.right)),
            int(round(self.bottom)),
        )


@dataclass
class LayoutResult:
    """
    Pixel geometry for one render pass.

    `plates` is aligned 1:1 with the input PlateSpec order. `inner` is the
    card minus its padding; every plate's bottom edge sits on inner.bottom.
    """
    scale: float
    card: Rect
    inner: Rect
    plates: List[Rect] = field(default_factory=list)
    gap_px: float = 0.0
    total_width_cm: float = 1.0
    max_height_cm: float = 1.0
    degenerate: bool = False

    def strip_size(self, pixel_ratio: float = 1.0) -> Tuple[int, int]:
        """Size of the tiled motif strip covering every plate (gaps excluded)."""
        width = max(1, int(round(self.total_width_cm * self.scale * pixel_ratio)))
        height = max(1, int(round(self.inner.h * pixel_ratio)))
        return width, height


@dataclass
class ResolvedMotif:
    """
    The outcome of one resolution attempt.

    `origin_clean` is False when the raster came from a foreign origin
    without cross-origin permission; surfaces it is drawn onto cannot be
    read back.
    """
    image: Optional[Image.Image]
    tier: MotifTier
    locator: Optional[str] = None
    origin_clean: bool = True

    @classmethod
    def none(cls) -> "ResolvedMotif":
        return cls(image=None, tier=MotifTier.NONE)

    @property
    def available(self) -> bool:
        return self.image is not None


@dataclass
class PlateSurface:
    """The painted drawing surface of one render pass."""
    image: Image.Image
    layout: LayoutResult
    tier: MotifTier = MotifTier.NONE
    origin_clean: bool = True


@dataclass
class PlateBoard:
    """
    A persisted plate arrangement as edited by the user.

    Boards are treated as values by the editor service: operations return
    a new board instead of mutating this one.
    """
    id: str
    plates: List[PlateSpec] = field(default_factory=list)
    motif_src: Optional[str] = None
    locale: Locale = Locale.EN
    unit: Unit = Unit.CM
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    def with_changes(self, **changes: Any) -> "PlateBoard":
        changes.setdefault("updated_at", datetime.utcnow())
        return replace(self, **changes)
