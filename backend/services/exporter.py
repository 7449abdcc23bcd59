"""
Raster export of a painted plate surface.

Export never raises to the caller: a surface that cannot be read back
(tainted by a cross-origin motif) or fails to encode yields None.
"""
import base64
import logging
from io import BytesIO
from typing import Optional

from domain.errors import ExportUnavailable
from domain.models import PlateSurface

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "plates_preview.png"


def read_back(surface: PlateSurface) -> bytes:
    """Encode the surface as PNG; raises ExportUnavailable when it is tainted."""
    if not surface.origin_clean:
        raise ExportUnavailable("surface was drawn from a cross-origin motif without permission")
    buf = BytesIO()
    surface.image.save(buf, format="PNG")
    return buf.getvalue()


def export_png(surface: Optional[PlateSurface]) -> Optional[bytes]:
    """Return PNG bytes for the surface, or None when export is unavailable."""
    if surface is None:
        return None
    try:
        return read_back(surface)
    except ExportUnavailable as exc:
        logger.info("[export] unavailable: %s", exc)
        return None
    except (OSError, ValueError):
        logger.exception("[export] PNG encoding failed")
        return None


def export_data_url(surface: Optional[PlateSurface]) -> Optional[str]:
    """PNG export as a data URL, or None when export is unavailable."""
    data = export_png(surface)
    if data is None:
        return None
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")
