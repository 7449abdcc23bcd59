import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_REMOTE_MOTIF = (
    "https://rueckwand24.com/cdn/shop/files/"
    "Kuechenrueckwand-Kuechenrueckwand-Gruene-frische-Kraeuter-KR-000018-HB.jpg"
    "?v=1695288356&width=1200"
)


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        # Motif source chain
        self.MOTIF_REMOTE_URL: str = os.getenv("MOTIF_REMOTE_URL", DEFAULT_REMOTE_MOTIF)
        self.MOTIF_LOCAL_FALLBACK: str = os.getenv(
            "MOTIF_LOCAL_FALLBACK", str(BASE_DIR / "assets" / "motif-fallback.ppm")
        )
        self.MOTIF_LOAD_TIMEOUT: float = _as_float(os.getenv("MOTIF_LOAD_TIMEOUT"), 6.0)
        self.MOTIF_REQUIRE_CORS: bool = _as_bool(os.getenv("MOTIF_REQUIRE_CORS"), True)
        self.MOTIF_USER_AGENT: str = os.getenv("MOTIF_USER_AGENT", "plate-studio/1.0 (motif-fetch)")
        self.APP_ORIGIN: str = os.getenv("APP_ORIGIN", "http://localhost:5173")

        # Layout
        self.LAYOUT_USABLE_AREA: str = os.getenv("LAYOUT_USABLE_AREA", "padding")
        self.LAYOUT_CARD_FRACTION: float = _as_float(os.getenv("LAYOUT_CARD_FRACTION"), 0.9)

        # Storage
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
        self.MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "media")


settings = Settings()
