"""
Motif source resolution.

Resolves the motif raster through a fixed fallback chain:
user-supplied locator -> remote default -> bundled local file. Each attempt
is bounded by a wall-clock timeout; failures advance the chain and are never
surfaced to the caller, who only sees the tier that succeeded (or `none`).

MotifController runs resolutions on a worker thread and applies a result
only if no newer request was started in the meantime.
"""
import base64
import binascii
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import requests
from PIL import Image, UnidentifiedImageError

from domain.errors import ImageLoadError, ImageLoadTimeout
from domain.models import MotifTier, ResolvedMotif
from settings import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
LOCAL_FALLBACK_ADVISORY = "Remote motif not available - using local image"
REMOTE_MOTIF_SCHEMES = ("http", "https", "data")

_MOTIF_SESSION = requests.Session()


@dataclass(frozen=True)
class MotifSource:
    tier: MotifTier
    locator: str
    cors: bool


def advisory_for(tier: MotifTier) -> Optional[str]:
    """Short, non-blocking notice for the host UI; only the local fallback gets one."""
    if tier == MotifTier.LOCAL:
        return LOCAL_FALLBACK_ADVISORY
    return None


def is_remote_locator(src: str) -> bool:
    """True for http(s) and data: locators; client input must not name server files."""
    return urlparse(src.strip()).scheme in REMOTE_MOTIF_SCHEMES


def _is_http(locator: str) -> bool:
    return urlparse(locator).scheme in ("http", "https")


def _origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def _decode(locator: str, data: bytes) -> Image.Image:
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageLoadError(locator, f"decode failed: {exc}") from exc


class MotifResolver:
    """Walks the user -> remote -> local chain and returns the first usable motif."""

    def __init__(
        self,
        remote_url: Optional[str] = None,
        local_path: Optional[str] = None,
        timeout: Optional[float] = None,
        require_cors: Optional[bool] = None,
        app_origin: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.remote_url = settings.MOTIF_REMOTE_URL if remote_url is None else remote_url
        self.local_path = settings.MOTIF_LOCAL_FALLBACK if local_path is None else local_path
        self.timeout = settings.MOTIF_LOAD_TIMEOUT if timeout is None else timeout
        self.require_cors = settings.MOTIF_REQUIRE_CORS if require_cors is None else require_cors
        self.app_origin = (app_origin or settings.APP_ORIGIN).rstrip("/").lower()
        self.session = session or _MOTIF_SESSION

    def sources(self, user_src: Optional[str] = None) -> List[MotifSource]:
        """The ordered chain for one request; blank locators are skipped."""
        chain: List[MotifSource] = []
        if user_src and user_src.strip():
            chain.append(MotifSource(MotifTier.USER, user_src.strip(), cors=True))
        if self.remote_url:
            chain.append(MotifSource(MotifTier.REMOTE, self.remote_url, cors=True))
        if self.local_path:
            chain.append(MotifSource(MotifTier.LOCAL, str(self.local_path), cors=False))
        return chain

    def resolve(self, user_src: Optional[str] = None) -> ResolvedMotif:
        for source in self.sources(user_src):
            try:
                image, origin_clean = self.load(source.locator, cors=source.cors)
            except ImageLoadTimeout as exc:
                logger.warning("[motif] %s source timed out: %s", source.tier.value, exc)
                continue
            except ImageLoadError as exc:
                logger.warning("[motif] %s source failed: %s", source.tier.value, exc)
                continue
            logger.info(
                "[motif] using %s source %s (%dx%d)",
                source.tier.value,
                source.locator[:80],
                image.width,
                image.height,
            )
            return ResolvedMotif(
                image=image,
                tier=source.tier,
                locator=source.locator,
                origin_clean=origin_clean,
            )

        logger.warning("[motif] all motif sources failed; falling back to placeholder")
        return ResolvedMotif.none()

    def load(self, locator: str, cors: bool = False) -> Tuple[Image.Image, bool]:
        """
        Fetch and decode one locator within the timeout.

        Returns:
            (image, origin_clean)

        Raises:
            ImageLoadTimeout: the deadline passed before decoding finished
            ImageLoadError: fetch, permission or decode failure
        """
        deadline = time.monotonic() + self.timeout
        if _is_http(locator):
            data, origin_clean = self._fetch_http(locator, cors, deadline)
        elif locator.startswith("data:"):
            data, origin_clean = self._read_data_uri(locator), True
        else:
            data, origin_clean = self._read_file(locator), True

        image = _decode(locator, data)
        if time.monotonic() > deadline:
            raise ImageLoadTimeout(locator, self.timeout)
        return image, origin_clean

    def _cors_granted(self, headers) -> bool:
        allowed = (headers.get("Access-Control-Allow-Origin") or "").strip().rstrip("/").lower()
        return allowed == "*" or (bool(allowed) and allowed == self.app_origin)

    def _fetch_http(self, url: str, cors: bool, deadline: float) -> Tuple[bytes, bool]:
        headers = {"User-Agent": settings.MOTIF_USER_AGENT}
        if cors:
            headers["Origin"] = self.app_origin

        try:
            resp = self.session.get(url, headers=headers, timeout=self.timeout, stream=True)
        except requests.Timeout as exc:
            raise ImageLoadTimeout(url, self.timeout) from exc
        except requests.RequestException as exc:
            raise ImageLoadError(url, str(exc)) from exc

        try:
            resp.raise_for_status()
            granted = self._cors_granted(resp.headers)
            if cors and not granted and self.require_cors:
                raise ImageLoadError(url, "cross-origin access not granted")

            chunks: List[bytes] = []
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise ImageLoadTimeout(url, self.timeout)
                if chunk:
                    chunks.append(chunk)
        except requests.Timeout as exc:
            raise ImageLoadTimeout(url, self.timeout) from exc
        except requests.RequestException as exc:
            raise ImageLoadError(url, str(exc)) from exc
        finally:
            resp.close()

        origin_clean = granted or _origin_of(url) == self.app_origin
        return b"".join(chunks), origin_clean

    @staticmethod
    def _read_data_uri(locator: str) -> bytes:
        header, sep, payload = locator.partition(",")
        if not sep:
            raise ImageLoadError(locator[:40], "malformed data URI")
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=True)
            return unquote(payload).encode("latin-1")
        except (binascii.Error, ValueError) as exc:
            raise ImageLoadError(locator[:40], f"malformed data URI: {exc}") from exc

    @staticmethod
    def _read_file(locator: str) -> bytes:
        parsed = urlparse(locator)
        path = Path(url2pathname(parsed.path)) if parsed.scheme == "file" else Path(locator)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ImageLoadError(locator, f"cannot read file: {exc}") from exc


MotifListener = Callable[[ResolvedMotif], None]


class MotifController:
    """
    Owns the currently applied motif and sequences resolution requests.

    Every request bumps a generation counter; a finished resolution is
    applied (and listeners notified) only if its generation is still the
    latest, so the last request started wins regardless of finish order.
    """

    def __init__(
        self,
        resolver: Optional[MotifResolver] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.resolver = resolver or MotifResolver()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="motif")
        self._lock = threading.RLock()
        self._generation = 0
        self._current = ResolvedMotif.none()
        self._pending: Optional[Future] = None
        self._listeners: List[MotifListener] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current(self) -> ResolvedMotif:
        with self._lock:
            return self._current

    def subscribe(self, listener: MotifListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def request(self, user_src: Optional[str] = None) -> Future:
        """Start resolving `user_src`; supersedes any request still in flight."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            future = self._executor.submit(self._run, generation, user_src)
            self._pending = future
        logger.debug("[motif] request %d started", generation)
        return future

    def wait(self, timeout: Optional[float] = None) -> ResolvedMotif:
        """Block until the latest request has settled and return the current motif."""
        with self._lock:
            pending = self._pending
        if pending is not None:
            pending.result(timeout=timeout)
        return self.current

    def _run(self, generation: int, user_src: Optional[str]) -> bool:
        try:
            result = self.resolver.resolve(user_src)
        except Exception:
            logger.exception("[motif] resolution %d crashed; using placeholder", generation)
            result = ResolvedMotif.none()
        return self._apply(generation, result)

    def _apply(self, generation: int, result: ResolvedMotif) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.info(
                    "[motif] dropping stale resolution %d (current is %d)",
                    generation,
                    self._generation,
                )
                return False
            self._current = result
            for listener in list(self._listeners):
                listener(result)
        return True

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)
