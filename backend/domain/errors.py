"""
Error taxonomy for motif loading, layout and export.

None of these are user-fatal: the resolver turns load failures into chain
advancement and the exporter turns ExportUnavailable into a None result.
"""


class MotifError(Exception):
    """Base class for motif pipeline errors."""


class ImageLoadError(MotifError):
    """A motif source could not be fetched or decoded."""

    def __init__(self, locator: str, reason: str):
        super().__init__(f"{locator}: {reason}")
        self.locator = locator
        self.reason = reason


class ImageLoadTimeout(ImageLoadError):
    """A motif source did not finish loading within the allowed time."""

    def __init__(self, locator: str, timeout: float):
        super().__init__(locator, f"timed out after {timeout:.1f}s")
        self.timeout = timeout


class ExportUnavailable(MotifError):
    """The drawing surface cannot be read back (cross-origin taint)."""


class DegenerateLayoutInput(ValueError):
    """
    Zero plates or zero dimensions.

    Raised while measuring plates and caught inside compute_layout, which
    clamps to the minimum scale and flags the result as degenerate.
    """
