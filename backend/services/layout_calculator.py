"""
Layout calculator service.

Maps real-world plate dimensions (cm) onto surface pixels under one shared
horizontal scale. Plates are laid out left-to-right with a fixed gap and
share a common bottom edge, the way plates sit on a counter line.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from domain.errors import DegenerateLayoutInput
from domain.models import LayoutResult, PlateSpec, Rect, SurfaceSize, UsableAreaPolicy
from settings import settings

logger = logging.getLogger(__name__)


OUTER_PAD = 24.0
GAP_PX = 8.0
MIN_SCALE = 0.1  # px per cm


def _non_negative(value) -> float:
    """Coerce a dimension to a finite, non-negative float (0 when unusable)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _check_measurable(widths: Sequence[float], heights: Sequence[float]) -> None:
    if not widths:
        raise DegenerateLayoutInput("no plates to lay out")
    if sum(widths) <= 0:
        raise DegenerateLayoutInput("all plate widths are zero")
    if max(heights) <= 0:
        raise DegenerateLayoutInput("all plate heights are zero")


def resolve_policy(policy: Optional[UsableAreaPolicy] = None) -> UsableAreaPolicy:
    if policy is not None:
        return UsableAreaPolicy(policy)
    try:
        return UsableAreaPolicy(settings.LAYOUT_USABLE_AREA.strip().lower())
    except ValueError:
        logger.warning("[layout] unknown usable-area policy %r; using padding", settings.LAYOUT_USABLE_AREA)
        return UsableAreaPolicy.PADDING


def usable_area(
    surface: SurfaceSize,
    policy: Optional[UsableAreaPolicy] = None,
    card_fraction: Optional[float] = None,
) -> Tuple[float, float]:
    """
    Return the (width, height) available for plates and gaps.

    Both policies are monotonic in the surface size.
    """
    width = _non_negative(surface.width_px)
    height = _non_negative(surface.height_px)
    if resolve_policy(policy) == UsableAreaPolicy.FRACTION:
        fraction = settings.LAYOUT_CARD_FRACTION if card_fraction is None else card_fraction
        fraction = min(1.0, max(0.1, fraction))
        return width * fraction, height * fraction
    return width - 2 * OUTER_PAD, height - 2 * OUTER_PAD


def compute_layout(
    plates: Sequence[PlateSpec],
    surface: SurfaceSize,
    policy: Optional[UsableAreaPolicy] = None,
    card_fraction: Optional[float] = None,
) -> LayoutResult:
    """
    Compute the shared scale and pixel geometry for a row of plates.

    Args:
        plates: Ordered plates, left to right. Never mutated.
        surface: Drawing surface size in pixels
        policy: Usable-area policy; defaults to settings.LAYOUT_USABLE_AREA
        card_fraction: Surface fraction for the FRACTION policy

    Returns:
        LayoutResult with one rect per plate, in input order. Degenerate
        input (no plates, zero dimensions) yields the minimum scale and
        `degenerate=True` instead of raising.
    """
    widths: List[float] = [_non_negative(p.width_cm) for p in plates]
    heights: List[float] = [_non_negative(p.height_cm) for p in plates]

    degenerate = False
    try:
        _check_measurable(widths, heights)
    except DegenerateLayoutInput as exc:
        logger.debug("[layout] degenerate input (%s); using scale floor %.2f", exc, MIN_SCALE)
        degenerate = True

    total_width_cm = max(1.0, sum(widths))
    max_height_cm = max(1.0, max(heights, default=0.0))
    total_gap_px = GAP_PX * max(0, len(widths) - 1)

    usable_w, usable_h = usable_area(surface, policy, card_fraction)
    if degenerate:
        scale = MIN_SCALE
    else:
        scale_by_width = (usable_w - total_gap_px) / total_width_cm
        scale_by_height = usable_h / max_height_cm
        scale = max(MIN_SCALE, min(scale_by_width, scale_by_height))

    inner_w = total_width_cm * scale + total_gap_px
    inner_h = max_height_cm * scale
    surface_w = _non_negative(surface.width_px)
    surface_h = _non_negative(surface.height_px)

    # Card is centred on the surface and grows the inner area by half the padding per side.
    card_x = (surface_w - inner_w) / 2 - OUTER_PAD / 2
    card_y = (surface_h - inner_h) / 2 - OUTER_PAD / 2
    card = Rect(card_x, card_y, inner_w + OUTER_PAD, inner_h + OUTER_PAD)
    inner = Rect(card_x + OUTER_PAD / 2, card_y + OUTER_PAD / 2, inner_w, inner_h)

    baseline_y = inner.bottom
    rects: List[Rect] = []
    x = inner.x
    for width_cm, height_cm in zip(widths, heights):
        w = width_cm * scale
        h = height_cm * scale
        rects.append(Rect(x, baseline_y - h, w, h))
        x += w + GAP_PX

    return LayoutResult(
        scale=scale,
        card=card,
        inner=inner,
        plates=rects,
        gap_px=GAP_PX,
        total_width_cm=total_width_cm,
        max_height_cm=max_height_cm,
        degenerate=degenerate,
    )
