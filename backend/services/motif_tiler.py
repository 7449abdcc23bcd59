"""
Motif tiler.

Extends a single motif image across an arbitrary strip width by repeating
it with alternating horizontal mirroring, so neighbouring tiles always meet
edge-to-mirrored-edge and no seam shows. The centre tile is unflipped and
the pattern is symmetric around the strip's horizontal centre.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Tuple

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TilePlacement:
    """One tile in the strip; `ring` 0 is the centre tile."""
    x: int
    ring: int
    mirrored: bool


def tile_width_for(source_size: Tuple[int, int], strip_height: int) -> int:
    """Tile width preserving the source aspect ratio at the strip height."""
    src_w, src_h = source_size
    if src_w <= 0 or src_h <= 0:
        return 1
    return max(1, int(round(src_w * strip_height / src_h)))


def plan_tiles(strip_width: int, tile_width: int) -> List[TilePlacement]:
    """
    Place tiles outward from the centre until both strip edges are covered.

    Ring i sits i tile widths left and right of the centre tile and is
    mirrored when i is odd. Tiles entirely outside the strip are skipped.
    """
    strip_width = max(1, int(strip_width))
    tile_width = max(1, int(tile_width))

    center_x = int(math.floor(strip_width / 2 - tile_width / 2))
    placements = [TilePlacement(x=center_x, ring=0, mirrored=False)]

    left, right, ring = center_x, center_x + tile_width, 1
    while left > 0 or right < strip_width:
        mirrored = ring % 2 == 1
        left_x = left - tile_width
        if left_x + tile_width > 0:
            placements.append(TilePlacement(x=left_x, ring=ring, mirrored=mirrored))
        if right < strip_width:
            placements.append(TilePlacement(x=right, ring=ring, mirrored=mirrored))
        left -= tile_width
        right += tile_width
        ring += 1
    return placements


def build_motif_strip(image: Image.Image, strip_width: int, strip_height: int) -> Image.Image:
    """
    Render the mirrored tiling of `image` into a fresh strip buffer.

    Every tile is forced to the strip height; the buffer is exactly
    (strip_width, strip_height).
    """
    strip_width = max(1, int(strip_width))
    strip_height = max(1, int(strip_height))

    tile_w = tile_width_for(image.size, strip_height)
    tile = image.convert("RGBA").resize((tile_w, strip_height), Image.LANCZOS)
    mirrored_tile = ImageOps.mirror(tile)

    strip = Image.new("RGBA", (strip_width, strip_height), (0, 0, 0, 0))
    placements = plan_tiles(strip_width, tile_w)
    for placement in placements:
        strip.paste(mirrored_tile if placement.mirrored else tile, (placement.x, 0))

    logger.debug(
        "[tiler] strip %dx%d from %dx%d source: tile_w=%d tiles=%d",
        strip_width,
        strip_height,
        image.width,
        image.height,
        tile_w,
        len(placements),
    )
    return strip
