"""
Stateless preview rendering.

POST /preview renders plates posted as JSON, optionally with an uploaded
motif, without creating a board.
"""
import json
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from domain.models import PlateBoard, PlateSpec, ResolvedMotif, SurfaceSize
from services.exporter import EXPORT_FILENAME, export_png
from services.motif_resolver import MotifResolver, advisory_for, is_remote_locator
from services.plate_board import clamp_height, clamp_width, repair_plate_ids
from services.plate_preview import render_preview
from storage.file_storage import temporary_motif_file

router = APIRouter()
resolver = MotifResolver()
logger = logging.getLogger(__name__)


def parse_plates(raw: str) -> List[PlateSpec]:
    """Parse a JSON list of {width_cm, height_cm[, id]} objects into clamped plates."""
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid plates JSON: {exc.msg}")
    if not isinstance(items, list) or not items:
        raise HTTPException(status_code=400, detail="plates must be a non-empty list")

    plates: List[PlateSpec] = []
    for item in items:
        if not isinstance(item, dict):
            raise HTTPException(status_code=400, detail="each plate must be an object")
        try:
            plate = PlateSpec.from_dict(item)
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail=f"Invalid plate: {item!r}")
        plates.append(
            PlateSpec(id=plate.id, width_cm=clamp_width(plate.width_cm), height_cm=clamp_height(plate.height_cm))
        )
    return repair_plate_ids(PlateBoard(id="preview", plates=plates)).plates


async def _resolve_upload(motif: Optional[UploadFile], motif_src: Optional[str]) -> ResolvedMotif:
    if motif is None:
        return await run_in_threadpool(resolver.resolve, motif_src)
    data = await motif.read()
    logger.info("[preview] resolving uploaded motif %s (%d bytes)", motif.filename, len(data))
    with temporary_motif_file(data, motif.filename) as path:
        return await run_in_threadpool(resolver.resolve, str(path))


@router.post("")
async def render_preview_png(
    plates: str = Form(...),
    width: float = Form(800, gt=0, le=4096, allow_inf_nan=False),
    height: float = Form(500, gt=0, le=4096, allow_inf_nan=False),
    pixel_ratio: float = Form(1.0, ge=1.0, le=2.0, allow_inf_nan=False),
    motif_src: Optional[str] = Form(None),
    motif: Optional[UploadFile] = File(None),
):
    """Render posted plates to PNG; an uploaded motif takes precedence over motif_src."""
    if motif_src and motif_src.strip() and not is_remote_locator(motif_src):
        raise HTTPException(status_code=400, detail="motif_src must be an http(s) or data: URL")
    specs = parse_plates(plates)
    resolved = await _resolve_upload(motif, motif_src)
    surface = await run_in_threadpool(
        render_preview, specs, SurfaceSize(width, height), resolved, pixel_ratio
    )
    data = export_png(surface)
    if data is None:
        raise HTTPException(status_code=409, detail="Preview export unavailable")

    headers = {
        "X-Motif-Tier": resolved.tier.value,
        "Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"',
    }
    advisory = advisory_for(resolved.tier)
    if advisory:
        headers["X-Motif-Advisory"] = advisory
    return Response(content=data, media_type="image/png", headers=headers)
