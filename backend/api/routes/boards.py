"""
Boards API routes.

CRUD for plate boards plus the editor operations on their plates, motif
upload and the rendered preview.
"""
import logging
from typing import List, Optional, Union
from urllib.parse import urlparse

from fastapi import APIRouter, File, Header, HTTPException, Query, Response, UploadFile
from pydantic import BaseModel

from db import SessionLocal
from domain.models import Locale, PlateBoard, SurfaceSize, Unit
from repositories import BoardsRepository
from services import plate_board as editor
from services.exporter import EXPORT_FILENAME, export_png
from services.locale_format import detect_locale, inches_to_cm, parse_locale_number, to_display
from services.motif_resolver import MotifResolver, advisory_for, is_remote_locator
from services.plate_preview import render_preview
from storage.file_storage import FileStorage

router = APIRouter()
boards_repo = BoardsRepository()
storage = FileStorage()
resolver = MotifResolver()
logger = logging.getLogger(__name__)

Dimension = Union[float, str]


class BoardCreate(BaseModel):
    locale: Optional[str] = None
    unit: str = "cm"


class BoardUpdate(BaseModel):
    locale: Optional[str] = None
    unit: Optional[str] = None
    motif_src: Optional[str] = None


class PlateResponse(BaseModel):
    id: str
    width_cm: float
    height_cm: float
    width_display: float
    height_display: float


class BoardResponse(BaseModel):
    id: str
    plates: List[PlateResponse]
    motif_src: Optional[str] = None
    locale: str
    unit: str
    created_at: str
    updated_at: str


class PlateCreate(BaseModel):
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None


class PlateUpdate(BaseModel):
    width: Optional[Dimension] = None
    height: Optional[Dimension] = None


class ReorderRequest(BaseModel):
    from_index: int
    to_index: int


class MotifStatusResponse(BaseModel):
    tier: str
    advisory: Optional[str] = None
    locator: Optional[str] = None


class SummaryResponse(BaseModel):
    plate_count: int
    max_plates: int
    total_width_cm: float
    total_width_display: str
    unit: str


def board_to_response(board: PlateBoard) -> BoardResponse:
    """Convert domain PlateBoard to API response."""
    return BoardResponse(
        id=board.id,
        plates=[
            PlateResponse(
                id=p.id,
                width_cm=p.width_cm,
                height_cm=p.height_cm,
                width_display=to_display(p.width_cm, board.unit),
                height_display=to_display(p.height_cm, board.unit),
            )
            for p in board.plates
        ],
        motif_src=board.motif_src,
        locale=Locale(board.locale).value,
        unit=Unit(board.unit).value,
        created_at=board.created_at.isoformat(),
        updated_at=board.updated_at.isoformat(),
    )


def _parse_enum(enum_cls, value: str, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value}")


def _parse_dimension(value: Optional[Dimension], board: PlateBoard, label: str) -> Optional[float]:
    """Numbers or locale strings in the board's unit, returned in centimetres."""
    if value is None:
        return None
    if isinstance(value, str):
        number = parse_locale_number(value, board.locale)
    else:
        number = float(value)
    if number is None:
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value!r}")
    return inches_to_cm(number) if board.unit == Unit.INCH else number


def is_stored_motif(src: str) -> bool:
    """True for motif paths saved by FileStorage rather than URLs."""
    return urlparse(src).scheme not in ("http", "https", "data", "file")


def motif_locator(board: PlateBoard) -> Optional[str]:
    """Resolver locator for a board's motif; uploaded files live in storage."""
    src = board.motif_src
    if not src:
        return None
    if is_stored_motif(src):
        return str(storage.get_absolute_path(src))
    return src


def _load_board(session, board_id: str) -> PlateBoard:
    board = boards_repo.get_board(session, board_id)
    if not board:
        raise HTTPException(status_code=404, detail="Board not found")
    return editor.normalize_board(board)


@router.get("", response_model=List[BoardResponse])
async def list_boards():
    """List all boards."""
    with SessionLocal() as session:
        return [board_to_response(b) for b in boards_repo.list_boards(session)]


@router.post("", response_model=BoardResponse)
async def create_board(data: BoardCreate, accept_language: Optional[str] = Header(None)):
    """Create a board with the single default plate."""
    locale = _parse_enum(Locale, data.locale, "locale") if data.locale else detect_locale(accept_language)
    unit = _parse_enum(Unit, data.unit, "unit")
    board = editor.new_board(locale=locale, unit=unit)
    with SessionLocal() as session:
        created = boards_repo.create_board(session, board)
    logger.info("[boards] created board %s (locale=%s unit=%s)", created.id, locale.value, unit.value)
    return board_to_response(created)


@router.get("/{board_id}", response_model=BoardResponse)
async def get_board(board_id: str):
    """Get a board by ID."""
    with SessionLocal() as session:
        return board_to_response(_load_board(session, board_id))


@router.patch("/{board_id}", response_model=BoardResponse)
async def update_board(board_id: str, data: BoardUpdate):
    """Change locale, unit or the motif locator of a board."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        changes = {}
        if data.locale is not None:
            changes["locale"] = _parse_enum(Locale, data.locale, "locale")
        if data.unit is not None:
            changes["unit"] = _parse_enum(Unit, data.unit, "unit")
        if data.motif_src is not None:
            src = data.motif_src.strip() or None
            if src and not is_remote_locator(src):
                raise HTTPException(status_code=400, detail="motif_src must be an http(s) or data: URL")
            changes["motif_src"] = src
        board = boards_repo.update_board(session, board.with_changes(**changes))
        return board_to_response(board)


@router.delete("/{board_id}")
async def delete_board(board_id: str):
    """Delete a board and its uploaded motifs."""
    with SessionLocal() as session:
        if not boards_repo.delete_board(session, board_id):
            raise HTTPException(status_code=404, detail="Board not found")
    storage.delete_board_files(board_id)
    return {"success": True}


@router.post("/{board_id}/plates", response_model=BoardResponse)
async def add_plate(board_id: str, data: Optional[PlateCreate] = None):
    """Append a plate; dimensions default to the last plate's."""
    data = data or PlateCreate()
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        board = editor.add_plate(
            board,
            width_cm=_parse_dimension(data.width, board, "width"),
            height_cm=_parse_dimension(data.height, board, "height"),
        )
        return board_to_response(boards_repo.update_board(session, board))


@router.patch("/{board_id}/plates/{plate_id}", response_model=BoardResponse)
async def update_plate(board_id: str, plate_id: str, data: PlateUpdate):
    """Resize a plate; values outside the editor limits are clamped."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        try:
            board = editor.set_plate(
                board,
                plate_id,
                width_cm=_parse_dimension(data.width, board, "width"),
                height_cm=_parse_dimension(data.height, board, "height"),
            )
        except KeyError:
            raise HTTPException(status_code=404, detail="Plate not found")
        return board_to_response(boards_repo.update_board(session, board))


@router.delete("/{board_id}/plates/{plate_id}", response_model=BoardResponse)
async def remove_plate(board_id: str, plate_id: str):
    """Remove a plate; the last plate of a board is kept."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        if editor.find_plate(board, plate_id) is None:
            raise HTTPException(status_code=404, detail="Plate not found")
        board = editor.remove_plate(board, plate_id)
        return board_to_response(boards_repo.update_board(session, board))


@router.post("/{board_id}/plates/reorder", response_model=BoardResponse)
async def reorder_plates(board_id: str, data: ReorderRequest):
    """Move a plate to a new position."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        try:
            board = editor.reorder_plates(board, data.from_index, data.to_index)
        except IndexError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return board_to_response(boards_repo.update_board(session, board))


@router.post("/{board_id}/motif", response_model=BoardResponse)
async def upload_motif(board_id: str, file: UploadFile = File(...)):
    """Store an uploaded motif image and make it the board's user motif."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        previous = board.motif_src
        rel_path = storage.save_motif(board_id, file.file, file.filename or "motif.jpg")
        board = boards_repo.update_board(session, board.with_changes(motif_src=rel_path))
    if previous and is_stored_motif(previous):
        storage.delete_file(previous)
    logger.info("[boards] stored motif for board %s at %s", board_id, rel_path)
    return board_to_response(board)


@router.delete("/{board_id}/motif", response_model=BoardResponse)
async def clear_motif(board_id: str):
    """Go back to the default motif chain."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
        board = boards_repo.update_board(session, board.with_changes(motif_src=None))
    storage.delete_board_files(board_id)
    return board_to_response(board)


@router.get("/{board_id}/summary", response_model=SummaryResponse)
async def board_summary(board_id: str):
    """Plate count and total width, formatted for the board's locale and unit."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
    summary = editor.board_summary(board)
    return SummaryResponse(**summary.__dict__)


@router.get("/{board_id}/motif-status", response_model=MotifStatusResponse)
def motif_status(board_id: str):
    """Resolve the board's motif chain and report which tier answered."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)
    motif = resolver.resolve(motif_locator(board))
    return MotifStatusResponse(
        tier=motif.tier.value,
        advisory=advisory_for(motif.tier),
        locator=motif.locator,
    )


@router.get("/{board_id}/preview.png")
def preview_png(
    board_id: str,
    width: float = Query(800, gt=0, le=4096, allow_inf_nan=False),
    height: float = Query(500, gt=0, le=4096, allow_inf_nan=False),
    pixel_ratio: float = Query(1.0, ge=1.0, le=2.0, allow_inf_nan=False),
):
    """Render the board and return it as PNG; 409 when the surface cannot be exported."""
    with SessionLocal() as session:
        board = _load_board(session, board_id)

    motif = resolver.resolve(motif_locator(board))
    surface = render_preview(board.plates, SurfaceSize(width, height), motif, pixel_ratio=pixel_ratio)
    data = export_png(surface)
    if data is None:
        raise HTTPException(status_code=409, detail="Preview export unavailable")

    headers = {
        "X-Motif-Tier": motif.tier.value,
        "Content-Disposition": f'inline; filename="{EXPORT_FILENAME}"',
    }
    advisory = advisory_for(motif.tier)
    if advisory:
        headers["X-Motif-Advisory"] = advisory
    return Response(content=data, media_type="image/png", headers=headers)
