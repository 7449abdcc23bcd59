"""
Plate board editing.

Add / remove / resize / reorder plates on a board while keeping the editor
limits (1-10 plates, 20-300 cm wide, 30-128 cm high) and unique plate ids.
Boards are treated as values: every operation returns a new board.
"""
from dataclasses import dataclass, replace
from typing import List, Optional

from domain.models import (
    DEFAULT_HEIGHT_CM,
    DEFAULT_WIDTH_CM,
    HEIGHT_MAX_CM,
    HEIGHT_MIN_CM,
    MAX_PLATES,
    MIN_PLATES,
    WIDTH_MAX_CM,
    WIDTH_MIN_CM,
    Locale,
    PlateBoard,
    PlateSpec,
    Unit,
)
from services.locale_format import format_number, to_display


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def clamp_width(width_cm: float) -> float:
    return clamp(width_cm, WIDTH_MIN_CM, WIDTH_MAX_CM)


def clamp_height(height_cm: float) -> float:
    return clamp(height_cm, HEIGHT_MIN_CM, HEIGHT_MAX_CM)


def default_plate() -> PlateSpec:
    return PlateSpec(id=PlateSpec.generate_id(), width_cm=DEFAULT_WIDTH_CM, height_cm=DEFAULT_HEIGHT_CM)


def new_board(locale: Locale = Locale.EN, unit: Unit = Unit.CM) -> PlateBoard:
    """A fresh board holding the single default plate."""
    return PlateBoard(
        id=PlateBoard.generate_id(),
        plates=[default_plate()],
        locale=locale,
        unit=unit,
    )


def ensure_default_plate(board: PlateBoard) -> PlateBoard:
    if board.plates:
        return board
    return board.with_changes(plates=[default_plate()])


def repair_plate_ids(board: PlateBoard) -> PlateBoard:
    """Give plates with a missing or duplicated id a fresh one; order is kept."""
    seen = set()
    repaired: List[PlateSpec] = []
    changed = False
    for plate in board.plates:
        plate_id = plate.id
        if not plate_id or plate_id in seen:
            plate_id = PlateSpec.generate_id()
            changed = True
        seen.add(plate_id)
        repaired.append(replace(plate, id=plate_id))
    if not changed:
        return board
    return board.with_changes(plates=repaired)


def normalize_board(board: PlateBoard) -> PlateBoard:
    """Apply the invariants a loaded board must satisfy before it is edited."""
    return repair_plate_ids(ensure_default_plate(board))


def find_plate(board: PlateBoard, plate_id: str) -> Optional[PlateSpec]:
    for plate in board.plates:
        if plate.id == plate_id:
            return plate
    return None


def add_plate(
    board: PlateBoard,
    width_cm: Optional[float] = None,
    height_cm: Optional[float] = None,
) -> PlateBoard:
    """
    Append a plate.

    Missing dimensions are copied from the last plate (or the default
    plate). No-op once the board holds MAX_PLATES plates.
    """
    if len(board.plates) >= MAX_PLATES:
        return board
    last = board.plates[-1] if board.plates else default_plate()
    plate = PlateSpec(
        id=PlateSpec.generate_id(),
        width_cm=clamp_width(last.width_cm if width_cm is None else width_cm),
        height_cm=clamp_height(last.height_cm if height_cm is None else height_cm),
    )
    return board.with_changes(plates=[*board.plates, plate])


def remove_plate(board: PlateBoard, plate_id: str) -> PlateBoard:
    """Remove a plate by id; the last remaining plate is never removed."""
    if len(board.plates) <= MIN_PLATES:
        return board
    remaining = [p for p in board.plates if p.id != plate_id]
    if len(remaining) == len(board.plates):
        return board
    return board.with_changes(plates=remaining)


def set_plate(
    board: PlateBoard,
    plate_id: str,
    width_cm: Optional[float] = None,
    height_cm: Optional[float] = None,
) -> PlateBoard:
    """Partially update one plate's dimensions, clamped to the editor limits."""
    if find_plate(board, plate_id) is None:
        raise KeyError(plate_id)
    updated: List[PlateSpec] = []
    for plate in board.plates:
        if plate.id == plate_id:
            plate = replace(
                plate,
                width_cm=plate.width_cm if width_cm is None else clamp_width(width_cm),
                height_cm=plate.height_cm if height_cm is None else clamp_height(height_cm),
            )
        updated.append(plate)
    return board.with_changes(plates=updated)


def reorder_plates(board: PlateBoard, from_index: int, to_index: int) -> PlateBoard:
    """Move the plate at from_index so it ends up at to_index."""
    count = len(board.plates)
    if not (0 <= from_index < count and 0 <= to_index < count):
        raise IndexError(f"plate index out of range (0..{count - 1})")
    if from_index == to_index:
        return board
    plates = list(board.plates)
    moved = plates.pop(from_index)
    plates.insert(to_index, moved)
    return board.with_changes(plates=plates)


def total_width_cm(board: PlateBoard) -> float:
    return sum(p.width_cm for p in board.plates)


@dataclass
class BoardSummary:
    plate_count: int
    max_plates: int
    total_width_cm: float
    total_width_display: str
    unit: str


def board_summary(board: PlateBoard) -> BoardSummary:
    """Footer figures: plate count against the limit and total width in the board's unit."""
    total = total_width_cm(board)
    return BoardSummary(
        plate_count=len(board.plates),
        max_plates=MAX_PLATES,
        total_width_cm=total,
        total_width_display=format_number(to_display(total, board.unit), board.locale),
        unit=Unit(board.unit).value,
    )
