"""
Board repository backed by SQLAlchemy/SQLite.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from domain.models import Locale, PlateBoard, PlateSpec, Unit
from repositories.models import BoardORM


def _plates_to_json(plates: List[PlateSpec]) -> List[dict]:
    return [p.to_dict() for p in plates]


def _plates_from_json(data: Optional[list]) -> List[PlateSpec]:
    if not data:
        return []
    return [PlateSpec.from_dict(item) for item in data if isinstance(item, dict)]


def _board_from_orm(orm: BoardORM) -> PlateBoard:
    return PlateBoard(
        id=orm.id,
        plates=_plates_from_json(orm.plates),
        motif_src=orm.motif_src,
        locale=Locale(orm.locale or Locale.EN.value),
        unit=Unit(orm.unit or Unit.CM.value),
        created_at=orm.created_at,
        updated_at=orm.updated_at,
    )


def _update_orm_from_board(orm: BoardORM, board: PlateBoard) -> None:
    orm.plates = _plates_to_json(board.plates)
    orm.motif_src = board.motif_src
    orm.locale = Locale(board.locale).value
    orm.unit = Unit(board.unit).value
    orm.updated_at = board.updated_at


class BoardsRepository:
    """CRUD operations for plate boards."""

    def list_boards(self, session: Session) -> List[PlateBoard]:
        boards = session.query(BoardORM).order_by(BoardORM.created_at).all()
        return [_board_from_orm(b) for b in boards]

    def get_board(self, session: Session, board_id: str) -> Optional[PlateBoard]:
        orm = session.get(BoardORM, board_id)
        if not orm:
            return None
        return _board_from_orm(orm)

    def create_board(self, session: Session, board: PlateBoard) -> PlateBoard:
        now = datetime.utcnow()
        orm = BoardORM(
            id=board.id,
            created_at=board.created_at or now,
        )
        _update_orm_from_board(orm, board)
        orm.updated_at = board.updated_at or now
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _board_from_orm(orm)

    def update_board(self, session: Session, board: PlateBoard) -> PlateBoard:
        orm = session.get(BoardORM, board.id)
        if not orm:
            raise ValueError("Board not found")
        _update_orm_from_board(orm, board)
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _board_from_orm(orm)

    def delete_board(self, session: Session, board_id: str) -> bool:
        orm = session.get(BoardORM, board_id)
        if not orm:
            return False
        session.delete(orm)
        session.commit()
        return True
