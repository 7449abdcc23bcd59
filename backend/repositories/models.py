"""
SQLAlchemy ORM models for persistence.
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, JSON, String

from db import Base


class BoardORM(Base):
    __tablename__ = "boards"

    id = Column(String, primary_key=True, index=True)
    plates = Column(JSON, nullable=False, default=list)
    motif_src = Column(String, nullable=True)
    locale = Column(String, nullable=False, default="en")
    unit = Column(String, nullable=False, default="cm")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
