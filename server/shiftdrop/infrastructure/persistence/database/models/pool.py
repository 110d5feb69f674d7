from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/pool.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table pools : partition à laquelle appartiennent shifts et casuals.
"""
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shiftdrop.domain.errors import InvalidInput
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.types import TstzPortable, UUIDPortable


class Pool(Base):
    __tablename__ = "pools"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)

    @classmethod
    def create(cls, *, name: str, now: datetime) -> Pool:
        if not (name or "").strip():
            raise InvalidInput("Pool name cannot be empty")
        return cls(id=uuid.uuid4(), name=name.strip(), created_at=now)
