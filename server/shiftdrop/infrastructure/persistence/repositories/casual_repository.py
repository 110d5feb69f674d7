from __future__ import annotations

"""server/shiftdrop/infrastructure/persistence/repositories/casual_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Repository des casuals (ne commit pas).
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftdrop.infrastructure.persistence.database.models.casual import Casual


class CasualRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, casual: Casual) -> Casual:
        self.db.add(casual)
        self.db.flush()
        return casual

    def get(self, casual_id: UUID) -> Optional[Casual]:
        return self.db.get(Casual, casual_id)

    def list_for_pool(self, pool_id: UUID) -> list[Casual]:
        return list(
            self.db.scalars(
                select(Casual).where(Casual.pool_id == pool_id).order_by(Casual.created_at.asc())
            )
        )

    def find_by_phone(self, pool_id: UUID, phone_number: str) -> Optional[Casual]:
        return self.db.execute(
            select(Casual)
            .where(Casual.pool_id == pool_id, Casual.phone_number == phone_number)
            .limit(1)
        ).scalar_one_or_none()
