from __future__ import annotations

"""server/shiftdrop/infrastructure/persistence/repositories/pool_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~
Repository des pools (ne commit pas).
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shiftdrop.infrastructure.persistence.database.models.pool import Pool


class PoolRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, pool: Pool) -> Pool:
        self.db.add(pool)
        self.db.flush()
        return pool

    def get(self, pool_id: UUID) -> Optional[Pool]:
        return self.db.get(Pool, pool_id)
