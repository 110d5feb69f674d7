from __future__ import annotations

"""server/shiftdrop/infrastructure/persistence/repositories/shift_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Repository des shifts.

Principes :
- Le repo **reçoit** une Session gérée par l'appelant (unit_of_work) ;
  il ne commit pas.
- L'agrégat est rechargé à chaque transaction avec ses claims (selectin) :
  pas de cache partagé entre requêtes.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftdrop.infrastructure.persistence.database.models.shift import Shift, ShiftStatus


class ShiftRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, shift: Shift) -> Shift:
        self.db.add(shift)
        self.db.flush()
        return shift

    def get(self, shift_id: UUID) -> Optional[Shift]:
        return self.db.get(Shift, shift_id)

    def list_open_for_pool(self, pool_id: UUID, *, now: datetime) -> list[Shift]:
        """Shifts encore réclamables d'un pool (OPEN et pas commencés), par date de début."""
        return list(
            self.db.scalars(
                select(Shift)
                .where(
                    Shift.pool_id == pool_id,
                    Shift.status == ShiftStatus.OPEN,
                    Shift.starts_at > now,
                )
                .order_by(Shift.starts_at.asc())
            )
        )
