from __future__ import annotations

"""server/shiftdrop/infrastructure/persistence/repositories/shift_notification_repository.py
~~~~~~~~~~~~~~~~~~~~~~~~
Repository des jetons de claim (ne commit pas).
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftdrop.infrastructure.persistence.database.models.shift_notification import (
    ShiftNotification,
    TokenStatus,
)


class ShiftNotificationRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, notification: ShiftNotification) -> ShiftNotification:
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_by_token(self, token: str) -> Optional[ShiftNotification]:
        return self.db.execute(
            select(ShiftNotification).where(ShiftNotification.claim_token == token).limit(1)
        ).scalar_one_or_none()

    def list_pending_for_shift(self, shift_id: UUID) -> list[ShiftNotification]:
        return list(
            self.db.scalars(
                select(ShiftNotification).where(
                    ShiftNotification.shift_id == shift_id,
                    ShiftNotification.token_status == TokenStatus.PENDING,
                )
            )
        )
