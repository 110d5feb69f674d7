from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/outbox_message.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table outbox_messages.

Cycle de vie :
    PENDING --succès-------------------------> SENT
    PENDING --échec (grille non épuisée)-----> PENDING (+ next_retry_at)
    PENDING --échec (grille épuisée)---------> FAILED
    PENDING --cancel()-----------------------> CANCELLED
SENT / FAILED / CANCELLED sont terminaux.
"""

import enum
import uuid
from datetime import datetime, timedelta
from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shiftdrop.domain.policies import DEFAULT_RETRY_SCHEDULE, next_retry_delay, truncate_error
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.types import TstzPortable, UUIDPortable

LAST_ERROR_MAX_LEN = 1000


class OutboxStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class OutboxMessage(Base):
    __tablename__ = "outbox_messages"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    message_type: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    # JSON sérialisé, opaque pour le store
    payload: Mapped[str] = mapped_column(sa.Text, nullable=False)
    status: Mapped[OutboxStatus] = mapped_column(
        sa.Enum(OutboxStatus, name="outbox_status", native_enum=False, length=16),
        nullable=False,
        default=OutboxStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)
    retry_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    next_retry_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)
    last_error: Mapped[str | None] = mapped_column(sa.String(LAST_ERROR_MAX_LEN), nullable=True)

    __table_args__ = (
        # polling du worker : uniquement les PENDING
        sa.Index(
            "ix_outbox_messages_pending_ready",
            "status",
            "next_retry_at",
            postgresql_where=sa.text("status = 'PENDING'"),
            sqlite_where=sa.text("status = 'PENDING'"),
        ),
        sa.CheckConstraint("retry_count >= 0", name="ck_outbox_messages_retry_count"),
    )

    @classmethod
    def create(cls, *, message_type: str, payload: str, now: datetime) -> OutboxMessage:
        return cls(
            id=uuid.uuid4(),
            message_type=message_type,
            payload=payload,
            status=OutboxStatus.PENDING,
            created_at=now,
            retry_count=0,
        )

    # --- Transitions d'état ---------------------------------------------------

    def mark_sent(self, now: datetime) -> None:
        self.status = OutboxStatus.SENT
        self.processed_at = now

    def mark_failed(
        self,
        error: str,
        now: datetime,
        schedule: Sequence[timedelta] = DEFAULT_RETRY_SCHEDULE,
        *,
        max_error_len: int = LAST_ERROR_MAX_LEN,
    ) -> None:
        """
        Applique la grille de retry :
        - retry_count += 1, last_error = error
        - grille épuisée -> FAILED (terminal), processed_at = now
        - sinon -> next_retry_at = now + schedule[retry_count - 1], reste PENDING
        """
        self.last_error = truncate_error(error, min(max_error_len, LAST_ERROR_MAX_LEN))
        self.retry_count = (self.retry_count or 0) + 1

        delay = next_retry_delay(self.retry_count, schedule)
        if delay is None:
            self.status = OutboxStatus.FAILED
            self.processed_at = now
        else:
            self.next_retry_at = now + delay

    def cancel(self) -> bool:
        """PENDING -> CANCELLED ; no-op sinon. Retourne True si la transition a eu lieu."""
        if self.status != OutboxStatus.PENDING:
            return False
        self.status = OutboxStatus.CANCELLED
        return True

    def is_ready(self, now: datetime) -> bool:
        if self.status != OutboxStatus.PENDING:
            return False
        return self.next_retry_at is None or self.next_retry_at <= now

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<OutboxMessage id={self.id} type={self.message_type} status={self.status} "
            f"retries={self.retry_count}>"
        )
