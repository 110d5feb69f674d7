from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/shift_notification.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table shift_notifications : un jeton de claim par casual et par diffusion d'un shift.

- Le jeton (32 hex) est embarqué dans le lien SMS.
- Il expire au démarrage du shift.
- `outbox_message_id` pointe vers le message outbox qui porte ce SMS :
  à l'annulation du shift on révoque le jeton ET on annule le message s'il est encore PENDING.
"""
import enum
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shiftdrop.domain.errors import InvalidClaimToken
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.types import TstzPortable, UUIDPortable


class TokenStatus(str, enum.Enum):
    PENDING = "PENDING"
    USED = "USED"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


class ShiftNotification(Base):
    __tablename__ = "shift_notifications"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False
    )
    casual_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("casuals.id", ondelete="NO ACTION"), nullable=False
    )
    claim_token: Mapped[str] = mapped_column(sa.String(32), nullable=False, unique=True)
    token_expires_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    token_status: Mapped[TokenStatus] = mapped_column(
        sa.Enum(TokenStatus, name="token_status", native_enum=False, length=16),
        nullable=False,
        default=TokenStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)
    outbox_message_id: Mapped[uuid.UUID | None] = mapped_column(UUIDPortable(), nullable=True)

    __table_args__ = (
        sa.Index("ix_shift_notifications_shift_status", "shift_id", "token_status"),
    )

    @classmethod
    def create(cls, *, shift, casual_id: uuid.UUID, now: datetime) -> ShiftNotification:
        return cls(
            id=uuid.uuid4(),
            shift_id=shift.id,
            casual_id=casual_id,
            claim_token=uuid.uuid4().hex,
            token_expires_at=shift.starts_at,
            token_status=TokenStatus.PENDING,
            created_at=now,
        )

    def ensure_usable(self, now: datetime) -> None:
        """Lève InvalidClaimToken avec un message lisible si le jeton n'est plus utilisable."""
        if self.token_status == TokenStatus.USED:
            raise InvalidClaimToken("This link has already been used")
        if self.token_status == TokenStatus.REVOKED:
            raise InvalidClaimToken("This shift is no longer available")
        if self.token_status == TokenStatus.EXPIRED or now > self.token_expires_at:
            self.token_status = TokenStatus.EXPIRED
            raise InvalidClaimToken("This link has expired")

    def mark_as_used(self, now: datetime) -> None:
        self.ensure_usable(now)
        self.token_status = TokenStatus.USED
        self.used_at = now

    def revoke(self) -> bool:
        if self.token_status != TokenStatus.PENDING:
            return False
        self.token_status = TokenStatus.REVOKED
        return True
