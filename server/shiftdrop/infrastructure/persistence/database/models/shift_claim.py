from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/shift_claim.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table shift_claims : une place occupée par un casual sur un shift.

Créé uniquement par Shift.accept_claim ; seule transition possible ensuite :
ACTIVE -> RELEASED_BY_SELF | RELEASED_BY_MANAGER (avec released_at).
"""

import enum
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shiftdrop.domain.errors import NoActiveClaim
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.types import TstzPortable, UUIDPortable


class ClaimStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    RELEASED_BY_SELF = "RELEASED_BY_SELF"
    RELEASED_BY_MANAGER = "RELEASED_BY_MANAGER"


class ShiftClaim(Base):
    __tablename__ = "shift_claims"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    shift_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False
    )
    casual_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("casuals.id", ondelete="NO ACTION"), nullable=False
    )
    status: Mapped[ClaimStatus] = mapped_column(
        sa.Enum(ClaimStatus, name="claim_status", native_enum=False, length=24),
        nullable=False,
        default=ClaimStatus.ACTIVE,
    )
    claimed_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    released_at: Mapped[datetime | None] = mapped_column(TstzPortable(), nullable=True)

    __table_args__ = (
        sa.Index("ix_shift_claims_shift_casual_status", "shift_id", "casual_id", "status"),
        # au plus un claim ACTIVE par (shift, casual), même en cas de bug applicatif
        sa.Index(
            "uq_shift_claims_one_active",
            "shift_id",
            "casual_id",
            unique=True,
            postgresql_where=sa.text("status = 'ACTIVE'"),
            sqlite_where=sa.text("status = 'ACTIVE'"),
        ),
    )

    @classmethod
    def create(cls, *, shift_id: uuid.UUID, casual_id: uuid.UUID, now: datetime) -> ShiftClaim:
        return cls(
            id=uuid.uuid4(),
            shift_id=shift_id,
            casual_id=casual_id,
            status=ClaimStatus.ACTIVE,
            claimed_at=now,
            released_at=None,
        )

    @property
    def is_active(self) -> bool:
        return self.status == ClaimStatus.ACTIVE

    def mark_released_by_self(self, now: datetime) -> None:
        self._release(ClaimStatus.RELEASED_BY_SELF, now)

    def mark_released_by_manager(self, now: datetime) -> None:
        self._release(ClaimStatus.RELEASED_BY_MANAGER, now)

    def _release(self, status: ClaimStatus, now: datetime) -> None:
        if not self.is_active:
            raise NoActiveClaim()
        self.status = status
        self.released_at = now

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ShiftClaim id={self.id} shift={self.shift_id} casual={self.casual_id} status={self.status}>"
