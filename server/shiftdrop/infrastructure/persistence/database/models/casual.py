from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/casual.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table casuals + agrégat Casual.

Le casual vérifie "ai-je déjà ce shift ?" ; le shift vérifie "ai-je encore de
la place / suis-je ouvert ?". La transition du claim reste faite par Shift.
"""

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftdrop.domain.errors import CrossPoolMismatch, DuplicateActiveClaim, InvalidInput, NoActiveClaim
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.models.shift_claim import ClaimStatus, ShiftClaim
from shiftdrop.infrastructure.persistence.database.types import TstzPortable, UUIDPortable


class Casual(Base):
    __tablename__ = "casuals"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    pool_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("pools.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    # destinataire opaque (aucune règle de format ici)
    phone_number: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)

    claims: Mapped[list[ShiftClaim]] = relationship(
        order_by=ShiftClaim.claimed_at,
        lazy="selectin",
    )

    __table_args__ = (
        sa.Index("ix_casuals_pool_phone", "pool_id", "phone_number", unique=True),
    )

    @classmethod
    def create(cls, *, pool_id: uuid.UUID, name: str, phone_number: str, now: datetime) -> Casual:
        if not (name or "").strip():
            raise InvalidInput("Casual name cannot be empty")
        if not (phone_number or "").strip():
            raise InvalidInput("Phone number is required")
        return cls(
            id=uuid.uuid4(),
            pool_id=pool_id,
            name=name.strip(),
            phone_number=phone_number.strip(),
            created_at=now,
            claims=[],
        )

    def active_claim_for(self, shift_id: uuid.UUID) -> ShiftClaim | None:
        return next(
            (c for c in self.claims if c.shift_id == shift_id and c.status == ClaimStatus.ACTIVE),
            None,
        )

    def claim_shift(self, shift, now: datetime) -> ShiftClaim:
        if shift.pool_id != self.pool_id:
            raise CrossPoolMismatch()
        if self.active_claim_for(shift.id) is not None:
            raise DuplicateActiveClaim()

        claim = shift.accept_claim(self, now)
        self.claims.append(claim)
        return claim

    def release_shift(self, shift, now: datetime) -> ShiftClaim:
        claim = self.active_claim_for(shift.id)
        if claim is None:
            raise NoActiveClaim()

        claim.mark_released_by_self(now)
        shift.release_claim()
        return claim

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Casual id={self.id} pool={self.pool_id} name={self.name!r}>"
