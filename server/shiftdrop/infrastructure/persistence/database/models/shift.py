from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/shift.py
~~~~~~~~~~~~~~~~~~~~~~~~
Table shifts + agrégat Shift (capacité + machine d'état des claims).

Machine d'état :
    OPEN   --accept_claim (dernière place)--> FILLED
    FILLED --release_claim--------------------> OPEN
    {OPEN, FILLED} --cancel--> CANCELLED   (terminal)

Invariant : spots_remaining == spots_needed - nb(claims ACTIVE).

Concurrence : `version` est le version_id_col SQLAlchemy. Deux transactions
qui chargent la même version et modifient le shift => la seconde lève
StaleDataError au flush (traduit en ConcurrencyConflict par unit_of_work).
"""

import enum
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftdrop.core.clock import as_utc
from shiftdrop.domain.errors import (
    AlreadyFilled,
    AlreadyStarted,
    NoActiveClaim,
    NoSpotsRemaining,
    ShiftCancelled,
)
from shiftdrop.domain.policies import validate_shift_window
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.models.shift_claim import ClaimStatus, ShiftClaim
from shiftdrop.infrastructure.persistence.database.types import TstzPortable, UUIDPortable


class ShiftStatus(str, enum.Enum):
    OPEN = "OPEN"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(UUIDPortable(), primary_key=True, default=uuid.uuid4)
    pool_id: Mapped[uuid.UUID] = mapped_column(
        UUIDPortable(), sa.ForeignKey("pools.id", ondelete="CASCADE"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    starts_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    spots_needed: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    spots_remaining: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    status: Mapped[ShiftStatus] = mapped_column(
        sa.Enum(ShiftStatus, name="shift_status", native_enum=False, length=16),
        nullable=False,
        default=ShiftStatus.OPEN,
    )
    created_at: Mapped[datetime] = mapped_column(TstzPortable(), nullable=False)
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    claims: Mapped[list[ShiftClaim]] = relationship(
        cascade="all, delete-orphan",
        order_by=ShiftClaim.claimed_at,
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        sa.CheckConstraint("spots_needed >= 1", name="ck_shifts_spots_needed"),
        sa.CheckConstraint(
            "spots_remaining >= 0 AND spots_remaining <= spots_needed",
            name="ck_shifts_spots_remaining",
        ),
        sa.Index("ix_shifts_pool_status_starts", "pool_id", "status", "starts_at"),
    )

    # --- Création -------------------------------------------------------------

    @classmethod
    def create(
        cls,
        *,
        pool_id: uuid.UUID,
        starts_at: datetime,
        ends_at: datetime,
        spots_needed: int,
        now: datetime,
        description: str | None = None,
    ) -> Shift:
        """Poste un shift : doit démarrer dans le futur, finir après le début, >= 1 place."""
        starts_at, ends_at = as_utc(starts_at), as_utc(ends_at)
        validate_shift_window(starts_at, ends_at, spots_needed, now)
        return cls(
            id=uuid.uuid4(),
            pool_id=pool_id,
            description=description,
            starts_at=starts_at,
            ends_at=ends_at,
            spots_needed=spots_needed,
            spots_remaining=spots_needed,
            status=ShiftStatus.OPEN,
            created_at=now,
            claims=[],
        )

    # --- Lecture ----------------------------------------------------------------

    def active_claims(self) -> list[ShiftClaim]:
        return [c for c in self.claims if c.status == ClaimStatus.ACTIVE]

    def claimed_casual_ids(self) -> set[uuid.UUID]:
        return {c.casual_id for c in self.active_claims()}

    def active_claim_of(self, casual_id: uuid.UUID) -> ShiftClaim | None:
        return next(
            (c for c in self.claims if c.casual_id == casual_id and c.status == ClaimStatus.ACTIVE),
            None,
        )

    # --- Transitions ------------------------------------------------------------

    def accept_claim(self, casual, now: datetime) -> ShiftClaim:
        """
        Réserve une place pour `casual`. Refus (dans cet ordre) :
        déjà commencé, complet, annulé, plus de place.
        """
        if now >= self.starts_at:
            raise AlreadyStarted()
        if self.status == ShiftStatus.FILLED:
            raise AlreadyFilled()
        if self.status == ShiftStatus.CANCELLED:
            raise ShiftCancelled()
        if self.spots_remaining <= 0:
            raise NoSpotsRemaining()

        claim = ShiftClaim.create(shift_id=self.id, casual_id=casual.id, now=now)
        self.claims.append(claim)
        self.spots_remaining -= 1

        if self.spots_remaining == 0:
            self.status = ShiftStatus.FILLED

        return claim

    def release_claim(self) -> None:
        """
        Annule l'effet capacité d'un claim déjà passé en statut libéré par l'appelant.
        Un shift CANCELLED reste CANCELLED.
        """
        self.spots_remaining += 1
        if self.status == ShiftStatus.FILLED:
            self.status = ShiftStatus.OPEN

    def manager_release(self, casual, now: datetime) -> ShiftClaim:
        claim = self.active_claim_of(casual.id)
        if claim is None:
            raise NoActiveClaim("Casual does not have an active claim on this shift")

        claim.mark_released_by_manager(now)
        self.release_claim()
        return claim

    def cancel(self) -> bool:
        """Idempotent. Retourne True si la transition a eu lieu."""
        if self.status == ShiftStatus.CANCELLED:
            return False
        self.status = ShiftStatus.CANCELLED
        return True

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Shift id={self.id} status={self.status} "
            f"spots={self.spots_remaining}/{self.spots_needed} v={self.version}>"
        )
