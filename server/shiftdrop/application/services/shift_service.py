from __future__ import annotations
"""server/shiftdrop/application/services/shift_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Cas d'usage autour des shifts : poster, réclamer, libérer, annuler, relancer.

Règles communes :
- un cas d'usage = une transaction (`unit_of_work`) ;
- les agrégats sont rechargés à chaque appel (aucun cache partagé) ;
- les SMS sont écrits dans l'outbox DANS la même transaction que le changement
  métier : commit => changement + messages, rollback => ni l'un ni l'autre ;
- un conflit de version au flush remonte en ConcurrencyConflict, sans retry.
"""

import logging
import uuid
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session, sessionmaker

from shiftdrop.core.clock import Clock, SystemClock
from shiftdrop.core.config import settings
from shiftdrop.domain.errors import AlreadyFilled, AlreadyStarted, InvalidClaimToken, NotFound, ShiftCancelled
from shiftdrop.domain.policies import describe_shift
from shiftdrop.infrastructure.messaging.outbox import Outbox
from shiftdrop.infrastructure.messaging.payloads import ClaimConfirmation, ShiftBroadcast, ShiftReopened
from shiftdrop.infrastructure.persistence.database.models.casual import Casual
from shiftdrop.infrastructure.persistence.database.models.pool import Pool
from shiftdrop.infrastructure.persistence.database.models.shift import Shift, ShiftStatus
from shiftdrop.infrastructure.persistence.database.models.shift_claim import ShiftClaim
from shiftdrop.infrastructure.persistence.database.models.shift_notification import ShiftNotification
from shiftdrop.infrastructure.persistence.database.session import open_session, unit_of_work
from shiftdrop.infrastructure.persistence.repositories.casual_repository import CasualRepository
from shiftdrop.infrastructure.persistence.repositories.pool_repository import PoolRepository
from shiftdrop.infrastructure.persistence.repositories.shift_notification_repository import (
    ShiftNotificationRepository,
)
from shiftdrop.infrastructure.persistence.repositories.shift_repository import ShiftRepository

logger = logging.getLogger(__name__)


class ShiftService:
    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        clock: Optional[Clock] = None,
        base_url: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.base_url = (base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    # --- Poster ---------------------------------------------------------------

    def post_shift(
        self,
        *,
        pool_id: uuid.UUID,
        starts_at: datetime,
        ends_at: datetime,
        spots_needed: int,
        description: Optional[str] = None,
    ) -> Shift:
        """Crée le shift puis le diffuse à chaque casual du pool (un jeton + un SMS chacun)."""
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            pool = self._pool(s, pool_id)
            shift = Shift.create(
                pool_id=pool.id,
                starts_at=starts_at,
                ends_at=ends_at,
                spots_needed=spots_needed,
                now=now,
                description=description,
            )
            ShiftRepository(s).add(shift)

            casuals = CasualRepository(s).list_for_pool(pool.id)
            self._broadcast(s, shift, pool, casuals, ShiftBroadcast, now)

        logger.info("shift posted id=%s pool=%s spots=%d broadcast=%d", shift.id, pool_id, spots_needed, len(casuals))
        return shift

    # --- Réclamer ---------------------------------------------------------------

    def claim_shift(self, shift_id: uuid.UUID, casual_id: uuid.UUID) -> ShiftClaim:
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            shift = self._shift(s, shift_id)
            casual = self._casual(s, casual_id)
            claim = casual.claim_shift(shift, now)
            s.flush()
            self._confirm(s, shift, casual, claim, now)
        return claim

    def claim_by_token(self, token: str) -> ShiftClaim:
        """Claim via le lien SMS : le jeton désigne à la fois le shift et le casual."""
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            notification = ShiftNotificationRepository(s).get_by_token(token)
            if notification is None:
                raise InvalidClaimToken()
            notification.ensure_usable(now)

            shift = self._shift(s, notification.shift_id)
            casual = self._casual(s, notification.casual_id)
            claim = casual.claim_shift(shift, now)
            notification.mark_as_used(now)
            s.flush()
            self._confirm(s, shift, casual, claim, now)
        return claim

    # --- Libérer ----------------------------------------------------------------

    def release_shift(self, shift_id: uuid.UUID, casual_id: uuid.UUID) -> ShiftClaim:
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            shift = self._shift(s, shift_id)
            casual = self._casual(s, casual_id)
            claim = casual.release_shift(shift, now)
            self._reopen(s, shift, now)
        return claim

    def manager_release(self, shift_id: uuid.UUID, casual_id: uuid.UUID) -> ShiftClaim:
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            shift = self._shift(s, shift_id)
            casual = self._casual(s, casual_id)
            claim = shift.manager_release(casual, now)
            self._reopen(s, shift, now)
        return claim

    # --- Annuler ----------------------------------------------------------------

    def cancel_shift(self, shift_id: uuid.UUID) -> Shift:
        """
        Idempotent. Révoque les jetons encore PENDING et annule les SMS de
        diffusion pas encore partis.
        """
        with unit_of_work(self.session_factory) as s:
            shift = self._shift(s, shift_id)
            if not shift.cancel():
                return shift

            pending = ShiftNotificationRepository(s).list_pending_for_shift(shift.id)
            for notification in pending:
                notification.revoke()
            cancelled = Outbox(s, self.clock).cancel_many(
                n.outbox_message_id for n in pending if n.outbox_message_id is not None
            )

        logger.info("shift cancelled id=%s revoked=%d outbox_cancelled=%d", shift_id, len(pending), cancelled)
        return shift

    # --- Relancer ---------------------------------------------------------------

    def resend_notifications(self, shift_id: uuid.UUID) -> int:
        """
        Relance manuelle de la diffusion aux casuals sans claim actif.

        Un jeton encore PENDING est réutilisé (son SMS précédent, s'il n'est pas
        parti, est annulé) ; sinon un nouveau jeton est créé.
        Retourne le nombre de casuals prévenus.
        """
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            shift = self._shift(s, shift_id)
            if shift.status == ShiftStatus.CANCELLED:
                raise ShiftCancelled("Cannot resend notifications for cancelled shifts")
            if shift.status == ShiftStatus.FILLED:
                raise AlreadyFilled()
            if now >= shift.starts_at:
                raise AlreadyStarted()

            pool = self._pool(s, shift.pool_id)
            taken = shift.claimed_casual_ids()
            available = [c for c in CasualRepository(s).list_for_pool(pool.id) if c.id not in taken]
            pending = {n.casual_id: n for n in ShiftNotificationRepository(s).list_pending_for_shift(shift.id)}
            notified = self._broadcast(s, shift, pool, available, ShiftBroadcast, now, reuse=pending)

        logger.info("shift notifications resent id=%s notified=%d", shift_id, notified)
        return notified

    # --- Lecture ----------------------------------------------------------------

    def list_open_shifts(self, pool_id: uuid.UUID) -> list[Shift]:
        """Shifts encore réclamables du pool (lecture seule, pas de commit)."""
        with open_session(self.session_factory) as s:
            self._pool(s, pool_id)
            return ShiftRepository(s).list_open_for_pool(pool_id, now=self.clock.now())

    # --- Helpers ----------------------------------------------------------------

    def _shift(self, s: Session, shift_id: uuid.UUID) -> Shift:
        shift = ShiftRepository(s).get(shift_id)
        if shift is None:
            raise NotFound(f"Shift not found: {shift_id}")
        return shift

    def _casual(self, s: Session, casual_id: uuid.UUID) -> Casual:
        casual = CasualRepository(s).get(casual_id)
        if casual is None:
            raise NotFound(f"Casual not found: {casual_id}")
        return casual

    def _pool(self, s: Session, pool_id: uuid.UUID) -> Pool:
        pool = PoolRepository(s).get(pool_id)
        if pool is None:
            raise NotFound(f"Pool not found: {pool_id}")
        return pool

    def _claim_url(self, token: str) -> str:
        return f"{self.base_url}/claim/{token}"

    def _broadcast(
        self,
        s: Session,
        shift: Shift,
        pool: Pool,
        casuals: Iterable[Casual],
        payload_cls,
        now: datetime,
        *,
        reuse: Optional[dict[uuid.UUID, ShiftNotification]] = None,
    ) -> int:
        outbox = Outbox(s, self.clock)
        notifications = ShiftNotificationRepository(s)
        description = describe_shift(shift.starts_at, shift.ends_at, pool.name)
        reuse = reuse or {}
        n = 0
        for casual in casuals:
            notification = reuse.get(casual.id)
            if notification is None:
                notification = notifications.add(ShiftNotification.create(shift=shift, casual_id=casual.id, now=now))
            elif notification.outbox_message_id is not None:
                outbox.cancel(notification.outbox_message_id)
            msg = outbox.enqueue_payload(
                payload_cls(
                    recipient=casual.phone_number,
                    notification_id=notification.id,
                    description=description,
                    action_url=self._claim_url(notification.claim_token),
                ),
                now,
            )
            notification.outbox_message_id = msg.id
            n += 1
        return n

    def _reopen(self, s: Session, shift: Shift, now: datetime) -> int:
        """
        Rediffuse un shift libéré aux casuals du pool qui n'y ont pas de claim actif.
        Rien n'est envoyé si le shift n'est plus réclamable (annulé ou commencé).
        """
        if shift.status != ShiftStatus.OPEN or now >= shift.starts_at:
            return 0
        pool = self._pool(s, shift.pool_id)
        taken = shift.claimed_casual_ids()
        available = [c for c in CasualRepository(s).list_for_pool(pool.id) if c.id not in taken]
        return self._broadcast(s, shift, pool, available, ShiftReopened, now)

    def _confirm(self, s: Session, shift: Shift, casual: Casual, claim: ShiftClaim, now: datetime) -> None:
        pool = self._pool(s, shift.pool_id)
        Outbox(s, self.clock).enqueue_payload(
            ClaimConfirmation(
                recipient=casual.phone_number,
                claim_id=claim.id,
                description=describe_shift(shift.starts_at, shift.ends_at, pool.name),
            ),
            now,
        )
