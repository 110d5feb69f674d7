from __future__ import annotations
"""server/shiftdrop/application/services/pool_service.py
~~~~~~~~~~~~~~~~~~~~~~~~
Pools et invitations (casuals, admins).
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.orm import sessionmaker

from shiftdrop.core.clock import Clock, SystemClock
from shiftdrop.core.config import settings
from shiftdrop.domain.errors import InvalidInput, NotFound
from shiftdrop.infrastructure.messaging.outbox import Outbox
from shiftdrop.infrastructure.messaging.payloads import AdminInviteNotice, InviteNotice
from shiftdrop.infrastructure.persistence.database.models.casual import Casual
from shiftdrop.infrastructure.persistence.database.models.pool import Pool
from shiftdrop.infrastructure.persistence.database.session import unit_of_work
from shiftdrop.infrastructure.persistence.repositories.casual_repository import CasualRepository
from shiftdrop.infrastructure.persistence.repositories.pool_repository import PoolRepository

logger = logging.getLogger(__name__)


class PoolService:
    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        clock: Optional[Clock] = None,
        base_url: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.base_url = (base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def create_pool(self, name: str) -> Pool:
        with unit_of_work(self.session_factory) as s:
            return PoolRepository(s).add(Pool.create(name=name, now=self.clock.now()))

    def add_casual(self, pool_id: uuid.UUID, name: str, phone_number: str) -> Casual:
        """Ajoute un casual au pool et lui envoie l'invitation (même transaction)."""
        now = self.clock.now()
        with unit_of_work(self.session_factory) as s:
            pool = PoolRepository(s).get(pool_id)
            if pool is None:
                raise NotFound(f"Pool not found: {pool_id}")

            casuals = CasualRepository(s)
            casual = Casual.create(pool_id=pool.id, name=name, phone_number=phone_number, now=now)
            if casuals.find_by_phone(pool.id, casual.phone_number) is not None:
                raise InvalidInput("A casual with this phone number already exists in this pool")
            casuals.add(casual)

            Outbox(s, self.clock).enqueue_payload(
                InviteNotice(
                    recipient=casual.phone_number,
                    participant_id=casual.id,
                    participant_name=casual.name,
                    pool_name=pool.name,
                    verify_url=f"{self.base_url}/casual/verify/{casual.id}",
                ),
                now,
            )
        return casual

    def invite_admin(self, pool_id: uuid.UUID, name: str, phone_number: str) -> uuid.UUID:
        """
        Envoie l'invitation d'administration. Seul le SMS est produit ici :
        retourne l'identifiant d'invitation porté par le lien.
        """
        if not (name or "").strip():
            raise InvalidInput("Admin name cannot be empty")
        if not (phone_number or "").strip():
            raise InvalidInput("Phone number is required")

        admin_id = uuid.uuid4()
        with unit_of_work(self.session_factory) as s:
            pool = PoolRepository(s).get(pool_id)
            if pool is None:
                raise NotFound(f"Pool not found: {pool_id}")

            Outbox(s, self.clock).enqueue_payload(
                AdminInviteNotice(
                    recipient=phone_number.strip(),
                    admin_id=admin_id,
                    admin_name=name.strip(),
                    pool_name=pool.name,
                    accept_url=f"{self.base_url}/admin/accept/{admin_id}",
                ),
            )

        logger.info("admin invite queued pool=%s admin_id=%s", pool_id, admin_id)
        return admin_id
