# server/shiftdrop/infrastructure/messaging/outbox.py
from __future__ import annotations
"""
Service Outbox : API haut-niveau au-dessus du repository
- enqueue() / enqueue_payload() : création d'un message dans la transaction courante
- fetch_ready() : sélection des messages "prêts" à livrer
- cancel() / cancel_many() : annulation d'obligations devenues sans objet

Le service ne commit jamais : c'est l'unité de travail appelante qui décide.
"""

import uuid
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from shiftdrop.core.clock import Clock, SystemClock
from shiftdrop.infrastructure.messaging.payloads import OutboxPayload, serialize
from shiftdrop.infrastructure.persistence.database.models.outbox_message import OutboxMessage
from shiftdrop.infrastructure.persistence.repositories.outbox_repository import OutboxRepository


class Outbox:
    def __init__(self, session: Session, clock: Clock | None = None):
        self.repo = OutboxRepository(session)
        self.clock = clock or SystemClock()

    # --- Écriture -------------------------------------------------------------

    def enqueue(self, message_type: str, payload: str, now: datetime | None = None) -> OutboxMessage:
        """Écrit un message PENDING (payload déjà sérialisé, opaque)."""
        return self.repo.insert(
            message_type=message_type,
            payload=payload,
            now=now or self.clock.now(),
        )

    def enqueue_payload(self, payload: OutboxPayload, now: datetime | None = None) -> OutboxMessage:
        """Variante typée : le message_type est dérivé de la classe du payload."""
        return self.enqueue(payload.message_type(), serialize(payload), now)

    # --- Lecture --------------------------------------------------------------

    def fetch_ready(self, now: datetime | None = None, limit: int = 10) -> list[OutboxMessage]:
        return self.repo.fetch_ready(now=now or self.clock.now(), limit=limit)

    def get(self, message_id: str | uuid.UUID) -> OutboxMessage | None:
        return self.repo.get(message_id)

    # --- Annulation -----------------------------------------------------------

    def cancel(self, message_id: str | uuid.UUID) -> bool:
        return self.repo.cancel(message_id)

    def cancel_many(self, message_ids: Iterable[str | uuid.UUID]) -> int:
        """Annule les messages encore PENDING parmi `message_ids`. Retourne le nombre annulé."""
        n = 0
        for msg in self.repo.list_by_ids(message_ids):
            if msg.cancel():
                n += 1
        return n
