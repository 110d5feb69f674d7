# server/shiftdrop/infrastructure/persistence/repositories/outbox_repository.py
from __future__ import annotations
"""
Repository Outbox : opérations bas niveau sur outbox_messages.

Points clés :
- Le repo **reçoit** la Session de l'appelant et **ne commit jamais** :
  l'insertion d'un message partage la transaction du changement métier
  qui l'a provoqué (tout ou rien).
- `fetch_ready(now, limit)` : PENDING et (next_retry_at NULL ou <= now),
  triés par created_at croissant (plus ancien d'abord).
- Conversions UUID robustes pour accepter str/uuid.UUID.
"""
import uuid
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from shiftdrop.infrastructure.persistence.database.models.outbox_message import (
    OutboxMessage,
    OutboxStatus,
)


def _coerce_uuid(v: str | uuid.UUID | None) -> uuid.UUID | None:
    """Convertit str → UUID (ou passe-through) ; None si invalide."""
    if v is None:
        return None
    if isinstance(v, uuid.UUID):
        return v
    try:
        return uuid.UUID(str(v))
    except ValueError:
        return None


class OutboxRepository:
    def __init__(self, session: Session):
        self.s = session

    # --- Create ---------------------------------------------------------------

    def insert(self, *, message_type: str, payload: str, now: datetime) -> OutboxMessage:
        """
        Ajoute un message PENDING dans la session courante (flush, pas de commit).
        Une erreur ici remonte et fait échouer la transaction appelante.
        """
        msg = OutboxMessage.create(message_type=message_type, payload=payload, now=now)
        self.s.add(msg)
        self.s.flush()
        return msg

    # --- Read ----------------------------------------------------------------

    def get(self, message_id: str | uuid.UUID) -> Optional[OutboxMessage]:
        mid = _coerce_uuid(message_id)
        if mid is None:
            return None
        return self.s.get(OutboxMessage, mid)

    def fetch_ready(self, *, now: datetime, limit: int) -> list[OutboxMessage]:
        stmt = (
            select(OutboxMessage)
            .where(
                OutboxMessage.status == OutboxStatus.PENDING,
                or_(
                    OutboxMessage.next_retry_at.is_(None),
                    OutboxMessage.next_retry_at <= now,
                ),
            )
            .order_by(OutboxMessage.created_at.asc(), OutboxMessage.id.asc())
            .limit(limit)
        )
        return list(self.s.scalars(stmt))

    def list_by_ids(self, ids: Iterable[str | uuid.UUID]) -> list[OutboxMessage]:
        wanted = [u for u in (_coerce_uuid(i) for i in ids) if u is not None]
        if not wanted:
            return []
        return list(self.s.scalars(select(OutboxMessage).where(OutboxMessage.id.in_(wanted))))

    # --- Update ---------------------------------------------------------------

    def cancel(self, message_id: str | uuid.UUID) -> bool:
        """PENDING -> CANCELLED ; no-op (False) si inconnu ou déjà SENT/FAILED/CANCELLED."""
        msg = self.get(message_id)
        if msg is None:
            return False
        changed = msg.cancel()
        if changed:
            self.s.flush()
        return changed
