from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/models/__init__.py
~~~~~~~~~~~~~~~~~~~~~~~~
Modèles ORM (register for Alembic / create_all).
"""

from .pool import Pool
from .shift_claim import ClaimStatus, ShiftClaim
from .casual import Casual
from .shift import Shift, ShiftStatus
from .shift_notification import ShiftNotification, TokenStatus
from .outbox_message import OutboxMessage, OutboxStatus

__all__ = [
    "Pool",
    "Casual",
    "Shift",
    "ShiftStatus",
    "ShiftClaim",
    "ClaimStatus",
    "ShiftNotification",
    "TokenStatus",
    "OutboxMessage",
    "OutboxStatus",
]
