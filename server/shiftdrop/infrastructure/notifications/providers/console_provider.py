from __future__ import annotations
"""server/shiftdrop/infrastructure/notifications/providers/console_provider.py
~~~~~~~~~~~~~~~~~~~~~~~~
ConsoleDispatcher : SMS "stub" écrits dans les logs (dev, démo, tests).
"""

import logging

from shiftdrop.infrastructure.messaging.payloads import OutboxPayload
from shiftdrop.infrastructure.notifications.templates.loader import render_sms

logger = logging.getLogger(__name__)


def redact_phone(number: str) -> str:
    """Ne garde que les 4 derniers chiffres : '+61400111234' -> '***1234'."""
    digits = number.strip()
    if len(digits) <= 4:
        return "***"
    return "***" + digits[-4:]


class ConsoleDispatcher:
    def send(self, message_type: str, payload: OutboxPayload) -> bool:
        body = render_sms(message_type, payload)
        logger.info("[SMS stub] to=%s type=%s body=%r", redact_phone(payload.recipient), message_type, body)
        return True
