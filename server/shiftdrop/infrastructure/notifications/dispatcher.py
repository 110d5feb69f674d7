from __future__ import annotations
"""server/shiftdrop/infrastructure/notifications/dispatcher.py
~~~~~~~~~~~~~~~~~~~~~~~~
Contrat de livraison utilisé par le worker outbox.

`send(message_type, payload)` :
- retourne True si le message est livré ;
- lève une exception (DeliveryError ou autre) sinon : le worker
  enregistre le message d'erreur et applique la grille de retry.
"""

from typing import Protocol

from shiftdrop.infrastructure.messaging.payloads import OutboxPayload


class DeliveryError(RuntimeError):
    """Échec de livraison côté canal (passerelle SMS, push...)."""


class NotificationDispatcher(Protocol):
    def send(self, message_type: str, payload: OutboxPayload) -> bool: ...


def build_dispatcher() -> NotificationDispatcher:
    """
    Choisit le dispatcher depuis la configuration :
    - STUB_SMS=True (défaut) ou pas de SMS_GATEWAY_URL -> ConsoleDispatcher
    - sinon -> SmsGatewayDispatcher
    """
    from shiftdrop.core.config import settings
    from shiftdrop.infrastructure.notifications.providers.console_provider import ConsoleDispatcher
    from shiftdrop.infrastructure.notifications.providers.sms_gateway_provider import SmsGatewayDispatcher

    if settings.STUB_SMS or not settings.SMS_GATEWAY_URL:
        return ConsoleDispatcher()
    return SmsGatewayDispatcher(
        gateway_url=settings.SMS_GATEWAY_URL,
        token=settings.SMS_GATEWAY_TOKEN,
        from_number=settings.SMS_FROM_NUMBER,
    )
