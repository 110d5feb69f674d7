from __future__ import annotations
"""server/shiftdrop/infrastructure/notifications/providers/sms_gateway_provider.py
~~~~~~~~~~~~~~~~~~~~~~~~
SmsGatewayDispatcher : envoi des SMS via une passerelle HTTP (webhook JSON).

Contrat passerelle : POST {"to", "from", "body"} ; toute réponse 2xx = livré.
Les erreurs (réseau, HTTP non-2xx) remontent au worker qui applique la grille de retry.
"""

from typing import Optional

import requests

from shiftdrop.infrastructure.messaging.payloads import OutboxPayload
from shiftdrop.infrastructure.notifications.dispatcher import DeliveryError
from shiftdrop.infrastructure.notifications.templates.loader import render_sms


class SmsGatewayDispatcher:
    def __init__(
        self,
        gateway_url: Optional[str],
        token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout: float = 5,
    ):
        if not gateway_url:
            raise ValueError("SMS gateway URL must be provided")
        self.gateway_url = gateway_url
        self.token = token
        self.from_number = from_number
        self.timeout = timeout

    def send(self, message_type: str, payload: OutboxPayload) -> bool:
        body = {
            "to": payload.recipient,
            "body": render_sms(message_type, payload),
        }
        if self.from_number:
            body["from"] = self.from_number

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            r = requests.post(self.gateway_url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DeliveryError(f"SMS gateway unreachable: {exc}") from exc

        if not 200 <= r.status_code < 300:
            raise DeliveryError(f"SMS gateway returned HTTP {r.status_code}: {r.text[:200]}")
        return True
