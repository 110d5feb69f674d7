# server/shiftdrop/infrastructure/messaging/payloads.py
from __future__ import annotations
"""
Formes de payload outbox (modèles Pydantic) consommées par le worker.

Le `message_type` stocké en base est le nom de la classe : le worker résout
ce tag via PAYLOAD_TYPES puis valide le JSON avec le modèle correspondant.
"""
import uuid
from typing import Type

from pydantic import BaseModel, ConfigDict


class OutboxPayload(BaseModel):
    """Base commune : chaque payload porte un destinataire opaque."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    recipient: str

    @classmethod
    def message_type(cls) -> str:
        return cls.__name__


class ShiftBroadcast(OutboxPayload):
    notification_id: uuid.UUID
    description: str
    action_url: str


class InviteNotice(OutboxPayload):
    participant_id: uuid.UUID
    participant_name: str
    pool_name: str
    verify_url: str


class AdminInviteNotice(OutboxPayload):
    admin_id: uuid.UUID
    admin_name: str
    pool_name: str
    accept_url: str


class ClaimConfirmation(OutboxPayload):
    claim_id: uuid.UUID
    description: str


class ShiftReopened(OutboxPayload):
    notification_id: uuid.UUID
    description: str
    action_url: str


PAYLOAD_TYPES: dict[str, Type[OutboxPayload]] = {
    cls.message_type(): cls
    for cls in (ShiftBroadcast, InviteNotice, AdminInviteNotice, ClaimConfirmation, ShiftReopened)
}


class UnknownMessageType(LookupError):
    def __init__(self, message_type: str):
        super().__init__(f"Unknown message type: {message_type}")
        self.message_type = message_type


def serialize(payload: OutboxPayload) -> str:
    return payload.model_dump_json()


def deserialize(message_type: str, raw: str) -> OutboxPayload:
    """Résout le tag puis valide le JSON. Tag inconnu -> UnknownMessageType."""
    cls = PAYLOAD_TYPES.get(message_type)
    if cls is None:
        raise UnknownMessageType(message_type)
    return cls.model_validate_json(raw)
