# server/shiftdrop/infrastructure/notifications/templates/loader.py
from __future__ import annotations
"""
Chargement et rendu des textes SMS embarqués dans le paquet.

Un fichier par type de message : `<MessageType>.txt`, rendu avec
`str.format(**payload)`.
"""
from importlib.resources import files

from shiftdrop.infrastructure.messaging.payloads import OutboxPayload, UnknownMessageType


def load_template(name: str) -> str:
    """
    Lit un fichier template situé dans le même package.
    Ex: load_template("ShiftBroadcast.txt")
    """
    return files(__package__).joinpath(name).read_text(encoding="utf-8")


def render_sms(message_type: str, payload: OutboxPayload) -> str:
    try:
        template = load_template(f"{message_type}.txt")
    except FileNotFoundError as exc:
        raise UnknownMessageType(message_type) from exc
    return template.format(**payload.model_dump(mode="json")).strip()
