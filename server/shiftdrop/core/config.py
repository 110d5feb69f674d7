from __future__ import annotations
"""server/shiftdrop/core/config.py
~~~~~~~~~~~~~~~~~~~~~~~~
Paramètres (pydantic-settings).
"""

from datetime import timedelta
from typing import Any, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OUTBOX_BACKOFFS = "10,30,60,300,900"


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg://postgres:postgres@db:5432/shiftdrop"
    DB_CONNECT_TIMEOUT: int = 5
    REDIS_URL: str = "redis://redis:6379/0"

    # Outbox : boucle de polling + grille de retry (secondes, CSV ou liste)
    OUTBOX_POLL_INTERVAL_SECONDS: float = 5.0
    OUTBOX_BATCH_SIZE: int = 10
    OUTBOX_BACKOFFS: str = DEFAULT_OUTBOX_BACKOFFS
    OUTBOX_LAST_ERROR_MAX: int = 1000
    OUTBOX_WORKER_EMBEDDED: bool = False

    # Liens envoyés par SMS
    PUBLIC_BASE_URL: str = "http://localhost:5173"

    # Passerelle SMS (webhook HTTP)
    SMS_GATEWAY_URL: Optional[str] = None
    SMS_GATEWAY_TOKEN: Optional[str] = None
    SMS_FROM_NUMBER: Optional[str] = None
    STUB_SMS: bool = True

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


def parse_backoffs(raw: Any) -> list[timedelta]:
    """
    Accepte une liste d'entiers ou une chaîne CSV ("10,30,60") en secondes.
    Une valeur vide retombe sur la grille par défaut.
    """
    if isinstance(raw, (list, tuple)):
        values = [int(x) for x in raw]
    else:
        text = str(raw or "").strip() or DEFAULT_OUTBOX_BACKOFFS
        values = [int(x.strip()) for x in text.split(",") if x.strip()]
    if any(v < 0 for v in values):
        raise ValueError(f"OUTBOX_BACKOFFS must be non-negative: {raw!r}")
    return [timedelta(seconds=v) for v in values]


settings = Settings()
