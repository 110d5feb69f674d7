from __future__ import annotations
"""server/shiftdrop/infrastructure/persistence/database/types.py
~~~~~~~~~~~~~~~~~~~~~~~~
Types portables Postgres / SQLite.
"""

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa

from shiftdrop.core.clock import as_utc


class UUIDPortable(sa.types.TypeDecorator):
    """UUID natif sur Postgres, VARCHAR(36) ailleurs."""
    impl = sa.String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID as PGUUID
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(sa.String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        u = value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return u if dialect.name == "postgresql" else str(u)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


class TstzPortable(sa.types.TypeDecorator):
    """
    TIMESTAMPTZ sur Postgres, DateTime() ailleurs.
    Les valeurs sortent toujours en UTC timezone-aware (SQLite rend des datetimes naïfs).
    """
    impl = sa.DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(sa.TIMESTAMP(timezone=True))
        return dialect.type_descriptor(sa.DateTime())

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        value = as_utc(value)
        if dialect.name == "postgresql":
            return value
        # SQLite : stockage naïf en UTC (comparaisons textuelles cohérentes)
        return value.replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
