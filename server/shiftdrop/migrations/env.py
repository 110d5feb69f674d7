from __future__ import annotations
"""server/shiftdrop/migrations/env.py
~~~~~~~~~~~~~~~~~~~~~~~~
Environnement Alembic : l'URL vient de settings.DATABASE_URL.
"""
from alembic import context
from sqlalchemy import engine_from_config, pool

import shiftdrop.infrastructure.persistence.database.models  # noqa: F401  (enregistre les tables)
from shiftdrop.core.config import settings
from shiftdrop.infrastructure.persistence.database.base import Base

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(url=settings.DATABASE_URL, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
