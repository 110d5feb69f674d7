# server/tests/integration/conftest.py
"""
Bases SQLite *fichier* pour les tests multi-sessions.

- `file_db`       : transactions différées (comportement par défaut de pysqlite).
                    Les lectures ne prennent pas de verrou : deux sessions peuvent
                    charger la même version d'un shift, la seconde à écrire perd.
- `immediate_db`  : BEGIN IMMEDIATE, pour les tests multi-threads (les écrivains
                    attendent le verrou au lieu de lever "database is locked").
- `pg_db`         : PostgreSQL réel si INTEGRATION_DATABASE_URL est défini, sinon skip.
"""
import os

import pytest
from sqlalchemy import create_engine, event

from shiftdrop.infrastructure.persistence.database import models  # noqa: F401
from shiftdrop.infrastructure.persistence.database.base import Base
from shiftdrop.infrastructure.persistence.database.session import build_engine, build_sessionmaker


def _sqlite_engine(path, *, immediate: bool):
    engine = create_engine(
        f"sqlite+pysqlite:///{path}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.execute("PRAGMA foreign_keys=ON")
        if immediate:
            # on pilote BEGIN nous-mêmes
            dbapi_connection.isolation_level = None

    if immediate:
        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_db(tmp_path):
    engine = _sqlite_engine(tmp_path / "shiftdrop.db", immediate=False)
    try:
        yield build_sessionmaker(engine)
    finally:
        engine.dispose()


@pytest.fixture
def immediate_db(tmp_path):
    engine = _sqlite_engine(tmp_path / "shiftdrop-immediate.db", immediate=True)
    try:
        yield build_sessionmaker(engine)
    finally:
        engine.dispose()


@pytest.fixture
def pg_db():
    url = os.getenv("INTEGRATION_DATABASE_URL")
    if not url:
        pytest.skip("INTEGRATION_DATABASE_URL not set")
    engine = build_engine(url)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    try:
        yield build_sessionmaker(engine)
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()
