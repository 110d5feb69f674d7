# server/shiftdrop/infrastructure/persistence/database/session.py
from __future__ import annotations

"""SQLAlchemy engine/session setup + unit of work."""

import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from shiftdrop.core.config import settings
from shiftdrop.domain.errors import ConcurrencyConflict

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def build_engine(database_url: str) -> Engine:
    """
    Engine SQLAlchemy avec connect_args selon le dialecte.
    - PostgreSQL: connect_timeout
    - SQLite: in-memory partagée entre connexions (StaticPool), check_same_thread désactivé
    """
    url = make_url(database_url)
    backend = url.get_backend_name()  # e.g. "postgresql", "sqlite"
    kwargs: dict = dict(future=True, pool_pre_ping=True)
    connect_args: dict = {}

    if backend.startswith("postgresql") or backend == "postgres":
        connect_args["connect_timeout"] = int(os.getenv("DB_CONNECT_TIMEOUT", str(settings.DB_CONNECT_TIMEOUT)))
    elif backend.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        db_name = (url.database or "").strip()
        if db_name in ("", ":memory:"):
            kwargs["poolclass"] = StaticPool

    return create_engine(database_url, connect_args=connect_args, **kwargs)


def build_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        future=True,
        autoflush=True,
        expire_on_commit=False,
    )


def init_engine() -> Engine:
    """Singleton Engine construit depuis settings.DATABASE_URL."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.DATABASE_URL)
    return _engine


def init_sessionmaker() -> sessionmaker:
    """Create (once) and return the SessionLocal factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = build_sessionmaker(init_engine())
    return _SessionLocal


def configure(session_factory: sessionmaker | None) -> None:
    """Remplace (ou réinitialise avec None) la factory globale. Utilisé par les tests."""
    global _SessionLocal, _engine
    _SessionLocal = session_factory
    if session_factory is None:
        _engine = None


@contextmanager
def open_session(factory: sessionmaker | None = None) -> Iterator[Session]:
    """Context manager : `with open_session() as s:` (pas de commit implicite)."""
    s = (factory or init_sessionmaker())()
    try:
        yield s
    finally:
        s.close()


@contextmanager
def unit_of_work(factory: sessionmaker | None = None) -> Iterator[Session]:
    """
    Une transaction = une requête métier.
    - commit à la sortie normale, rollback sur exception
    - un conflit de version (StaleDataError) au flush/commit devient ConcurrencyConflict
      (pas de retry automatique ici : c'est à l'appelant de décider)
    """
    s = (factory or init_sessionmaker())()
    try:
        yield s
        s.commit()
    except StaleDataError as exc:
        s.rollback()
        raise ConcurrencyConflict() from exc
    except BaseException:
        s.rollback()
        raise
    finally:
        s.close()


