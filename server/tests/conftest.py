# server/tests/conftest.py
"""
Conftest *global* pour toute la suite de tests.

Points clés :
- ENV sûres posées AVANT tout import shiftdrop.* (Settings() est instancié à l'import) :
  SQLite in-memory, SMS stub, aucun appel externe.
- Pour les tests @unit uniquement :
  - Monte une DB SQLite in-memory partagée (StaticPool) + Base.metadata.create_all.
  - Branche la factory de sessions globale sur cette DB (session.configure).
  - Purge toutes les tables après chaque test.
  - Active Celery en mode "eager" (exécution in-process).
- Fixtures communes : horloge figée, dispatcher factice qui enregistre les envois,
  fabriques pool / casual / shift.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("STUB_SMS", "1")
os.environ.setdefault("OUTBOX_WORKER_EMBEDDED", "0")
os.environ.setdefault("PUBLIC_BASE_URL", "https://shiftdrop.test")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from shiftdrop.core.clock import FrozenClock
from shiftdrop.infrastructure.persistence.database import models  # noqa: F401  (enregistre les tables)
from shiftdrop.infrastructure.persistence.database import session as db_session
from shiftdrop.infrastructure.persistence.database.base import Base

T0 = datetime(2030, 1, 7, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Helpers
# ============================================================================
def _is_unit(request: pytest.FixtureRequest) -> bool:
    """True si le test courant est marqué @pytest.mark.unit."""
    return request.node.get_closest_marker("unit") is not None


def _enable_sqlite_fks(engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.execute("PRAGMA foreign_keys=ON")


# ============================================================================
# UNIT-ONLY: DB SQLite in-memory partagée + Base.metadata.create_all
# ============================================================================
@pytest.fixture(scope="session")
def _sqlite_engine_unit():
    """
    Engine in-memory **partagé** entre connexions (StaticPool + check_same_thread=False)
    + activation des contraintes FK sur chaque connexion.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_sqlite_fks(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="session")
def _Session_unit(_sqlite_engine_unit):
    """sessionmaker lié au moteur SQLite in-memory (mêmes options qu'en prod)."""
    return db_session.build_sessionmaker(_sqlite_engine_unit)


@pytest.fixture
def Session(request, _Session_unit):
    """
    Fournit un sessionmaker à utiliser comme `with Session() as s:` pour les tests unitaires.
    Sera *skippé* s'il est injecté dans un test non marqué @unit (sécurité d'usage).
    """
    if not _is_unit(request):
        pytest.skip("Session fixture is only available for unit tests")
    return _Session_unit


@pytest.fixture(autouse=True)
def _use_unit_db(request, _Session_unit):
    """
    En unit : la factory globale (unit_of_work / open_session sans argument)
    pointe sur la DB in-memory ; purge de toutes les tables après le test.
    ⚠️ Générateur : doit 'yield' aussi hors unit.
    """
    if not _is_unit(request):
        yield
        return

    db_session.configure(_Session_unit)
    try:
        yield
    finally:
        db_session.configure(None)
        with _Session_unit() as s:
            for table in reversed(Base.metadata.sorted_tables):
                s.execute(table.delete())
            s.commit()


# ============================================================================
# UNIT-ONLY: Celery en mode "eager" (tâches exécutées in-process)
# ============================================================================
@pytest.fixture(autouse=True)
def celery_eager(request):
    """
    Active le mode 'eager' de Celery en unit.
    ⚠️ Comme c'est un fixture générateur, il DOIT toujours 'yield', même hors unit.
    """
    if not _is_unit(request):
        yield
        return

    from shiftdrop.workers.celery_app import celery

    prev_always = celery.conf.task_always_eager
    prev_propag = celery.conf.task_eager_propagates
    celery.conf.task_always_eager = True
    celery.conf.task_eager_propagates = True
    try:
        yield
    finally:
        celery.conf.task_always_eager = prev_always
        celery.conf.task_eager_propagates = prev_propag


# ============================================================================
# Horloge + dispatcher factice
# ============================================================================
@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


class RecordingDispatcher:
    """
    Enregistre chaque envoi. `fail_with` (exception) fait échouer tous les envois ;
    `fail_types` limite l'échec à certains message_type.
    """

    def __init__(self):
        self.sent: list[tuple[str, object]] = []
        self.fail_with: Exception | None = None
        self.fail_types: set[str] = set()

    def send(self, message_type, payload) -> bool:
        if self.fail_with is not None and (not self.fail_types or message_type in self.fail_types):
            raise self.fail_with
        self.sent.append((message_type, payload))
        return True

    def types(self) -> list[str]:
        return [t for t, _ in self.sent]


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


# ============================================================================
# Fabriques (passent par les services : une transaction chacune)
# ============================================================================
@pytest.fixture
def pool_service(Session, clock):
    from shiftdrop.application.services.pool_service import PoolService

    return PoolService(Session, clock, base_url="https://shiftdrop.test")


@pytest.fixture
def shift_service(Session, clock):
    from shiftdrop.application.services.shift_service import ShiftService

    return ShiftService(Session, clock, base_url="https://shiftdrop.test")


@pytest.fixture
def pool(pool_service):
    return pool_service.create_pool("Harbour Kitchen")


@pytest.fixture
def casual_factory(pool_service, pool):
    counter = {"n": 0}

    def _factory(name: str | None = None, phone_number: str | None = None, pool_id=None):
        counter["n"] += 1
        n = counter["n"]
        return pool_service.add_casual(
            pool_id or pool.id,
            name or f"Casual {n}",
            phone_number or f"+614000000{n:02d}",
        )

    return _factory


@pytest.fixture
def shift_factory(shift_service, pool, clock):
    def _factory(spots_needed: int = 1, starts_in: timedelta = timedelta(days=1), hours: int = 8, pool_id=None):
        starts_at = clock.now() + starts_in
        return shift_service.post_shift(
            pool_id=pool_id or pool.id,
            starts_at=starts_at,
            ends_at=starts_at + timedelta(hours=hours),
            spots_needed=spots_needed,
            description="Kitchen hand",
        )

    return _factory
