# server/tests/unit/api/test_shifts_api.py
"""
Adaptateur HTTP : routes /api/v1 + traduction des erreurs
(400 validation / règle métier, 404 inconnu, 409 conflit de version).
"""
import asyncio
import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from shiftdrop.api.v1.dependencies import get_pool_service, get_shift_service
from shiftdrop.application.services.shift_service import ShiftService
from shiftdrop.domain.errors import ConcurrencyConflict
from shiftdrop.main import app

pytestmark = pytest.mark.unit


@pytest.fixture
def client(pool_service, shift_service):
    app.dependency_overrides[get_pool_service] = lambda: pool_service
    app.dependency_overrides[get_shift_service] = lambda: shift_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _post_shift(client, pool_id, clock, spots=1):
    starts = clock.now() + timedelta(days=1)
    return client.post(
        f"/api/v1/pools/{pool_id}/shifts",
        json={
            "starts_at": starts.isoformat(),
            "ends_at": (starts + timedelta(hours=6)).isoformat(),
            "spots_needed": spots,
            "description": "Bar",
        },
    )


def test_health(client):
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_full_flow(client, clock):
    pool = client.post("/api/v1/pools", json={"name": "Harbour Kitchen"}).json()
    casual = client.post(
        f"/api/v1/pools/{pool['id']}/casuals", json={"name": "Ana", "phone_number": "+61400111222"}
    )
    assert casual.status_code == 201
    casual_id = casual.json()["id"]

    shift = _post_shift(client, pool["id"], clock)
    assert shift.status_code == 201
    shift_id = shift.json()["id"]
    assert shift.json()["status"] == "OPEN"

    r = client.post(f"/api/v1/shifts/{shift_id}/claim", json={"casual_id": casual_id})
    assert r.status_code == 200
    assert r.json()["status"] == "ACTIVE"

    r = client.post(f"/api/v1/shifts/{shift_id}/release", json={"casual_id": casual_id})
    assert r.status_code == 200
    assert r.json()["status"] == "RELEASED_BY_SELF"

    client.post(f"/api/v1/shifts/{shift_id}/claim", json={"casual_id": casual_id})
    r = client.post(f"/api/v1/shifts/{shift_id}/casuals/{casual_id}/release")
    assert r.status_code == 200
    assert r.json()["status"] == "RELEASED_BY_MANAGER"

    r = client.post(f"/api/v1/shifts/{shift_id}/cancel")
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"

    admin = client.post(f"/api/v1/pools/{pool['id']}/admins", json={"name": "Zoe", "phone_number": "+61400999888"})
    assert admin.status_code == 202
    uuid.UUID(admin.json()["admin_id"])


def test_business_rule_maps_to_400(client, pool, casual_factory, shift_factory):
    a, b = casual_factory(), casual_factory()
    shift = shift_factory(spots_needed=1)
    client.post(f"/api/v1/shifts/{shift.id}/claim", json={"casual_id": str(a.id)})

    r = client.post(f"/api/v1/shifts/{shift.id}/claim", json={"casual_id": str(b.id)})
    assert r.status_code == 400
    assert r.json() == {"error": "This shift is already filled", "code": "already_filled"}


def test_invalid_shift_window_maps_to_400(client, pool, clock):
    starts = clock.now() - timedelta(hours=1)
    r = client.post(
        f"/api/v1/pools/{pool.id}/shifts",
        json={"starts_at": starts.isoformat(), "ends_at": (starts + timedelta(hours=2)).isoformat(), "spots_needed": 1},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Shift must start in the future"


def test_malformed_body_maps_to_400(client, pool):
    r = client.post(f"/api/v1/pools/{pool.id}/shifts", json={"spots_needed": "many"})
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_input"


def test_unknown_shift_maps_to_404(client, casual_factory):
    casual = casual_factory()
    r = client.post(f"/api/v1/shifts/{uuid.uuid4()}/claim", json={"casual_id": str(casual.id)})
    assert r.status_code == 404


def test_claim_by_token_route(client, Session, casual_factory, shift_factory):
    from sqlalchemy import select

    from shiftdrop.infrastructure.persistence.database.models import ShiftNotification

    casual_factory()
    shift = shift_factory()
    with Session() as s:
        token = s.scalars(select(ShiftNotification.claim_token)).one()

    assert client.post(f"/api/v1/claim/{token}").status_code == 200
    r = client.post(f"/api/v1/claim/{token}")
    assert r.status_code == 400
    assert r.json()["error"] == "This link has already been used"


def test_concurrency_conflict_maps_to_409(client, monkeypatch, casual_factory, shift_factory):
    casual = casual_factory()
    shift = shift_factory()

    def _conflict(self, shift_id, casual_id):
        raise ConcurrencyConflict()

    monkeypatch.setattr(ShiftService, "claim_shift", _conflict)
    r = client.post(f"/api/v1/shifts/{shift.id}/claim", json={"casual_id": str(casual.id)})
    assert r.status_code == 409
    assert r.json()["code"] == "concurrency_conflict"


def test_list_open_shifts_route(client, pool, clock):
    _post_shift(client, pool.id, clock, spots=2)
    r = client.get(f"/api/v1/pools/{pool.id}/shifts")
    assert r.status_code == 200
    [shift] = r.json()
    assert shift["spots_remaining"] == 2
    assert shift["status"] == "OPEN"

    assert client.get(f"/api/v1/pools/{uuid.uuid4()}/shifts").status_code == 404


def test_resend_route(client, pool, casual_factory, shift_factory):
    casual_factory(), casual_factory()
    shift = shift_factory(spots_needed=1)

    r = client.post(f"/api/v1/shifts/{shift.id}/resend")
    assert r.status_code == 200
    assert r.json() == {"notified_count": 2, "message": "Notification sent to 2 casuals"}

    client.post(f"/api/v1/shifts/{shift.id}/cancel")
    r = client.post(f"/api/v1/shifts/{shift.id}/resend")
    assert r.status_code == 400
    assert r.json() == {"error": "Cannot resend notifications for cancelled shifts", "code": "cancelled"}

    assert client.post(f"/api/v1/shifts/{uuid.uuid4()}/resend").status_code == 404


def test_resend_route_without_casuals(client, shift_factory):
    shift = shift_factory()
    r = client.post(f"/api/v1/shifts/{shift.id}/resend")
    assert r.json() == {"notified_count": 0, "message": "No casuals to notify"}


class _FakeWorker:
    instances: list["_FakeWorker"] = []

    def __init__(self, dispatcher):
        self.started = False
        self.stop_timeout = None
        self.stopped_on_event_loop = None
        _FakeWorker.instances.append(self)

    def start(self):
        self.started = True

    def stop(self, timeout=None):
        self.stop_timeout = timeout
        try:
            asyncio.get_running_loop()
            self.stopped_on_event_loop = True
        except RuntimeError:
            self.stopped_on_event_loop = False


def test_embedded_worker_is_stopped_off_the_event_loop(monkeypatch):
    import shiftdrop.main as main_module

    _FakeWorker.instances.clear()
    monkeypatch.setattr(main_module.settings, "OUTBOX_WORKER_EMBEDDED", True)
    monkeypatch.setattr(main_module, "OutboxWorker", _FakeWorker)
    monkeypatch.setattr(main_module, "build_dispatcher", lambda: None)

    with TestClient(app) as c:
        assert c.get("/api/v1/health").status_code == 200
        [worker] = _FakeWorker.instances
        assert worker.started

    assert worker.stop_timeout is not None
    assert worker.stopped_on_event_loop is False
