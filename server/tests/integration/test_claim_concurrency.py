# server/tests/integration/test_claim_concurrency.py
"""
Concurrence sur les claims (verrouillage optimiste via Shift.version) :
- deux sessions chargent la même version : la seconde à commiter reçoit ConcurrencyConflict
  et rien de sa transaction (claim, SMS) n'est persisté ;
- N casuals en parallèle sur K places : exactement K réussissent, le shift finit FILLED.
"""
import threading
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from shiftdrop.application.services.pool_service import PoolService
from shiftdrop.application.services.shift_service import ShiftService
from shiftdrop.domain.errors import AlreadyFilled, ConcurrencyConflict, NoSpotsRemaining
from shiftdrop.infrastructure.messaging.outbox import Outbox
from shiftdrop.infrastructure.messaging.payloads import ClaimConfirmation
from shiftdrop.infrastructure.persistence.database.models import (
    Casual,
    OutboxMessage,
    Shift,
    ShiftClaim,
    ShiftStatus,
)
from shiftdrop.infrastructure.persistence.database.session import unit_of_work

pytestmark = pytest.mark.integration


def _setup(factory, clock, *, casuals: int, spots: int):
    pools = PoolService(factory, clock, base_url="https://shiftdrop.test")
    shifts = ShiftService(factory, clock, base_url="https://shiftdrop.test")
    pool = pools.create_pool("Harbour Kitchen")
    people = [pools.add_casual(pool.id, f"Casual {i}", f"+614000000{i:02d}") for i in range(casuals)]
    starts = clock.now() + timedelta(days=1)
    shift = shifts.post_shift(
        pool_id=pool.id, starts_at=starts, ends_at=starts + timedelta(hours=8), spots_needed=spots
    )
    return shifts, shift, people


def _count(factory, model, *where) -> int:
    with factory() as s:
        return s.scalar(select(func.count()).select_from(model).where(*where))


def test_second_writer_on_same_version_gets_conflict(file_db, clock):
    _, shift, (a, b) = _setup(file_db, clock, casuals=2, spots=2)
    now = clock.now()

    with pytest.raises(ConcurrencyConflict):
        with unit_of_work(file_db) as s_b:
            shift_b = s_b.get(Shift, shift.id)
            casual_b = s_b.get(Casual, b.id)
            assert shift_b.version == 1

            # une autre transaction passe entre la lecture et l'écriture
            with unit_of_work(file_db) as s_a:
                s_a.get(Casual, a.id).claim_shift(s_a.get(Shift, shift.id), now)

            casual_b.claim_shift(shift_b, now)
            Outbox(s_b).enqueue_payload(
                ClaimConfirmation(recipient=casual_b.phone_number, claim_id=casual_b.claims[-1].id, description="x"),
                now,
            )

    with file_db() as s:
        stored = s.get(Shift, shift.id)
        assert stored.version == 2
        assert stored.spots_remaining == 1
        assert [c.casual_id for c in stored.active_claims()] == [a.id]
    assert _count(file_db, OutboxMessage, OutboxMessage.message_type == "ClaimConfirmation") == 0


def test_loser_can_retry_on_fresh_state(file_db, clock):
    shifts, shift, (a, b) = _setup(file_db, clock, casuals=2, spots=2)
    now = clock.now()

    with pytest.raises(ConcurrencyConflict):
        with unit_of_work(file_db) as s_b:
            shift_b = s_b.get(Shift, shift.id)
            casual_b = s_b.get(Casual, b.id)
            shifts.claim_shift(shift.id, a.id)
            casual_b.claim_shift(shift_b, now)

    shifts.claim_shift(shift.id, b.id)

    with file_db() as s:
        stored = s.get(Shift, shift.id)
        assert stored.status == ShiftStatus.FILLED
        assert stored.version == 3


def _race(factory, clock, *, casuals: int, spots: int):
    shifts, shift, people = _setup(factory, clock, casuals=casuals, spots=spots)
    barrier = threading.Barrier(len(people))
    outcomes: dict[str, int] = {"ok": 0, "rejected": 0, "conflicts": 0}
    errors: list[BaseException] = []
    lock = threading.Lock()

    def _claim(casual_id):
        barrier.wait()
        try:
            for _ in range(50):
                try:
                    shifts.claim_shift(shift.id, casual_id)
                    key = "ok"
                except ConcurrencyConflict:
                    with lock:
                        outcomes["conflicts"] += 1
                    continue
                except (AlreadyFilled, NoSpotsRemaining):
                    key = "rejected"
                with lock:
                    outcomes[key] += 1
                return
        except BaseException as exc:  # remonté au thread principal
            errors.append(exc)

    threads = [threading.Thread(target=_claim, args=(p.id,)) for p in people]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    return shift, outcomes


@pytest.mark.parametrize("casuals,spots", [(8, 3), (6, 1)])
def test_n_concurrent_claims_on_k_spots(immediate_db, clock, casuals, spots):
    shift, outcomes = _race(immediate_db, clock, casuals=casuals, spots=spots)

    assert outcomes["ok"] == spots
    assert outcomes["rejected"] == casuals - spots
    with immediate_db() as s:
        stored = s.get(Shift, shift.id)
        assert stored.status == ShiftStatus.FILLED
        assert stored.spots_remaining == 0
        assert len(stored.active_claims()) == spots
    assert _count(immediate_db, ShiftClaim, ShiftClaim.shift_id == shift.id) == spots
    assert _count(immediate_db, OutboxMessage, OutboxMessage.message_type == "ClaimConfirmation") == spots


def test_n_concurrent_claims_on_postgres(pg_db, clock):
    shift, outcomes = _race(pg_db, clock, casuals=10, spots=3)

    assert outcomes["ok"] == 3
    assert outcomes["rejected"] == 7
    with pg_db() as s:
        stored = s.get(Shift, shift.id)
        assert stored.status == ShiftStatus.FILLED
        assert len(stored.active_claims()) == 3
