import asyncio
import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from http import HTTPStatus

import pytest
from sqlalchemy import update

from src.database import create_db_engine, create_session_factory, init_db
from src.exceptions import ConflictError, ValidationError
from src.models import Country, Ticket, TicketBatch, User
from src.tickets.locking import LockService
from src.tickets.sweeper import LockSweeper, sweep_once
from src.utils import utcnow
from tests.conftest import current_user_id


def naive(value: str) -> datetime:
    """Timestamps read back from SQLite carry no offset; they are UTC"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def expire_lock(db_session, ticket_id):
    db_session.execute(
        update(Ticket)
        .where(Ticket.id == ticket_id)
        .values(locked_until=utcnow() - timedelta(minutes=1))
    )
    db_session.commit()


def test_lock_available_ticket(client, staff_headers, ticket_ids):
    ticket_id = ticket_ids[0]
    before = utcnow().replace(tzinfo=None)

    response = client.post(f"/api/tickets/{ticket_id}/lock", headers=staff_headers)

    assert response.status_code == HTTPStatus.OK
    ticket = response.json()
    assert ticket["status"] == "locked"
    assert ticket["locked_by"] == current_user_id(client, staff_headers)
    locked_until = naive(ticket["locked_until"])
    assert before + timedelta(minutes=14) < locked_until < before + timedelta(minutes=16)


def test_lock_with_custom_duration(client, staff_headers, ticket_ids):
    before = utcnow().replace(tzinfo=None)

    response = client.post(
        f"/api/tickets/{ticket_ids[0]}/lock", json={"duration_minutes": 60}, headers=staff_headers
    )

    locked_until = naive(response.json()["locked_until"])
    assert before + timedelta(minutes=59) < locked_until < before + timedelta(minutes=61)


def test_second_lock_conflicts(client, staff_headers, manager_headers, ticket_ids):
    ticket_id = ticket_ids[0]
    client.post(f"/api/tickets/{ticket_id}/lock", headers=staff_headers)

    response = client.post(f"/api/tickets/{ticket_id}/lock", headers=manager_headers)

    assert response.status_code == HTTPStatus.CONFLICT
    assert response.json() == {"detail": f"Ticket {ticket_id} is locked and cannot be locked"}

    # The first holder keeps the lock
    ticket = client.get(f"/api/tickets/{ticket_id}", headers=staff_headers).json()
    assert ticket["locked_by"] == current_user_id(client, staff_headers)


def test_lock_missing_ticket(client, staff_headers):
    response = client.post("/api/tickets/9999/lock", headers=staff_headers)

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {"detail": "Ticket 9999 not found"}


def test_expired_lock_can_be_taken_over(client, db_session, staff_headers, manager_headers, ticket_ids):
    ticket_id = ticket_ids[0]
    client.post(f"/api/tickets/{ticket_id}/lock", headers=staff_headers)
    expire_lock(db_session, ticket_id)

    response = client.post(f"/api/tickets/{ticket_id}/lock", headers=manager_headers)

    assert response.status_code == HTTPStatus.OK
    assert response.json()["locked_by"] == current_user_id(client, manager_headers)


def test_unlock_own_lock(client, staff_headers, ticket_ids):
    ticket_id = ticket_ids[0]
    client.post(f"/api/tickets/{ticket_id}/lock", headers=staff_headers)

    response = client.post(f"/api/tickets/{ticket_id}/unlock", headers=staff_headers)

    assert response.status_code == HTTPStatus.OK
    ticket = response.json()
    assert ticket["status"] == "available"
    assert ticket["locked_by"] is None
    assert ticket["locked_until"] is None


def test_staff_cannot_release_another_users_lock(client, staff_headers, manager_headers, ticket_ids):
    ticket_id = ticket_ids[0]
    client.post(f"/api/tickets/{ticket_id}/lock", headers=manager_headers)

    response = client.post(f"/api/tickets/{ticket_id}/unlock", headers=staff_headers)

    assert response.status_code == HTTPStatus.CONFLICT
    assert response.json() == {"detail": f"Ticket {ticket_id} is locked by another user"}


def test_manager_can_release_any_lock(client, staff_headers, manager_headers, ticket_ids):
    ticket_id = ticket_ids[0]
    client.post(f"/api/tickets/{ticket_id}/lock", headers=staff_headers)

    response = client.post(f"/api/tickets/{ticket_id}/unlock", headers=manager_headers)

    assert response.status_code == HTTPStatus.OK
    assert response.json()["status"] == "available"


def test_unlock_ticket_that_is_not_locked(client, staff_headers, ticket_ids):
    response = client.post(f"/api/tickets/{ticket_ids[0]}/unlock", headers=staff_headers)

    assert response.status_code == HTTPStatus.CONFLICT
    assert response.json() == {"detail": f"Ticket {ticket_ids[0]} is available, not locked"}


def test_reclaim_expired_locks(client, db_session, staff_headers, manager_headers, ticket_ids):
    first, second = ticket_ids[0], ticket_ids[1]
    client.post(f"/api/tickets/{first}/lock", headers=staff_headers)
    client.post(f"/api/tickets/{second}/lock", json={"duration_minutes": 120}, headers=staff_headers)

    reclaimed = LockService.reclaim_expired_locks(db_session, now=utcnow() + timedelta(minutes=16))

    assert reclaimed == 1
    ticket = client.get(f"/api/tickets/{first}", headers=staff_headers).json()
    assert ticket["status"] == "available"
    assert ticket["locked_by"] is None
    assert client.get(f"/api/tickets/{second}", headers=staff_headers).json()["status"] == "locked"

    # Reclaimed tickets can be locked again
    response = client.post(f"/api/tickets/{first}/lock", headers=manager_headers)
    assert response.status_code == HTTPStatus.OK


def test_reclaim_endpoint_requires_capability(client, staff_headers):
    response = client.post("/api/tickets/locks/reclaim", headers=staff_headers)

    assert response.status_code == HTTPStatus.FORBIDDEN


def test_reclaim_endpoint_runs_sweep(client, db_session, staff_headers, admin_headers, ticket_ids):
    client.post(f"/api/tickets/{ticket_ids[0]}/lock", headers=staff_headers)
    expire_lock(db_session, ticket_ids[0])

    response = client.post("/api/tickets/locks/reclaim", headers=admin_headers)

    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"reclaimed_locks": 1, "expired_bookings": 0}


def test_sweep_once_leaves_live_locks(app, client, staff_headers, ticket_ids):
    client.post(f"/api/tickets/{ticket_ids[0]}/lock", headers=staff_headers)

    assert sweep_once(app.state.session_factory) == {"reclaimed_locks": 0, "expired_bookings": 0}
    assert client.get(f"/api/tickets/{ticket_ids[0]}", headers=staff_headers).json()["status"] == "locked"


def test_background_sweeper_reclaims_expired_locks(app, client, db_session, staff_headers, ticket_ids):
    client.post(f"/api/tickets/{ticket_ids[0]}/lock", headers=staff_headers)
    expire_lock(db_session, ticket_ids[0])

    async def run_sweeper():
        sweeper = LockSweeper(app.state.session_factory, interval_seconds=0.01)
        sweeper.start()
        await asyncio.sleep(0.2)
        await sweeper.stop()

    asyncio.run(run_sweeper())

    assert client.get(f"/api/tickets/{ticket_ids[0]}", headers=staff_headers).json()["status"] == "available"


def test_patch_status_locks_and_unlocks(client, staff_headers, ticket_ids):
    ticket_id = ticket_ids[0]

    response = client.patch(f"/api/tickets/{ticket_id}/status", json={"status": "locked"}, headers=staff_headers)
    assert response.json()["status"] == "locked"

    response = client.patch(f"/api/tickets/{ticket_id}/status", json={"status": "available"}, headers=staff_headers)
    assert response.json()["status"] == "available"


def test_patch_status_cannot_book_or_sell(client, staff_headers, ticket_ids):
    for target in ("booked", "sold"):
        response = client.patch(
            f"/api/tickets/{ticket_ids[0]}/status", json={"status": target}, headers=staff_headers
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST


def test_cancel_ticket_requires_capability(client, staff_headers, admin_headers, ticket_ids):
    ticket_id = ticket_ids[0]

    response = client.patch(f"/api/tickets/{ticket_id}/status", json={"status": "cancelled"}, headers=staff_headers)
    assert response.status_code == HTTPStatus.FORBIDDEN

    response = client.patch(f"/api/tickets/{ticket_id}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert response.status_code == HTTPStatus.OK
    assert response.json()["status"] == "cancelled"

    # Cancelled is terminal for locking
    response = client.post(f"/api/tickets/{ticket_id}/lock", headers=staff_headers)
    assert response.status_code == HTTPStatus.CONFLICT

    response = client.patch(f"/api/tickets/{ticket_id}/status", json={"status": "cancelled"}, headers=admin_headers)
    assert response.status_code == HTTPStatus.CONFLICT


def test_available_tickets_by_country_in_flight_order(client, staff_headers, issue_batch):
    later = issue_batch(quantity=1, flight_date="2030-03-01")
    earlier = issue_batch(quantity=2, flight_date="2030-02-01")

    response = client.get("/api/tickets/country/sa", headers=staff_headers)

    assert response.status_code == HTTPStatus.OK
    batch_ids = [ticket["batch"]["id"] for ticket in response.json()["tickets"]]
    assert batch_ids == [earlier["id"], earlier["id"], later["id"]]
    assert response.json()["tickets"][0]["batch"]["country_code"] == "SA"


def test_list_tickets_by_status(client, staff_headers, ticket_ids):
    client.post(f"/api/tickets/{ticket_ids[0]}/lock", headers=staff_headers)

    locked = client.get("/api/tickets/", params={"status": "locked"}, headers=staff_headers).json()
    available = client.get("/api/tickets/", params={"status": "available"}, headers=staff_headers).json()
    everything = client.get("/api/tickets/all", headers=staff_headers).json()

    assert [ticket["id"] for ticket in locked["tickets"]] == [ticket_ids[0]]
    assert available["total"] == 4
    assert everything["total"] == 5


@pytest.mark.parametrize("duration", [0, -5, 1441])
def test_lock_duration_out_of_range(db_session, ticket_ids, duration):
    staff = db_session.query(User).filter(User.username == "staff").one()

    with pytest.raises(ValidationError):
        LockService.lock_ticket(db_session, ticket_ids[0], staff, duration)

    assert db_session.get(Ticket, ticket_ids[0], populate_existing=True).status == "available"


def test_concurrent_locks_have_one_winner(tmp_path):
    # Separate connections need a file-backed database
    engine = create_db_engine(f"sqlite:///{tmp_path / 'locks.db'}")
    init_db(engine)
    session_factory = create_session_factory(engine)

    with session_factory() as db:
        first = User(username="first", password_hash="x", name="First", role="staff")
        second = User(username="second", password_hash="x", name="Second", role="manager")
        country = Country(code="SA", name="Saudi Arabia")
        db.add_all([first, second, country])
        db.flush()
        batch = TicketBatch(
            country_id=country.id,
            flight_date=date(2030, 1, 15),
            buying_price=Decimal("100.00"),
            quantity=1,
            created_by=first.id,
        )
        db.add(batch)
        db.flush()
        ticket = Ticket(batch_id=batch.id, ticket_number="SA-RACE-001", status="available")
        db.add(ticket)
        db.commit()
        user_ids = [first.id, second.id]
        ticket_id = ticket.id

    barrier = threading.Barrier(2)
    results = []

    def lock(user_id):
        with session_factory() as db:
            user = db.get(User, user_id)
            barrier.wait()
            try:
                LockService.lock_ticket(db, ticket_id, user)
                results.append("ok")
            except ConflictError:
                results.append("conflict")

    threads = [threading.Thread(target=lock, args=(user_id,)) for user_id in user_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    try:
        assert sorted(results) == ["conflict", "ok"]
        with session_factory() as db:
            assert db.get(Ticket, ticket_id).locked_by in user_ids
    finally:
        engine.dispose()
