from decimal import Decimal
from http import HTTPStatus

import pytest
from sqlalchemy.exc import IntegrityError

from src.auth.service import UserService
from src.batches.schemas import TicketBatchCreate
from src.batches.service import BatchService, make_ticket_number, selling_price_for
from src.models import Ticket, TicketBatch


def test_selling_price_defaults_to_ten_percent_markup():
    assert selling_price_for(Decimal("100")) == Decimal("110.00")
    assert selling_price_for(Decimal("9.99")) == Decimal("10.99")


def test_selling_price_with_markup_override():
    assert selling_price_for(Decimal("200.00"), Decimal("25")) == Decimal("250.00")
    assert selling_price_for(Decimal("80.00"), Decimal("0")) == Decimal("80.00")


def test_ticket_numbers_are_unique_per_batch_and_sequence():
    assert make_ticket_number("SA", 7, 3) == "SA7-0003"
    assert make_ticket_number("SA", 7, 3) != make_ticket_number("SA", 8, 3)


def test_issue_batch_creates_available_tickets(client, admin_headers, issue_batch):
    batch = issue_batch(quantity=5, buying_price="100.00")

    assert Decimal(batch["buying_price"]) == Decimal("100.00")
    assert batch["quantity"] == 5

    response = client.get("/api/tickets/", params={"batch_id": batch["id"]}, headers=admin_headers)

    assert response.status_code == HTTPStatus.OK
    tickets = response.json()["tickets"]
    assert response.json()["total"] == 5
    assert {ticket["status"] for ticket in tickets} == {"available"}
    assert {Decimal(ticket["selling_price"]) for ticket in tickets} == {Decimal("110.00")}
    assert sorted(ticket["ticket_number"] for ticket in tickets) == [
        make_ticket_number("SA", batch["id"], seq) for seq in range(1, 6)
    ]


def test_issue_batch_with_markup_override(client, admin_headers, issue_batch):
    batch = issue_batch(quantity=2, buying_price="200.00", markup_percentage="25")

    tickets = client.get(
        "/api/tickets/", params={"batch_id": batch["id"]}, headers=admin_headers
    ).json()["tickets"]

    assert [Decimal(ticket["selling_price"]) for ticket in tickets] == [Decimal("250.00")] * 2


def test_batch_detail_counts_tickets_by_status(client, admin_headers, airline, issue_batch):
    batch = issue_batch(quantity=3, airline_id=airline.id, flight_time="10:30:00")

    response = client.get(f"/api/batches/{batch['id']}", headers=admin_headers)

    assert response.status_code == HTTPStatus.OK
    detail = response.json()
    assert detail["country_code"] == "SA"
    assert detail["airline_name"] == "Saudia"
    assert detail["status_counts"] == {
        "available": 3, "locked": 0, "booked": 0, "sold": 0, "cancelled": 0
    }


def test_list_batches_filters_by_country(client, admin_headers, issue_batch):
    issue_batch()
    issue_batch(quantity=1)

    response = client.get("/api/batches/", params={"country": "SA"}, headers=admin_headers)
    assert response.json()["total"] == 2

    response = client.get("/api/batches/", params={"country": "AE"}, headers=admin_headers)
    assert response.json() == {"batches": [], "total": 0}


def test_staff_cannot_issue_batch(client, staff_headers, country):
    response = client.post(
        "/api/batches/",
        json={"country_code": "SA", "flight_date": "2030-01-15", "buying_price": "100", "quantity": 1},
        headers=staff_headers,
    )

    assert response.status_code == HTTPStatus.FORBIDDEN
    assert response.json() == {"detail": "Not enough permissions"}


def test_manager_can_issue_batch(client, manager_headers, country):
    response = client.post(
        "/api/batches/",
        json={"country_code": "sa", "flight_date": "2030-01-15", "buying_price": "50", "quantity": 1},
        headers=manager_headers,
    )

    assert response.status_code == HTTPStatus.CREATED


def test_issue_batch_for_unknown_country(client, admin_headers, country):
    response = client.post(
        "/api/batches/",
        json={"country_code": "ZZ", "flight_date": "2030-01-15", "buying_price": "100", "quantity": 1},
        headers=admin_headers,
    )

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {"detail": "Country 'ZZ' not found"}


def test_issue_batch_for_unknown_airline(client, admin_headers, country):
    response = client.post(
        "/api/batches/",
        json={
            "country_code": "SA", "airline_id": 999, "flight_date": "2030-01-15",
            "buying_price": "100", "quantity": 1,
        },
        headers=admin_headers,
    )

    assert response.status_code == HTTPStatus.NOT_FOUND


@pytest.mark.parametrize("quantity", [0, -3])
def test_issue_batch_rejects_non_positive_quantity(client, admin_headers, country, quantity):
    response = client.post(
        "/api/batches/",
        json={"country_code": "SA", "flight_date": "2030-01-15", "buying_price": "100", "quantity": quantity},
        headers=admin_headers,
    )

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_get_missing_batch(client, admin_headers):
    response = client.get("/api/batches/4242", headers=admin_headers)

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {"detail": "Ticket batch not found"}


def test_failed_issue_leaves_no_partial_batch(client, db_session, issue_batch):
    first = issue_batch(quantity=5)
    # Occupies the ticket number the next batch will generate for its second ticket
    db_session.add(Ticket(
        batch_id=first["id"],
        ticket_number=make_ticket_number("SA", first["id"] + 1, 2),
        selling_price=Decimal("1.00"),
        status="available",
    ))
    db_session.commit()
    admin = UserService.get_user_by_username(db_session, "admin")

    with pytest.raises(IntegrityError):
        BatchService.issue_batch(
            db_session,
            TicketBatchCreate(country_code="SA", flight_date="2030-02-01", buying_price="80", quantity=4),
            admin,
        )

    assert db_session.query(TicketBatch).count() == 1
    assert db_session.query(Ticket).count() == 6
