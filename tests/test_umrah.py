from decimal import Decimal
from http import HTTPStatus

import pytest

PACKAGE = {
    "name": "Ramadan Umrah 2030",
    "departure_date": "2030-02-10",
    "return_date": "2030-02-24",
    "hotel_name": "Hilton Makkah",
    "room_type": "double",
    "price_per_person": "1850.00",
}


@pytest.fixture
def package(client, manager_headers) -> dict:
    response = client.post("/api/umrah/packages", json=PACKAGE, headers=manager_headers)
    assert response.status_code == HTTPStatus.CREATED, response.text
    return response.json()


@pytest.fixture
def group(client, manager_headers, package) -> dict:
    response = client.post(
        "/api/umrah/group-tickets", json={"package_id": package["id"], "ticket_count": 10}, headers=manager_headers
    )
    assert response.status_code == HTTPStatus.CREATED, response.text
    return response.json()


def test_create_package(package):
    assert package["status"] == "upcoming"
    assert package["room_type"] == "double"
    assert Decimal(package["price_per_person"]) == Decimal("1850.00")


def test_staff_cannot_create_package(client, staff_headers):
    response = client.post("/api/umrah/packages", json=PACKAGE, headers=staff_headers)

    assert response.status_code == HTTPStatus.FORBIDDEN


def test_package_cannot_return_before_departure(client, manager_headers):
    payload = dict(PACKAGE, return_date="2030-02-01")

    response = client.post("/api/umrah/packages", json=payload, headers=manager_headers)

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_list_packages_by_status(client, staff_headers, package):
    upcoming = client.get("/api/umrah/packages", params={"status": "upcoming"}, headers=staff_headers).json()
    active = client.get("/api/umrah/packages", params={"status": "active"}, headers=staff_headers).json()

    assert [item["id"] for item in upcoming] == [package["id"]]
    assert active == []


def test_group_ticket_starts_fully_available(group, package):
    assert group["package_name"] == package["name"]
    assert group["ticket_count"] == 10
    assert group["available_count"] == 10
    assert group["sold_count"] == 0


def test_group_ticket_for_missing_package(client, manager_headers):
    response = client.post(
        "/api/umrah/group-tickets", json={"package_id": 404, "ticket_count": 5}, headers=manager_headers
    )

    assert response.status_code == HTTPStatus.NOT_FOUND


def test_sell_and_release_seats(client, staff_headers, group):
    response = client.post(f"/api/umrah/group-tickets/{group['id']}/sell", json={"count": 4}, headers=staff_headers)
    assert response.status_code == HTTPStatus.OK
    assert (response.json()["available_count"], response.json()["sold_count"]) == (6, 4)

    response = client.post(f"/api/umrah/group-tickets/{group['id']}/sell", json={"count": 7}, headers=staff_headers)
    assert response.status_code == HTTPStatus.CONFLICT
    assert response.json() == {"detail": "Only 6 seats available"}

    response = client.post(
        f"/api/umrah/group-tickets/{group['id']}/release", json={"count": 5}, headers=staff_headers
    )
    assert response.status_code == HTTPStatus.CONFLICT

    response = client.post(f"/api/umrah/group-tickets/{group['id']}/release", json={}, headers=staff_headers)
    assert (response.json()["available_count"], response.json()["sold_count"]) == (7, 3)


def test_list_group_tickets(client, staff_headers, group):
    response = client.get("/api/umrah/group-tickets", headers=staff_headers)

    assert response.json()["total"] == 1
    assert response.json()["group_tickets"][0]["id"] == group["id"]


def test_umrah_requires_authentication(client):
    assert client.get("/api/umrah/packages").status_code == HTTPStatus.UNAUTHORIZED
