import os

# Read by src.config at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOCK_SWEEPER_ENABLED"] = "false"
os.environ["SEED_DEFAULT_USERS"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import typing

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from src.main import create_app
from src.models import Airline, Country


def auth_headers(client: TestClient, username: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def current_user_id(client: TestClient, headers: dict) -> int:
    return client.get("/api/auth/me", headers=headers).json()["id"]


@pytest.fixture
def app():
    # Fresh in-memory database per test
    return create_app()


@pytest.fixture
def client(app) -> typing.Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db_session(app, client) -> typing.Generator[Session, None, None]:
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def admin_headers(client: TestClient) -> dict:
    return auth_headers(client, "admin", "admin123")


@pytest.fixture
def manager_headers(client: TestClient) -> dict:
    return auth_headers(client, "manager", "manager123")


@pytest.fixture
def staff_headers(client: TestClient) -> dict:
    return auth_headers(client, "staff", "staff123")


@pytest.fixture
def country(db_session: Session) -> Country:
    country = Country(code="SA", name="Saudi Arabia", flag_emoji="🇸🇦")
    db_session.add(country)
    db_session.commit()
    return country


@pytest.fixture
def airline(db_session: Session) -> Airline:
    airline = Airline(name="Saudia", country_code="SA")
    db_session.add(airline)
    db_session.commit()
    return airline


@pytest.fixture
def issue_batch(client: TestClient, admin_headers: dict, country: Country):
    def _issue(**overrides) -> dict:
        payload = {
            "country_code": "SA",
            "flight_date": "2030-01-15",
            "buying_price": "100.00",
            "quantity": 5,
        }
        payload.update(overrides)
        response = client.post("/api/batches/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _issue


@pytest.fixture
def ticket_ids(client: TestClient, admin_headers: dict, issue_batch) -> typing.List[int]:
    batch = issue_batch()
    response = client.get("/api/tickets/", params={"batch_id": batch["id"]}, headers=admin_headers)
    return sorted(ticket["id"] for ticket in response.json()["tickets"])
