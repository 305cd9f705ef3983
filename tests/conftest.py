from __future__ import annotations

import os
from collections.abc import Iterator

# Settings are read at import time; keep tests off the on-disk database.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base, build_engine
from financehub.deps import get_db
from main import app

PASSWORD = "Sup3r$ecret"


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker]:
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def register(client: TestClient, email: str = "ada@example.com", name: str = "Ada Lovelace") -> dict:
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    return bearer(register(client)["accessToken"])


@pytest.fixture()
def other_headers(client: TestClient) -> dict[str, str]:
    return bearer(register(client, email="grace@example.com", name="Grace Hopper")["accessToken"])


@pytest.fixture()
def account(client: TestClient, auth_headers: dict[str, str]) -> dict:
    response = client.post(
        "/api/accounts",
        json={"name": "Main Checking", "type": "CHECKING", "balance": 1500.25},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture()
def income_category(client: TestClient, auth_headers: dict[str, str]) -> dict:
    response = client.post(
        "/api/categories",
        json={"name": "Salary", "color": "#10B981", "type": "INCOME"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture()
def expense_category(client: TestClient, auth_headers: dict[str, str]) -> dict:
    response = client.post(
        "/api/categories",
        json={"name": "Groceries", "color": "#EF4444", "type": "EXPENSE"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
