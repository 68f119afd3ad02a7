"""
Shared fixtures.

The environment is set before the app modules are imported: settings are
read once at import time and JWT_SECRET is mandatory.
"""

import os

os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app

API = "/api/v1"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def register(client, username, password):
    return client.post(f"{API}/auth/register", json={"username": username, "password": password})


def login(client, username, password):
    return client.post(f"{API}/auth/login", json={"username": username, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    """Register and log in a user, returning its Authorization header."""

    def _make(username="alice", password="pw123"):
        assert register(client, username, password).status_code == 201
        response = login(client, username, password)
        assert response.status_code == 200
        return bearer(response.json()["token"])

    return _make
