import os

# cheap hashes for tests; must be set before security.py is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["dealership_test"]
    monkeypatch.setattr(database, "db", mock_db)
    database.ensure_indexes()
    return mock_db


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def register_user(client):
    def _register(name="Asha Rao", phone="9876543210", email="asha@dealer.in", password="secret1"):
        resp = client.post("/api/auth/register", json={
            "name": name,
            "phone": phone,
            "email": email,
            "password": password,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]
    return _register


@pytest.fixture
def user(register_user):
    return register_user()


@pytest.fixture
def auth_headers(user):
    return {"user-id": user["_id"]}


@pytest.fixture
def other_user(register_user):
    return register_user(name="Vikram", phone="9123456780", email="vikram@dealer.in")


class _NoLookups:
    """Collection whose find_one never matches, so writes reach the unique indexes"""

    def __init__(self, collection):
        self._collection = collection

    def find_one(self, *args, **kwargs):
        return None

    def __getattr__(self, name):
        return getattr(self._collection, name)


@pytest.fixture
def without_lookups():
    return _NoLookups
