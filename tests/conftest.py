import os

# cheap hashing and a fixed secret for the whole test run; read when ecolens.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from ecolens.config import Settings
from ecolens.db import crud
from ecolens.db.session import Database
from ecolens.main import create_app


@pytest.fixture
def settings(tmp_path):
    s = Settings()
    s.DATABASE_URL = f"sqlite:///{tmp_path / 'ecolens_test.db'}"
    return s


@pytest.fixture
def database(settings):
    db = Database(settings.DATABASE_URL, timeout=settings.DB_TIMEOUT)
    db.connect()
    yield db
    db.disconnect()


@pytest.fixture
def session(database):
    yield from database.session()


@pytest.fixture
def user(session):
    return crud.create_user(session, "ada@ecolens.io", "Ada", "secret123")


@pytest.fixture
def client(settings, database):
    app = create_app(settings, db=database)
    with TestClient(app) as c:
        yield c


def register(client, email="ada@ecolens.io", name="Ada", password="secret123"):
    res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client):
    return register(client)["token"]


@pytest.fixture
def headers(token):
    return auth_headers(token)
