import os

# Must be set before any app module reads its configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient

from app.db.get_db import SessionLocal, engine
from app.db.init_db import drop_db, init_db
from tests.factories import make_account


@pytest.fixture
def schema():
    init_db(engine)
    yield
    drop_db(engine)


@pytest.fixture
def db(schema):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(schema):
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin(db):
    return make_account(db, "admin@example.com", role="admin")


@pytest.fixture
def owner(db):
    return make_account(db, "owner@example.com", role="store_owner")


@pytest.fixture
def other_owner(db):
    return make_account(db, "otherowner@example.com", role="store_owner")


@pytest.fixture
def user(db):
    return make_account(db, "user@example.com")
