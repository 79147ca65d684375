"""Configure pytest fixtures and environment for the Contacts API tests."""

import os

# Settings read the environment when ``core.config`` is first imported, so
# these must be in place before any ``contacts_api`` import.
os.environ.setdefault("DATABASE_URL", ":memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
from fastapi.testclient import TestClient

from contacts_api.app.core.config import Settings
from contacts_api.app.core.db import Store
from contacts_api.app.core.security import create_access_token
from contacts_api.app.main import create_app
from contacts_api.app.services.directory_service import DirectoryService

TEST_SECRET = "test-secret"


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "contacts.db")


@pytest.fixture
def store(db_path):
    store = Store(db_path)
    yield store
    store.close()


@pytest.fixture
def directory(store):
    return DirectoryService(store)


@pytest.fixture
def app(db_path):
    app = create_app(Settings(database_url=db_path, secret_key=TEST_SECRET))
    yield app
    app.state.store.close()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth():
    """Return a function building Authorization headers for an identity."""

    def _headers(identity: str) -> dict:
        token = create_access_token(identity, secret_key=TEST_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers
