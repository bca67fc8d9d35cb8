"""Shared fixtures: a fresh SQLite file per test."""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from kitnet.api.app import create_app
from kitnet.auth import Authenticator, CredentialStore
from kitnet.config import Settings
from kitnet.storage import SQLStore


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'kitnet.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    """Opened SQL store, closed after the test."""
    store = SQLStore(database_url)
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def credentials(store):
    return CredentialStore(store)


@pytest.fixture
def authenticator(credentials):
    return Authenticator(credentials)


@pytest.fixture
def client(database_url):
    """HTTP client with the app lifespan running."""
    app = create_app(Settings(database_url=database_url, sentry_dsn=""))
    with TestClient(app) as client:
        yield client


def register_and_login(client, username, password="pw1", email=None):
    """Register through the API, log in, return (user_id, token)."""
    email = email or f"{username}@example.com"
    res = client.post(
        "/api/register",
        json={"username": username, "password": password, "email": email},
    )
    assert res.status_code == 201, res.text

    res = client.post("/api/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    body = res.json()
    return body["userId"], body["token"]
