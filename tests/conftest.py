import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.config import Settings
from src.api.generation import GenerationClient
from src.api.main import create_app
from src.api.storage import MemoryStore


def make_clock(start: int = 0):
    """Clock returning strictly increasing ISO timestamps, one second apart."""
    counter = itertools.count(start)

    def clock():
        n = next(counter)
        return f"2026-10-19T12:{n // 60:02d}:{n % 60:02d}.000Z"

    return clock


@pytest.fixture()
def settings():
    return Settings(storage_backend="memory", seed_default_user=True, log_level="DEBUG")


@pytest.fixture()
def store():
    return MemoryStore(seed_default_user=True, clock=make_clock())


@pytest.fixture()
def genai_client():
    """Stand-in for google.genai.Client with an async generate_content."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text="  Launch day is here! #launch  "))
    return client


@pytest.fixture()
def generator(genai_client):
    return GenerationClient(client=genai_client)


@pytest.fixture()
def app(settings, store, generator):
    return create_app(settings=settings, store=store, generator=generator)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def registered_user(client):
    res = client.post("/api/users", json={"firebaseUid": "uid-alice", "email": "alice@example.com", "displayName": "Alice"})
    assert res.status_code == 200
    return res.json()


@pytest.fixture()
def alice_headers(registered_user):
    return {"x-firebase-uid": registered_user["firebaseUid"]}


@pytest.fixture()
def clock():
    return make_clock()
