"""
Pytest configuration and fixtures

Every test gets fresh storage: MemoryStorage, or SqlStorage on a private
in-memory SQLite database. Nothing is shared between tests.
"""
import json
import os
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Must be set before fityog.core.config builds its settings
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.pop("OPENAI_API_KEY", None)

from fastapi.testclient import TestClient

from fityog.core.config import Settings
from fityog.core.database import build_engine
from fityog.main import create_app
from fityog.services.recommendation_gateway import RecommendationGateway
from fityog.services.storage import MemoryStorage, SqlStorage


@pytest.fixture
def settings():
    return Settings(LOG_FORMAT="text", STORAGE_BACKEND="memory", OPENAI_API_KEY=None)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def sql_storage(settings):
    engine = build_engine("sqlite:///:memory:", settings)
    storage = SqlStorage(engine)
    storage.create_schema()
    yield storage
    storage.close()


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Runs a test once per backend."""
    return request.getfixturevalue(f"{request.param}_storage")


def completion(content):
    """Shape of an OpenAI chat completion, as far as the gateway reads it."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def recommendation_payload(asanas=2, exercises=2, resources=1):
    item = {
        "name": "Tree Pose",
        "duration": 5,
        "benefits": ["Improves balance"],
        "difficulty": "beginner",
        "instructions": ["Stand tall", "Lift one foot to the inner thigh"],
    }
    return {
        "message": "Here is a gentle routine for you.",
        "asanas": [dict(item, name=f"Asana {i}") for i in range(asanas)],
        "exercises": [dict(item, name=f"Exercise {i}", difficulty="intermediate") for i in range(exercises)],
        "resources": [
            {"title": f"Light on Yoga {i}", "type": "book", "description": "Classic reference."}
            for i in range(resources)
        ],
    }


@pytest.fixture
def openai_client():
    """Stand-in for openai.OpenAI; replies with a valid recommendation by default."""
    client = MagicMock()
    client.chat.completions.create.return_value = completion(json.dumps(recommendation_payload()))
    return client


@pytest.fixture
def gateway(openai_client):
    return RecommendationGateway(client=openai_client, model="test-model", timeout_s=5)


@pytest.fixture
def client(settings, memory_storage, gateway):
    app = create_app(settings=settings, storage=memory_storage, gateway=gateway)
    return TestClient(app)


@pytest.fixture
def sql_client(settings, sql_storage, gateway):
    app = create_app(settings=settings, storage=sql_storage, gateway=gateway)
    return TestClient(app)


def register(client, username="alice", password="s3cret-pass"):
    response = client.post("/api/register", json={"username": username, "password": password})
    assert response.status_code == 201, response.text
    return response.json()
