"""
Pytest configuration and shared fixtures.

Gemini, Nominatim and image downloads are replaced by MagicMock objects so
no test touches the network.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from disaster_api.app import create_app
from disaster_api.config import Settings
from disaster_api.context import ServiceContext
from disaster_api.gemini import GeminiClient
from disaster_api.service import DisasterService
from disaster_api.store import MemoryDisasterStore


# =============================================================================
# Helpers
# =============================================================================

def gemini_response(text=None):
    """Build an object shaped like a generate_content response."""
    if text is None:
        return SimpleNamespace(candidates=[])
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def http_response(json_data=None, content=b"", status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.content = content
    response.raise_for_status.return_value = None
    return response


class RecordingPublisher:
    """Collects published events instead of sending them over WebSockets."""

    def __init__(self):
        self.events = []

    def publish(self, event, payload):
        self.events.append((event, payload))


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def settings():
    return Settings(gemini_api_key="test-key", verify_fetch_images=False)


@pytest.fixture
def store():
    return MemoryDisasterStore()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def service(store, publisher):
    return DisasterService(store, publisher)


@pytest.fixture
def text_model():
    return MagicMock()


@pytest.fixture
def vision_model():
    return MagicMock()


@pytest.fixture
def gemini(text_model, vision_model):
    return GeminiClient(api_key="test-key", models={"text": text_model, "vision": vision_model})


@pytest.fixture
def http_session():
    return MagicMock()


@pytest.fixture
def context(settings, store, gemini, http_session):
    return ServiceContext.from_settings(settings, store=store, gemini=gemini, session=http_session)


@pytest.fixture
def client(context):
    """Test client running the app lifespan (startup / shutdown)."""
    with TestClient(create_app(context)) as c:
        yield c
