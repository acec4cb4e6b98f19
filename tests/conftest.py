"""
Pytest configuration and shared fixtures.

This module provides fixtures for:
- Fake live chat transports
- A SessionController wired to mocked Kick endpoints
- FastAPI test client
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Set testing environment before importing linkick modules
os.environ["TESTING"] = "true"
os.environ["LOG_LEVEL"] = "ERROR"
os.environ["API_ENABLED"] = "true"

from linkick.services.batch_open import BatchOpener
from linkick.services.channel_resolver import ChannelResolver
from linkick.services.history import HistoryBackfill
from linkick.services.live import LiveSubscriber
from linkick.services.session import SessionController
from tests.helpers import TransportFactory, json_transport, make_message


# ─────────────────────────────────────────────────────────────────────────────
# Transport Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def fake_transport_factory() -> TransportFactory:
    return TransportFactory()


# ─────────────────────────────────────────────────────────────────────────────
# History Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def now():
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def history_page(now):
    """Newest-first history page with one message outside the window."""
    return {
        "data": {
            "messages": [
                make_message("newest https://youtube.com/watch?v=2", "ayse", now - timedelta(minutes=2)),
                make_message("older https://github.com/a/b", "mehmet", now - timedelta(minutes=20)),
                make_message("stale https://twitch.tv/old", "can", now - timedelta(minutes=45)),
            ]
        }
    }


# ─────────────────────────────────────────────────────────────────────────────
# Controller Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def make_controller(fake_transport_factory):
    """Build a SessionController wired to mocked HTTP and fake transports."""
    def build(overrides=None, routes=None) -> SessionController:
        transport = json_transport(routes or {})
        return SessionController(
            resolver=ChannelResolver(overrides=overrides or {"demo": "123"}, transport=transport),
            history=HistoryBackfill(transport=transport),
            subscriber=LiveSubscriber(transport_factory=fake_transport_factory, reconnect_delay=0),
        )
    return build


# ─────────────────────────────────────────────────────────────────────────────
# FastAPI Test Client
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def opened_urls():
    return []


@pytest.fixture
async def app(make_controller, opened_urls):
    """FastAPI app with a test controller installed on app.state."""
    from linkick.main import app as fastapi_app
    controller = make_controller(routes={
        "/api/v1/channels/ghost": (404, {"message": "Not found"}),
        "/api/v1/channels/walled": (403, "<html>blocked</html>"),
    })
    fastapi_app.state.session_controller = controller
    fastapi_app.state.batch_opener = BatchOpener(opener=opened_urls.append, stagger_ms=0)
    yield fastapi_app
    await controller.stop()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing API endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
