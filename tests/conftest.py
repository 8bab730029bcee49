# tests/conftest.py
import asyncio
import logging
import os
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Keep tests away from real credentials and a developer's .env limits
for _key in ("OPENAI_API_KEY", "GEMINI_API_KEY", "ANTHROPIC_API_KEY", "GROQ_API_KEY"):
    os.environ[_key] = "test-key"
os.environ["MONTHLY_TOKEN_LIMIT"] = "500"
os.environ["CORS_ORIGINS"] = "*"

# IMPORTANT: import the app factory after envs are set
from stream_gateway.main import create_app
from stream_gateway.providers.base import StreamingAdapter
from stream_gateway.services.channel import TransportWriteError
from stream_gateway.services.ledger import UsageLedger
from stream_gateway.services.store import InMemoryStore


class ScriptedAdapter(StreamingAdapter):
    """Adapter that replays a fixed list of events; exceptions in the list are raised."""

    def __init__(self, name, events):
        self.name = name
        self._events = list(events)
        self.calls = []

    async def stream(self, query, model):
        self.calls.append((query, model))
        for event in self._events:
            await asyncio.sleep(0)
            if isinstance(event, Exception):
                raise event
            yield event


class RecordingChannel:
    """Channel stand-in that keeps frames and counts close() calls."""

    def __init__(self, fail_after=None):
        self.frames = []
        self.close_calls = 0
        self._fail_after = fail_after

    async def write(self, frame):
        if self.close_calls:
            raise TransportWriteError("channel closed")
        if self._fail_after is not None and len(self.frames) >= self._fail_after:
            raise TransportWriteError("client disconnected")
        self.frames.append(frame)

    async def close(self):
        self.close_calls += 1


@pytest.fixture
def make_adapter():
    return ScriptedAdapter


@pytest.fixture
def make_channel():
    return RecordingChannel


@pytest.fixture
def ledger():
    return UsageLedger(InMemoryStore(), monthly_limit=500, window_seconds=30 * 24 * 60 * 60, key_prefix="t:")


@pytest_asyncio.fixture
async def app():
    # fresh app per test so ledger state never leaks between tests
    return create_app()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog
