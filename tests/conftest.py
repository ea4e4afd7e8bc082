"""Shared fixtures: an on-disk sqlite database and a wired-up test client."""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from buildr.config import settings
from buildr.db.base import Base
from buildr.dependencies import get_db, get_http_client, get_openai_client
from buildr.main import app
import buildr.models  # noqa: F401


class FakeCompletions:
    """Stands in for ``client.chat.completions`` and records each call."""

    def __init__(self, deltas: list[str] | None = None, error: Exception | None = None):
        self.deltas = deltas or []
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self._stream()

    async def _stream(self):
        for text in self.deltas:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


class FakeOpenAI:
    def __init__(self, deltas: list[str] | None = None, error: Exception | None = None):
        self.chat = SimpleNamespace(completions=FakeCompletions(deltas, error))

    @property
    def calls(self) -> list[dict]:
        return self.chat.completions.calls


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'buildr.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def image_handler():
    """Replace ``.handler`` to script the upstream image providers."""
    state = SimpleNamespace(handler=lambda request: httpx.Response(500), requests=[])

    def dispatch(request: httpx.Request) -> httpx.Response:
        state.requests.append(request)
        return state.handler(request)

    state.dispatch = dispatch
    return state


@pytest.fixture
def client(session_factory, fake_openai, image_handler, monkeypatch):
    monkeypatch.setattr(settings, "debug_api_key", "letmein")
    monkeypatch.setattr(settings, "unsplash_access_key", "")
    monkeypatch.setattr(settings, "pexels_api_key", "")

    async def override_db():
        async with session_factory() as session:
            yield session

    async def override_http():
        async with httpx.AsyncClient(transport=httpx.MockTransport(image_handler.dispatch)) as http:
            yield http

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_openai_client] = lambda: fake_openai
    app.dependency_overrides[get_http_client] = override_http
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
