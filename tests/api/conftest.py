"""HTTP test fixtures: the real app wired to in-memory stores."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from ecobingo.database import get_session
from ecobingo.dependencies import get_catalog_store, get_game_store, get_profile_directory
from ecobingo.main import create_app


@pytest.fixture
def app(catalog_store, game_store, directory) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_catalog_store] = lambda: catalog_store
    application.dependency_overrides[get_game_store] = lambda: game_store
    application.dependency_overrides[get_profile_directory] = lambda: directory
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fake_session(app: FastAPI) -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock()

    async def _session():
        yield session

    app.dependency_overrides[get_session] = _session
    return session


@pytest.fixture
def auth(token_factory) -> Callable[..., dict[str, str]]:
    """Authorization headers: ``auth()``, ``auth("u2", email_verified=False)``, ``auth(role="ADMIN")``."""

    def _headers(sub: str = "user-1", **claims) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_factory(sub, **claims)}"}

    return _headers
