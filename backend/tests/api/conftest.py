"""API test infrastructure — async httpx client against an isolated session store."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.v1.simulations import get_store
from app.services.session_store import SessionStore


@pytest_asyncio.fixture
async def session_store() -> AsyncGenerator[SessionStore, None]:
    sessions = SessionStore(max_sessions=4, tick_interval=0.005)
    yield sessions
    sessions.clear()


# ---------------------------------------------------------------------------
# FastAPI app with overridden dependencies
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(session_store):
    from app.main import create_app

    application = create_app()
    application.dependency_overrides[get_store] = lambda: session_store

    # Reset rate limiters between tests
    from app.core.rate_limit import headless_limiter, session_limiter
    session_limiter.reset()
    headless_limiter.reset()

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def flat_session(client: AsyncClient, flat_scenario_data) -> dict:
    """Create a session on the flat 500 MW scenario and return the response body."""
    resp = await client.post("/api/v1/sessions", json=flat_scenario_data)
    assert resp.status_code == 201
    return resp.json()
