"""Pytest configuration and fixtures for service and API tests."""
import os

# Set test env BEFORE any imports that use config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["IDENTITY_BRIDGE_SECRET"] = "test-bridge-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret"

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from gespadel.models.base import async_session_factory, engine, init_db
from gespadel.services.identity import AuthenticatedIdentity, resolve_or_create_player
from gespadel.services.lifecycle import create_tournament
from web.api.main import app
from web.api.utils import close_mirrors

BRIDGE_HEADERS = {"Authorization": "Bearer test-bridge-secret"}


def tournament_fields(**overrides):
    fields = {
        "name": "Open Otoño",
        "club_name": "Club Padel Norte",
        "description": "Torneo de parejas",
        "inscription_start_date": datetime(2026, 10, 1, tzinfo=timezone.utc),
        "start_date": datetime(2026, 11, 6, 18, tzinfo=timezone.utc),
        "end_date": datetime(2026, 11, 8, 23, tzinfo=timezone.utc),
        "masculine_categories": ["3ª", "1ª"],
        "feminine_categories": ["2ª"],
        "price": 20,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
async def _init_db():
    """Fresh in-memory schema per test (ASGI lifespan doesn't run with httpx)."""
    await init_db()
    yield
    close_mirrors()
    # Drops the single in-memory connection, so the next test starts empty
    await engine.dispose()


@pytest.fixture
async def session():
    async with async_session_factory() as s:
        yield s


@pytest.fixture
async def client():
    """Async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_player(session):
    """Create a signed-in player through the identity resolver."""

    async def _make(uid, name=None, email=None, role=None, phone=None):
        identity = AuthenticatedIdentity(uid=uid, display_name=name, email=email, phone=phone)
        return await resolve_or_create_player(session, identity, role)

    return _make


@pytest.fixture
def make_tournament(session):
    async def _make(**overrides):
        return await create_tournament(session, tournament_fields(**overrides), "organizer")

    return _make


@pytest.fixture
def sign_in(client):
    """Open a session through the identity bridge; returns (auth headers, player json)."""

    async def _sign_in(uid, name=None, email=None, role=None):
        r = await client.post(
            "/api/auth/session",
            json={
                "identity": {"uid": uid, "display_name": name, "email": email},
                "intended_role": role,
            },
            headers=BRIDGE_HEADERS,
        )
        assert r.status_code == 200, f"Sign-in failed: {r.text}"
        data = r.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["player"]

    return _sign_in


@pytest.fixture
async def organizer_headers(sign_in):
    headers, _ = await sign_in("org-1", "Marta Organiza", "marta@club.es", "organizer")
    return headers
