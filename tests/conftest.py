"""
Shared fixtures: a scripted identity service behind ``httpx.MockTransport``
and the real FastAPI app on a throwaway SQLite database.
"""

import json
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-hs256-signing-0123")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from client.controller import SessionController
from client.identity import IdentityClient
from client.storage import MemoryStorage, SessionStore
from database.models import Base
from database.session import get_db_session
from main import create_app

IDENTITY_URL = "http://identity.test/api"


class FakeIdentityService:
    """In-memory stand-in for the identity service's HTTP contract."""

    def __init__(self):
        self.users = {}
        self.requests = []
        self.down = False
        self._issued = 0

    def _pair(self, username):
        self._issued += 1
        return {
            "access": f"access-{username}-{self._issued}",
            "refresh": f"refresh-{username}-{self._issued}",
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)

        body = json.loads(request.content or b"{}")
        path = request.url.path

        if path == "/api/register/":
            if body["username"] in self.users:
                return httpx.Response(
                    400, json={"detail": "A user with that username already exists."}
                )
            self.users[body["username"]] = body["password"]
            return httpx.Response(201, json=self._pair(body["username"]))

        if path == "/api/token/":
            if self.users.get(body.get("username")) != body.get("password"):
                return httpx.Response(
                    401, json={"detail": "No active account found with the given credentials"}
                )
            return httpx.Response(200, json=self._pair(body["username"]))

        if path == "/api/token/refresh/":
            refresh = body.get("refresh", "")
            if not refresh.startswith("refresh-"):
                return httpx.Response(401, json={"detail": "Token is invalid or expired"})
            self._issued += 1
            return httpx.Response(200, json={"access": f"access-refreshed-{self._issued}"})

        return httpx.Response(404, json={"detail": "Not Found"})


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return SessionStore(storage, namespace="auth")


@pytest.fixture
def fake_service():
    return FakeIdentityService()


@pytest_asyncio.fixture
async def identity_client(fake_service):
    client = IdentityClient(IDENTITY_URL, transport=httpx.MockTransport(fake_service.handler))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def controller(store, identity_client):
    return SessionController(store, identity_client)


@pytest_asyncio.fixture
async def api_app(tmp_path):
    """The FastAPI app wired to a fresh SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _test_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = _test_session
    yield app
    await engine.dispose()


@pytest_asyncio.fixture
async def api(api_app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=api_app), base_url="http://test/api"
    ) as client:
        yield client
