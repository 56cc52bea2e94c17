"""Pytest configuration and fixtures."""

import asyncio
import functools

import pytest
import pytest_asyncio
from httpx import ASGITransport

from fake_backend import FakeBackend, make_token
from kbchat.config import Settings
from kbchat.main import create_app
from kbchat.models import CachedUser, LoginRequest
from kbchat.storage import MemoryStorage


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at the in-process fake backend."""
    return Settings(
        api_base_url="http://testserver/api",
        storage_path=tmp_path / "storage.json",
        request_timeout_seconds=5.0,
    )


@pytest.fixture
def backend():
    """Fake backend with two registered users."""
    fake = FakeBackend()
    fake.add_user("alice", "secret1")
    fake.add_user("bob", "secret2")
    return fake


@pytest.fixture
def transport(backend):
    return ASGITransport(app=backend.app)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest_asyncio.fixture(scope="function")
async def app(settings, storage, transport):
    """Console client wired to the fake backend; not started."""
    console = create_app(settings=settings, storage=storage, transport=transport)
    yield console
    await console.aclose()


@pytest_asyncio.fixture(scope="function")
async def signed_in_app(app):
    """Started console client with alice signed in."""
    await app.start()
    assert await app.gate.login(LoginRequest(username="alice", password="secret1"))
    return app


@pytest.fixture
def seed_credential(app, backend):
    """Store a credential for a backend user as a previous run would have."""

    def seed(username="alice", expires_in=3600, **user_overrides):
        user = backend.users[username]
        cached = CachedUser(
            id=user["id"],
            username=username,
            email=user["email"],
            full_name=user_overrides.pop("full_name", user["fullName"]),
            **user_overrides,
        )
        token = make_token(username, expires_in)
        app.credential_store.save(token, cached)
        return token

    return seed


@pytest.fixture
def hold(monkeypatch):
    """Make an async method wait on an event before running.

    Usage:
        release = hold(app.roleplay_api, "send_message")
        ...
        release.set()
    """

    def install(target, name):
        original = getattr(target, name)
        release = asyncio.Event()

        @functools.wraps(original)
        async def held(*args, **kwargs):
            await release.wait()
            return await original(*args, **kwargs)

        monkeypatch.setattr(target, name, held)
        return release

    return install
