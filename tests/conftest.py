import os

# app.main builds a module-level app from the environment on import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.database import create_schema
from app.main import create_app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(
        database_url=TEST_DATABASE_URL,
        jwt_secret="test-secret",
        cors_origins=(),
        log_level="DEBUG",
    )


@pytest.fixture
async def initialized_app(settings):
    app = create_app(settings)
    engine = app.state.context.engine
    await create_schema(engine)
    yield app
    await engine.dispose()


@pytest.fixture
async def client(initialized_app):
    transport = ASGITransport(app=initialized_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fetch(initialized_app):
    """Runs a SELECT in its own short-lived session and returns all rows."""

    async def _fetch(stmt):
        async with initialized_app.state.context.session_factory() as session:
            res = await session.execute(stmt)
            return res.all()

    return _fetch


@pytest.fixture
def execute(initialized_app):
    async def _execute(stmt):
        async with initialized_app.state.context.session_factory() as session:
            async with session.begin():
                await session.execute(stmt)

    return _execute


async def login_headers(client: AsyncClient, username: str, password: str = "pw") -> dict:
    res = await client.post("/users/register", json={"username": username, "password": password})
    assert res.status_code == 200
    res = await client.post("/users/login", json={"username": username, "password": password})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
async def alice(client):
    return await login_headers(client, "alice", "pw1")


@pytest.fixture
async def bob(client):
    return await login_headers(client, "bob", "pw2")
