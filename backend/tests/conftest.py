"""
Pytest configuration and fixtures for StarBite API tests.

Provides:
- Fixed signing secrets and a controllable clock for the token codec
- Async SQLite in-memory database setup
- FastAPI app with dependency overrides (database, codec, image store)
- AsyncClient for testing async endpoints
"""

import os

# Must be set before config.settings is imported
os.environ.setdefault("ACCESS_TOKEN_SECRET_KEY", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET_KEY", "test-refresh-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from auth.dependencies import get_token_codec
from auth.jwt_service import TokenCodec, TokenIssuer
from auth.keys import SigningKeys
from database import Base, get_db
from main import app
from models import User
from services.image_store import LocalImageStore, get_image_store

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"

# 2023-11-14T22:13:20Z
START_TIME = 1_700_000_000

# Smallest byte strings that pass the image magic-byte check
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


class FakeClock:
    """Callable clock whose time only moves when a test advances it."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signing_keys() -> SigningKeys:
    return SigningKeys(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


@pytest.fixture
def codec(signing_keys, clock) -> TokenCodec:
    return TokenCodec(signing_keys, clock=clock)


@pytest.fixture
def issuer(codec) -> TokenIssuer:
    return TokenIssuer(codec)


@pytest.fixture
def image_store(tmp_path) -> LocalImageStore:
    return LocalImageStore(tmp_path / "uploads", "/uploads")


@pytest_asyncio.fixture
async def session_factory():
    """
    In-memory SQLite database, created fresh for each test.

    StaticPool keeps every session on the same connection so they all see
    the same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(session_factory, codec, image_store):
    """
    AsyncClient pointing to the FastAPI app, with the database, token codec
    and image store overridden for the duration of the test.

    Yields:
        httpx.AsyncClient: Async HTTP client for making requests to the app.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codec] = lambda: codec
    app.dependency_overrides[get_image_store] = lambda: image_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user(db_session) -> User:
    db_user = User(name="Ada Lovelace", email="ada@example.com", image="https://img.example.com/ada.png")
    db_session.add(db_user)
    await db_session.commit()
    await db_session.refresh(db_user)
    return db_user


@pytest_asyncio.fixture
async def other_user(db_session) -> User:
    db_user = User(name="Grace Hopper", email="grace@example.com")
    db_session.add(db_user)
    await db_session.commit()
    await db_session.refresh(db_user)
    return db_user


@pytest.fixture
def auth_headers(issuer, user) -> dict:
    """Bearer header carrying a fresh access token for ``user``."""
    token = issuer.issue(user.id).access_token.token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(issuer, other_user) -> dict:
    token = issuer.issue(other_user.id).access_token.token
    return {"Authorization": f"Bearer {token}"}
