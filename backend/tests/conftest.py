"""
Travel Story Backend — Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied BEFORE any travelstory import so the
       settings singleton, the engine and the service singletons all pick
       them up.

Fixture Hierarchy (all function-scoped):
    ├── db_engine: in-memory SQLite (aiosqlite + StaticPool) with all tables
    ├── db_session: AsyncSession bound to db_engine
    ├── token_service / auth_service / media_service / story_service
    ├── sample_image_bytes: minimal PNG payload
    ├── test_client: HTTPX AsyncClient wired to the app with db_engine
    └── register: helper that creates an account and returns auth headers
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ACCESS_TOKEN_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SERVER_BASE_URL"] = "http://test"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="travelstory_uploads_")
os.environ["ASSETS_DIR"] = tempfile.mkdtemp(prefix="travelstory_assets_")
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta  # noqa: E402
from typing import AsyncGenerator, Dict  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import travelstory.models  # noqa: E402,F401
from travelstory.config import settings  # noqa: E402
from travelstory.database import Base, _json_serializer  # noqa: E402
from travelstory.services.auth_service import AuthService  # noqa: E402
from travelstory.services.media_service import MediaService  # noqa: E402
from travelstory.services.story_service import StoryService  # noqa: E402
from travelstory.services.token_service import TokenService  # noqa: E402

PLACEHOLDER_URL = "http://test/assets/placeholder.png"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    A fresh in-memory SQLite database per test.

    StaticPool keeps the single in-memory connection alive across sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        json_serializer=_json_serializer,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret="unit-test-secret", lifetime=timedelta(hours=72))


@pytest.fixture
def auth_service(token_service) -> AuthService:
    return AuthService(tokens=token_service, bcrypt_rounds=4)


@pytest.fixture
def temp_uploads(tmp_path) -> str:
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    return str(uploads)


@pytest.fixture
def media_service(temp_uploads) -> MediaService:
    return MediaService(uploads_dir=temp_uploads, base_url="http://test", max_file_size=1024 * 1024)


@pytest.fixture
def story_service(media_service) -> StoryService:
    return StoryService(media=media_service, placeholder_image_url=PLACEHOLDER_URL)


@pytest.fixture
def sample_image_bytes() -> bytes:
    """PNG signature plus an IHDR chunk; enough bytes to look like an image."""
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00"
        b"\x90wS\xde"
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the FastAPI app over ASGITransport.

    The request-scoped session dependency is overridden to use db_engine;
    the service singletons are the real ones, built from the environment
    above (uploads land in the temporary UPLOADS_DIR).
    """
    from travelstory.database import get_db_session
    from travelstory.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def register(test_client):
    """
    Returns an async helper that registers an account and yields its headers.

    Usage:
        headers = await register("ana@x.com")
        await test_client.get("/get-all-stories", headers=headers)
    """

    async def _register(email: str, password: str = "secret123", full_name: str = "Test User") -> Dict[str, str]:
        response = await test_client.post(
            "/create-account",
            json={"fullName": full_name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    return _register


@pytest.fixture
def uploads_dir() -> str:
    return settings.uploads_dir
