import os
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from keyvault.core.config import settings

# Override settings for tests
settings.jwt_secret_key = "test-secret-key-that-is-at-least-32-bytes-long"
settings.fernet_key = "KxJCocbnA3KD20pkgSN3uUZybasKP1X9lAJDX4oLxoQ="  # test-only Fernet key
settings.secret_codec = "fernet"
settings.rate_limit_enabled = False
settings.app_env = "development"

from keyvault.core.security import create_access_token, create_refresh_token, hash_password  # noqa: E402
from keyvault.core.session import SessionContext, open_session  # noqa: E402
from keyvault.db.base import Base  # noqa: E402
from keyvault.db.postgres import get_db  # noqa: E402
from keyvault.main import app  # noqa: E402
from keyvault.models.user import User  # noqa: E402

# SQLite by default; point TEST_DATABASE_URL at a PostgreSQL test database to run against asyncpg
TEST_DB_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./.keyvault_test.db")

test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

TEST_PASSWORD = "testpassword123"


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def user_session(db: AsyncSession) -> SessionContext:
    """Create a test user with an open session."""
    user = User(email="test@example.com", password_hash=hash_password(TEST_PASSWORD))
    db.add(user)
    await db.flush()

    ctx = await open_session(db, user)
    await db.commit()
    return ctx


@pytest.fixture
async def auth_headers(user_session: SessionContext) -> dict[str, str]:
    """Get auth headers with a valid access token."""
    token = create_access_token(user_session.user_id, user_session.session_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def refresh_token(user_session: SessionContext) -> str:
    return create_refresh_token(user_session.user_id, user_session.session_id)


@pytest.fixture
async def other_headers(db: AsyncSession) -> dict[str, str]:
    """Auth headers for a second, unrelated user."""
    other = User(email="other@example.com", password_hash=hash_password("otherpass123"))
    db.add(other)
    await db.flush()

    ctx = await open_session(db, other)
    await db.commit()
    return {"Authorization": f"Bearer {create_access_token(ctx.user_id, ctx.session_id)}"}


@pytest.fixture
def key_payload() -> dict:
    return {
        "name": "OpenAI Production",
        "provider": "OpenAI",
        "environment": "production",
        "secret": "sk-test-1234567890abcdef",
        "tags": "billing, ai , ,prod",
        "notes": "Main account",
        "expires_at": "",
    }


@pytest.fixture
async def created_key(client: AsyncClient, auth_headers, key_payload) -> dict:
    response = await client.post("/api/v1/keys/", json=key_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()
