import os
import time
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.main import app
from app.auth.dependencies import get_provider_admin
from app.config import Settings, get_settings
from app.database import close_db, init_db
from app.identity.service import ConsentPolicy, accept_policies, upsert_identity
from app.identity.models import User
from app.rate_limit.limiter import limiter
from app.admiration.models import AdmirationEdge, Match  # noqa: F401 - register with Base
from app.rate_limit.models import RateLimitWindow  # noqa: F401 - register with Base
from app.safety.models import Block, Report  # noqa: F401 - register with Base
from shared.auth.config import SessionTokenSettings
from shared.auth.dependencies import get_token_settings
from shared.database.postgres import Base, get_async_engine

PROVIDER = "twitter.com"
POLICY_VERSION = "2026-02-12"

TEST_TOKEN_SETTINGS = SessionTokenSettings(
    _env_file=None,
    secret="test-secret",
    algorithm="HS256",
    issuer="https://securetoken.google.com/admirer-test",
    audience="admirer-test",
)


class FakeProviderAdmin:
    """Records deletions; optionally fails with ``error``."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.deleted: list[str] = []

    async def delete_user(self, uid: str) -> None:
        self.deleted.append(uid)
        if self.error is not None:
            raise self.error


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'admirer.db'}"


@pytest_asyncio.fixture
async def db_session(database_url: str) -> AsyncGenerator[AsyncSession, None]:
    engine = get_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture(params=["sqlite", "postgresql"])
async def session_factory(
    request, database_url: str
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Independent sessions on one database, for writers running side by side.

    SQLite transactions start with BEGIN IMMEDIATE so concurrent writers queue
    on the file lock.  The PostgreSQL variant needs ADMIRER_TEST_POSTGRES_URL
    pointing at a scratch database; its tables are dropped afterwards.
    """
    if request.param == "postgresql":
        url = os.environ.get("ADMIRER_TEST_POSTGRES_URL")
        if not url:
            pytest.skip("ADMIRER_TEST_POSTGRES_URL is not set")
        engine = get_async_engine(url)
    else:
        engine = get_async_engine(database_url)

        @event.listens_for(engine.sync_engine, "connect")
        def _no_implicit_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def policy() -> ConsentPolicy:
    return ConsentPolicy(privacy_version=POLICY_VERSION, terms_version=POLICY_VERSION)


@pytest.fixture
def make_user(
    db_session: AsyncSession, policy: ConsentPolicy
) -> Callable[..., Awaitable[User]]:
    """Create a synced (and by default consented) user and commit."""

    async def _make(uid: str, handle: str, *, consent: bool = True) -> User:
        user = await upsert_identity(db_session, uid, handle, f"x-{uid}", provider=PROVIDER)
        if consent:
            user = await accept_policies(db_session, uid, policy, provider=PROVIDER)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    return Settings(
        _env_file=None,
        admirer_database_url=database_url,
        sign_in_provider=PROVIDER,
        privacy_policy_version=POLICY_VERSION,
        terms_version=POLICY_VERSION,
        consent_required=True,
    )


@pytest.fixture
def provider_admin() -> FakeProviderAdmin:
    return FakeProviderAdmin()


@pytest.fixture
def token_for() -> Callable[..., str]:
    """Mint a provider session token the app will accept."""

    def _mint(
        uid: str,
        *,
        screen_name: str | None = None,
        provider: str = PROVIDER,
        external_id: str | None = None,
    ) -> str:
        now = int(time.time())
        claims = {
            "sub": uid,
            "iss": TEST_TOKEN_SETTINGS.issuer,
            "aud": TEST_TOKEN_SETTINGS.audience,
            "iat": now,
            "exp": now + 3600,
            "firebase": {
                "sign_in_provider": provider,
                "identities": {provider: [external_id or f"x-{uid}"]},
            },
        }
        if screen_name is not None:
            claims["screen_name"] = screen_name
        return jwt.encode(claims, TEST_TOKEN_SETTINGS.secret, algorithm=TEST_TOKEN_SETTINGS.algorithm)

    return _mint


@pytest_asyncio.fixture
async def async_client(
    db_session: AsyncSession,
    database_url: str,
    test_settings: Settings,
    provider_admin: FakeProviderAdmin,
) -> AsyncGenerator[AsyncClient, None]:
    # db_session first so the schema exists before the app connects
    init_db(database_url)
    limiter.reset()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_token_settings] = lambda: TEST_TOKEN_SETTINGS
    app.dependency_overrides[get_provider_admin] = lambda: provider_admin
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    await close_db()
