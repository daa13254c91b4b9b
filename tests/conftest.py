"""
Test infrastructure for the Actunews API.

Strategy
--------
- SQLite in-memory via aiosqlite with a StaticPool, so every session in a
  test shares the one connection that holds the in-memory database.
- ``get_db`` is overridden to use the test session factory; tables are
  created before and dropped after every test.
- ``get_lifecycle`` / ``get_outbox`` are overridden with a pipeline built
  from a cheap bcrypt hasher (4 rounds) and an outbox that delivers into a
  ``RecordingNotifier``.  The outbox worker is started per test because
  each test runs on its own event loop.
- Redis is disabled (``cache._redis = None``); the cache degrades to no-op.
  The ``redis_cache`` fixture swaps in ``DictRedis`` for cache-path tests.
"""
import fnmatch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from actunews.cache import cache
from actunews.database import Base, get_db
from actunews.dependencies import get_lifecycle, get_outbox
from actunews.errors import DeliveryError
from actunews.hooks import build_lifecycle
from actunews.main import app
from actunews.middleware import install_query_counter
from actunews.outbox import MailOutbox
from actunews.security import BcryptHasher

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------

class RecordingNotifier:
    """Notifier that remembers what it was asked to send, or fails on demand."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail_with: Exception | None = None

    def send(self, to: str, subject: str, body_html: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((to, subject, body_html))

    def reset(self) -> None:
        self.sent.clear()
        self.fail_with = None


class DictRedis:
    """In-memory stand-in for the subset of ``redis.asyncio.Redis`` the cache uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.store[key] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.store.pop(key, None)

    async def scan_iter(self, match: str = "*"):
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        self.store.clear()


notifier = RecordingNotifier()
test_outbox = MailOutbox(notifier)
hasher = BcryptHasher(rounds=4)
test_lifecycle = build_lifecycle(hasher, test_outbox)


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_lifecycle] = lambda: test_lifecycle
app.dependency_overrides[get_outbox] = lambda: test_outbox


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(autouse=True)
async def mail_outbox():
    """Run the test outbox worker for the duration of one test."""
    notifier.reset()
    await test_outbox.start()
    yield test_outbox
    await test_outbox.stop(drain=True)


@pytest.fixture
def mail_notifier() -> RecordingNotifier:
    return notifier


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    notifier.fail_with = DeliveryError("SMTP relay refused the connection")
    return notifier


@pytest.fixture
def lifecycle():
    return test_lifecycle


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def redis_cache(async_client):
    """Enable the cache with a dict-backed Redis for one test."""
    fake = DictRedis()
    cache._redis = fake
    yield fake
    cache._redis = None
