"""Service test fixtures — in-memory stores, failing stores, async DB + FastAPI test client.

Invariants:
    - Every test gets fresh stores and a fresh in-memory SQLite database
    - scrypt runs with tiny cost parameters so hashing stays fast
    - get_settings/get_db_manager overridden for route tests; lifespan never runs

Design Decisions:
    - Failing stores subclass the in-memory ones and fail on named operations only,
      so a test can break exactly one leg of a two-store operation
    - StaticPool for SQLite :memory:: every session must see the same database
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from walletpin.config import Settings, get_settings
from walletpin.core.domain_types import PinScheme
from walletpin.core.errors import StorageUnavailableError
from walletpin.core.pin_hashing import ScryptParams
from walletpin.db.base import Base
from walletpin.infrastructure.database import DatabaseSessionManager, get_db_manager
from walletpin.infrastructure.secure_store import InMemorySecureStore, InMemorySecureStores
from walletpin.infrastructure.wallet_document_store import (
    InMemoryWalletDocumentStore, SqlWalletDocumentStore,
)
from walletpin.main import app
from walletpin.services.pin_credential_manager import PinCredentialManager
import walletpin.models  # noqa: F401

FAST_SCRYPT = ScryptParams(n=2 ** 8, r=8, p=1)


class FailingSecureStore(InMemorySecureStore):
    """InMemorySecureStore that raises on the operations named in `failing`."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing: set[str] = set()

    async def get(self, key):
        if "get" in self.failing:
            raise StorageUnavailableError("local", "get")
        return await super().get(key)

    async def set(self, key, value):
        if "set" in self.failing:
            raise StorageUnavailableError("local", "set")
        await super().set(key, value)

    async def delete(self, key):
        if "delete" in self.failing:
            raise StorageUnavailableError("local", "delete")
        await super().delete(key)


class FailingDocumentStore(InMemoryWalletDocumentStore):
    """InMemoryWalletDocumentStore that raises on the operations named in `failing`."""

    def __init__(self):
        super().__init__()
        self.failing: set[str] = set()

    async def get(self, user_id):
        if "get" in self.failing:
            raise StorageUnavailableError("remote", "get")
        return await super().get(user_id)

    async def merge(self, user_id, fields):
        if "merge" in self.failing:
            raise StorageUnavailableError("remote", "merge")
        await super().merge(user_id, fields)

    async def overwrite(self, user_id, fields):
        if "overwrite" in self.failing:
            raise StorageUnavailableError("remote", "overwrite")
        await super().overwrite(user_id, fields)


@pytest.fixture
def fast_scrypt():
    return FAST_SCRYPT


@pytest.fixture
def secure_stores():
    """Per-user local stores; every user gets a FailingSecureStore."""
    return InMemorySecureStores(FailingSecureStore)


@pytest.fixture
def secure_store(secure_stores):
    """The local store of "user1", the account most tests work on."""
    return secure_stores("user1")


@pytest.fixture
def document_store():
    return FailingDocumentStore()


@pytest.fixture
def manager(secure_stores, document_store):
    return PinCredentialManager(
        secure_stores, document_store, scrypt_params=FAST_SCRYPT,
    )


@pytest.fixture
def legacy_manager(secure_stores, document_store):
    """Manager writing the legacy sha256 scheme over the same stores."""
    return PinCredentialManager(
        secure_stores, document_store,
        scheme=PinScheme.SHA256, scrypt_params=FAST_SCRYPT,
    )


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db_manager(test_engine, test_session_factory):
    return DatabaseSessionManager.from_factory(test_engine, test_session_factory)


@pytest.fixture
async def sql_document_store(test_db_manager):
    return SqlWalletDocumentStore(test_db_manager)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secure_store_dir=str(tmp_path / "secure_store"),
        secure_store_key=os.environ["SECURE_STORE_KEY"],
        scrypt_n=FAST_SCRYPT.n,
    )


@pytest.fixture
async def client(test_settings, test_db_manager):
    """FastAPI test client with settings and DB dependencies overridden."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_db_manager] = lambda: test_db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
