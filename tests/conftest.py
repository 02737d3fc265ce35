"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``app`` import so the module-level
settings never point at a real PostgreSQL server. Each test gets its own
SQLite database file (through aiosqlite) and upload directory.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-accounts.db")
os.environ.setdefault("DATABASE_CREATE_SCHEMA", "true")
os.environ.setdefault("APP_PASSWORD_HASH_ROUNDS", "4")

from pathlib import Path
from typing import AsyncIterator, Callable, Iterator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.adapters.db.database import Database
from app.adapters.storage.blob import InlineBlobAssetStore
from app.adapters.storage.filesystem import FilesystemAssetStore
from app.core.app_factory import create_app
from app.core.config import AppSettings, DatabaseSettings, Settings, StorageSettings
from app.services.account_service import AccountService
from app.services.credential_store import CredentialStore

# Lowest bcrypt work factor keeps the suite fast; the default (10) is covered
# explicitly in test_credential_store.py.
TEST_HASH_ROUNDS = 4


def build_settings(
    tmp_path: Path,
    *,
    backend: str = "blob",
    **app_overrides,
) -> Settings:
    app_options = {"password_hash_rounds": TEST_HASH_ROUNDS, **app_overrides}
    return Settings(
        app=AppSettings(**app_options),
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}"),
        storage=StorageSettings(backend=backend, upload_dir=str(tmp_path / "uploads")),
    )


@pytest.fixture
def settings_factory(tmp_path: Path) -> Callable[..., Settings]:
    def _factory(**kwargs) -> Settings:
        return build_settings(tmp_path, **kwargs)

    return _factory


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncIterator[Database]:
    db = Database(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"))
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture
def credential_store(database: Database) -> CredentialStore:
    return CredentialStore(database, rounds=TEST_HASH_ROUNDS)


@pytest.fixture
def blob_store(database: Database) -> InlineBlobAssetStore:
    return InlineBlobAssetStore(database)


@pytest.fixture
def filesystem_store(database: Database, tmp_path: Path) -> FilesystemAssetStore:
    return FilesystemAssetStore(database, upload_dir=tmp_path / "uploads")


@pytest.fixture(params=["blob", "filesystem"])
def asset_store(request, blob_store, filesystem_store):
    """Run the test once per storage backend."""
    return blob_store if request.param == "blob" else filesystem_store


@pytest.fixture
def account_service(credential_store, blob_store) -> AccountService:
    return AccountService(credential_store, blob_store)


@pytest_asyncio.fixture
async def account(credential_store: CredentialStore):
    return await credential_store.create_account(
        email="owner@example.com",
        password="s3cret",
        full_name="Owner",
        phone_number="555-0100",
    )


@pytest.fixture
def client_factory(settings_factory) -> Iterator[Callable[..., TestClient]]:
    """Build started TestClients; lifespans are closed at teardown."""
    clients: list[TestClient] = []

    def _factory(**kwargs) -> TestClient:
        app = create_app(settings_factory(**kwargs), configure_logs=False)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture(params=["blob", "filesystem"])
def client(request, client_factory) -> TestClient:
    """Started TestClient, once per storage backend."""
    return client_factory(backend=request.param)


@pytest.fixture
def blob_client(client_factory) -> TestClient:
    return client_factory(backend="blob")
