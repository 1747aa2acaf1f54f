"""Shared test fixtures for SQLite Manager tests."""
import pytest

from sqlite_manager.db import SqliteGateway
from sqlite_manager.main import build_dispatcher
from sqlite_manager.resources.insights import InsightStore


@pytest.fixture
def db(tmp_path):
    """Gateway on a throwaway database file."""
    gateway = SqliteGateway(str(tmp_path / "test.sqlite"))
    gateway.connect()
    yield gateway
    gateway.close()


@pytest.fixture
def store():
    return InsightStore()


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def dispatcher(db, store, notifications):
    """Fully registered dispatcher whose resource updates are recorded."""
    d = build_dispatcher(db, store)

    async def record(uri):
        notifications.append(uri)

    d.notifier = record
    return d


@pytest.fixture
def users_table_sql():
    return "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)"


@pytest.fixture
def sample_rows():
    return [
        {"id": 1, "name": "Alice", "email": "alice@example.com"},
        {"id": 2, "name": "Bob", "email": "bob@example.com"},
    ]
