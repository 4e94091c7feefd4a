"""Shared test fixtures."""

from pathlib import Path

import pytest

from dbtester import TestSqlite, create_service

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def sqlite_migrations() -> Path:
    return FIXTURES / "sqlite_migrations"


@pytest.fixture
def seeds_dir() -> Path:
    return FIXTURES / "seeds"


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh SQLite DatabaseService for each test."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    yield service
    service.close()


@pytest.fixture
def tdb(tmp_path, sqlite_migrations):
    """An open, migrated ephemeral SQLite database."""
    with TestSqlite(sqlite_migrations, directory=tmp_path) as db:
        yield db
