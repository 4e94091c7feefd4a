"""Ephemeral SQLite databases.

Each database is a file ``<directory>/test_<hex>.db``; the pool, migrations
and fixtures all share it. close() deletes the file with its WAL companions.
"""

from pathlib import Path

from dbtester import config
from dbtester.base import EphemeralDatabase
from dbtester.errors import ProvisioningError
from dbtester.migrations import MigrationSource
from dbtester.sqlite_service import SQLiteDatabaseService
from dbtester.urls import ephemeral_database_name

SQLITE_FILE_SUFFIXES = ("", "-wal", "-shm")


class TestSqlite(EphemeralDatabase):
    def __init__(
        self,
        migrations: MigrationSource,
        seeds_path: str | Path | None = None,
        directory: str | Path | None = None,
    ):
        super().__init__(migrations, seeds_path)
        self.directory = Path(directory or config.sqlite_directory()).resolve()
        self.dbname = ephemeral_database_name()

    @classmethod
    def default(cls) -> "TestSqlite":
        return cls(config.sqlite_migrations())

    @property
    def path(self) -> Path:
        return self.directory / f"{self.dbname}.db"

    def server_url(self) -> str:
        return f"sqlite:///{self.directory}"

    def url(self) -> str:
        return f"sqlite:///{self.path}"

    def _new_service(self, url: str, pool_size: int) -> SQLiteDatabaseService:
        return SQLiteDatabaseService(str(self.path), pool_size)

    def _create_database(self) -> None:
        if self.path.exists():
            raise ProvisioningError(f"Database file already exists: {self.path}")
        self.directory.mkdir(parents=True, exist_ok=True)

    def _drop_database(self) -> None:
        for suffix in SQLITE_FILE_SUFFIXES:
            Path(f"{self.path}{suffix}").unlink(missing_ok=True)


class TestSqliteBuilder:
    """Fluent configuration for TestSqlite."""

    __test__ = False

    def __init__(self, migrations: MigrationSource):
        self._migrations = migrations
        self._seeds_path: Path | None = None
        self._directory: Path | None = None

    def with_seeds(self, seeds_path: str | Path) -> "TestSqliteBuilder":
        self._seeds_path = Path(seeds_path)
        return self

    def in_directory(self, directory: str | Path) -> "TestSqliteBuilder":
        """Create the database file under directory instead of the temp dir."""
        self._directory = Path(directory)
        return self

    def build(self) -> TestSqlite:
        return TestSqlite(self._migrations, seeds_path=self._seeds_path, directory=self._directory)
