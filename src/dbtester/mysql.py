"""Ephemeral MySQL databases."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import mysql.connector

from dbtester import config
from dbtester.base import EphemeralDatabase
from dbtester.errors import ProvisioningError
from dbtester.migrations import MigrationSource
from dbtester.mysql_service import MySQLDatabaseService
from dbtester.urls import connect_kwargs, ephemeral_database_name, parse_database_url

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


@contextmanager
def admin_connection(url: str) -> Iterator:
    try:
        conn = mysql.connector.connect(autocommit=True, **connect_kwargs(url))
    except mysql.connector.Error as e:
        logger.error("Error while connecting to %s: %s", url, e)
        raise ProvisioningError(f"Error while connecting to {url}") from e
    try:
        yield conn
    finally:
        conn.close()


class TestMySql(EphemeralDatabase):
    """Ephemeral MySQL database.

    CREATE and DROP go through the ``mysql`` system database on the server.
    load_csv reads files on the client; LOAD DATA LOCAL INFILE is not used.
    """

    def __init__(
        self,
        database_url: str,
        migrations: MigrationSource,
        seeds_path: str | Path | None = None,
    ):
        super().__init__(migrations, seeds_path)
        self.database_url = database_url
        self._server_url, existing = parse_database_url(database_url)
        self.dbname = ephemeral_database_name(existing)

    @classmethod
    def default(cls) -> "TestMySql":
        return cls(config.mysql_url(), config.mysql_migrations())

    def server_url(self) -> str:
        return self._server_url

    def url(self) -> str:
        return f"{self._server_url}/{self.dbname}"

    def _admin_url(self) -> str:
        return f"{self._server_url}/mysql"

    def _new_service(self, url: str, pool_size: int) -> MySQLDatabaseService:
        return MySQLDatabaseService(url, pool_size)

    def _execute_admin(self, statement: str) -> None:
        with admin_connection(self._admin_url()) as conn:
            cur = conn.cursor()
            try:
                cur.execute(statement)
            finally:
                cur.close()

    def _create_database(self) -> None:
        self._execute_admin(f"CREATE DATABASE {quote_identifier(self.dbname)}")

    def _drop_database(self) -> None:
        self._execute_admin(f"DROP DATABASE {quote_identifier(self.dbname)}")


class TestMySqlBuilder:
    """Fluent configuration for TestMySql."""

    __test__ = False

    def __init__(self, database_url: str, migrations: MigrationSource):
        self._database_url = database_url
        self._migrations = migrations
        self._seeds_path: Path | None = None

    def with_seeds(self, seeds_path: str | Path) -> "TestMySqlBuilder":
        """Directory of ``<timestamp>_<description>.sql`` files run after migrations."""
        self._seeds_path = Path(seeds_path)
        return self

    def build(self) -> TestMySql:
        return TestMySql(self._database_url, self._migrations, seeds_path=self._seeds_path)
