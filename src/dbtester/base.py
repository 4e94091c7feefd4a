"""Lifecycle shared by every ephemeral test database backend."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from dbtester.config import DEFAULT_POOL_SIZE
from dbtester.errors import FixtureError, ProvisioningError
from dbtester.fixtures import load_csv_data
from dbtester.migrations import Migrator, MigrationSource
from dbtester.seeds import run_seeds
from dbtester.service import DatabaseService

logger = logging.getLogger(__name__)


class EphemeralDatabase(ABC):
    """A uniquely named database that exists between open() and close().

    Provisioning (create, extensions, migrations, seeds) and teardown are
    explicit blocking calls; use the instance as a context manager to tie the
    database to a scope::

        with TestPg(url, "fixtures/migrations") as tdb:
            pool = tdb.get_pool()

    Any provisioning or teardown failure raises ProvisioningError. Tests
    cannot run without their database, so callers should let it propagate.
    """

    # Keep pytest from collecting the Test* subclasses.
    __test__ = False

    dbname: str

    def __init__(self, migrations: MigrationSource, seeds_path: str | Path | None = None):
        self.migrations = migrations
        self.seeds_path = Path(seeds_path) if seeds_path is not None else None
        self._opened = False
        self._pools: list[DatabaseService] = []

    def __repr__(self) -> str:
        state = "open" if self._opened else "closed"
        return f"<{type(self).__name__} {self.dbname} ({state})>"

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._opened

    @abstractmethod
    def server_url(self) -> str:
        """URL of the server, without a database name."""

    @abstractmethod
    def url(self) -> str:
        """URL of the ephemeral database."""

    @abstractmethod
    def _new_service(self, url: str, pool_size: int) -> DatabaseService:
        """Unconnected DatabaseService for url."""

    @abstractmethod
    def _create_database(self) -> None:
        """Create the physical database on the server."""

    @abstractmethod
    def _drop_database(self) -> None:
        """Remove the physical database from the server."""

    def _prepare(self, service: DatabaseService) -> None:
        """Hook run on the new database before migrations."""

    def _connect(self, url: str, pool_size: int) -> DatabaseService:
        service = self._new_service(url, pool_size)
        try:
            service.connect()
        except Exception as e:
            service.close()
            logger.error("Error while connecting to %s: %s", url, e)
            raise ProvisioningError(f"Error while connecting to {url}") from e
        return service

    def open(self):
        """Create, migrate and seed the database. Returns self."""
        if self._opened:
            raise RuntimeError(f"{self.dbname} is already open")

        try:
            self._create_database()
        except ProvisioningError:
            raise
        except Exception as e:
            logger.error("Error while creating %s: %s", self.dbname, e)
            raise ProvisioningError(f"Error while creating database {self.dbname}: {e}") from e
        logger.info("Created test database %s", self.dbname)
        try:
            self._provision()
        except ProvisioningError:
            self._discard()
            raise
        except Exception as e:
            logger.error("Provisioning %s failed: %s", self.dbname, e)
            self._discard()
            raise ProvisioningError(f"Error while provisioning {self.url()}: {e}") from e

        self._opened = True
        return self

    def _provision(self) -> None:
        service = self._connect(self.url(), pool_size=1)
        try:
            self._prepare(service)
            Migrator(self.migrations).run(service)
            if self.seeds_path is not None:
                run_seeds(service, self.seeds_path)
        finally:
            service.close()

    def _discard(self) -> None:
        """Best-effort drop after a failed open()."""
        try:
            self._drop_database()
        except Exception as e:
            logger.warning("Could not drop half-provisioned database %s: %s", self.dbname, e)

    def close(self) -> None:
        """Close handed-out pools and drop the database. No-op when not open."""
        if not self._opened:
            return
        self._opened = False

        for pool in self._pools:
            if not pool.closed:
                pool.close()
        self._pools.clear()

        try:
            self._drop_database()
        except ProvisioningError:
            raise
        except Exception as e:
            logger.error("Error while dropping %s: %s", self.dbname, e)
            raise ProvisioningError(f"Failed to drop database {self.dbname}: {e}") from e
        logger.info("Dropped test database %s", self.dbname)

    def _require_open(self) -> None:
        if not self._opened:
            raise RuntimeError(
                f"{self.dbname} is not open. Call open() or use it as a context manager."
            )

    def get_pool(self, pool_size: int = DEFAULT_POOL_SIZE) -> DatabaseService:
        """Connected DatabaseService for the ephemeral database.

        The pool is closed automatically by close().
        """
        self._require_open()
        pool = self._connect(self.url(), pool_size)
        self._pools.append(pool)
        return pool

    def load_csv_data(self, table: str, csv_text: str) -> int:
        """Insert CSV text (header row first) into table; all rows or none."""
        self._require_open()
        service = self._connect(self.url(), pool_size=1)
        try:
            return load_csv_data(service, table, csv_text)
        finally:
            service.close()

    def load_csv(self, table: str, fields: list[str], filename: str | Path) -> None:
        """Load a CSV file into table.

        This default reads the file on the client and ignores fields; the
        header row names the columns.
        """
        try:
            csv_text = Path(filename).read_text(encoding="utf-8")
        except OSError as e:
            raise FixtureError(f"Cannot read CSV file {filename}: {e}") from e
        self.load_csv_data(table, csv_text)
