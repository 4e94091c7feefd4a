"""Ordered SQL migrations applied once per database.

A migration source is either a directory of ``<version>_<description>.sql``
files (``.up.sql`` accepted, ``.down.sql`` ignored) or a sequence of
``Migration`` records. Applied versions are recorded in MIGRATIONS_TABLE so
running the same source twice is a no-op.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

from dbtester.errors import MigrationError
from dbtester.service import DatabaseService

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE = "_dbtester_migrations"

MIGRATIONS_TABLE_DDL = f"""
CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
    version       BIGINT      NOT NULL PRIMARY KEY,
    description   TEXT        NOT NULL,
    installed_on  TIMESTAMP   DEFAULT CURRENT_TIMESTAMP
)
"""

_FILENAME_RE = re.compile(r"^(?P<version>\d+)_(?P<description>.+?)(?P<kind>\.up|\.down)?\.sql$")


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    sql: str


MigrationSource = Union[str, Path, Iterable[Migration]]


def load_migrations(directory: str | Path) -> list[Migration]:
    """Read migration files from a directory, sorted by version."""
    directory = Path(directory)
    if not directory.is_dir():
        raise MigrationError(f"Migration directory not found: {directory}")

    migrations = []
    for path in directory.iterdir():
        if not path.is_file() or path.suffix != ".sql":
            continue
        match = _FILENAME_RE.match(path.name)
        if match is None:
            raise MigrationError(
                f"Bad migration file name {path.name!r}: expected <version>_<description>.sql"
            )
        if match["kind"] == ".down":
            continue
        description = match["description"].replace("_", " ")
        migrations.append(
            Migration(int(match["version"]), description, path.read_text(encoding="utf-8"))
        )
    return _ordered(migrations)


def _ordered(migrations: Iterable[Migration]) -> list[Migration]:
    ordered = sorted(migrations, key=lambda m: m.version)
    for prev, cur in zip(ordered, ordered[1:]):
        if prev.version == cur.version:
            raise MigrationError(f"Duplicate migration version {cur.version}")
    return ordered


class Migrator:
    """Applies pending migrations from a source to a DatabaseService."""

    def __init__(self, source: MigrationSource):
        if isinstance(source, (str, Path)):
            self.migrations = load_migrations(source)
        else:
            self.migrations = _ordered(source)

    def applied_versions(self, service: DatabaseService) -> set[int]:
        service.execute_ddl(MIGRATIONS_TABLE_DDL)
        with service.transaction():
            rows = service.execute(f"SELECT version FROM {MIGRATIONS_TABLE}")
        return {int(row["version"]) for row in rows}

    def pending(self, service: DatabaseService) -> list[Migration]:
        applied = self.applied_versions(service)
        return [m for m in self.migrations if m.version not in applied]

    def run(self, service: DatabaseService) -> int:
        """Apply every pending migration in version order.

        Returns the number of migrations applied. A failing step raises
        MigrationError; steps already applied stay applied.
        """
        pending = self.pending(service)
        p = service.placeholder
        record_sql = f"INSERT INTO {MIGRATIONS_TABLE} (version, description) VALUES ({p}, {p})"

        for migration in pending:
            logger.debug("Applying migration %d (%s)", migration.version, migration.description)
            try:
                service.execute_ddl(migration.sql)
                with service.transaction():
                    service.execute(record_sql, (migration.version, migration.description))
            except Exception as e:
                raise MigrationError(
                    f"Migration {migration.version} ({migration.description}) failed: {e}"
                ) from e

        logger.info(
            "Applied %d migration(s), %d already present",
            len(pending),
            len(self.migrations) - len(pending),
        )
        return len(pending)
