"""CSV fixture loading into a table."""

import csv
import io
import logging
import re

from dbtester.errors import FixtureError
from dbtester.service import DatabaseService

logger = logging.getLogger(__name__)

# Optionally schema-qualified: todos, public.todos
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def validate_identifier(name: str) -> str:
    """Return name unchanged if it is safe to interpolate into SQL."""
    if not IDENTIFIER_RE.match(name):
        raise FixtureError(f"Unsafe SQL identifier: {name!r}")
    return name


def parse_csv(csv_text: str) -> tuple[list[str], list[list[str]]]:
    """Split CSV text into (headers, rows). Values stay strings."""
    reader = csv.reader(io.StringIO(csv_text))
    try:
        headers = next(reader, None)
        if not headers:
            raise FixtureError("CSV data has no header row")
        headers = [h.strip() for h in headers]

        rows = []
        for row_num, row in enumerate(reader, start=2):
            if not row:
                continue
            if len(row) != len(headers):
                raise FixtureError(
                    f"Row {row_num} has {len(row)} fields, expected {len(headers)}: {row}"
                )
            rows.append(row)
    except csv.Error as e:
        raise FixtureError(f"Malformed CSV data: {e}") from e
    return headers, rows


def load_csv_data(service: DatabaseService, table: str, csv_text: str) -> int:
    """Insert every CSV row into table inside one transaction.

    The first line names the columns. Either all rows are committed or none
    are. Returns the number of rows inserted.
    """
    validate_identifier(table)
    headers, rows = parse_csv(csv_text)
    for column in headers:
        validate_identifier(column)

    cols = ", ".join(headers)
    placeholders = ", ".join(service.placeholder for _ in headers)
    sql = f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"

    try:
        with service.transaction():
            for row in rows:
                service.execute(sql, tuple(row))
    except Exception as e:
        raise FixtureError(f"Loading CSV data into {table} failed: {e}") from e

    logger.info("Loaded %d row(s) into %s", len(rows), table)
    return len(rows)
