"""Seed files: baseline data run after migrations.

Seed files are named ``<timestamp>_<description>.sql`` and run in ascending
order of the text before the first underscore (string comparison).
"""

import logging
from pathlib import Path
from typing import NamedTuple

from dbtester.service import DatabaseService

logger = logging.getLogger(__name__)


class SeedFile(NamedTuple):
    timestamp_key: str
    path: Path


def discover_seed_files(directory: str | Path) -> list[SeedFile]:
    """List *.sql files in directory, ordered by timestamp prefix.

    Rebuilt on every call; a missing directory yields an empty list.
    """
    directory = Path(directory)
    if not directory.exists():
        return []

    seeds = [
        SeedFile(path.name.split("_", 1)[0], path)
        for path in directory.iterdir()
        if path.is_file() and path.suffix == ".sql"
    ]
    seeds.sort(key=lambda s: (s.timestamp_key, s.path.name))
    return seeds


def run_seeds(service: DatabaseService, directory: str | Path) -> int:
    """Execute each seed file's contents as one batch, in order.

    Returns the number of files run. Read and execution errors propagate.
    """
    seeds = discover_seed_files(directory)
    for seed in seeds:
        logger.debug("Running seed %s", seed.path.name)
        service.execute_ddl(seed.path.read_text(encoding="utf-8"))
    if seeds:
        logger.info("Ran %d seed file(s) from %s", len(seeds), directory)
    return len(seeds)
