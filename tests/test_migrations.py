"""Tests for loading and applying migrations."""

import pytest

from dbtester.errors import MigrationError
from dbtester.migrations import MIGRATIONS_TABLE, Migration, Migrator, load_migrations


def write(path, name, sql):
    (path / name).write_text(sql)


class TestLoadMigrations:
    def test_ordered_by_version(self, tmp_path):
        write(tmp_path, "3_third.sql", "SELECT 3")
        write(tmp_path, "10_tenth.sql", "SELECT 10")
        write(tmp_path, "1_first_step.sql", "SELECT 1")
        migrations = load_migrations(tmp_path)
        assert [m.version for m in migrations] == [1, 3, 10]
        assert migrations[0].description == "first step"
        assert migrations[0].sql == "SELECT 1"

    def test_down_files_ignored(self, sqlite_migrations):
        migrations = load_migrations(sqlite_migrations)
        assert [m.version for m in migrations] == [20220101000000, 20220102000000]
        assert "CREATE TABLE tags" in migrations[1].sql

    def test_other_files_ignored(self, tmp_path):
        write(tmp_path, "1_init.sql", "SELECT 1")
        write(tmp_path, "README.md", "notes")
        assert len(load_migrations(tmp_path)) == 1

    def test_bad_name(self, tmp_path):
        write(tmp_path, "init.sql", "SELECT 1")
        with pytest.raises(MigrationError, match="Bad migration file name"):
            load_migrations(tmp_path)

    def test_duplicate_version(self, tmp_path):
        write(tmp_path, "1_a.sql", "SELECT 1")
        write(tmp_path, "1_b.sql", "SELECT 1")
        with pytest.raises(MigrationError, match="Duplicate migration version 1"):
            load_migrations(tmp_path)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(MigrationError, match="not found"):
            load_migrations(tmp_path / "nope")


class TestMigrator:
    def test_run_applies_in_order(self, db_service, sqlite_migrations):
        applied = Migrator(sqlite_migrations).run(db_service)
        assert applied == 2

        with db_service.transaction():
            db_service.execute("INSERT INTO todos (title) VALUES (?)", ("a",))
            db_service.execute("INSERT INTO tags (todo_id, name) VALUES (?, ?)", (1, "x"))
            rows = db_service.execute(f"SELECT version FROM {MIGRATIONS_TABLE} ORDER BY version")
        assert [r["version"] for r in rows] == [20220101000000, 20220102000000]

    def test_run_twice_is_noop(self, db_service, sqlite_migrations):
        Migrator(sqlite_migrations).run(db_service)
        assert Migrator(sqlite_migrations).run(db_service) == 0

    def test_sequence_source(self, db_service):
        migrations = [
            Migration(2, "add row", "INSERT INTO t (id) VALUES (1)"),
            Migration(1, "create t", "CREATE TABLE t (id INTEGER)"),
        ]
        assert Migrator(migrations).run(db_service) == 2
        with db_service.transaction():
            rows = db_service.execute("SELECT id FROM t")
        assert rows == [{"id": 1}]

    def test_pending_after_partial(self, db_service):
        first = Migration(1, "create t", "CREATE TABLE t (id INTEGER)")
        second = Migration(2, "create u", "CREATE TABLE u (id INTEGER)")
        Migrator([first]).run(db_service)
        pending = Migrator([first, second]).pending(db_service)
        assert pending == [second]

    def test_failure_raises_migration_error(self, db_service):
        migrations = [
            Migration(1, "create t", "CREATE TABLE t (id INTEGER)"),
            Migration(2, "broken", "CREATE TABLE"),
        ]
        with pytest.raises(MigrationError, match="Migration 2 \\(broken\\) failed"):
            Migrator(migrations).run(db_service)
        # the first step stays recorded
        assert Migrator(migrations[:1]).run(db_service) == 0
