"""Tests for CSV fixture loading."""

import pytest

from dbtester.errors import FixtureError
from dbtester.fixtures import load_csv_data, parse_csv, validate_identifier


@pytest.fixture
def todos_service(db_service):
    db_service.execute_ddl(
        "CREATE TABLE todos (id INTEGER PRIMARY KEY, title TEXT NOT NULL, note TEXT)"
    )
    return db_service


def titles(service):
    with service.transaction():
        rows = service.execute("SELECT title FROM todos ORDER BY id")
    return [r["title"] for r in rows]


class TestParseCsv:
    def test_headers_and_rows(self):
        headers, rows = parse_csv("title,note\nHello,a\nWorld,b\n")
        assert headers == ["title", "note"]
        assert rows == [["Hello", "a"], ["World", "b"]]

    def test_quoted_values(self):
        _, rows = parse_csv('title\n"Hello, world"\n')
        assert rows == [["Hello, world"]]

    def test_blank_lines_skipped(self):
        _, rows = parse_csv("title\nHello\n\nWorld\n")
        assert rows == [["Hello"], ["World"]]

    def test_empty(self):
        with pytest.raises(FixtureError, match="no header row"):
            parse_csv("")

    def test_ragged_row(self):
        with pytest.raises(FixtureError, match="Row 3 has 1 fields, expected 2"):
            parse_csv("title,note\nHello,a\nWorld\n")


class TestValidateIdentifier:
    @pytest.mark.parametrize("name", ["todos", "_t1", "public.todos"])
    def test_accepts(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize("name", ["", "1abc", "todos; DROP TABLE x", "a.b.c", "ti tle"])
    def test_rejects(self, name):
        with pytest.raises(FixtureError, match="Unsafe SQL identifier"):
            validate_identifier(name)


class TestLoadCsvData:
    def test_hello_world(self, todos_service):
        assert load_csv_data(todos_service, "todos", "title\nHello\nWorld") == 2
        assert titles(todos_service) == ["Hello", "World"]

    def test_column_order_preserved(self, todos_service):
        load_csv_data(todos_service, "todos", "note,title\nn1,t1\n")
        with todos_service.transaction():
            rows = todos_service.execute("SELECT title, note FROM todos")
        assert rows == [{"title": "t1", "note": "n1"}]

    def test_values_are_not_interpolated(self, todos_service):
        load_csv_data(todos_service, "todos", "title\nit's fine\n")
        assert titles(todos_service) == ["it's fine"]

    def test_failure_rolls_back_all_rows(self, todos_service):
        # second row violates the primary key
        with pytest.raises(FixtureError, match="Loading CSV data into todos failed"):
            load_csv_data(todos_service, "todos", "id,title\n1,Hello\n1,World\n")
        assert titles(todos_service) == []

    def test_unknown_table(self, todos_service):
        with pytest.raises(FixtureError):
            load_csv_data(todos_service, "missing", "title\nHello\n")

    def test_unsafe_column_rejected(self, todos_service):
        with pytest.raises(FixtureError, match="Unsafe SQL identifier"):
            load_csv_data(todos_service, "todos", "title) VALUES ('x'); --\nHello\n")
        assert titles(todos_service) == []

    def test_header_only(self, todos_service):
        assert load_csv_data(todos_service, "todos", "title\n") == 0
