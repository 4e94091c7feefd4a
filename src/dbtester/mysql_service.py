"""MySQL implementation of DatabaseService."""

from typing import Any

import mysql.connector

from dbtester.service import PooledDatabaseService
from dbtester.types import Params, ParamsList
from dbtester.urls import connect_kwargs


def split_statements(sql: str) -> list[str]:
    """Split a script on ';' into non-empty statements.

    Semicolons inside string literals or routine bodies are not understood.
    """
    return [s.strip() for s in sql.split(";") if s.strip()]


class MySQLDatabaseService(PooledDatabaseService):
    """MySQL backend using mysql-connector-python."""

    placeholder = "%s"

    def __init__(self, url: str, pool_size: int = 4):
        super().__init__(pool_size)
        self._url = url

    def _open_connection(self):
        return mysql.connector.connect(autocommit=False, **connect_kwargs(self._url))

    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        conn = self._get_conn()
        cur = conn.cursor(dictionary=True)
        try:
            cur.execute(sql, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]
        finally:
            cur.close()

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        cur = conn.cursor()
        try:
            cur.executemany(sql, params_list)
        finally:
            cur.close()

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            cur = conn.cursor()
            try:
                for statement in split_statements(sql):
                    cur.execute(statement)
            finally:
                cur.close()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)
