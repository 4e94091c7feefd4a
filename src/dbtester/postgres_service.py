"""PostgreSQL implementation of DatabaseService."""

from typing import Any

import psycopg2
import psycopg2.extras

from dbtester.service import PooledDatabaseService
from dbtester.types import Params, ParamsList


class PostgresDatabaseService(PooledDatabaseService):
    """PostgreSQL backend using psycopg2."""

    placeholder = "%s"

    def __init__(self, dsn: str, pool_size: int = 4):
        super().__init__(pool_size)
        self._dsn = dsn

    def _open_connection(self):
        conn = psycopg2.connect(self._dsn)
        conn.autocommit = False
        return conn

    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        conn = self._get_conn()
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        # psycopg2 sends the whole script in one simple-query round trip, so
        # dollar-quoted bodies containing ';' survive intact.
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)
