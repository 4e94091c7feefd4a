"""Connection-URL helpers and unique database naming."""

import uuid
from urllib.parse import unquote, urlsplit


def parse_database_url(url: str) -> tuple[str, str | None]:
    """Split a connection URL into (server_url, database_name).

    ``postgres://user:pw@host/pureya`` -> (``postgres://user:pw@host``, ``"pureya"``)
    ``postgres://user:pw@host``        -> (``postgres://user:pw@host``, ``None``)

    No validation is done: a malformed URL yields a malformed server URL.
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        scheme, rest = "", url
    parts = rest.split("/")
    server_url = f"{scheme}{sep}{parts[0]}"
    dbname = parts[1] if len(parts) > 1 and parts[1] else None
    return server_url, dbname


def unique_suffix() -> str:
    """Random 32-char hex suffix, safe in SQL identifiers and file names."""
    return uuid.uuid4().hex


def ephemeral_database_name(existing: str | None = None) -> str:
    """Name for a fresh ephemeral database, derived from an optional base name."""
    suffix = unique_suffix()
    if existing:
        return f"{existing}_test_{suffix}"
    return f"test_{suffix}"


def connect_kwargs(url: str) -> dict:
    """Turn ``mysql://user:pw@host:port/db`` into driver keyword arguments."""
    parts = urlsplit(url)
    kwargs: dict = {"host": parts.hostname or "localhost"}
    if parts.port:
        kwargs["port"] = parts.port
    if parts.username:
        kwargs["user"] = unquote(parts.username)
    if parts.password:
        kwargs["password"] = unquote(parts.password)
    database = parts.path.lstrip("/")
    if database:
        kwargs["database"] = database
    return kwargs
