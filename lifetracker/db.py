"""Async access to the libSQL database behind the document store.

The ``libsql`` driver is synchronous, so every call is pushed onto a worker
thread with ``asyncio.to_thread()``.  The target is picked from settings:

- **Production**: ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → remote Turso
- **Dev/test**: no Turso env vars → local file at ``database_path``
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import libsql

from lifetracker.config import settings

if TYPE_CHECKING:
    from pathlib import Path


class Connection:
    """One libsql connection with coroutine methods.

    Use as an async context manager so the connection is always closed::

        async with await connect() as conn:
            rows = await conn.fetchall("SELECT ...")
    """

    def __init__(self, raw: Any) -> None:
        self._raw = raw

    def _run(self, sql: str, params: tuple, fetch: str | None) -> Any:
        cursor = self._raw.execute(sql, params)
        if fetch == "one":
            return cursor.fetchone()
        if fetch == "all":
            return cursor.fetchall()
        return cursor.rowcount

    async def execute(self, sql: str, params: tuple = ()) -> int:
        """Run a statement and return the affected row count."""
        return await asyncio.to_thread(self._run, sql, params, None)

    async def fetchone(self, sql: str, params: tuple = ()) -> tuple | None:
        return await asyncio.to_thread(self._run, sql, params, "one")

    async def fetchall(self, sql: str, params: tuple = ()) -> list[tuple]:
        return list(await asyncio.to_thread(self._run, sql, params, "all"))

    async def commit(self) -> None:
        await asyncio.to_thread(self._raw.commit)

    async def close(self) -> None:
        await asyncio.to_thread(self._raw.close)

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _open_file(path: Path) -> Any:
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = libsql.connect(str(path))
    raw.execute("PRAGMA journal_mode=WAL")
    raw.execute("PRAGMA busy_timeout=5000")
    return raw


async def connect(local_path_override: Path | None = None) -> Connection:
    """Open a connection.

    *local_path_override* (test isolation) wins over everything; then a
    configured Turso URL; then the local ``database_path``.
    """
    if local_path_override is not None:
        return Connection(await asyncio.to_thread(_open_file, local_path_override))

    if settings.turso_database_url:
        raw = await asyncio.to_thread(
            libsql.connect,
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
        )
        return Connection(raw)

    return Connection(await asyncio.to_thread(_open_file, settings.database_path))
