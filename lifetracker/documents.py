"""DocumentStore — a key-path document tree persisted in libSQL.

Paths are ``/``-separated.  The first segment names a collection, the
second a document inside it, and any further segments walk into the
document's JSON fields::

    habits                  -> {id: document, ...}
    habits/abc123           -> document dict
    habits/abc123/streak    -> a single field

Each document is one row keyed by ``(collection, doc_id)`` holding the JSON
encoded value.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any

from lifetracker.db import connect

if TYPE_CHECKING:
    from pathlib import Path

    from lifetracker.db import Connection

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    doc_id     TEXT NOT NULL,
    value      TEXT NOT NULL,
    PRIMARY KEY (collection, doc_id)
)
"""


def _split(path: str) -> list[str]:
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        msg = "Document path must name at least a collection"
        raise ValueError(msg)
    return parts


def make_document_id() -> str:
    """Generate a new document key."""
    return uuid.uuid4().hex


class DocumentStore:
    """Persistence capability used by the entity stores.

    Singleton accessed via ``DocumentStore.get()``.  Pass an explicit
    *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    _instance: DocumentStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False

    @classmethod
    def get(cls) -> DocumentStore:
        """Return the shared DocumentStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> Connection:
        conn = await connect(local_path_override=self._db_path)
        if not self._initialised:
            await conn.execute(_CREATE_TABLE)
            await conn.commit()
            self._initialised = True
        return conn

    @staticmethod
    async def _load(conn: Connection, collection: str, doc_id: str) -> Any:
        row = await conn.fetchone(
            "SELECT value FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        return json.loads(row[0]) if row else None

    @staticmethod
    async def _store(conn: Connection, collection: str, doc_id: str, value: Any) -> None:
        await conn.execute(
            "INSERT OR REPLACE INTO documents (collection, doc_id, value) VALUES (?, ?, ?)",
            (collection, doc_id, json.dumps(value)),
        )

    @staticmethod
    async def _load_collection(conn: Connection, collection: str) -> dict[str, Any]:
        rows = await conn.fetchall(
            "SELECT doc_id, value FROM documents WHERE collection = ? ORDER BY rowid",
            (collection,),
        )
        return {doc_id: json.loads(value) for doc_id, value in rows}

    # -- Capability ------------------------------------------------------------

    async def get(self, path: str) -> Any:
        """Return the value at *path*, or None when nothing is stored there."""
        parts = _split(path)
        async with await self._connect() as conn:
            if len(parts) == 1:
                return await self._load_collection(conn, parts[0]) or None
            value = await self._load(conn, parts[0], parts[1])
        for field in parts[2:]:
            if not isinstance(value, dict):
                return None
            value = value.get(field)
        return value

    async def set(self, path: str, value: Any) -> None:
        """Replace the value at *path*.  Setting None removes it."""
        if value is None:
            await self.remove(path)
            return
        parts = _split(path)
        async with await self._connect() as conn:
            if len(parts) == 1:
                if not isinstance(value, dict):
                    msg = f"Collection '{parts[0]}' can only be set to a mapping"
                    raise TypeError(msg)
                await conn.execute("DELETE FROM documents WHERE collection = ?", (parts[0],))
                for doc_id, doc in value.items():
                    await self._store(conn, parts[0], str(doc_id), doc)
            elif len(parts) == 2:
                await self._store(conn, parts[0], parts[1], value)
            else:
                doc = await self._load(conn, parts[0], parts[1])
                if not isinstance(doc, dict):
                    doc = {}
                _assign(doc, parts[2:], value)
                await self._store(conn, parts[0], parts[1], doc)
            await conn.commit()

    async def update(self, path: str, partial: dict[str, Any]) -> None:
        """Merge *partial* into the document at *path*, creating it if needed."""
        parts = _split(path)
        if len(parts) < 2:
            msg = "update() needs a document path, not a bare collection"
            raise ValueError(msg)
        async with await self._connect() as conn:
            doc = await self._load(conn, parts[0], parts[1])
            if not isinstance(doc, dict):
                doc = {}
            target = doc
            for field in parts[2:]:
                nxt = target.get(field)
                if not isinstance(nxt, dict):
                    nxt = {}
                    target[field] = nxt
                target = nxt
            target.update(partial)
            await self._store(conn, parts[0], parts[1], doc)
            await conn.commit()

    async def remove(self, path: str) -> bool:
        """Delete whatever is at *path*. Returns True if anything was removed."""
        parts = _split(path)
        async with await self._connect() as conn:
            if len(parts) == 1:
                removed = await conn.execute(
                    "DELETE FROM documents WHERE collection = ?", (parts[0],)
                )
            elif len(parts) == 2:
                removed = await conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    (parts[0], parts[1]),
                )
            else:
                doc = await self._load(conn, parts[0], parts[1])
                removed = int(_discard(doc, parts[2:]))
                if removed:
                    await self._store(conn, parts[0], parts[1], doc)
            await conn.commit()
        return removed > 0

    async def push(self, collection: str, value: dict[str, Any]) -> str:
        """Store *value* under a freshly generated key and return the key."""
        doc_id = make_document_id()
        await self.set(f"{_split(collection)[0]}/{doc_id}", value)
        return doc_id

    async def query_by_field(
        self, collection: str, field: str, value: Any
    ) -> dict[str, Any]:
        """Return ``{doc_id: document}`` for documents whose *field* equals *value*."""
        name = _split(collection)[0]
        async with await self._connect() as conn:
            docs = await self._load_collection(conn, name)
        return {
            doc_id: doc
            for doc_id, doc in docs.items()
            if isinstance(doc, dict) and doc.get(field) == value
        }


def _assign(doc: dict[str, Any], fields: list[str], value: Any) -> None:
    for field in fields[:-1]:
        nxt = doc.get(field)
        if not isinstance(nxt, dict):
            nxt = {}
            doc[field] = nxt
        doc = nxt
    doc[fields[-1]] = value


def _discard(doc: Any, fields: list[str]) -> bool:
    for field in fields[:-1]:
        if not isinstance(doc, dict):
            return False
        doc = doc.get(field)
    if not isinstance(doc, dict) or fields[-1] not in doc:
        return False
    del doc[fields[-1]]
    return True
