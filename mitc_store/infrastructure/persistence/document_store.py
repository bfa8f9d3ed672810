"""
SQLite Document Store - Record Persistence
===========================================

A small document database on top of SQLite: every record is a JSON object
stored under (collection, id). It offers the primitives the managers need:
create / read / update / delete by id, a list query with at most one
equality filter and one sort key, and a server-assigned timestamp.

Dates are written as ISO-8601 strings in UTC, so ordering by a date field
is plain string ordering.
"""

import json
import sqlite3
import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...domain.errors import BackendError

logger = logging.getLogger(__name__)

DATABASE_FILE = "mitc_store.db"


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Cannot store value of type {type(value).__name__}")


def _dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, default=_encode)


class DocumentStore:
    """
    SQLite-backed document store.

    Usage:
        store = DocumentStore("mitc_store.db")
        store.init()

        doc_id = store.add("customers", {"name": "Asif", "status": "Active"})
        store.update("customers", doc_id, {"status": "WarrantyExpired"})
        active = store.query("customers", where=("status", "Active"), order_by="purchase_date", descending=True)
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = str(db_path)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager. sqlite errors surface as BackendError."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.exception(f"Could not open database {self.db_path}: {e}")
            raise BackendError(f"Could not open database: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.exception(f"Database operation failed: {e}")
            raise BackendError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    def init(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
            """)
            logger.info(f"Document store initialized: {self.db_path}")

    @staticmethod
    def server_timestamp() -> datetime:
        """Timestamp assigned by the store, never by the caller."""
        return datetime.now(timezone.utc)

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Dict[str, Any]:
        doc = json.loads(row["data"])
        doc["id"] = row["id"]
        return doc

    # ── Writes ─────────────────────────────────────────────────────

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """Insert a new document and return its generated id."""
        doc_id = uuid.uuid4().hex
        with self._get_connection() as conn:
            conn.execute(
                "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, doc_id, _dumps(data))
            )
        logger.debug(f"Added {collection}/{doc_id}")
        return doc_id

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Create or fully replace the document with a known id."""
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, doc_id, _dumps(data))
            )

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> bool:
        """
        Shallow-merge changes into an existing document.

        Read and write happen inside one IMMEDIATE transaction, so every key
        in `changes` lands together. Returns False when the document is missing.
        """
        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            ).fetchone()
            if row is None:
                return False

            data = json.loads(row["data"])
            data.update(json.loads(_dumps(changes)))
            conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (_dumps(data), collection, doc_id)
            )
            return True

    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document. Deleting a missing id is a no-op."""
        with self._get_connection() as conn:
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            )

    # ── Reads ──────────────────────────────────────────────────────

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Get document by id, or None."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            ).fetchone()
            return self._row_to_document(row) if row else None

    def query(
        self,
        collection: str,
        where: Optional[Tuple[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        List documents with at most one equality filter and one sort key.

        Ties on the sort key fall back to insertion order.
        """
        sql = "SELECT id, data FROM documents WHERE collection = ?"
        params: List[Any] = [collection]

        if where is not None:
            field_name, value = where
            sql += " AND json_extract(data, ?) = ?"
            params += [f"$.{field_name}", _encode(value) if isinstance(value, (Enum, date)) else value]

        direction = "DESC" if descending else "ASC"
        if order_by:
            sql += f" ORDER BY json_extract(data, ?) {direction}, rowid {direction}"
            params.append(f"$.{order_by}")
        else:
            sql += " ORDER BY rowid"

        with self._get_connection() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_document(row) for row in rows]

    def count(self, collection: str) -> int:
        with self._get_connection() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,)
            ).fetchone()[0]
