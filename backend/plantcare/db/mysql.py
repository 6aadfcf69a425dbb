"""
Document store backed by a single MySQL table of JSON documents.

Schema (created by ``ensure_schema``)::

    documents(collection, id, body JSON, updated_at), PRIMARY KEY(collection, id)

Filters compare ``JSON_EXTRACT(body, '$.<field>')`` against JSON-encoded
values. Updates with array sentinels run as read-modify-write under
``SELECT ... FOR UPDATE`` so they stay atomic per document.
"""
from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from typing import Any, Callable, Optional

import pymysql

from ..errors import DocumentNotFoundError, StoreError
from .core import cursor, get_conn
from .documents import DocumentStore, apply_changes

FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS documents (
        collection VARCHAR(191) NOT NULL,
        id VARCHAR(255) NOT NULL,
        body JSON NOT NULL,
        updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
        PRIMARY KEY (collection, id)
    ) CHARACTER SET utf8mb4
"""


def _json_path(field_name: str) -> str:
    if not FIELD_RE.fullmatch(field_name or ""):
        raise ValueError(f"Invalid field name: {field_name!r}")
    return f"$.{field_name}"


def _load_body(raw) -> dict:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return json.loads(raw) if isinstance(raw, str) else dict(raw)


class MySQLDocumentStore(DocumentStore):
    def __init__(self, conn_factory: Callable[[], Any] = get_conn) -> None:
        super().__init__()
        self._conn_factory = conn_factory

    @contextmanager
    def _conn(self):
        try:
            conn = self._conn_factory()
        except pymysql.MySQLError as e:
            raise StoreError("Could not connect to document store") from e
        try:
            yield conn
        except pymysql.MySQLError as e:
            logging.error(f"Document store operation failed: {e}")
            try:
                conn.rollback()
            except pymysql.MySQLError:
                pass
            raise StoreError("Document store operation failed") from e
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute(SCHEMA_SQL)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute(
                    "SELECT body FROM documents WHERE collection=%s AND id=%s",
                    (collection, doc_id),
                )
                row = cur.fetchone()
                return _load_body(row[0]) if row else None

    def all(self, collection: str) -> list[dict]:
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute("SELECT body FROM documents WHERE collection=%s", (collection,))
                return [_load_body(r[0]) for r in (cur.fetchall() or [])]

    def where(self, collection: str, field_name: str, value: Any) -> list[dict]:
        path = _json_path(field_name)
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute(
                    (
                        "SELECT body FROM documents "
                        "WHERE collection=%s AND JSON_EXTRACT(body, %s) = CAST(%s AS JSON)"
                    ),
                    (collection, path, json.dumps(value)),
                )
                return [_load_body(r[0]) for r in (cur.fetchall() or [])]

    def _where_in(self, collection: str, field_name: str, values: list) -> list[dict]:
        path = _json_path(field_name)
        # MySQL does not support IN() over JSON values, so expand to OR terms.
        terms = " OR ".join(["JSON_EXTRACT(body, %s) = CAST(%s AS JSON)"] * len(values))
        params: list[Any] = [collection]
        for v in values:
            params.extend([path, json.dumps(v)])
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute(
                    f"SELECT body FROM documents WHERE collection=%s AND ({terms})",
                    params,
                )
                return [_load_body(r[0]) for r in (cur.fetchall() or [])]

    def _set(self, collection: str, doc_id: str, data: dict) -> None:
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute(
                    (
                        "INSERT INTO documents (collection, id, body) VALUES (%s, %s, %s) "
                        "ON DUPLICATE KEY UPDATE body = VALUES(body)"
                    ),
                    (collection, doc_id, json.dumps(data)),
                )

    def _update(self, collection: str, doc_id: str, changes: dict) -> None:
        with self._conn() as conn:
            conn.autocommit(False)
            with cursor(conn) as cur:
                cur.execute(
                    "SELECT body FROM documents WHERE collection=%s AND id=%s FOR UPDATE",
                    (collection, doc_id),
                )
                row = cur.fetchone()
                if not row:
                    conn.rollback()
                    raise DocumentNotFoundError(
                        "Document not found", {"collection": collection, "id": doc_id}
                    )
                body = apply_changes(_load_body(row[0]), changes)
                cur.execute(
                    "UPDATE documents SET body=%s WHERE collection=%s AND id=%s",
                    (json.dumps(body), collection, doc_id),
                )
            conn.commit()

    def _delete(self, collection: str, doc_id: str) -> None:
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute(
                    "DELETE FROM documents WHERE collection=%s AND id=%s",
                    (collection, doc_id),
                )

    def clear(self) -> None:
        with self._conn() as conn:
            with cursor(conn) as cur:
                cur.execute("DELETE FROM documents")
