"""In-process document store. Default backend for local runs and tests."""
from __future__ import annotations

import copy
import threading
from typing import Any, Optional

from ..errors import DocumentNotFoundError
from .documents import DocumentStore, apply_changes


class InMemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        super().__init__()
        self._data: dict[str, dict[str, dict]] = {}
        self._lock = threading.RLock()

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._data.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def all(self, collection: str) -> list[dict]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._data.get(collection, {}).values()]

    def where(self, collection: str, field_name: str, value: Any) -> list[dict]:
        with self._lock:
            return [
                copy.deepcopy(doc)
                for doc in self._data.get(collection, {}).values()
                if doc.get(field_name) == value
            ]

    def _where_in(self, collection: str, field_name: str, values: list) -> list[dict]:
        with self._lock:
            return [
                copy.deepcopy(doc)
                for doc in self._data.get(collection, {}).values()
                if doc.get(field_name) in values
            ]

    def _set(self, collection: str, doc_id: str, data: dict) -> None:
        with self._lock:
            self._data.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def _update(self, collection: str, doc_id: str, changes: dict) -> None:
        with self._lock:
            docs = self._data.get(collection, {})
            if doc_id not in docs:
                raise DocumentNotFoundError(
                    "Document not found", {"collection": collection, "id": doc_id}
                )
            docs[doc_id] = copy.deepcopy(apply_changes(docs[doc_id], changes))

    def _delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._data.get(collection, {}).pop(doc_id, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
