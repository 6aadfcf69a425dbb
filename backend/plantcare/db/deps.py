from __future__ import annotations

import os
from functools import lru_cache

from .documents import DocumentStore


@lru_cache(maxsize=1)
def _default_store() -> DocumentStore:
    backend = os.getenv("STORE_BACKEND", "memory").strip().lower()
    if backend == "mysql":
        from .mysql import MySQLDocumentStore

        store = MySQLDocumentStore()
        store.ensure_schema()
        return store
    if backend != "memory":
        raise RuntimeError(f"Unknown STORE_BACKEND: {backend!r}")
    from .memory import InMemoryDocumentStore

    return InMemoryDocumentStore()


def get_store() -> DocumentStore:
    """
    FastAPI dependency that provides the process-wide document store.
    Selected by STORE_BACKEND (memory|mysql); easy to override in tests
    with a fresh in-memory store.
    """
    return _default_store()
