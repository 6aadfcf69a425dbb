"""
Document store contract shared by the in-memory and MySQL backends.

Documents are plain JSON-compatible dicts keyed by ``(collection, id)``.
Sub-collections are addressed by path, e.g. ``households/<id>/activities``.
Field updates may carry ``ArrayUnion``/``ArrayRemove`` sentinels, which each
backend applies atomically per document.
"""
from __future__ import annotations

import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from .ids import new_id

__all__ = [
    "MAX_IN_VALUES",
    "ArrayUnion",
    "ArrayRemove",
    "DocumentStore",
    "Subscription",
    "apply_changes",
    "chunked",
]

# Field-in queries accept at most this many values per call.
MAX_IN_VALUES = 10


class _ArrayOp:
    __slots__ = ("values",)

    def __init__(self, *values: Any):
        self.values = tuple(values)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.values == self.values

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.values!r}"


class ArrayUnion(_ArrayOp):
    """Append values not already present in an array field."""


class ArrayRemove(_ArrayOp):
    """Remove every occurrence of the given values from an array field."""


def apply_changes(doc: dict, changes: dict) -> dict:
    """Return a copy of ``doc`` with ``changes`` applied, resolving array sentinels."""
    out = dict(doc)
    for key, value in changes.items():
        if isinstance(value, ArrayUnion):
            current = list(out.get(key) or [])
            for v in value.values:
                if v not in current:
                    current.append(v)
            out[key] = current
        elif isinstance(value, ArrayRemove):
            out[key] = [v for v in (out.get(key) or []) if v not in value.values]
        else:
            out[key] = value
    return out


def chunked(values: Iterable[Any], size: int = MAX_IN_VALUES) -> Iterator[list]:
    batch: list = []
    for v in values:
        batch.append(v)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


@dataclass(eq=False)
class Subscription:
    """Live query handle: a queue of snapshots for one ``field == value`` filter.

    The current snapshot is delivered on subscribe and a fresh one after each
    write to the collection. Callers own ``close()``.
    """

    store: "DocumentStore"
    collection: str
    field_name: str
    value: Any
    _queue: "queue.Queue[Optional[list[dict]]]" = field(default_factory=queue.Queue)
    closed: bool = False

    def push(self, snapshot: list[dict]) -> None:
        if not self.closed:
            self._queue.put(snapshot)

    def get(self, timeout: float | None = None) -> list[dict]:
        """Block for the next snapshot. Raises ``queue.Empty`` on timeout."""
        snapshot = self._queue.get(timeout=timeout)
        if snapshot is None:
            raise queue.Empty
        return snapshot

    def latest(self) -> Optional[list[dict]]:
        """Drain pending snapshots and return the newest one, if any."""
        last = None
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return last
            if item is not None:
                last = item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.store._unsubscribe(self)
        self._queue.put(None)

    def __iter__(self) -> Iterator[list[dict]]:
        while True:
            item = self._queue.get()
            if item is None:
                return
            yield item

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


class DocumentStore(ABC):
    """Backend-agnostic document store with in-process live subscriptions."""

    def __init__(self) -> None:
        self._subs: list[Subscription] = []
        self._subs_lock = threading.Lock()
        # Held across a write and its notification so snapshots reach
        # subscribers in write order.
        self._write_lock = threading.RLock()

    # --- abstract primitives -------------------------------------------------

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    def all(self, collection: str) -> list[dict]:
        ...

    @abstractmethod
    def where(self, collection: str, field_name: str, value: Any) -> list[dict]:
        ...

    @abstractmethod
    def _where_in(self, collection: str, field_name: str, values: list) -> list[dict]:
        ...

    @abstractmethod
    def _set(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    @abstractmethod
    def _update(self, collection: str, doc_id: str, changes: dict) -> None:
        ...

    @abstractmethod
    def _delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    # --- public API ---------------------------------------------------------

    def new_id(self) -> str:
        return new_id()

    def where_in(self, collection: str, field_name: str, values: Iterable[Any]) -> list[dict]:
        vals = list(values)
        if not vals:
            return []
        if len(vals) > MAX_IN_VALUES:
            raise ValueError(f"where_in accepts at most {MAX_IN_VALUES} values, got {len(vals)}")
        return self._where_in(collection, field_name, vals)

    def set(self, collection: str, doc_id: str, data: dict) -> None:
        """Create or replace the whole document; ``id`` is always stored."""
        body = dict(data)
        body["id"] = doc_id
        with self._write_lock:
            self._set(collection, doc_id, body)
            self._notify(collection)

    def update(self, collection: str, doc_id: str, changes: dict) -> None:
        """Merge ``changes`` into an existing document.

        Raises DocumentNotFoundError when the document does not exist.
        """
        with self._write_lock:
            self._update(collection, doc_id, changes)
            self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._write_lock:
            self._delete(collection, doc_id)
            self._notify(collection)

    def subscribe(self, collection: str, field_name: str, value: Any) -> Subscription:
        sub = Subscription(store=self, collection=collection, field_name=field_name, value=value)
        with self._write_lock:
            with self._subs_lock:
                self._subs.append(sub)
            sub.push(self.where(collection, field_name, value))
        return sub

    # --- subscription plumbing ----------------------------------------------

    def _unsubscribe(self, sub: Subscription) -> None:
        with self._subs_lock:
            if sub in self._subs:
                self._subs.remove(sub)

    def _notify(self, collection: str) -> None:
        with self._subs_lock:
            targets = [s for s in self._subs if s.collection == collection]
        for sub in targets:
            sub.push(self.where(sub.collection, sub.field_name, sub.value))
