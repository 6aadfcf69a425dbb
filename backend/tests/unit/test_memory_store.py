import queue
import threading

import pytest
from hypothesis import given, strategies as st

from backend.plantcare.db import ArrayRemove, ArrayUnion, InMemoryDocumentStore, MAX_IN_VALUES, chunked
from backend.plantcare.db.documents import apply_changes
from backend.plantcare.errors import DocumentNotFoundError


@pytest.fixture
def store():
    return InMemoryDocumentStore()


def test_set_stores_id_and_returns_copies(store):
    store.set("plants", "p1", {"name": "Fern", "tags": ["a"]})
    doc = store.get("plants", "p1")
    assert doc == {"id": "p1", "name": "Fern", "tags": ["a"]}
    doc["tags"].append("b")
    assert store.get("plants", "p1")["tags"] == ["a"]
    assert store.get("plants", "missing") is None


def test_update_merges_fields(store):
    store.set("users", "u1", {"email": "a@b.c", "households": []})
    store.update("users", "u1", {"username": "anna"})
    assert store.get("users", "u1") == {"id": "u1", "email": "a@b.c", "households": [], "username": "anna"}


def test_update_missing_document_raises(store):
    with pytest.raises(DocumentNotFoundError):
        store.update("users", "ghost", {"households": ArrayUnion("h1")})


def test_array_union_and_remove(store):
    store.set("households", "h1", {"members": ["a"]})
    store.update("households", "h1", {"members": ArrayUnion("a", "b")})
    store.update("households", "h1", {"members": ArrayUnion("b", "c")})
    assert store.get("households", "h1")["members"] == ["a", "b", "c"]
    store.update("households", "h1", {"members": ArrayRemove("a", "zzz")})
    assert store.get("households", "h1")["members"] == ["b", "c"]


def test_array_ops_on_missing_field():
    assert apply_changes({}, {"xs": ArrayUnion(1)}) == {"xs": [1]}
    assert apply_changes({}, {"xs": ArrayRemove(1)}) == {"xs": []}


def test_where_and_where_in(store):
    for i, hid in enumerate(["h1", "h2", "h3", None]):
        store.set("plants", f"p{i}", {"household_id": hid})
    assert [d["id"] for d in store.where("plants", "household_id", "h2")] == ["p1"]
    found = store.where_in("plants", "household_id", ["h1", "h3"])
    assert sorted(d["id"] for d in found) == ["p0", "p2"]
    assert store.where_in("plants", "household_id", []) == []


def test_where_in_rejects_more_than_ten_values(store):
    with pytest.raises(ValueError):
        store.where_in("plants", "household_id", [str(i) for i in range(MAX_IN_VALUES + 1)])


@given(values=st.lists(st.integers(), max_size=45), size=st.integers(min_value=1, max_value=12))
def test_chunked_preserves_order_and_bounds(values, size):
    batches = list(chunked(values, size))
    assert [v for b in batches for v in b] == values
    assert all(0 < len(b) <= size for b in batches)


def test_delete_and_clear(store):
    store.set("plants", "p1", {})
    store.delete("plants", "p1")
    store.delete("plants", "p1")
    assert store.get("plants", "p1") is None
    store.set("plants", "p2", {})
    store.clear()
    assert store.all("plants") == []


def test_subscription_receives_snapshot_per_write(store):
    sub = store.subscribe("plants", "owner_id", "u1")
    assert sub.get(timeout=1) == []

    store.set("plants", "p1", {"owner_id": "u1"})
    store.set("plants", "p2", {"owner_id": "u2"})
    store.update("plants", "p1", {"name": "Fern"})

    assert [d["id"] for d in sub.get(timeout=1)] == ["p1"]
    assert [d["id"] for d in sub.get(timeout=1)] == ["p1"]
    assert sub.latest() == [{"id": "p1", "owner_id": "u1", "name": "Fern"}]
    assert sub.latest() is None
    sub.close()


def test_closed_subscription_stops_receiving(store):
    sub = store.subscribe("plants", "owner_id", "u1")
    sub.close()
    sub.close()
    store.set("plants", "p1", {"owner_id": "u1"})
    # initial snapshot is still queued, then the end marker
    assert list(sub) == [[]]
    with pytest.raises(queue.Empty):
        sub.get(timeout=0.01)


def test_other_collections_do_not_notify(store):
    with store.subscribe("plants", "owner_id", "u1") as sub:
        sub.get(timeout=1)
        store.set("users", "u1", {})
        assert sub.latest() is None


class SlowSnapshotStore(InMemoryDocumentStore):
    """Stalls the next snapshot query until released (or a short timeout)."""

    def __init__(self):
        super().__init__()
        self.stall_next = False
        self.stalled = threading.Event()
        self.release = threading.Event()

    def where(self, collection, field_name, value):
        docs = super().where(collection, field_name, value)
        if self.stall_next:
            self.stall_next = False
            self.stalled.set()
            self.release.wait(timeout=2)
        return docs


def test_concurrent_writers_deliver_snapshots_in_write_order():
    store = SlowSnapshotStore()
    sub = store.subscribe("plants", "owner_id", "u1")
    assert sub.get(timeout=1) == []

    store.stall_next = True
    first = threading.Thread(target=store.set, args=("plants", "p1", {"owner_id": "u1"}))
    first.start()
    assert store.stalled.wait(timeout=2)

    # second writer starts while the first one's snapshot is still pending
    second = threading.Thread(target=store.set, args=("plants", "p2", {"owner_id": "u1"}))
    second.start()
    second.join(timeout=0.2)
    store.release.set()
    first.join(timeout=2)
    second.join(timeout=2)

    assert len(store.where("plants", "owner_id", "u1")) == 2
    latest = sub.latest()
    assert sorted(d["id"] for d in latest) == ["p1", "p2"]
    sub.close()
