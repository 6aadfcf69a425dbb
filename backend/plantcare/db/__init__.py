from .core import cursor, get_conn
from .deps import get_store
from .documents import MAX_IN_VALUES, ArrayRemove, ArrayUnion, DocumentStore, Subscription, chunked
from .ids import new_id, normalize_hex_id
from .memory import InMemoryDocumentStore

__all__ = [
    "get_conn",
    "cursor",
    "get_store",
    "MAX_IN_VALUES",
    "ArrayUnion",
    "ArrayRemove",
    "DocumentStore",
    "Subscription",
    "chunked",
    "InMemoryDocumentStore",
    "normalize_hex_id",
    "new_id",
]
