import re
import uuid
from typing import Optional

__all__ = [
    "HEX_RE",
    "is_hex_id",
    "normalize_hex_id",
    "new_id",
]

HEX_RE = re.compile(r"^[0-9a-fA-F]{32}$")


def is_hex_id(s: str | None) -> bool:
    if not s:
        return False
    return bool(HEX_RE.fullmatch(s.strip().lower()))


def normalize_hex_id(s: str | None) -> Optional[str]:
    if not s:
        return None
    ss = s.strip().lower()
    return ss if is_hex_id(ss) else None


def new_id() -> str:
    """Return a fresh 32-char lowercase hex document id."""
    return uuid.uuid4().hex
