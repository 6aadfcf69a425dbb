"""Static species care table bundled with the package."""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional

from ..schemas.care import PlantCareInfo

CARE_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "plant_care_info.json"


class CareInfoLookup:
    """
    Loaded once, read-only afterwards. Matches on scientific or common name,
    case-insensitively.

    Usage:
      lookup = CareInfoLookup()
      info = lookup.find("snake plant")
    """

    def __init__(self, path: Path = CARE_DATA_PATH):
        self.path = path
        self._items: Optional[list[PlantCareInfo]] = None
        self._lock = threading.Lock()

    def load(self) -> list[PlantCareInfo]:
        with self._lock:
            if self._items is None:
                with open(self.path, "r", encoding="utf-8") as fh:
                    self._items = [PlantCareInfo(**row) for row in json.load(fh)]
            return self._items

    def find(self, name: str | None) -> Optional[PlantCareInfo]:
        if not name:
            return None
        needle = name.strip().lower()
        for info in self.load():
            if info.name.lower() == needle or info.common_name.lower() == needle:
                return info
        return None


_default_lookup = CareInfoLookup()


def get_care_lookup() -> CareInfoLookup:
    return _default_lookup
