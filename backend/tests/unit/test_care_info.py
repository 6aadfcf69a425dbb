import json

import pytest

from backend.plantcare.helpers.care_info import CareInfoLookup, get_care_lookup


def test_bundled_table_loads():
    items = get_care_lookup().load()
    assert len(items) >= 20
    assert all(i.watering_days > 0 for i in items)


@pytest.mark.parametrize(
    "query, expected_days",
    [
        ("Dracaena trifasciata", 14),
        ("snake plant", 14),
        ("  ALOE  ", 21),
        ("Boston Fern", 3),
        ("basil", 2),
    ],
)
def test_find_matches_scientific_or_common_name(query, expected_days):
    info = get_care_lookup().find(query)
    assert info is not None
    assert info.watering_days == expected_days


def test_find_unknown_or_empty():
    lookup = get_care_lookup()
    assert lookup.find("Triffid") is None
    assert lookup.find("") is None
    assert lookup.find(None) is None


def test_load_reads_file_once(tmp_path):
    path = tmp_path / "care.json"
    path.write_text(
        json.dumps([{"name": "Ficus lyrata", "common_name": "Fiddle Leaf Fig", "watering_days": 9, "sunlight": "Bright"}]),
        encoding="utf-8",
    )
    lookup = CareInfoLookup(path)
    assert lookup.find("fiddle leaf fig").watering_days == 9

    path.write_text("[]", encoding="utf-8")
    # cached after first load
    assert lookup.find("Ficus lyrata") is not None
