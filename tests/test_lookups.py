from conftest import FakeSheets
from mdt_reports.sheets.lookups import LookupLists, unique_options


def make_lookups(rows, now):
    sheets = FakeSheets({"Lists": rows})
    lookups = LookupLists(
        sheets,
        "Lists",
        {"location": "A2:A", "event_type": "B2:B"},
        ttl_seconds=60,
        clock=lambda: now[0],
    )
    return lookups, sheets


def test_options_read_their_own_column():
    now = [0.0]
    lookups, _ = make_lookups([["Legion Square", "Robbery"], ["Paleto Bay", "Shooting"], ["", "Robbery"]], now)

    assert lookups.locations() == ["Legion Square", "Paleto Bay"]
    assert lookups.event_types() == ["Robbery", "Shooting"]


def test_options_are_cached():
    now = [0.0]
    lookups, sheets = make_lookups([["Legion Square", "Robbery"]], now)

    lookups.locations()
    sheets.tabs["Lists"].append(["Sandy Shores", "Arson"])
    assert lookups.locations() == ["Legion Square"]

    now[0] = 120.0
    assert lookups.locations() == ["Legion Square", "Sandy Shores"]


def test_unique_options_dedups_and_limits():
    values = ["A", "a", " B ", ""] + [f"Loc {n}" for n in range(40)]
    options = unique_options(values)

    assert options[:2] == ["A", "B"]
    assert len(options) == 25
