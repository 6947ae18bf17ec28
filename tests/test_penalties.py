from decimal import Decimal

import pytest

from conftest import PENALTY_ROWS, FakeSheets
from mdt_reports.core.penalties import (
    PenaltyCatalog,
    PenaltyIndex,
    aggregate,
    merge_charges,
    parse_amount,
    split_charges,
)


def make_index(rows=None):
    return PenaltyIndex.from_rows(PENALTY_ROWS if rows is None else rows)


def test_code_and_name_dedup_to_one_charge():
    totals = aggregate(make_index(), "101, speeding, 101")

    assert totals.fine == Decimal(200)
    assert totals.jail_minutes == 10
    assert totals.found == ["101 - Speeding ($200, 10 min)"]
    assert totals.unknown == []


def test_aggregate_ignores_order_and_repeats():
    index = make_index()
    first = aggregate(index, "101, Assault, 202")
    second = aggregate(index, "202,assault , 101, ASSAULT, 202")

    assert first.fine == second.fine == Decimal(4200)
    assert first.jail_minutes == second.jail_minutes == 115
    assert sorted(first.found) == sorted(second.found)


@pytest.mark.parametrize("code", [row[0] for row in PENALTY_ROWS])
def test_code_and_name_resolve_to_same_record(code):
    index = make_index()
    record = index.resolve(code)

    assert record is not None
    assert index.resolve(record.name.upper()) is record
    assert index.resolve(f"  {record.name.lower()} ") is record


def test_unknown_tokens_are_reported_not_dropped():
    totals = aggregate(make_index(), "Speeding, Jaywalking, 999, Speed")

    assert totals.fine == Decimal(200)
    assert totals.unknown == ["Jaywalking", "999", "Speed"]


@pytest.mark.parametrize("text", [None, "", " , ,"])
def test_empty_charge_text_gives_zero_totals(text):
    totals = aggregate(make_index(), text)

    assert totals.fine == 0
    assert totals.jail_minutes == 0
    assert totals.found == []
    assert totals.unknown == []


def test_from_rows_parses_amounts_and_skips_incomplete_rows():
    index = make_index(
        [
            ["102", "Reckless Driving", "", "30 min", "$1,000"],
            ["", "No code", "", "1", "1"],
            ["301"],
            ["302", "Loitering"],
        ]
    )

    assert len(index) == 2
    reckless = index.resolve("102")
    assert reckless.fine == Decimal(1000)
    assert reckless.jail_minutes == 30
    loitering = index.resolve("loitering")
    assert loitering.fine == 0
    assert loitering.jail_minutes == 0


def test_groups_are_hundreds_and_pages_are_bounded():
    rows = [[str(300 + n), f"Offence {n}", "", "1", "1"] for n in range(30)]
    index = make_index(PENALTY_ROWS + rows)

    assert index.groups() == ["100", "200", "300"]
    assert [r.code for r in index.group("200")] == ["201", "202"]
    assert index.page_count("300") == 2
    assert len(index.page("300", 0)) == 25
    assert [r.code for r in index.page("300", 1)] == [str(n) for n in range(325, 330)]
    assert index.group("900") == ()


def test_split_charges_keeps_first_spelling():
    assert split_charges("Speeding, SPEEDING ,, 101") == ["Speeding", "101"]


def test_merge_charges_appends_only_new_items():
    assert merge_charges("Speeding", ["101", "speeding", "201"]) == "Speeding, 101, 201"
    assert merge_charges(None, ["201"]) == "201"


def test_parse_amount_handles_junk():
    assert parse_amount("$2,500.50") == Decimal("2500.50")
    assert parse_amount("n/a") == 0
    assert parse_amount("1.2.3") == 0


def test_catalog_caches_until_ttl_expires():
    sheets = FakeSheets()
    now = [0.0]
    catalog = PenaltyCatalog(sheets, "Penal Code", "A2:E", ttl_seconds=60, clock=lambda: now[0])

    first = catalog.get()
    sheets.tabs["Penal Code"].append(["401", "Trespassing", "", "5", "50"])
    assert catalog.get() is first

    now[0] = 61.0
    refreshed = catalog.get()
    assert refreshed is not first
    assert refreshed.resolve("401") is not None
