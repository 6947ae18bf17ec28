from datetime import date

from conftest import TABLES, FakeSheets
from mdt_reports.core.case_numbers import (
    SheetCaseNumberAllocator,
    format_case_number,
    max_sequence,
)
from mdt_reports.core.types import ReportType

DAY = date(2025, 1, 1)


def make_allocator(arrests=(), incidents=()):
    sheets = FakeSheets(
        {
            "Arrest Log": [[value, "2025-01-01"] for value in arrests],
            "Incident Report": [[value, "2025-01-01"] for value in incidents],
        }
    )
    return SheetCaseNumberAllocator(sheets, TABLES), sheets


def test_empty_history_starts_at_1000():
    allocator, _ = make_allocator()
    assert allocator.next_sequence(ReportType.ARREST_LOG, DAY) == 1000


def test_next_after_highest_of_the_day():
    allocator, _ = make_allocator(arrests=["AL-20250101-1000", "AL-20250101-1005", "AL-20250101-1002"])
    assert allocator.next_sequence(ReportType.ARREST_LOG, DAY) == 1006


def test_other_days_and_types_are_ignored():
    allocator, _ = make_allocator(
        arrests=["AL-20241231-1500", "IR-20250101-1700"],
        incidents=["IR-20250101-1003"],
    )

    assert allocator.next_sequence(ReportType.ARREST_LOG, DAY) == 1000
    assert allocator.next_sequence(ReportType.INCIDENT_REPORT, DAY) == 1004


def test_non_numeric_suffixes_are_skipped():
    values = ["AL-20250101-10x5", "AL-20250101-", "AL-20250101-²", "AL-20250101-٣٤", " AL-20250101-1001 ", "Case Number", ""]
    assert max_sequence(values, "AL-20250101-") == 1001


def test_reads_case_number_column_of_the_report_tab():
    allocator, sheets = make_allocator(incidents=["IR-20250101-1000"])
    reads = []
    original = sheets.read_column
    sheets.read_column = lambda table, spec: reads.append((table, spec)) or original(table, spec)

    allocator.next_sequence(ReportType.INCIDENT_REPORT, DAY)

    assert reads == [("Incident Report", "A2:A")]


def test_format_case_number():
    assert format_case_number(ReportType.ARREST_LOG, date(2025, 6, 15), 1001) == "AL-20250615-1001"
    assert format_case_number(ReportType.INCIDENT_REPORT, DAY, 1000) == "IR-20250101-1000"


def test_superscript_digits_do_not_break_allocation():
    allocator, _ = make_allocator(arrests=["AL-20250101-1000", "AL-20250101-²"])
    assert allocator.next_sequence(ReportType.ARREST_LOG, DAY) == 1001
