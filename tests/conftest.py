from datetime import datetime, timedelta, timezone

import pytest

from mdt_reports.core.case_numbers import SheetCaseNumberAllocator
from mdt_reports.core.lifecycle import DraftLifecycle
from mdt_reports.core.penalties import PenaltyCatalog
from mdt_reports.core.sessions import DraftSessionStore
from mdt_reports.core.types import AppendResult, ReportType

ARREST_TAB = "Arrest Log"
INCIDENT_TAB = "Incident Report"
PENALTY_TAB = "Penal Code"
LISTS_TAB = "Lists"

TABLES = {
    ReportType.ARREST_LOG: ARREST_TAB,
    ReportType.INCIDENT_REPORT: INCIDENT_TAB,
}

PENALTY_ROWS = [
    ["101", "Speeding", "Exceeding the posted limit", "10", "200"],
    ["102", "Reckless Driving", "Driving without regard for safety", "30", "$1,000"],
    ["201", "Assault", "Causing bodily harm", "60", "2500"],
    ["202", "Battery", "Unlawful physical contact", "45", "1500"],
]


class FakeSheets:
    """In-memory spreadsheet; each tab holds data rows without the header."""

    def __init__(self, tabs=None):
        self.tabs = {PENALTY_TAB: [list(r) for r in PENALTY_ROWS]}
        self.tabs.update(tabs or {})
        self.appended = []
        self.fail_append = None
        self.fail_reads = None

    def read_column(self, table, range_spec):
        if self.fail_reads:
            raise self.fail_reads
        column = ord(range_spec[0]) - ord("A")
        return [row[column] for row in self.tabs.get(table, []) if len(row) > column]

    def read_rows(self, table, range_spec):
        if self.fail_reads:
            raise self.fail_reads
        return [list(row) for row in self.tabs.get(table, [])]

    def append_row(self, table, range_spec, row):
        if self.fail_append:
            raise self.fail_append
        rows = self.tabs.setdefault(table, [])
        rows.append(list(row))
        self.appended.append((table, list(row)))
        sheet_row = len(rows) + 1
        return AppendResult(updated_range=f"'{table}'!A{sheet_row}:I{sheet_row}", row_index=sheet_row)


class FakePresenter:
    def __init__(self):
        self.calls = []
        self.fail_edits = False
        self._messages = 0

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]

    def notices(self):
        return [call[2] for call in self.calls_named("post_notice")]

    async def post_preview(self, ctx, draft):
        self._messages += 1
        ref = f"message-{self._messages}"
        self.calls.append(("post_preview", ctx, draft.case_number, ref))
        return ref

    async def edit_message(self, ref, draft, note=None, final=False):
        if self.fail_edits:
            raise RuntimeError("Unknown Message")
        self.calls.append(("edit_message", ref, draft.case_number, note, final))

    async def show_form(self, ctx, draft, prefilled):
        self.calls.append(("show_form", ctx, dict(prefilled)))

    async def post_notice(self, ctx, text):
        self.calls.append(("post_notice", ctx, text))

    async def open_thread(self, ref, name):
        self.calls.append(("open_thread", ref, name))
        return f"thread-for-{ref}"


class FakeAudit:
    def __init__(self, fail=False):
        self.messages = []
        self.fail = fail

    async def notify(self, channel_id, text):
        if self.fail:
            raise RuntimeError("Missing Access")
        self.messages.append((channel_id, text))


class Clock:
    def __init__(self, start=datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_arrest_values(**overrides):
    base = {
        "officer": "Ofc. Reyes",
        "suspect": "John Doe",
        "charges": "101, speeding, 101",
        "location": "Legion Square",
        "evidence": "Radar reading 92 mph",
    }
    base.update(overrides)
    return base


def make_incident_values(**overrides):
    base = {
        "officer": "Ofc. Reyes",
        "event_type": "Traffic Collision",
        "location": "Route 68",
        "evidence": "Dashcam footage",
        "suspect": "Jane Roe",
        "victim": "Sam Poe",
        "witness": "Alex Moe",
    }
    base.update(overrides)
    return base


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def sheets():
    return FakeSheets()


@pytest.fixture
def presenter():
    return FakePresenter()


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def lifecycle(sheets, presenter, audit, clock):
    return DraftLifecycle(
        store=DraftSessionStore(ttl=timedelta(minutes=15), clock=clock),
        sheets=sheets,
        allocator=SheetCaseNumberAllocator(sheets, TABLES),
        penalties=PenaltyCatalog(sheets, PENALTY_TAB, "A2:E"),
        presenter=presenter,
        audit=audit,
        tables=TABLES,
        sheet_gids={ReportType.ARREST_LOG: 11, ReportType.INCIDENT_REPORT: 22},
        spreadsheet_id="sheet-123",
        audit_channel_id=42,
    )
