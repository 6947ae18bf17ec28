"""Date-scoped case number allocation.

Case numbers look like ``AL-20250615-1000``: report prefix, calendar day and
a sequence that restarts at 1000 every day. The next sequence is found by
scanning the case-number column of the report's tab, so two confirmations
racing on the same day can still pick the same number.
"""

from __future__ import annotations

import logging
from datetime import date

from .protocols import SheetStore
from .types import ReportType

logger = logging.getLogger(__name__)

FIRST_SEQUENCE = 1000
CASE_NUMBER_RANGE = "A2:A"


def day_stamp(day: date) -> str:
    return day.strftime("%Y%m%d")


def case_prefix(report_type: ReportType, day: date) -> str:
    return f"{report_type.prefix}-{day_stamp(day)}-"


def format_case_number(report_type: ReportType, day: date, sequence: int) -> str:
    return f"{case_prefix(report_type, day)}{sequence}"


def max_sequence(values: list[str], prefix: str) -> int | None:
    """Highest trailing sequence among ``values`` that start with ``prefix``."""
    best: int | None = None
    for value in values:
        text = (value or "").strip()
        if not text.startswith(prefix):
            continue
        suffix = text[len(prefix):]
        if not (suffix.isascii() and suffix.isdigit()):
            continue
        number = int(suffix)
        if best is None or number > best:
            best = number
    return best


class SheetCaseNumberAllocator:
    """Scan-then-append allocator over the case-number column of each tab."""

    def __init__(self, sheets: SheetStore, tables: dict[ReportType, str]):
        self.sheets = sheets
        self.tables = tables

    def next_sequence(self, report_type: ReportType, day: date) -> int:
        values = self.sheets.read_column(self.tables[report_type], CASE_NUMBER_RANGE)
        prefix = case_prefix(report_type, day)
        found = max_sequence(values, prefix)
        sequence = FIRST_SEQUENCE if found is None else found + 1
        logger.debug(f"Next sequence for {prefix}*: {sequence} (scanned {len(values)} rows)")
        return sequence
