"""Officer case counts read back from the report tabs."""

from __future__ import annotations

from collections.abc import Sequence

from .protocols import SheetStore
from .rows import DATA_RANGE, OFFICER_COLUMN
from .types import OfficerStats, ReportType


def count_officer_rows(rows: Sequence[Sequence[str]], column: int, officer: str) -> int:
    wanted = officer.strip().casefold()
    return sum(
        1
        for row in rows
        if len(row) > column and str(row[column]).strip().casefold() == wanted
    )


def officer_stats(sheets: SheetStore, tables: dict[ReportType, str], officer: str) -> OfficerStats:
    counts: dict[ReportType, int] = {}
    for report_type in ReportType:
        rows = sheets.read_rows(tables[report_type], DATA_RANGE[report_type])
        counts[report_type] = count_officer_rows(rows, OFFICER_COLUMN[report_type], officer)

    return OfficerStats(
        officer=officer.strip(),
        arrests=counts[ReportType.ARREST_LOG],
        incidents=counts[ReportType.INCIDENT_REPORT],
    )
