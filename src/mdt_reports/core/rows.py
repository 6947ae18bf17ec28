"""Sheet row layouts for each report type."""

from __future__ import annotations

import re

from .types import ArrestFields, Draft, IncidentFields, ReportType

NO_SUMMARY = "No summary provided"
NO_IMAGE = "No image provided"

APPEND_RANGE = "A1"
DATA_RANGE = {
    ReportType.ARREST_LOG: "A2:I",
    ReportType.INCIDENT_REPORT: "A2:K",
}

# Column holding the officer name in each tab
OFFICER_COLUMN = {
    ReportType.ARREST_LOG: 2,
    ReportType.INCIDENT_REPORT: 3,
}

ROW_RE = re.compile(r"![A-Z]+(?P<row>\d+)")


def build_row(draft: Draft) -> list[str]:
    """Row for ``draft`` in the fixed column order of its tab."""
    f = draft.fields
    head = [draft.case_number, draft.created_on.isoformat()]

    if draft.report_type is ReportType.ARREST_LOG:
        if not isinstance(f, ArrestFields):
            raise TypeError(f"Arrest log draft {draft.case_number} carries {type(f).__name__}")
        return head + [
            f.officer,
            f.suspect,
            f.charges,
            f.location,
            f.evidence,
            f.summary or NO_SUMMARY,
            f.attachment_url or NO_IMAGE,
        ]

    if not isinstance(f, IncidentFields):
        raise TypeError(f"Incident report draft {draft.case_number} carries {type(f).__name__}")
    return head + [
        f.event_type,
        f.officer,
        f.location,
        f.suspect,
        f.victim,
        f.witness,
        f.evidence,
        f.summary or NO_SUMMARY,
        f.attachment_url or NO_IMAGE,
    ]


def row_from_range(updated_range: str | None) -> int | None:
    """First row number of an A1 range such as ``'Arrest Log'!A15:I15``."""
    match = ROW_RE.search(updated_range or "")
    return int(match.group("row")) if match else None


def sheet_link(spreadsheet_id: str, gid: int, row_index: int | None) -> str:
    link = f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit#gid={gid}"
    if row_index:
        link += f"&range=A{row_index}"
    return link
