"""Core types shared by the lifecycle controller, Discord adapter and API."""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple
from uuid import uuid4


class ReportType(str, Enum):
    ARREST_LOG = "Arrest Log"
    INCIDENT_REPORT = "Incident Report"

    @property
    def prefix(self) -> str:
        return "AL" if self is ReportType.ARREST_LOG else "IR"

    @classmethod
    def parse(cls, value: str) -> "ReportType":
        text = " ".join((value or "").split()).lower()
        for member in cls:
            if text in (member.value.lower(), member.prefix.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown report type: {value!r}")


class DraftStatus(str, Enum):
    OPEN = "open"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMMITTED = "committed"
    CANCELED = "canceled"
    EXPIRED = "expired"

    @property
    def terminal(self) -> bool:
        return self in (DraftStatus.COMMITTED, DraftStatus.CANCELED, DraftStatus.EXPIRED)


class DraftKey(NamedTuple):
    owner_id: int
    context_id: int


@dataclass(slots=True, frozen=True)
class PenaltyRecord:
    code: str
    name: str
    description: str
    jail_minutes: int
    fine: Decimal

    @property
    def group(self) -> str:
        return f"{self.code[:1]}00" if self.code else ""

    def display(self) -> str:
        return f"{self.code} - {self.name} (${self.fine:,}, {self.jail_minutes} min)"


@dataclass(slots=True)
class PenaltyTotals:
    fine: Decimal = Decimal(0)
    jail_minutes: int = 0
    found: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ArrestFields:
    officer: str
    suspect: str
    charges: str
    location: str
    evidence: str
    summary: str | None = None
    attachment_url: str | None = None


@dataclass(slots=True)
class IncidentFields:
    officer: str
    event_type: str
    location: str
    evidence: str
    suspect: str = ""
    victim: str = ""
    witness: str = ""
    summary: str | None = None
    attachment_url: str | None = None


ReportFields = ArrestFields | IncidentFields

FIELD_TYPES: dict[ReportType, type] = {
    ReportType.ARREST_LOG: ArrestFields,
    ReportType.INCIDENT_REPORT: IncidentFields,
}


def field_names(report_type: ReportType) -> list[str]:
    return [f.name for f in fields(FIELD_TYPES[report_type])]


def build_fields(report_type: ReportType, values: dict[str, Any]) -> ReportFields:
    """Build the field set for ``report_type``, rejecting fields of the other type."""
    allowed = set(field_names(report_type))
    extra = sorted(set(values) - allowed)
    if extra:
        raise ValueError(f"Fields not valid for {report_type.value}: {', '.join(extra)}")
    cleaned = {key: _clean(value) for key, value in values.items()}
    return _require(FIELD_TYPES[report_type](**cleaned))


def update_fields(current: ReportFields, changes: dict[str, Any]) -> ReportFields:
    allowed = {f.name for f in fields(current)}
    extra = sorted(set(changes) - allowed)
    if extra:
        raise ValueError(f"Unknown fields: {', '.join(extra)}")
    return _require(replace(current, **{key: _clean(value) for key, value in changes.items()}))


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _require(report_fields: ReportFields) -> ReportFields:
    blank = [
        f.name
        for f in fields(report_fields)
        if f.default is MISSING
        and f.default_factory is MISSING
        and not (getattr(report_fields, f.name) or "").strip()
    ]
    if blank:
        raise ValueError(f"Required fields are blank: {', '.join(blank)}")
    return report_fields


@dataclass(slots=True)
class Draft:
    owner_id: int
    context_id: int
    report_type: ReportType
    case_number: str
    sequence: int
    created_on: date
    fields: ReportFields
    expires_at: datetime
    channel: Any = None
    preview_ref: Any = None
    thread_ref: Any = None
    status: DraftStatus = DraftStatus.OPEN
    totals: PenaltyTotals | None = None
    draft_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def key(self) -> DraftKey:
        return DraftKey(self.owner_id, self.context_id)

    def prefilled(self) -> dict[str, Any]:
        return {f.name: getattr(self.fields, f.name) for f in fields(self.fields)}


@dataclass(slots=True)
class AppendResult:
    updated_range: str
    row_index: int | None


@dataclass(slots=True)
class OfficerStats:
    officer: str
    arrests: int
    incidents: int

    @property
    def total(self) -> int:
        return self.arrests + self.incidents
