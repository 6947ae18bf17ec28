"""FastAPI keep-alive server with read-only lookups."""

from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse

from mdt_reports.api.schemas import (
    AggregateChargesRequest,
    AggregateChargesResponse,
    OfficerStatsOut,
    PenaltyGroupOut,
    PenaltyOut,
)
from mdt_reports.config import get_settings
from mdt_reports.core.errors import SheetsError
from mdt_reports.core.penalties import PenaltyCatalog, aggregate
from mdt_reports.core.protocols import SheetStore
from mdt_reports.core.stats import officer_stats
from mdt_reports.core.types import ReportType
from mdt_reports.sheets.client import SheetsClient

app = FastAPI(title="MDT Reports API", version="0.1.0")


@lru_cache
def get_sheets() -> SheetStore:
    return SheetsClient.from_settings(get_settings())


@lru_cache
def get_penalty_catalog() -> PenaltyCatalog:
    settings = get_settings()
    return PenaltyCatalog(
        get_sheets(),
        settings.penalty_tab,
        settings.penalty_range,
        ttl_seconds=settings.lookup_cache_seconds,
    )


def report_tables() -> dict[ReportType, str]:
    settings = get_settings()
    return {
        ReportType.ARREST_LOG: settings.arrest_tab,
        ReportType.INCIDENT_REPORT: settings.incident_tab,
    }


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Bot is running"


@app.get("/v1/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/v1/officers/{officer}/stats", response_model=OfficerStatsOut)
def officer_stats_endpoint(officer: str, sheets: SheetStore = Depends(get_sheets)) -> OfficerStatsOut:
    try:
        stats = officer_stats(sheets, report_tables(), officer)
    except SheetsError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return OfficerStatsOut(
        officer=stats.officer,
        total_cases=stats.total,
        arrests=stats.arrests,
        incident_reports=stats.incidents,
    )


@app.get("/v1/penalties", response_model=list[PenaltyGroupOut])
def list_penalties(
    group: str | None = None,
    page: int = Query(default=0, ge=0),
    catalog: PenaltyCatalog = Depends(get_penalty_catalog),
) -> list[PenaltyGroupOut]:
    try:
        index = catalog.get()
    except SheetsError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    groups = [group] if group else index.groups()
    if group and not index.group(group):
        raise HTTPException(status_code=404, detail=f"Penalty group not found: {group}")

    return [
        PenaltyGroupOut(
            group=key,
            page=page,
            pages=index.page_count(key),
            penalties=[PenaltyOut(**asdict(record)) for record in index.page(key, page)],
        )
        for key in groups
    ]


@app.post("/v1/penalties/aggregate", response_model=AggregateChargesResponse)
def aggregate_charges(
    req: AggregateChargesRequest,
    catalog: PenaltyCatalog = Depends(get_penalty_catalog),
) -> AggregateChargesResponse:
    try:
        index = catalog.get()
    except SheetsError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    totals = aggregate(index, req.charges)
    return AggregateChargesResponse(**asdict(totals))
