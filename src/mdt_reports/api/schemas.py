"""Pydantic API schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class OfficerStatsOut(BaseModel):
    officer: str
    total_cases: int
    arrests: int
    incident_reports: int


class PenaltyOut(BaseModel):
    code: str
    name: str
    description: str
    jail_minutes: int
    fine: Decimal


class PenaltyGroupOut(BaseModel):
    group: str
    page: int
    pages: int
    penalties: list[PenaltyOut]


class AggregateChargesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    charges: str = Field(default="", max_length=1000)


class AggregateChargesResponse(BaseModel):
    fine: Decimal
    jail_minutes: int
    found: list[str]
    unknown: list[str]
