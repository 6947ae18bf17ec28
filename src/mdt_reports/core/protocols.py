"""Collaborator contracts consumed by the lifecycle controller."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any, Protocol

from .types import AppendResult, Draft, ReportType


class SheetStore(Protocol):
    """Primitive operations on the spreadsheet. Calls block."""

    def read_column(self, table: str, range_spec: str) -> list[str]: ...

    def read_rows(self, table: str, range_spec: str) -> list[list[str]]: ...

    def append_row(self, table: str, range_spec: str, row: Sequence[Any]) -> AppendResult: ...


class CaseNumberAllocator(Protocol):
    def next_sequence(self, report_type: ReportType, day: date) -> int: ...


class Presenter(Protocol):
    """Chat-side rendering. ``ctx`` is whatever the adapter needs to reply."""

    async def post_preview(self, ctx: Any, draft: Draft) -> Any: ...

    async def edit_message(
        self, ref: Any, draft: Draft, note: str | None = None, final: bool = False
    ) -> None: ...

    async def show_form(self, ctx: Any, draft: Draft, prefilled: dict[str, Any]) -> None: ...

    async def post_notice(self, ctx: Any, text: str) -> None: ...

    async def open_thread(self, ref: Any, name: str) -> Any: ...


class AuditSink(Protocol):
    async def notify(self, channel_id: int | None, text: str) -> None: ...
