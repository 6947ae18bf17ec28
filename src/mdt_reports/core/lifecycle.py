"""Draft lifecycle controller.

Drives a report draft from ``/mdt`` to commit, cancel or expiry. Every
handler looks the draft up by (owner, context), checks ownership, asks
``machine.step`` whether the action is allowed and then runs the effects.
Sheet calls are blocking and run in a worker thread; presentation and audit
failures are logged and never undo a mutation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, timedelta, tzinfo
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from .case_numbers import SheetCaseNumberAllocator, format_case_number
from .errors import DraftExpired, DraftNotFound, MdtError, NotDraftOwner
from .machine import Effect, Event, Step, step
from .penalties import PenaltyCatalog, PenaltyIndex, aggregate, merge_charges
from .protocols import AuditSink, CaseNumberAllocator, Presenter, SheetStore
from .rows import APPEND_RANGE, build_row, sheet_link
from .sessions import DraftSessionStore
from .types import (
    ArrestFields,
    Draft,
    DraftKey,
    DraftStatus,
    IncidentFields,
    ReportType,
    build_fields,
    update_fields,
)

if TYPE_CHECKING:
    from mdt_reports.config import Settings

logger = logging.getLogger(__name__)

QUICK_PICK_FIELDS = {"charges", "location", "event_type"}


@dataclass(slots=True)
class Outcome:
    ok: bool
    message: str
    status: DraftStatus | None = None
    draft: Draft | None = None
    link: str | None = None


class DraftLifecycle:
    """Owns the draft store for one bot process and handles every draft action."""

    def __init__(
        self,
        store: DraftSessionStore,
        sheets: SheetStore,
        allocator: CaseNumberAllocator,
        penalties: PenaltyCatalog,
        presenter: Presenter,
        audit: AuditSink | None = None,
        *,
        tables: dict[ReportType, str],
        sheet_gids: dict[ReportType, int] | None = None,
        spreadsheet_id: str = "",
        tz: tzinfo | None = None,
        audit_channel_id: int | None = None,
        open_threads: bool = False,
    ):
        self.store = store
        self.sheets = sheets
        self.allocator = allocator
        self.penalties = penalties
        self.presenter = presenter
        self.audit = audit
        self.tables = tables
        self.sheet_gids = sheet_gids or {}
        self.spreadsheet_id = spreadsheet_id
        self.tz = tz or ZoneInfo("UTC")
        self.audit_channel_id = audit_channel_id
        self.open_threads = open_threads
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        sheets: SheetStore,
        presenter: Presenter,
        audit: AuditSink | None = None,
    ) -> "DraftLifecycle":
        tables = {
            ReportType.ARREST_LOG: settings.arrest_tab,
            ReportType.INCIDENT_REPORT: settings.incident_tab,
        }
        return cls(
            store=DraftSessionStore(ttl=timedelta(minutes=settings.draft_ttl_minutes)),
            sheets=sheets,
            allocator=SheetCaseNumberAllocator(sheets, tables),
            penalties=PenaltyCatalog(
                sheets,
                settings.penalty_tab,
                settings.penalty_range,
                ttl_seconds=settings.lookup_cache_seconds,
            ),
            presenter=presenter,
            audit=audit,
            tables=tables,
            sheet_gids={
                ReportType.ARREST_LOG: settings.arrest_sheet_gid,
                ReportType.INCIDENT_REPORT: settings.incident_sheet_gid,
            },
            spreadsheet_id=settings.spreadsheet_id,
            tz=ZoneInfo(settings.timezone),
            audit_channel_id=settings.audit_channel_id,
            open_threads=settings.open_discussion_threads,
        )

    def today(self) -> date:
        return self.store.now().astimezone(self.tz).date()

    async def penalty_index(self) -> PenaltyIndex:
        return await asyncio.to_thread(self.penalties.get)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        ctx: Any,
        owner_id: int,
        context_id: int,
        report_type: ReportType,
        values: dict[str, Any],
    ) -> Outcome:
        key = DraftKey(owner_id, context_id)
        try:
            fields = build_fields(report_type, values)
        except (TypeError, ValueError) as exc:
            return await self._reject(ctx, f"Invalid report fields: {exc}")

        day = self.today()
        try:
            sequence = await asyncio.to_thread(self.allocator.next_sequence, report_type, day)
            totals = None
            if isinstance(fields, ArrestFields):
                totals = aggregate(await self.penalty_index(), fields.charges)
        except Exception as exc:
            logger.exception(f"Could not start {report_type.value} for {owner_id}")
            return await self._reject(ctx, f"❌ Could not start the report: {exc}")

        draft = Draft(
            owner_id=owner_id,
            context_id=context_id,
            report_type=report_type,
            case_number=format_case_number(report_type, day, sequence),
            sequence=sequence,
            created_on=day,
            fields=fields,
            expires_at=self.store.expiry_from_now(),
            channel=ctx,
            totals=totals,
        )
        replaced = self.store.peek(key)
        self.store.set(key, draft)
        logger.info(f"Created draft {draft.case_number} for {key}")
        if replaced is not None:
            await self._retire(replaced, draft)

        draft.preview_ref = await self._present(
            self.presenter.post_preview(ctx, draft), f"post preview for {draft.case_number}"
        )
        if self.open_threads and draft.preview_ref is not None:
            draft.thread_ref = await self._present(
                self.presenter.open_thread(draft.preview_ref, f"{draft.case_number} discussion"),
                f"open thread for {draft.case_number}",
            )

        return Outcome(True, f"Draft {draft.case_number} created.", draft.status, draft)

    # ------------------------------------------------------------------
    # Open-state actions
    # ------------------------------------------------------------------

    async def begin_edit(
        self, ctx: Any, key: DraftKey, actor_id: int, *, draft_id: str | None = None
    ) -> Outcome:
        try:
            draft = self._fetch(key, draft_id)
            self._authorize(draft, actor_id)
            step(draft.status, Event.EDIT)
        except MdtError as exc:
            return await self._reject(ctx, str(exc))

        await self._present(
            self.presenter.show_form(ctx, draft, draft.prefilled()),
            f"show edit form for {draft.case_number}",
        )
        return Outcome(True, "Edit form shown.", draft.status, draft)

    async def edit(
        self,
        ctx: Any,
        key: DraftKey,
        actor_id: int,
        changes: dict[str, Any],
        *,
        draft_id: str | None = None,
    ) -> Outcome:
        def apply(draft: Draft) -> None:
            draft.fields = update_fields(draft.fields, changes)

        return await self._mutate(ctx, key, actor_id, Event.EDIT, apply, "✏️ Report updated.", draft_id)

    async def quick_pick(
        self,
        ctx: Any,
        key: DraftKey,
        actor_id: int,
        field: str,
        values: list[str],
        *,
        draft_id: str | None = None,
    ) -> Outcome:
        def apply(draft: Draft) -> None:
            if field not in QUICK_PICK_FIELDS:
                raise ValueError(f"{field} cannot be picked from a menu")
            picked = [value for value in values if value and value.strip()]
            if not picked:
                raise ValueError("nothing was selected")
            if field == "charges":
                if not isinstance(draft.fields, ArrestFields):
                    raise ValueError("charges only apply to arrest logs")
                draft.fields = update_fields(
                    draft.fields, {"charges": merge_charges(draft.fields.charges, picked)}
                )
            elif field == "event_type" and not isinstance(draft.fields, IncidentFields):
                raise ValueError("event type only applies to incident reports")
            else:
                draft.fields = update_fields(draft.fields, {field: picked[0]})

        return await self._mutate(ctx, key, actor_id, Event.QUICK_PICK, apply, "✏️ Report updated.", draft_id)

    async def regenerate(
        self, ctx: Any, key: DraftKey, actor_id: int, *, draft_id: str | None = None
    ) -> Outcome:
        return await self._mutate(
            ctx, key, actor_id, Event.REGENERATE, None, "🔄 Preview refreshed.", draft_id
        )

    async def _mutate(
        self,
        ctx: Any,
        key: DraftKey,
        actor_id: int,
        event: Event,
        apply: Callable[[Draft], None] | None,
        message: str,
        draft_id: str | None = None,
    ) -> Outcome:
        try:
            draft = self._fetch(key, draft_id)
            self._authorize(draft, actor_id)
            transition = step(draft.status, event)
            if apply is not None and Effect.APPLY_CHANGES in transition.effects:
                apply(draft)
        except MdtError as exc:
            return await self._reject(ctx, str(exc))
        except (TypeError, ValueError) as exc:
            return await self._reject(ctx, f"Invalid change: {exc}")

        draft.status = transition.status
        self.store.touch(key)
        if Effect.RECOMPUTE_TOTALS in transition.effects:
            await self._recompute(draft)
        if Effect.REFRESH_PREVIEW in transition.effects and draft.preview_ref is not None:
            await self._present(
                self.presenter.edit_message(draft.preview_ref, draft),
                f"refresh preview for {draft.case_number}",
            )

        await self._notify(ctx, message)
        return Outcome(True, message, draft.status, draft)

    # ------------------------------------------------------------------
    # Terminal actions
    # ------------------------------------------------------------------

    async def confirm(
        self, ctx: Any, key: DraftKey, actor_id: int, *, draft_id: str | None = None
    ) -> Outcome:
        try:
            draft = self._fetch(key, draft_id)
            self._authorize(draft, actor_id)
            transition = step(draft.status, Event.CONFIRM)
        except MdtError as exc:
            return await self._reject(ctx, str(exc))

        draft.status = transition.status
        provisional = draft.case_number
        try:
            sequence = await asyncio.to_thread(
                self.allocator.next_sequence, draft.report_type, draft.created_on
            )
            draft.sequence = sequence
            draft.case_number = format_case_number(draft.report_type, draft.created_on, sequence)
            if draft.case_number != provisional:
                logger.info(f"Case number {provisional} reassigned to {draft.case_number}")
            result = await asyncio.to_thread(
                self.sheets.append_row,
                self.tables[draft.report_type],
                APPEND_RANGE,
                build_row(draft),
            )
        except Exception as exc:
            logger.exception(f"Failed to log {draft.case_number}")
            return await self._commit_failed(ctx, draft, exc)

        transition = step(draft.status, Event.COMMIT_OK)
        draft.status = transition.status
        link = sheet_link(self.spreadsheet_id, self.sheet_gids.get(draft.report_type, 0), result.row_index)
        message = f"✅ **MDT Report {draft.case_number} logged successfully!** {link}"
        await self._finish(
            ctx,
            draft,
            transition,
            note=f"✅ Logged as {draft.case_number}: {link}",
            message=message,
            audit=f"✅ <@{draft.owner_id}> logged {draft.report_type.value} {draft.case_number}: {link}",
        )
        return Outcome(True, message, draft.status, draft, link)

    async def _commit_failed(self, ctx: Any, draft: Draft, exc: Exception) -> Outcome:
        transition = step(draft.status, Event.COMMIT_FAILED)
        draft.status = transition.status
        message = (
            f"❌ Error logging MDT report {draft.case_number}: the report was **not** logged. "
            "Your draft is kept, press Confirm to try again."
        )
        await self._notify(ctx, message)
        self._audit(f"⚠️ Failed to log {draft.case_number} for <@{draft.owner_id}>: {exc}")
        return Outcome(False, message, draft.status, draft)

    async def cancel(
        self, ctx: Any, key: DraftKey, actor_id: int, *, draft_id: str | None = None
    ) -> Outcome:
        try:
            draft = self._fetch(key, draft_id)
            self._authorize(draft, actor_id)
            transition = step(draft.status, Event.CANCEL)
        except MdtError as exc:
            return await self._reject(ctx, str(exc))

        draft.status = transition.status
        message = f"❌ **MDT Report entry {draft.case_number} canceled.**"
        await self._finish(
            ctx,
            draft,
            transition,
            note="❌ Canceled",
            message=message,
            audit=f"🗑️ <@{draft.owner_id}> canceled {draft.report_type.value} draft {draft.case_number}",
        )
        return Outcome(True, message, draft.status, draft)

    async def _finish(
        self, ctx: Any, draft: Draft, transition: Step, *, note: str, message: str, audit: str
    ) -> None:
        if Effect.DISCARD in transition.effects:
            self._discard(draft)
        if Effect.FINALIZE_PREVIEW in transition.effects and draft.preview_ref is not None:
            await self._present(
                self.presenter.edit_message(draft.preview_ref, draft, note=note, final=True),
                f"finalize preview for {draft.case_number}",
            )
        if Effect.NOTIFY in transition.effects:
            await self._notify(ctx, message)
        if Effect.AUDIT in transition.effects:
            self._audit(audit)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch(self, key: DraftKey, draft_id: str | None = None) -> Draft:
        """Stored draft for ``key``; with ``draft_id``, only if it is that same draft."""
        draft = self.store.get(key)
        if draft is not None:
            if draft_id is not None and draft.draft_id != draft_id:
                logger.info(f"Ignoring action for replaced draft {draft_id}, {key} now holds {draft.case_number}")
                raise DraftNotFound()
            return draft

        stale = self.store.peek(key)
        if stale is None or (draft_id is not None and stale.draft_id != draft_id):
            raise DraftNotFound()

        transition = step(stale.status, Event.EXPIRE)
        stale.status = transition.status
        self._discard(stale)
        logger.info(f"Draft {stale.case_number} expired at {stale.expires_at.isoformat()}")
        raise DraftExpired()

    async def _retire(self, replaced: Draft, successor: Draft) -> None:
        # an in-flight commit finalizes its own preview
        if replaced.status is not DraftStatus.OPEN:
            return
        replaced.status = step(replaced.status, Event.CANCEL).status
        if replaced.preview_ref is not None:
            await self._present(
                self.presenter.edit_message(
                    replaced.preview_ref,
                    replaced,
                    note=f"♻️ Replaced by {successor.case_number}",
                    final=True,
                ),
                f"close replaced preview for {replaced.case_number}",
            )

    def _discard(self, draft: Draft) -> None:
        # a newer draft may have replaced this one while we were suspended
        if self.store.peek(draft.key) is draft:
            self.store.delete(draft.key)

    @staticmethod
    def _authorize(draft: Draft, actor_id: int) -> None:
        if actor_id != draft.owner_id:
            logger.info(f"Rejected {actor_id} acting on draft {draft.case_number} owned by {draft.owner_id}")
            raise NotDraftOwner()

    async def _recompute(self, draft: Draft) -> None:
        if not isinstance(draft.fields, ArrestFields):
            return
        try:
            index = await self.penalty_index()
        except Exception as exc:
            logger.warning(f"Keeping previous totals for {draft.case_number}, penalty table unavailable: {exc}")
            return
        draft.totals = aggregate(index, draft.fields.charges)

    async def _reject(self, ctx: Any, message: str) -> Outcome:
        await self._notify(ctx, message)
        return Outcome(False, message)

    async def _notify(self, ctx: Any, message: str) -> None:
        await self._present(self.presenter.post_notice(ctx, message), "post notice")

    async def _present(self, call: Awaitable[Any], what: str) -> Any:
        try:
            return await call
        except Exception as exc:
            logger.warning(f"Could not {what}: {exc}")
            return None

    def _audit(self, text: str) -> None:
        if self.audit is None:
            return
        task = asyncio.create_task(self._send_audit(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_audit(self, text: str) -> None:
        try:
            await self.audit.notify(self.audit_channel_id, text)
        except Exception as exc:
            logger.warning(f"Audit notification failed: {exc}")

    async def drain(self) -> None:
        """Wait for outstanding audit notifications."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
