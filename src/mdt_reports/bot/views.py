"""Buttons, select menus and the edit modal attached to a report preview."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import discord

from mdt_reports.core.penalties import PenaltyIndex
from mdt_reports.core.types import DraftKey, ReportType

if TYPE_CHECKING:
    from mdt_reports.bot.client import MdtBot

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "suspect": "Suspect",
    "charges": "Charges (comma separated names or codes)",
    "location": "Location",
    "evidence": "Evidence",
    "summary": "Summary",
    "event_type": "Event type",
    "victim": "Victim",
    "witness": "Witness",
}

PARAGRAPH_FIELDS = {"evidence", "summary", "charges"}
OPTIONAL_FIELDS = {"summary", "suspect", "victim", "witness"}

# Discord modals hold at most five inputs
EDIT_FORMS: dict[ReportType, dict[str, list[str]]] = {
    ReportType.ARREST_LOG: {
        "details": ["suspect", "charges", "location", "evidence", "summary"],
    },
    ReportType.INCIDENT_REPORT: {
        "details": ["event_type", "location", "evidence", "summary"],
        "people": ["suspect", "victim", "witness"],
    },
}


@dataclass(slots=True)
class InteractionContext:
    """What the presenter needs to answer one interaction."""

    interaction: discord.Interaction
    form: str = "details"


def _truncate(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class DraftEditModal(discord.ui.Modal):
    def __init__(
        self,
        bot: "MdtBot",
        key: DraftKey,
        draft_id: str,
        report_type: ReportType,
        form: str,
        prefilled: dict[str, Any],
    ):
        super().__init__(title=f"Edit {report_type.value}", timeout=600)
        self.bot = bot
        self.key = key
        self.draft_id = draft_id
        self.inputs: dict[str, discord.ui.TextInput] = {}

        for name in EDIT_FORMS[report_type][form]:
            text_input = discord.ui.TextInput(
                label=FIELD_LABELS[name],
                default=_truncate(prefilled.get(name) or "", 1000) or None,
                style=discord.TextStyle.paragraph if name in PARAGRAPH_FIELDS else discord.TextStyle.short,
                max_length=1000,
                required=name not in OPTIONAL_FIELDS,
            )
            self.inputs[name] = text_input
            self.add_item(text_input)

    async def on_submit(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        changes = {name: text_input.value for name, text_input in self.inputs.items()}
        await self.bot.lifecycle.edit(
            InteractionContext(interaction), self.key, interaction.user.id, changes, draft_id=self.draft_id
        )


class DraftButton(discord.ui.Button):
    def __init__(self, action: str, label: str, style: discord.ButtonStyle, row: int = 2):
        super().__init__(label=label, style=style, row=row)
        self.action = action

    async def callback(self, interaction: discord.Interaction):
        view: DraftView = self.view
        lifecycle = view.bot.lifecycle
        actor = interaction.user.id

        if self.action in EDIT_FORMS[view.report_type]:
            # a modal has to be the first response, so no defer here
            await lifecycle.begin_edit(
                InteractionContext(interaction, form=self.action), view.key, actor, draft_id=view.draft_id
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        ctx = InteractionContext(interaction)
        if self.action == "regenerate":
            await lifecycle.regenerate(ctx, view.key, actor, draft_id=view.draft_id)
        elif self.action == "confirm":
            await lifecycle.confirm(ctx, view.key, actor, draft_id=view.draft_id)
        elif self.action == "cancel":
            await lifecycle.cancel(ctx, view.key, actor, draft_id=view.draft_id)


class FieldSelect(discord.ui.Select):
    """Replaces the location or event type with a value from the lists tab."""

    def __init__(self, field: str, options: list[str], row: int):
        super().__init__(
            placeholder=f"Pick {FIELD_LABELS[field].lower()}",
            options=[discord.SelectOption(label=_truncate(o), value=_truncate(o)) for o in options],
            row=row,
        )
        self.field = field

    async def callback(self, interaction: discord.Interaction):
        view: DraftView = self.view
        await interaction.response.defer(ephemeral=True, thinking=True)
        await view.bot.lifecycle.quick_pick(
            InteractionContext(interaction),
            view.key,
            interaction.user.id,
            self.field,
            list(self.values),
            draft_id=view.draft_id,
        )


class ChargeGroupSelect(discord.ui.Select):
    """First step of the charge picker: choose a hundreds group of the penal code."""

    def __init__(self, index: PenaltyIndex, row: int = 0):
        options = [
            discord.SelectOption(
                label=f"{group} series",
                value=group,
                description=_truncate(", ".join(r.name for r in index.group(group)[:3])),
            )
            for group in index.groups()[:25]
        ]
        super().__init__(placeholder="Add charges from the penal code", options=options, row=row)
        self.index = index

    async def callback(self, interaction: discord.Interaction):
        view: DraftView = self.view
        if interaction.user.id != view.key.owner_id:
            await interaction.response.send_message(
                "Only the officer who started this report can change it.", ephemeral=True
            )
            return
        picker = ChargePickView(view.bot, view.key, view.draft_id, self.index, self.values[0])
        await interaction.response.send_message(picker.content(), view=picker, ephemeral=True)


class ChargePickView(discord.ui.View):
    """Paged multi-select over one penalty group."""

    def __init__(self, bot: "MdtBot", key: DraftKey, draft_id: str, index: PenaltyIndex, group: str):
        super().__init__(timeout=300)
        self.bot = bot
        self.key = key
        self.draft_id = draft_id
        self.index = index
        self.group = group
        self.page = 0
        self.pages = index.page_count(group)
        self._render()

    def content(self) -> str:
        return f"Select charges from the {self.group} series (page {self.page + 1}/{self.pages})."

    def _render(self) -> None:
        self.clear_items()
        records = self.index.page(self.group, self.page)
        select = discord.ui.Select(
            placeholder="Select one or more charges",
            min_values=1,
            max_values=max(1, len(records)),
            options=[
                discord.SelectOption(
                    label=_truncate(f"{r.code} - {r.name}"),
                    value=r.code,
                    description=_truncate(f"${r.fine:,} / {r.jail_minutes} min"),
                )
                for r in records
            ],
        )
        select.callback = self.on_pick
        self.add_item(select)

        if self.pages > 1:
            prev_button = discord.ui.Button(label="◀", style=discord.ButtonStyle.secondary, disabled=self.page == 0)
            next_button = discord.ui.Button(
                label="▶", style=discord.ButtonStyle.secondary, disabled=self.page >= self.pages - 1
            )
            prev_button.callback = self.on_prev
            next_button.callback = self.on_next
            self.add_item(prev_button)
            self.add_item(next_button)

    async def on_pick(self, interaction: discord.Interaction):
        select = next(item for item in self.children if isinstance(item, discord.ui.Select))
        await interaction.response.defer(ephemeral=True, thinking=True)
        await self.bot.lifecycle.quick_pick(
            InteractionContext(interaction),
            self.key,
            interaction.user.id,
            "charges",
            list(select.values),
            draft_id=self.draft_id,
        )
        self.stop()

    async def on_prev(self, interaction: discord.Interaction):
        self.page = max(0, self.page - 1)
        self._render()
        await interaction.response.edit_message(content=self.content(), view=self)

    async def on_next(self, interaction: discord.Interaction):
        self.page = min(self.pages - 1, self.page + 1)
        self._render()
        await interaction.response.edit_message(content=self.content(), view=self)


class DraftView(discord.ui.View):
    """Controls under a report preview, bound to one draft. Ownership is checked by the lifecycle."""

    def __init__(
        self,
        bot: "MdtBot",
        key: DraftKey,
        draft_id: str,
        report_type: ReportType,
        *,
        timeout: float | None = None,
        penalty_index: PenaltyIndex | None = None,
        locations: list[str] | None = None,
        event_types: list[str] | None = None,
    ):
        super().__init__(timeout=timeout)
        self.bot = bot
        self.key = key
        self.draft_id = draft_id
        self.report_type = report_type

        if report_type is ReportType.ARREST_LOG and penalty_index is not None and penalty_index.groups():
            self.add_item(ChargeGroupSelect(penalty_index, row=0))
        if report_type is ReportType.INCIDENT_REPORT and event_types:
            self.add_item(FieldSelect("event_type", event_types, row=0))
        if locations:
            self.add_item(FieldSelect("location", locations, row=1))

        self.add_item(DraftButton("details", "✏️ Edit", discord.ButtonStyle.secondary))
        if "people" in EDIT_FORMS[report_type]:
            self.add_item(DraftButton("people", "👥 Edit People", discord.ButtonStyle.secondary))
        self.add_item(DraftButton("regenerate", "🔄 Refresh", discord.ButtonStyle.secondary))
        self.add_item(DraftButton("confirm", "✅ Confirm Report", discord.ButtonStyle.success))
        self.add_item(DraftButton("cancel", "❌ Cancel Report", discord.ButtonStyle.danger))
