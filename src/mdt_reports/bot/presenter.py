"""Discord implementations of the presentation and audit contracts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import discord

from mdt_reports.bot.embeds import build_preview_embed
from mdt_reports.bot.views import DraftEditModal, DraftView, InteractionContext
from mdt_reports.core.types import Draft, ReportType

if TYPE_CHECKING:
    from mdt_reports.bot.client import MdtBot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreviewRef:
    channel: Any
    message_id: int

    def message(self) -> discord.PartialMessage:
        return self.channel.get_partial_message(self.message_id)


class DiscordPresenter:
    def __init__(self, bot: "MdtBot"):
        self.bot = bot

    async def _view(self, draft: Draft) -> DraftView:
        lifecycle = self.bot.lifecycle
        penalty_index = locations = event_types = None
        try:
            if draft.report_type is ReportType.ARREST_LOG:
                penalty_index = await lifecycle.penalty_index()
            else:
                event_types = await asyncio.to_thread(self.bot.lookups.event_types)
            locations = await asyncio.to_thread(self.bot.lookups.locations)
        except Exception as exc:
            logger.warning(f"Quick-pick options unavailable for {draft.case_number}: {exc}")

        timeout = max((draft.expires_at - lifecycle.store.now()).total_seconds(), 1)
        return DraftView(
            self.bot,
            draft.key,
            draft.draft_id,
            draft.report_type,
            timeout=timeout,
            penalty_index=penalty_index,
            locations=locations,
            event_types=event_types,
        )

    async def post_preview(self, ctx: InteractionContext, draft: Draft) -> PreviewRef:
        message = await ctx.interaction.followup.send(
            embed=build_preview_embed(draft), view=await self._view(draft), wait=True
        )
        return PreviewRef(channel=ctx.interaction.channel, message_id=message.id)

    async def edit_message(
        self, ref: PreviewRef, draft: Draft, note: str | None = None, final: bool = False
    ) -> None:
        view = None if final else await self._view(draft)
        await ref.message().edit(embed=build_preview_embed(draft, note=note, final=final), view=view)

    async def show_form(self, ctx: InteractionContext, draft: Draft, prefilled: dict[str, Any]) -> None:
        modal = DraftEditModal(self.bot, draft.key, draft.draft_id, draft.report_type, ctx.form, prefilled)
        await ctx.interaction.response.send_modal(modal)

    async def post_notice(self, ctx: InteractionContext, text: str) -> None:
        interaction = ctx.interaction
        if interaction.response.is_done():
            await interaction.followup.send(text, ephemeral=True)
        else:
            await interaction.response.send_message(text, ephemeral=True)

    async def open_thread(self, ref: PreviewRef, name: str) -> discord.Thread:
        return await ref.message().create_thread(name=name[:100])


class ChannelAuditSink:
    """Posts lifecycle events to the configured audit channel."""

    def __init__(self, bot: discord.Client):
        self.bot = bot

    async def notify(self, channel_id: int | None, text: str) -> None:
        if not channel_id:
            logger.debug(f"No audit channel configured, skipping: {text}")
            return
        channel = self.bot.get_channel(channel_id) or await self.bot.fetch_channel(channel_id)
        await channel.send(text, allowed_mentions=discord.AllowedMentions.none())
