"""Discord client, slash commands and wiring of the lifecycle controller."""

from __future__ import annotations

import asyncio
import logging

import discord
from discord import app_commands

from mdt_reports.bot.embeds import build_stats_embed
from mdt_reports.bot.presenter import ChannelAuditSink, DiscordPresenter
from mdt_reports.bot.views import InteractionContext
from mdt_reports.config import Settings
from mdt_reports.core.lifecycle import DraftLifecycle
from mdt_reports.core.protocols import SheetStore
from mdt_reports.core.stats import officer_stats
from mdt_reports.core.types import ReportType
from mdt_reports.sheets.lookups import LookupLists

logger = logging.getLogger(__name__)

REPORT_CHOICES = [app_commands.Choice(name=t.value, value=t.value) for t in ReportType]


class MdtBot(discord.Client):
    def __init__(self, settings: Settings, sheets: SheetStore):
        super().__init__(intents=discord.Intents.default())
        self.settings = settings
        self.sheets = sheets
        self.lookups = LookupLists.from_settings(settings, sheets)
        self.presenter = DiscordPresenter(self)
        self.lifecycle = DraftLifecycle.from_settings(settings, sheets, self.presenter, ChannelAuditSink(self))
        self.tree = app_commands.CommandTree(self)
        register_commands(self)

    async def setup_hook(self) -> None:
        if not self.settings.guild_ids:
            await self.tree.sync()
            logger.info("Commands registered globally (may take up to 1 hour)")
            return
        for guild_id in self.settings.guild_ids:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            try:
                await self.tree.sync(guild=guild)
                logger.info(f"Commands registered for guild {guild_id}")
            except discord.HTTPException as e:
                logger.error(f"Error registering commands for {guild_id}: {e}")

    async def on_ready(self) -> None:
        logger.info(f"Bot is online as {self.user}")

    async def close(self) -> None:
        await self.lifecycle.drain()
        await super().close()


def register_commands(bot: MdtBot) -> None:
    @bot.tree.command(name="mdt", description="Start the MDT process with interactive fields")
    @app_commands.describe(
        type="Type of report (Arrest Log or Incident Report)",
        officer="Officer name",
        suspect="Suspect name",
        charge="Charges (arrest log) or event type (incident report)",
        location="Location of the incident",
        evidence="Evidence description",
        summary="Summary or short note for the case",
        evidenceimage="Evidence image (file upload)",
        victim="Victim name (incident report)",
        witness="Witness name (incident report)",
    )
    @app_commands.choices(type=REPORT_CHOICES)
    @app_commands.guild_only()
    async def mdt(
        interaction: discord.Interaction,
        type: app_commands.Choice[str],
        officer: str,
        suspect: str,
        charge: str,
        location: str,
        evidence: str,
        summary: str | None = None,
        evidenceimage: discord.Attachment | None = None,
        victim: str | None = None,
        witness: str | None = None,
    ):
        await interaction.response.defer(thinking=True)
        report_type = ReportType.parse(type.value)
        values = {
            "officer": officer,
            "suspect": suspect,
            "location": location,
            "evidence": evidence,
            "summary": summary,
            "attachment_url": evidenceimage.url if evidenceimage else None,
        }
        if report_type is ReportType.ARREST_LOG:
            values["charges"] = charge
        else:
            values.update(event_type=charge, victim=victim or "", witness=witness or "")

        await bot.lifecycle.create(
            InteractionContext(interaction),
            interaction.user.id,
            interaction.guild_id,
            report_type,
            values,
        )

    @bot.tree.command(name="officerstats", description="View officer performance stats")
    @app_commands.describe(officer="Officer name")
    async def officerstats(interaction: discord.Interaction, officer: str):
        await interaction.response.defer(thinking=True)
        tables = {
            ReportType.ARREST_LOG: bot.settings.arrest_tab,
            ReportType.INCIDENT_REPORT: bot.settings.incident_tab,
        }
        try:
            stats = await asyncio.to_thread(officer_stats, bot.sheets, tables, officer)
        except Exception as e:
            logger.error(f"Error fetching officer stats: {e}")
            await interaction.followup.send("❌ There was an error fetching the officer stats.")
            return
        await interaction.followup.send(embed=build_stats_embed(stats))
