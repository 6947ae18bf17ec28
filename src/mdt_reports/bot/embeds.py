"""Embed builders for report previews and officer stats."""

from __future__ import annotations

import discord

from mdt_reports.core.rows import NO_SUMMARY
from mdt_reports.core.types import ArrestFields, Draft, DraftStatus, OfficerStats, PenaltyTotals

PREVIEW_COLOR = 0x0099FF
COMMITTED_COLOR = 0x2ECC71
CLOSED_COLOR = 0x95A5A6

FIELD_LIMIT = 1024


def _value(text: str | None, fallback: str = "-") -> str:
    text = (text or "").strip() or fallback
    return text if len(text) <= FIELD_LIMIT else text[: FIELD_LIMIT - 1] + "…"


def format_jail(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins} min"


def add_totals(embed: discord.Embed, totals: PenaltyTotals | None) -> None:
    if totals is None:
        embed.add_field(name="Penalties", value="Penalty table unavailable", inline=False)
        return
    embed.add_field(name="Total Fine", value=f"${totals.fine:,}", inline=True)
    embed.add_field(name="Total Jail", value=format_jail(totals.jail_minutes), inline=True)
    embed.add_field(name="Charges Found", value=_value("\n".join(totals.found), "None"), inline=False)
    if totals.unknown:
        embed.add_field(name="⚠️ Unknown Charges", value=_value(", ".join(totals.unknown)), inline=False)


def build_preview_embed(draft: Draft, note: str | None = None, final: bool = False) -> discord.Embed:
    f = draft.fields
    color = PREVIEW_COLOR
    if final:
        color = COMMITTED_COLOR if draft.status is DraftStatus.COMMITTED else CLOSED_COLOR

    embed = discord.Embed(title=f"🚓 {draft.report_type.value} Report", color=color)
    embed.add_field(name="Case Number", value=draft.case_number, inline=True)
    embed.add_field(name="Date", value=draft.created_on.isoformat(), inline=True)
    embed.add_field(name="Officer", value=_value(f.officer), inline=True)

    if isinstance(f, ArrestFields):
        embed.add_field(name="Suspect", value=_value(f.suspect), inline=True)
        embed.add_field(name="Charges", value=_value(f.charges), inline=True)
        embed.add_field(name="Location", value=_value(f.location), inline=True)
    else:
        embed.add_field(name="Event Type", value=_value(f.event_type), inline=True)
        embed.add_field(name="Location", value=_value(f.location), inline=True)
        embed.add_field(name="Suspect", value=_value(f.suspect), inline=True)
        embed.add_field(name="Victim", value=_value(f.victim), inline=True)
        embed.add_field(name="Witness", value=_value(f.witness), inline=True)

    embed.add_field(name="Evidence", value=_value(f.evidence), inline=False)
    embed.add_field(name="Summary", value=_value(f.summary, NO_SUMMARY), inline=False)

    if isinstance(f, ArrestFields):
        add_totals(embed, draft.totals)

    if f.attachment_url:
        embed.set_image(url=f.attachment_url)
    if note:
        embed.add_field(name="Status", value=_value(note), inline=False)
    elif not final:
        embed.set_footer(text=f"Draft expires {draft.expires_at:%H:%M} UTC")
    embed.timestamp = discord.utils.utcnow()
    return embed


def build_stats_embed(stats: OfficerStats) -> discord.Embed:
    embed = discord.Embed(title=f"{stats.officer}'s Stats", color=PREVIEW_COLOR)
    embed.add_field(name="Total Cases", value=str(stats.total))
    embed.add_field(name="Arrests Made", value=str(stats.arrests))
    embed.add_field(name="Incident Reports", value=str(stats.incidents))
    return embed
