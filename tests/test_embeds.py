from datetime import date, datetime, timezone
from decimal import Decimal

from mdt_reports.bot.embeds import build_preview_embed, build_stats_embed, format_jail
from mdt_reports.core.types import (
    ArrestFields,
    Draft,
    DraftStatus,
    IncidentFields,
    OfficerStats,
    PenaltyTotals,
    ReportType,
)


def make_draft(fields, report_type=ReportType.ARREST_LOG, **kwargs):
    return Draft(
        owner_id=1,
        context_id=100,
        report_type=report_type,
        case_number=f"{report_type.prefix}-20250615-1000",
        sequence=1000,
        created_on=date(2025, 6, 15),
        fields=fields,
        expires_at=datetime(2025, 6, 15, 12, 15, tzinfo=timezone.utc),
        **kwargs,
    )


def fields_of(embed):
    return {field.name: field.value for field in embed.fields}


def test_arrest_preview_shows_totals_and_unknown_charges():
    totals = PenaltyTotals(
        fine=Decimal(3500),
        jail_minutes=90,
        found=["201 - Assault ($2,500, 60 min)", "102 - Reckless Driving ($1,000, 30 min)"],
        unknown=["Jaywalking"],
    )
    draft = make_draft(
        ArrestFields("Ofc. Reyes", "John Doe", "Assault, 102, Jaywalking", "Legion Square", "Bodycam"),
        totals=totals,
    )

    embed = build_preview_embed(draft)
    values = fields_of(embed)

    assert values["Case Number"] == "AL-20250615-1000"
    assert values["Total Fine"] == "$3,500"
    assert values["Total Jail"] == "1h 30m"
    assert values["⚠️ Unknown Charges"] == "Jaywalking"
    assert values["Summary"] == "No summary provided"
    assert embed.footer.text == "Draft expires 12:15 UTC"


def test_incident_preview_has_no_penalty_fields():
    draft = make_draft(
        IncidentFields("Ofc. Reyes", "Robbery", "Fleeca Bank", "CCTV", attachment_url="https://x/y.png"),
        report_type=ReportType.INCIDENT_REPORT,
    )

    embed = build_preview_embed(draft)
    values = fields_of(embed)

    assert values["Event Type"] == "Robbery"
    assert values["Victim"] == "-"
    assert "Total Fine" not in values
    assert embed.image.url == "https://x/y.png"


def test_final_preview_carries_status_note():
    draft = make_draft(
        ArrestFields("Ofc. Reyes", "John Doe", "101", "Legion Square", "Radar"),
        status=DraftStatus.COMMITTED,
        totals=PenaltyTotals(),
    )

    embed = build_preview_embed(draft, note="✅ Logged", final=True)

    assert fields_of(embed)["Status"] == "✅ Logged"
    assert embed.color.value == 0x2ECC71
    assert embed.footer.text is None


def test_format_jail():
    assert format_jail(0) == "0 min"
    assert format_jail(45) == "45 min"
    assert format_jail(120) == "2h"


def test_stats_embed():
    embed = build_stats_embed(OfficerStats("Ofc. Reyes", arrests=3, incidents=2))
    assert fields_of(embed) == {"Total Cases": "5", "Arrests Made": "3", "Incident Reports": "2"}
