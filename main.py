#!/usr/bin/env python3
"""
MDT Reports Bot

Runs the Discord MDT bot (arrest logs and incident reports logged to Google
Sheets) together with a small keep-alive HTTP server.

Usage:
    python main.py                # Bot + keep-alive server
    python main.py --api-only     # Only the HTTP server
    python main.py --port 8080    # Custom keep-alive port
    python main.py -v             # Verbose logging
"""

import argparse
import logging
import sys
import threading

import uvicorn
from rich.console import Console
from rich.table import Table

from mdt_reports.api.main import app
from mdt_reports.bot.client import MdtBot
from mdt_reports.config import get_settings
from mdt_reports.sheets.client import SheetsClient

console = Console()


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # discord.py is chatty at DEBUG
    logging.getLogger("discord").setLevel(logging.INFO)


def start_keep_alive(port: int) -> threading.Thread:
    """Serve the keep-alive API on a daemon thread."""
    server = uvicorn.Server(uvicorn.Config(app, host="0.0.0.0", port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="keep-alive", daemon=True)
    thread.start()
    logging.getLogger(__name__).info(f"Bot is listening on port {port}")
    return thread


def show_settings(settings) -> None:
    table = Table(title="MDT configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Spreadsheet", settings.spreadsheet_id or "[red]not set[/]")
    table.add_row("Tabs", f"{settings.arrest_tab} / {settings.incident_tab}")
    table.add_row("Penalty table", f"{settings.penalty_tab}!{settings.penalty_range}")
    table.add_row("Guilds", ", ".join(str(g) for g in settings.guild_ids) or "global")
    table.add_row("Draft lifetime", f"{settings.draft_ttl_minutes} min")
    table.add_row("Audit channel", str(settings.audit_channel_id or "-"))
    console.print(table)


def main():
    parser = argparse.ArgumentParser(
        description="Discord MDT bot for arrest logs and incident reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--api-only",
        action="store_true",
        help="Only run the keep-alive HTTP server",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Keep-alive port (default: PORT setting, 3000)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)
    settings = get_settings()
    port = args.port or settings.port

    console.print("[bold]MDT Reports Bot[/]")
    console.print("=" * 45)
    show_settings(settings)

    if args.api_only:
        uvicorn.run(app, host="0.0.0.0", port=port)
        return

    if not settings.discord_token:
        console.print("[red]DISCORD_TOKEN is not set.[/]")
        sys.exit(1)
    if not settings.spreadsheet_id:
        console.print("[red]SPREADSHEET_ID is not set.[/]")
        sys.exit(1)

    start_keep_alive(port)
    bot = MdtBot(settings, SheetsClient.from_settings(settings))
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
