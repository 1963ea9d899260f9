"""History command for contentsync CLI."""

from __future__ import annotations

from datetime import datetime

import click

from contentsync.client.cli.config import get_db_path
from contentsync.client.history import DEFAULT_HISTORY_LIMIT, SyncHistoryEntry, SyncHistoryRecorder


def format_entry(entry: SyncHistoryEntry) -> str:
    """Format one history entry as a single line."""
    when = datetime.fromtimestamp(entry.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
    line = (
        f"{when}  {entry.type.value:<5}  {entry.status.value:<7}  "
        f"pushed={entry.pushed} pulled={entry.pulled} conflicts={entry.conflicts}"
    )
    if entry.errors:
        line += f" errors={len(entry.errors)}"
    return line


@click.command("history")
@click.option(
    "--limit",
    "-n",
    default=DEFAULT_HISTORY_LIMIT,
    show_default=True,
    type=click.IntRange(min=1),
    help="Number of entries to show.",
)
def show_history(limit: int) -> None:
    """Show recent push, pull and sync runs, most recent first."""
    recorder = SyncHistoryRecorder(get_db_path())
    try:
        entries = recorder.list_entries(limit=limit)
    finally:
        recorder.close()

    if not entries:
        click.echo("No sync history yet.")
        return

    for entry in entries:
        click.echo(format_entry(entry))
