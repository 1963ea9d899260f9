"""Push, pull and sync commands for contentsync CLI.

Commands:
- push: Write local records to the repository
- pull: Bring repository records into the local store
- sync: Pull, then push
"""

from __future__ import annotations

import sys
from collections.abc import Callable

import click

from contentsync.client.api import ContentsClient
from contentsync.client.cli.config import get_db_path, load_sync_config
from contentsync.client.history import SyncHistoryRecorder
from contentsync.client.store import LocalStore
from contentsync.client.sync import SyncInProgressError, SyncOrchestrator, SyncResult
from contentsync.core.types import DEFAULT_ENTITY_TYPES, EntityType, SyncKind


MAX_ERRORS_SHOWN = 3

type_option = click.option(
    "--type",
    "-t",
    "types",
    multiple=True,
    type=click.Choice([t.value for t in EntityType]),
    help="Entity type to process (repeatable). "
    "Defaults to activities, resources, sessions and tokens.",
)


def print_result(kind: SyncKind, result: SyncResult) -> None:
    """Print a summary of a result, with the first few errors."""
    if result.success:
        click.echo(f"{kind.value.capitalize()} completed successfully.")
    else:
        click.echo(f"{kind.value.capitalize()} completed with errors.")

    parts = []
    if kind in (SyncKind.PUSH, SyncKind.SYNC):
        parts.append(f"Pushed: {result.pushed}")
    if kind in (SyncKind.PULL, SyncKind.SYNC):
        parts.append(f"Pulled: {result.pulled}")
    if result.conflicts:
        parts.append(f"Conflicts: {result.conflicts}")
    click.echo("  " + " | ".join(parts))

    if result.errors:
        click.echo("Errors:", err=True)
        for error in result.errors[:MAX_ERRORS_SHOWN]:
            click.echo(f"  ✗ {error}", err=True)
        if len(result.errors) > MAX_ERRORS_SHOWN:
            click.echo("  ...", err=True)


def run_sync(kind: SyncKind, types: tuple[str, ...]) -> None:
    """Run one invocation against the configured repository and record it."""
    sync_config = load_sync_config()
    if not sync_config.is_complete:
        click.echo(
            "Error: Repository not configured. Run 'contentsync configure' first.",
            err=True,
        )
        sys.exit(1)

    selected = [EntityType(t) for t in types] if types else list(DEFAULT_ENTITY_TYPES)
    db_path = get_db_path()
    store = LocalStore(db_path)
    history = SyncHistoryRecorder(db_path)

    try:
        with ContentsClient(sync_config) as client:
            orchestrator = SyncOrchestrator(client, store, history)
            click.echo(
                f"{kind.value.capitalize()} {', '.join(t.value for t in selected)} "
                f"with {sync_config.owner}/{sync_config.repo}..."
            )
            result = orchestrator.run(kind, selected)
    except SyncInProgressError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        history.close()
        store.close()

    print_result(kind, result)
    if not result.success:
        sys.exit(1)


def _make_command(kind: SyncKind, help_text: str) -> Callable[..., None]:
    @click.command(name=kind.value, help=help_text)
    @type_option
    def command(types: tuple[str, ...]) -> None:
        run_sync(kind, types)

    return command


push = _make_command(
    SyncKind.PUSH,
    "Write every local record to the repository.\n\n"
    "Records are rewritten even if unchanged; existing objects are updated "
    "with their current version token.",
)
pull = _make_command(
    SyncKind.PULL,
    "Bring repository records into the local store.\n\n"
    "A local record is only replaced by a strictly newer remote one.",
)
sync = _make_command(SyncKind.SYNC, "Pull remote changes, then push local records.")
