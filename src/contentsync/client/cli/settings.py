"""Repository settings commands for contentsync CLI.

Commands:
- configure: Store repository coordinates and token
- check: Verify the repository is reachable
- config show/export/import/reset: Inspect and manage the stored configuration
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from contentsync.client.api import ContentsClient
from contentsync.client.cli.config import (
    get_config_file,
    get_db_path,
    load_config,
    load_sync_config,
    parse_config,
    save_config,
)
from contentsync.client.history import SyncHistoryRecorder
from contentsync.client.store import LocalStore
from contentsync.core.config import DEFAULT_API_URL


@click.command()
@click.option("--owner", prompt="Repository owner", help="Repository owner (user or org).")
@click.option("--repo", prompt="Repository name", help="Repository name.")
@click.option("--token", prompt="Access token", hide_input=True, help="Personal access token.")
@click.option("--api-url", default=DEFAULT_API_URL, show_default=True, help="API base URL.")
@click.option("--branch", default=None, help="Branch to read from and commit to.")
def configure(owner: str, repo: str, token: str, api_url: str, branch: str | None) -> None:
    """Configure the repository used for push, pull and sync."""
    owner = owner.strip()
    repo = repo.strip()
    if not owner or not repo or not token:
        click.echo("Error: Owner, repository and token are required.", err=True)
        sys.exit(1)

    config = load_config()
    config.update({"owner": owner, "repo": repo, "token": token, "api_url": api_url})
    if branch:
        config["branch"] = branch
    else:
        config.pop("branch", None)
    save_config(config)

    click.echo(f"Configured {owner}/{repo}.")
    click.echo(f"Settings saved to {get_config_file()}")


@click.command()
def check() -> None:
    """Verify that the repository is reachable with the stored credentials."""
    sync_config = load_sync_config()
    if not sync_config.is_complete:
        click.echo(
            "Error: Repository not configured. Run 'contentsync configure' first.",
            err=True,
        )
        sys.exit(1)

    db_path = get_db_path()
    store = LocalStore(db_path)
    recorder = SyncHistoryRecorder(db_path)
    try:
        counts = store.counts()
        last = recorder.latest()
    finally:
        recorder.close()
        store.close()

    click.echo(f"Repository: {sync_config.owner}/{sync_config.repo}")
    click.echo("Local records: " + ", ".join(f"{t.value}={n}" for t, n in counts.items()))
    if last is not None:
        click.echo(f"Last run: {last.type.value} ({last.status.value})")

    with ContentsClient(sync_config) as client:
        reachable = client.check_access()

    if not reachable:
        click.echo("Error: Repository is not reachable with these credentials.", err=True)
        sys.exit(1)
    click.echo("✓ Repository is reachable.")


@click.group("config")
def config_group() -> None:
    """Inspect and manage the stored configuration."""


@config_group.command("show")
def show() -> None:
    """Show the current configuration (token masked)."""
    sync_config = load_sync_config()
    click.echo(f"Owner:   {sync_config.owner or '-'}")
    click.echo(f"Repo:    {sync_config.repo or '-'}")
    click.echo(f"API URL: {sync_config.api_url}")
    click.echo(f"Branch:  {sync_config.branch or '(default)'}")
    click.echo(f"Token:   {sync_config.masked_token or '-'}")


@config_group.command("export")
@click.option("--include-token", is_flag=True, help="Include the access token.")
def export_config(include_token: bool) -> None:
    """Print the configuration as JSON."""
    data = load_config()
    if not include_token:
        data.pop("token", None)
    click.echo(json.dumps(data, indent=2))


@config_group.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_config(file: Path) -> None:
    """Replace the configuration with one exported earlier.

    A token already stored is kept when the imported file has none.
    """
    try:
        imported = parse_config(file.read_text())
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    current = load_config()
    if "token" not in imported and current.get("token"):
        imported["token"] = current["token"]
    save_config(imported)
    click.echo(f"Configuration imported from {file}")


@config_group.command("reset")
@click.confirmation_option(prompt="Remove the stored configuration?")
def reset() -> None:
    """Remove the stored configuration.

    Local records and history are left untouched.
    """
    config_file = get_config_file()
    if config_file.exists():
        config_file.unlink()
    click.echo("Configuration reset.")
