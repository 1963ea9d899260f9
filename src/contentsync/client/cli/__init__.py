"""Command-line interface for contentsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Store repository coordinates and token
- check: Verify the repository is reachable
- config: Show, export, import or reset the configuration
- push: Write local records to the repository
- pull: Bring repository records into the local store
- sync: Pull, then push
- history: Show recent runs
"""

from __future__ import annotations

import logging
import sys

import click

from contentsync import __version__
from contentsync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_db_path,
    load_config,
    load_sync_config,
    save_config,
)
from contentsync.client.cli.history import show_history
from contentsync.client.cli.settings import check, config_group, configure
from contentsync.client.cli.transfer import pull, push, sync

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool) -> None:
    """Configure the contentsync logger to write to stderr.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    root_logger = logging.getLogger("contentsync")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.propagate = False


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """contentsync - Sync learning content with a GitHub repository."""
    setup_logging(verbose)


# Settings commands
cli.add_command(configure)
cli.add_command(check)
cli.add_command(config_group)

# Sync commands
cli.add_command(push)
cli.add_command(pull)
cli.add_command(sync)
cli.add_command(show_history)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    "setup_logging",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_db_path",
    "load_config",
    "load_sync_config",
    "save_config",
]
