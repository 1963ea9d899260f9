"""Configuration utilities for contentsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from contentsync.core.config import DEFAULT_API_URL, SyncConfig

TOKEN_ENV_VAR = "CONTENTSYNC_TOKEN"
CONFIG_KEYS = ("owner", "repo", "token", "api_url", "branch")


def get_config_dir() -> Path:
    """Get the configuration directory for contentsync.

    Returns:
        Path to ~/.contentsync or equivalent.
    """
    return Path.home() / ".contentsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_db_path() -> Path:
    """Get the path to the local content database."""
    return get_config_dir() / "content.db"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def parse_config(text: str) -> dict[str, str]:
    """Parse an exported configuration.

    Only known keys are kept.

    Args:
        text: JSON document.

    Returns:
        Configuration dict.

    Raises:
        ValueError: If the text is not a JSON object.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid configuration JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Invalid configuration JSON: expected an object")
    return {key: str(data[key]) for key in CONFIG_KEYS if data.get(key)}


def load_sync_config() -> SyncConfig:
    """Build the repository configuration from the config file.

    The CONTENTSYNC_TOKEN environment variable, when set, takes precedence
    over the stored token.

    Returns:
        SyncConfig (possibly incomplete, see SyncConfig.is_complete).
    """
    config = load_config()
    return SyncConfig(
        owner=config.get("owner", ""),
        repo=config.get("repo", ""),
        token=os.environ.get(TOKEN_ENV_VAR) or config.get("token", ""),
        api_url=config.get("api_url") or DEFAULT_API_URL,
        branch=config.get("branch") or None,
    )
