"""Tests for CLI commands - configure, config, push/pull/sync, history, check."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from contentsync.client.cli import cli
from contentsync.client.history import SyncHistoryRecorder
from contentsync.client.store import LocalStore
from contentsync.core.types import EntityType, HistoryStatus, SyncKind

if TYPE_CHECKING:
    from conftest import FakeRemote


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo the logging setup done by each CLI invocation."""
    yield
    logger = logging.getLogger("contentsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the CLI at a temporary config directory."""
    monkeypatch.delenv("CONTENTSYNC_TOKEN", raising=False)
    with patch("contentsync.client.cli.config.get_config_dir", return_value=tmp_path):
        yield tmp_path


@pytest.fixture
def configured(config_dir: Path) -> Path:
    """Write a complete configuration."""
    (config_dir / "config.json").write_text(
        json.dumps({"owner": "acme", "repo": "content", "token": "ghp_secret1234"})
    )
    return config_dir


@pytest.fixture
def fake_client(remote: FakeRemote) -> Iterator[MagicMock]:
    """Replace the HTTP client used by sync commands with the fake remote."""
    with patch("contentsync.client.cli.transfer.ContentsClient") as client_cls:
        client_cls.return_value.__enter__.return_value = remote
        yield client_cls


def add_activity(config_dir: Path, activity_id: str, title: str = "Intro") -> None:
    """Insert an activity in the CLI's local database."""
    store = LocalStore(config_dir / "content.db")
    store.collection(EntityType.ACTIVITIES).insert(
        {"activityId": activity_id, "title": title, "updatedAt": 1000}
    )
    store.close()


class TestConfigureCommand:
    """Tests for 'contentsync configure' command."""

    def test_configure_with_options(self, runner: CliRunner, config_dir: Path) -> None:
        """Should save the repository settings."""
        result = runner.invoke(
            cli,
            ["configure", "--owner", "acme", "--repo", "content", "--token", "t0k3n"],
        )

        assert result.exit_code == 0
        saved = json.loads((config_dir / "config.json").read_text())
        assert saved["owner"] == "acme"
        assert saved["repo"] == "content"
        assert saved["token"] == "t0k3n"
        assert saved["api_url"] == "https://api.github.com"
        assert "branch" not in saved

    def test_configure_prompts(self, runner: CliRunner, config_dir: Path) -> None:
        """Should prompt for missing values."""
        result = runner.invoke(cli, ["configure"], input="acme\ncontent\nsecret\n")

        assert result.exit_code == 0
        assert "Configured acme/content" in result.output
        assert json.loads((config_dir / "config.json").read_text())["token"] == "secret"

    def test_configure_branch(self, runner: CliRunner, config_dir: Path) -> None:
        """Should store the branch when given."""
        runner.invoke(
            cli,
            ["configure", "--owner", "a", "--repo", "b", "--token", "t", "--branch", "content"],
        )

        assert json.loads((config_dir / "config.json").read_text())["branch"] == "content"


class TestConfigGroup:
    """Tests for 'contentsync config' commands."""

    def test_show_masks_token(self, runner: CliRunner, configured: Path) -> None:
        """Should never print the full token."""
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "acme" in result.output
        assert "********1234" in result.output
        assert "ghp_secret1234" not in result.output

    def test_export_without_token(self, runner: CliRunner, configured: Path) -> None:
        """Export should leave the token out by default."""
        result = runner.invoke(cli, ["config", "export"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"owner": "acme", "repo": "content"}

    def test_export_with_token(self, runner: CliRunner, configured: Path) -> None:
        """--include-token should export the token too."""
        result = runner.invoke(cli, ["config", "export", "--include-token"])

        assert json.loads(result.output)["token"] == "ghp_secret1234"

    def test_import_keeps_existing_token(
        self, runner: CliRunner, configured: Path, tmp_path: Path
    ) -> None:
        """Imported settings without a token should keep the stored one."""
        exported = tmp_path / "exported.json"
        exported.write_text(json.dumps({"owner": "other", "repo": "site", "extra": "x"}))

        result = runner.invoke(cli, ["config", "import", str(exported)])

        assert result.exit_code == 0
        saved = json.loads((configured / "config.json").read_text())
        assert saved == {"owner": "other", "repo": "site", "token": "ghp_secret1234"}

    def test_import_invalid_json(self, runner: CliRunner, config_dir: Path, tmp_path: Path) -> None:
        """Invalid files should be rejected."""
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")

        result = runner.invoke(cli, ["config", "import", str(broken)])

        assert result.exit_code == 1
        assert "Invalid configuration JSON" in result.output
        assert not (config_dir / "config.json").exists()

    def test_reset_removes_config(self, runner: CliRunner, configured: Path) -> None:
        """Reset should delete the config file."""
        result = runner.invoke(cli, ["config", "reset", "--yes"])

        assert result.exit_code == 0
        assert not (configured / "config.json").exists()

    def test_reset_aborts_without_confirmation(self, runner: CliRunner, configured: Path) -> None:
        """Declining the prompt should keep the config."""
        result = runner.invoke(cli, ["config", "reset"], input="n\n")

        assert result.exit_code != 0
        assert (configured / "config.json").exists()


class TestSyncCommands:
    """Tests for 'contentsync push/pull/sync' commands."""

    def test_push_requires_configuration(self, runner: CliRunner, config_dir: Path) -> None:
        """Should refuse to run without owner, repo and token."""
        result = runner.invoke(cli, ["push"])

        assert result.exit_code == 1
        assert "not configured" in result.output

    def test_push_uploads_local_records(
        self,
        runner: CliRunner,
        configured: Path,
        fake_client: MagicMock,
        remote: FakeRemote,
    ) -> None:
        """Push should write local records and report counts."""
        add_activity(configured, "a1")

        result = runner.invoke(cli, ["push"])

        assert result.exit_code == 0
        assert "Pushed: 1" in result.output
        assert "data/activities/a1.json" in remote.objects

    def test_push_records_history(
        self,
        runner: CliRunner,
        configured: Path,
        fake_client: MagicMock,
    ) -> None:
        """Each run should leave a history entry."""
        add_activity(configured, "a1")

        runner.invoke(cli, ["push", "-t", "activities"])

        history = SyncHistoryRecorder(configured / "content.db")
        entry = history.latest()
        history.close()
        assert entry is not None
        assert entry.type is SyncKind.PUSH
        assert entry.status is HistoryStatus.SUCCESS
        assert entry.pushed == 1

    def test_pull_reports_first_three_errors(
        self,
        runner: CliRunner,
        configured: Path,
        fake_client: MagicMock,
        remote: FakeRemote,
    ) -> None:
        """Only three errors should be printed, followed by an ellipsis."""
        for i in range(4):
            remote.seed(f"data/activities/bad{i}.json", b"not json")

        result = runner.invoke(cli, ["pull", "--type", "activities"])

        assert result.exit_code == 1
        assert "Activity bad0.json" in result.output
        assert "Activity bad2.json" in result.output
        assert "Activity bad3.json" not in result.output
        assert "  ..." in result.output.splitlines()

    def test_sync_converges(
        self,
        runner: CliRunner,
        configured: Path,
        fake_client: MagicMock,
        remote: FakeRemote,
    ) -> None:
        """Sync should pull remote records and push local ones."""
        add_activity(configured, "local-1")
        remote.seed(
            "data/activities/remote-1.json",
            {"activityId": "remote-1", "title": "Remote", "updatedAt": 5},
        )

        result = runner.invoke(cli, ["sync", "-t", "activities"])

        assert result.exit_code == 0
        assert "Pushed: 1" in result.output
        assert "Pulled: 1" in result.output
        assert "data/activities/local-1.json" in remote.objects

    def test_token_from_environment(
        self,
        runner: CliRunner,
        config_dir: Path,
        fake_client: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """CONTENTSYNC_TOKEN should stand in for a stored token."""
        (config_dir / "config.json").write_text(json.dumps({"owner": "acme", "repo": "content"}))
        monkeypatch.setenv("CONTENTSYNC_TOKEN", "from-env")

        result = runner.invoke(cli, ["pull"])

        assert result.exit_code == 0
        sync_config = fake_client.call_args.args[0]
        assert sync_config.token == "from-env"

    def test_unknown_type_rejected(self, runner: CliRunner, configured: Path) -> None:
        """Only known entity types are accepted."""
        result = runner.invoke(cli, ["push", "--type", "quizzes"])

        assert result.exit_code == 2


class TestHistoryCommand:
    """Tests for 'contentsync history' command."""

    def test_history_empty(self, runner: CliRunner, config_dir: Path) -> None:
        """Should say so when nothing ran yet."""
        result = runner.invoke(cli, ["history"])

        assert result.exit_code == 0
        assert "No sync history yet." in result.output

    def test_history_lists_runs(
        self,
        runner: CliRunner,
        configured: Path,
        fake_client: MagicMock,
    ) -> None:
        """Should list runs most recent first."""
        runner.invoke(cli, ["pull"])
        add_activity(configured, "a1")
        runner.invoke(cli, ["push"])

        result = runner.invoke(cli, ["history", "--limit", "5"])

        lines = result.output.strip().splitlines()
        assert len(lines) == 2
        assert "push" in lines[0]
        assert "pushed=1" in lines[0]
        assert "pull" in lines[1]


class TestCheckCommand:
    """Tests for 'contentsync check' command."""

    def test_check_reachable(self, runner: CliRunner, configured: Path) -> None:
        """Should report a reachable repository."""
        with patch("contentsync.client.cli.settings.ContentsClient") as client_cls:
            client_cls.return_value.__enter__.return_value.check_access.return_value = True
            result = runner.invoke(cli, ["check"])

        assert result.exit_code == 0
        assert "acme/content" in result.output
        assert "activities=0" in result.output
        assert "reachable" in result.output

    def test_check_unreachable(self, runner: CliRunner, configured: Path) -> None:
        """Should fail when the repository cannot be fetched."""
        with patch("contentsync.client.cli.settings.ContentsClient") as client_cls:
            client_cls.return_value.__enter__.return_value.check_access.return_value = False
            result = runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "not reachable" in result.output


class TestLogging:
    """Tests for the --verbose flag."""

    def test_default_level_is_warning(self, runner: CliRunner, config_dir: Path) -> None:
        """Only warnings and errors should be logged by default."""
        runner.invoke(cli, ["history"])

        assert logging.getLogger("contentsync").level == logging.WARNING

    def test_verbose_enables_debug(self, runner: CliRunner, config_dir: Path) -> None:
        """--verbose should log at DEBUG."""
        runner.invoke(cli, ["--verbose", "history"])

        logger = logging.getLogger("contentsync")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
