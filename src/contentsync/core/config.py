"""Shared configuration classes for contentsync.

This module defines the connection settings used by the contents API client
and the sync orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class SyncConfig:
    """Coordinates and credential of the remote repository.

    A SyncConfig is immutable: one sync invocation always sees the same
    repository and token from start to finish.

    Attributes:
        owner: Repository owner (user or organization).
        repo: Repository name.
        token: Personal access token sent with every request.
        api_url: Base URL of the REST API (GitHub Enterprise uses its own).
        branch: Branch to read from and commit to (default branch if None).
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    owner: str
    repo: str
    token: str
    api_url: str = DEFAULT_API_URL
    branch: str | None = None
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize API URL."""
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))

    @property
    def repo_url(self) -> str:
        """Get the repository endpoint.

        Returns:
            URL of the repository resource on the API.
        """
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    @property
    def is_complete(self) -> bool:
        """Check that owner, repo and token are all set."""
        return bool(self.owner and self.repo and self.token)

    @property
    def masked_token(self) -> str:
        """Token safe for display (last four characters only)."""
        if not self.token:
            return ""
        return "*" * 8 + self.token[-4:]
