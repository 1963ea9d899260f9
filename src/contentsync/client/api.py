"""HTTP client for the GitHub contents API.

This module provides:
- ContentsClient: read/create/update/delete/list of path-addressed objects
- RemoteObject, RemoteEntry: object and directory listing metadata
- RemoteError and its subclasses: typed failures of the remote store

Every object carries a version token (the blob SHA). Updates and deletes
must supply the current token; a stale token fails with VersionMismatchError.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from contentsync.core.config import SyncConfig

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Base exception for remote store errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RemoteError):
    """Authentication failed (bad or expired token)."""


class NotFoundError(RemoteError):
    """Object or directory does not exist."""


class VersionMismatchError(RemoteError):
    """Supplied version token does not match the object's current one."""


@dataclass
class RemoteObject:
    """A file read from the repository."""

    path: str
    body: bytes
    version_token: str


@dataclass
class RemoteEntry:
    """One entry of a directory listing."""

    name: str
    path: str
    version_token: str
    type: str  # file, dir, symlink, submodule

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteEntry:
        """Create from API response dictionary."""
        return cls(
            name=data["name"],
            path=data["path"],
            version_token=data["sha"],
            type=data.get("type", "file"),
        )

    @property
    def is_file(self) -> bool:
        """Check if the entry is a regular file."""
        return self.type == "file"


class ContentsClient:
    """HTTP client for the contents endpoint of one repository."""

    def __init__(self, config: SyncConfig) -> None:
        """Initialize the contents client.

        Args:
            config: Repository coordinates and credential.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.repo_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={
                "Authorization": f"token {config.token}",
                "Accept": "application/vnd.github.v3+json",
            },
        )

    @property
    def config(self) -> SyncConfig:
        """Configuration this client was created with."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> ContentsClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    # === Request plumbing ===

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map failures to RemoteError subclasses."""
        logger.debug(f"{method} {url}")
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise RemoteError(f"Connection failed: {e}") from e
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.is_success:
            return response

        message = _error_message(response)
        status = response.status_code
        if status == 401:
            raise AuthenticationError(message, status)
        if status == 404:
            raise NotFoundError(message, status)
        if status == 409:
            raise VersionMismatchError(message, status)
        if status == 422 and "sha" in message.lower():
            # Write rejected because the version token is missing or wrong
            raise VersionMismatchError(message, status)
        raise RemoteError(message, status)

    def _contents_url(self, path: str) -> str:
        return f"/contents/{path.strip('/')}"

    def _ref_params(self) -> dict[str, str]:
        if self._config.branch:
            return {"ref": self._config.branch}
        return {}

    def _write(
        self,
        path: str,
        body: bytes | str,
        message: str,
        version_token: str | None,
    ) -> str:
        """PUT an object, returning its new version token."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(body).decode("ascii"),
        }
        if version_token is not None:
            payload["sha"] = version_token
        if self._config.branch:
            payload["branch"] = self._config.branch

        response = self._request("PUT", self._contents_url(path), json=payload)
        new_token: str = response.json()["content"]["sha"]
        return new_token

    # === Object operations ===

    def read_object(self, path: str) -> RemoteObject:
        """Read an object with its current version token.

        Args:
            path: Object path inside the repository.

        Returns:
            The decoded object.

        Raises:
            NotFoundError: If the object does not exist.
            RemoteError: On any other failure, or if the path is not a file.
        """
        response = self._request(
            "GET", self._contents_url(path), params=self._ref_params()
        )
        data = response.json()
        if not isinstance(data, dict) or data.get("type") != "file" or "content" not in data:
            raise RemoteError("Invalid file response", response.status_code)
        try:
            body = base64.b64decode(data["content"])
        except (binascii.Error, ValueError) as e:
            raise RemoteError(f"Invalid file encoding: {e}", response.status_code) from e
        return RemoteObject(path=path, body=body, version_token=data["sha"])

    def read(self, path: str) -> bytes:
        """Read an object's body.

        Args:
            path: Object path inside the repository.

        Returns:
            Raw body bytes.

        Raises:
            NotFoundError: If the object does not exist.
        """
        return self.read_object(path).body

    def create(self, path: str, body: bytes | str, message: str) -> str:
        """Create a brand-new object.

        Args:
            path: Object path.
            body: Object content.
            message: Commit message recorded by the store.

        Returns:
            Version token of the created object.

        Raises:
            RemoteError: If the path already exists or the write is rejected.
        """
        return self._write(path, body, message, None)

    def update(
        self,
        path: str,
        body: bytes | str,
        message: str,
        version_token: str,
    ) -> str:
        """Overwrite an existing object.

        Args:
            path: Object path.
            body: New content.
            message: Commit message recorded by the store.
            version_token: Token of the revision being replaced.

        Returns:
            New version token.

        Raises:
            VersionMismatchError: If version_token is stale.
        """
        return self._write(path, body, message, version_token)

    def delete(self, path: str, message: str, version_token: str) -> None:
        """Delete an object.

        Args:
            path: Object path.
            message: Commit message recorded by the store.
            version_token: Token of the revision being deleted.

        Raises:
            VersionMismatchError: If version_token is stale.
            NotFoundError: If the object does not exist.
        """
        payload: dict[str, Any] = {"message": message, "sha": version_token}
        if self._config.branch:
            payload["branch"] = self._config.branch
        self._request("DELETE", self._contents_url(path), json=payload)

    def list(self, path: str) -> list[RemoteEntry]:
        """List a directory.

        A directory that does not exist yet holds no objects, so a missing
        path yields an empty list rather than an error.

        Args:
            path: Directory path.

        Returns:
            Directory entries (empty if missing or if path is a file).
        """
        try:
            response = self._request(
                "GET", self._contents_url(path), params=self._ref_params()
            )
        except NotFoundError:
            logger.debug(f"Directory {path} not found, treating as empty")
            return []
        data = response.json()
        if not isinstance(data, list):
            return []
        return [RemoteEntry.from_dict(entry) for entry in data]

    def version_token_for(self, path: str) -> str | None:
        """Resolve an object's current version token.

        Lists the parent directory and matches the file name, which costs
        one listing per lookup.

        Args:
            path: Object path.

        Returns:
            The token, or None if the object does not exist.
        """
        parent, _, name = path.rpartition("/")
        for entry in self.list(parent):
            if entry.name == name:
                return entry.version_token
        return None

    def check_access(self) -> bool:
        """Check that the repository is reachable with the configured token.

        Returns:
            True if the repository could be fetched.
        """
        try:
            self._request("GET", self._config.repo_url)
            return True
        except RemoteError as e:
            logger.warning(f"Repository check failed: {e}")
            return False


def _error_message(response: httpx.Response) -> str:
    """Extract the server-provided message from an error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"
