"""GitHub REST API client used to publish coverage results.

Covers the four endpoints the reporter needs: listing the files of a pull
request, commenting on it, and creating/updating a check run.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import requests

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_API_URL_ENV_KEY = "GITHUB_API_URL"
_REQUEST_TIMEOUT = 30
_PER_PAGE = 100


class GitHubAPIError(Exception):
    """Exception raised when GitHub API operations fail."""


class AnnotationLevel(Enum):
    """Severity of a check-run annotation."""

    NOTICE = "notice"
    WARNING = "warning"
    FAILURE = "failure"


class CheckConclusion(Enum):
    """Final conclusion of a completed check run."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class PRFile:
    """A file changed by a pull request."""

    name: str
    """Repository-relative path."""

    status: str
    """Change status (added, modified, removed, renamed, ...)."""


@dataclass(frozen=True)
class Annotation:
    """A single-line check-run annotation."""

    path: str
    start_line: int
    end_line: int
    annotation_level: AnnotationLevel
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "annotation_level": self.annotation_level.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class CheckOutput:
    """The ``output`` object of a check run."""

    title: str
    summary: str
    annotations: list[Annotation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "annotations": [annotation.to_dict() for annotation in self.annotations],
        }


@dataclass(frozen=True)
class CheckRunParams:
    """Parameters for creating a completed check run."""

    name: str
    """Check name shown on the commit."""

    head_sha: str
    """Commit the check is attached to."""

    conclusion: CheckConclusion
    """Final conclusion."""

    output: CheckOutput | None = None
    """Optional title, summary and annotations."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "head_sha": self.head_sha,
            "status": "completed",
            "conclusion": self.conclusion.value,
        }
        if self.output is not None:
            data["output"] = self.output.to_dict()
        return data


class HostClient(Protocol):
    """Pull-request host operations the reporter depends on."""

    def list_changed_files(self, owner: str, repo: str, pr_number: int) -> list[PRFile]: ...

    def create_comment(
        self, owner: str, repo: str, issue_number: int, body: str
    ) -> dict[str, Any]: ...

    def create_check(self, owner: str, repo: str, params: CheckRunParams) -> dict[str, Any]: ...

    def update_check(
        self, owner: str, repo: str, check_run_id: int, output: CheckOutput
    ) -> dict[str, Any]: ...


class GitHubAPI:
    """Client for interacting with the GitHub API.

    Handles authentication, pagination and error wrapping.
    """

    def __init__(self, token: str, *, api_base: str | None = None) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token (usually the workflow's ``GITHUB_TOKEN``).
            api_base: REST API root. Defaults to ``GITHUB_API_URL`` or
                ``https://api.github.com``.

        Raises:
            GitHubAPIError: If the token is empty.
        """
        if not token:
            raise GitHubAPIError("GitHub token required.")

        self._api_base = (
            api_base or os.environ.get(_GITHUB_API_URL_ENV_KEY) or GITHUB_API_BASE
        ).rstrip("/")
        self._session_headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @property
    def api_base(self) -> str:
        return self._api_base

    def list_changed_files(self, owner: str, repo: str, pr_number: int) -> list[PRFile]:
        """List every file changed by a pull request, following pagination.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._api_base}/repos/{owner}/{repo}/pulls/{pr_number}/files"
        files: list[PRFile] = []
        page = 1

        while True:
            batch: list[dict[str, Any]] = self._get(url, {"per_page": _PER_PAGE, "page": page})
            files.extend(PRFile(name=item["filename"], status=item["status"]) for item in batch)
            if len(batch) < _PER_PAGE:
                break
            page += 1

        logger.debug("PR #%d has %d changed file(s)", pr_number, len(files))
        return files

    def create_comment(self, owner: str, repo: str, issue_number: int, body: str) -> dict[str, Any]:
        """Create a comment on a pull request (or issue).

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._api_base}/repos/{owner}/{repo}/issues/{issue_number}/comments"

        logger.info("Creating comment on #%d", issue_number)
        result: dict[str, Any] = self._post(url, {"body": body})
        return result

    def create_check(self, owner: str, repo: str, params: CheckRunParams) -> dict[str, Any]:
        """Create a completed check run.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._api_base}/repos/{owner}/{repo}/check-runs"

        logger.info("Creating check run '%s' on %s", params.name, params.head_sha)
        result: dict[str, Any] = self._post(url, params.to_dict())
        return result

    def update_check(
        self, owner: str, repo: str, check_run_id: int, output: CheckOutput
    ) -> dict[str, Any]:
        """Attach another output batch to an existing check run.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._api_base}/repos/{owner}/{repo}/check-runs/{check_run_id}"

        result: dict[str, Any] = self._patch(url, {"output": output.to_dict()})
        return result

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.get(
                url, params=params, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc

    def _post(self, url: str, data: dict[str, Any]) -> Any:
        """Make a POST request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.post(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"POST request failed: {exc}") from exc

    def _patch(self, url: str, data: dict[str, Any]) -> Any:
        """Make a PATCH request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.patch(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"PATCH request failed: {exc}") from exc
