"""GitHub Actions execution context detection."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2


@dataclass(frozen=True)
class PullRequestRef:
    """The pull request a workflow run belongs to."""

    number: int
    head_sha: str


@dataclass(frozen=True)
class GitHubContext:
    """Detected workflow execution context."""

    event_name: str
    """Triggering event (``pull_request``, ``push``, ...)."""

    sha: str
    """``GITHUB_SHA`` of the run."""

    owner: str
    """Repository owner (org or user)."""

    repo: str
    """Repository name."""

    pull_request: PullRequestRef | None = None
    """Pull request details when the event carries one."""

    @property
    def is_pr(self) -> bool:
        return self.pull_request is not None

    @property
    def head_sha(self) -> str:
        """Commit that checks should be attached to."""
        if self.pull_request is not None:
            return self.pull_request.head_sha
        return self.sha


def _load_event_payload(event_path: str | None) -> dict[str, Any]:
    if not event_path:
        return {}
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Cannot read event payload %s: %s", event_path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}


def _parse_pull_request(payload: dict[str, Any]) -> PullRequestRef | None:
    pr = payload.get("pull_request")
    if not isinstance(pr, dict):
        return None
    number = pr.get("number")
    head = pr.get("head") or {}
    head_sha = head.get("sha") if isinstance(head, dict) else None
    if not isinstance(number, int) or not head_sha:
        return None
    return PullRequestRef(number=number, head_sha=str(head_sha))


def detect_github_context(env: Mapping[str, str] | None = None) -> GitHubContext:
    """Build the context from GitHub Actions environment variables.

    The pull request is read from the event payload at ``GITHUB_EVENT_PATH``;
    a missing or unreadable payload means the run is not a pull request.
    """
    env = os.environ if env is None else env

    repo_full = env.get("GITHUB_REPOSITORY", "")
    repo_parts = repo_full.split("/") if repo_full else []
    owner, repo = repo_parts if len(repo_parts) == _OWNER_REPO_PARTS else ("", "")

    payload = _load_event_payload(env.get("GITHUB_EVENT_PATH"))

    return GitHubContext(
        event_name=env.get("GITHUB_EVENT_NAME", ""),
        sha=env.get("GITHUB_SHA", ""),
        owner=owner,
        repo=repo,
        pull_request=_parse_pull_request(payload),
    )
