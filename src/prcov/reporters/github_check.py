"""GitHub reporter publishing coverage as a PR comment and a check run.

The reporter is a two-phase object:

1. Construct it with the threshold, a host client and the workflow context.
2. Bind a :class:`~prcov.analyzers.coverage.Coverage` with
   :meth:`GitHubReporter.use_coverage`. This fetches the PR's changed files
   once and caches the annotations for uncovered lines the PR touches.

After binding, the message getters can be queried and
:meth:`GitHubReporter.send_report` publishes the comment and the check run
concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, cast

from prcov.config import DEFAULT_CHECK_NAME
from prcov.reporters.formatter import ICON_NEGATIVE, ICON_POSITIVE, format_percentage
from prcov.utils.github import (
    Annotation,
    AnnotationLevel,
    CheckConclusion,
    CheckOutput,
    CheckRunParams,
    GitHubAPIError,
    PRFile,
)

if TYPE_CHECKING:
    from prcov.analyzers.coverage import Coverage
    from prcov.models.coverage import UncoveredLine
    from prcov.utils.ci_context import GitHubContext, PullRequestRef
    from prcov.utils.github import HostClient

logger = logging.getLogger(__name__)

# GitHub accepts at most 50 annotations per check-run request
MAX_ANNOTATIONS_PER_REQUEST = 50

CHECK_TITLE = "Coverage report"
UNCOVERED_LINE_MESSAGE = "Uncovered line"

_FULL_COVERAGE = 100


class ContextError(Exception):
    """Raised when a PR-only operation runs outside a pull request."""


class IllegalStateError(Exception):
    """Raised when the reporter is used before coverage is bound."""


class ReporterState(Enum):
    """Lifecycle of a :class:`GitHubReporter`."""

    UNINITIALIZED = "uninitialized"
    COVERAGE_BOUND = "coverage_bound"
    REPORTED = "reported"


@dataclass(frozen=True)
class _Uninitialized:
    state: ClassVar[ReporterState] = ReporterState.UNINITIALIZED


@dataclass(frozen=True)
class _CoverageBound:
    state: ClassVar[ReporterState] = ReporterState.COVERAGE_BOUND

    coverage: Coverage
    annotations: tuple[Annotation, ...]


@dataclass(frozen=True)
class _Reported(_CoverageBound):
    state: ClassVar[ReporterState] = ReporterState.REPORTED


def chunk_annotations(
    annotations: list[Annotation], size: int = MAX_ANNOTATIONS_PER_REQUEST
) -> list[list[Annotation]]:
    """Split annotations into ordered chunks of at most ``size`` items."""
    return [annotations[i : i + size] for i in range(0, len(annotations), size)]


def build_annotations(
    lines: list[UncoveredLine], files: list[PRFile], path_prefix: str
) -> list[Annotation]:
    """Annotate uncovered lines that belong to files changed by the PR.

    ``path_prefix`` (plus a trailing slash) is removed from report paths to
    obtain repository-relative paths. Messages are numbered ``(i/N)`` after
    filtering.
    """
    changed = {file.name for file in files}
    prefix = f"{path_prefix.rstrip('/')}/"

    selected: list[tuple[str, int]] = []
    for line in lines:
        path = line.file.replace(prefix, "", 1)
        if path in changed:
            selected.append((path, line.number))

    total = len(selected)
    return [
        Annotation(
            path=path,
            start_line=number,
            end_line=number,
            annotation_level=AnnotationLevel.FAILURE,
            message=f"{UNCOVERED_LINE_MESSAGE} ({idx}/{total})",
        )
        for idx, (path, number) in enumerate(selected, start=1)
    ]


class GitHubReporter:
    """Publishes coverage results to a GitHub pull request."""

    def __init__(
        self,
        threshold: int,
        client: HostClient,
        context: GitHubContext,
        *,
        check_name: str = DEFAULT_CHECK_NAME,
        path_prefix: str | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            threshold: Required coverage percentage (0-100).
            client: Host API client.
            context: Workflow context (repository, SHA, pull request).
            check_name: Name of the check run.
            path_prefix: Prefix stripped from report paths. Defaults to the
                current working directory.
        """
        self._threshold = threshold
        self._client = client
        self._context = context
        self._check_name = check_name
        self._path_prefix = path_prefix or os.getcwd()
        self._phase: _Uninitialized | _CoverageBound = _Uninitialized()

    @property
    def state(self) -> ReporterState:
        return self._phase.state

    # ── Binding ──────────────────────────────────────────────────

    async def use_coverage(self, coverage: Coverage) -> None:
        """Bind coverage and compute annotations for the PR's changed files.

        Raises:
            IllegalStateError: If coverage is already bound.
            ContextError: If the run is not a pull request.
            GitHubAPIError: If the changed files cannot be fetched.
        """
        if not isinstance(self._phase, _Uninitialized):
            raise IllegalStateError("Coverage is already bound to this reporter")

        files = await self.fetch_pr_files()
        uncovered = coverage.get_uncovered_lines()

        logger.info("Create annotations...")
        logger.info("Total lines: %d", len(uncovered))
        logger.info("Total files: %d", len(files))

        annotations = build_annotations(uncovered, files, self._path_prefix)
        self._phase = _CoverageBound(coverage=coverage, annotations=tuple(annotations))

    async def fetch_pr_files(self) -> list[PRFile]:
        """Fetch the list of files changed by the current pull request."""
        pr = self._get_pull_request()
        logger.info("Fetch pr files")
        try:
            return await asyncio.to_thread(
                self._client.list_changed_files,
                self._context.owner,
                self._context.repo,
                pr.number,
            )
        except Exception as exc:
            raise GitHubAPIError(f"Cannot fetch pr files list. Error: {exc}") from exc

    # ── Queries ──────────────────────────────────────────────────

    def get_annotations(self) -> list[Annotation]:
        return list(self._require_bound().annotations)

    def is_coverage_ok(self) -> bool:
        """Return True when the bound coverage passes the threshold."""
        return self._require_bound().coverage.is_pass_threshold(self._threshold)

    def get_current_percentage(self) -> str:
        return format_percentage(self._require_bound().coverage.get_percentage())

    def get_required_percentage(self) -> str:
        self._require_bound()
        return format_percentage(self._threshold)

    def get_workflow_message(self) -> str:
        """Short status line for the workflow log."""
        message = f"{self._get_status_icon()} {self._get_status_message()}"
        if not self.is_coverage_ok():
            message = f"{message} {self._get_footer()}"
        return message

    def get_coverage_comment(self) -> str:
        """Markdown body of the PR comment."""
        coverage = self._require_bound().coverage
        current = "" if coverage.is_empty() else self.get_current_percentage()
        return "\n".join(
            [
                f"### {self._get_status_icon()} Coverage {current}".rstrip(),
                self._get_status_message(),
                self._get_footer(),
            ]
        )

    # ── Publishing ───────────────────────────────────────────────

    async def send_coverage_comment(self) -> None:
        """Post the coverage comment on the pull request.

        Raises:
            ContextError: If the run is not a pull request.
            GitHubAPIError: If the comment cannot be created.
        """
        pr = self._get_pull_request()
        body = self.get_coverage_comment()

        logger.info("Create comment")
        try:
            await asyncio.to_thread(
                self._client.create_comment,
                self._context.owner,
                self._context.repo,
                pr.number,
                body,
            )
        except Exception as exc:
            raise GitHubAPIError(f"Cannot create coverage comment. Error: {exc}") from exc

    async def send_check(self) -> None:
        """Create the check run, attaching annotations in batches of 50.

        Raises:
            GitHubAPIError: If the check run cannot be created or updated.
        """
        annotations = self.get_annotations()
        owner, repo = self._context.owner, self._context.repo
        head_sha = self._context.head_sha

        logger.info("Total annotations %d", len(annotations))

        try:
            if not annotations:
                await asyncio.to_thread(
                    self._client.create_check,
                    owner,
                    repo,
                    CheckRunParams(
                        name=self._check_name,
                        head_sha=head_sha,
                        conclusion=CheckConclusion.SUCCESS,
                    ),
                )
                return

            summary = f"{len(annotations)} error(s) found"
            first, *rest = chunk_annotations(annotations)

            logger.info("Send annotations chunk of %d elements", len(first))
            check = await asyncio.to_thread(
                self._client.create_check,
                owner,
                repo,
                CheckRunParams(
                    name=self._check_name,
                    head_sha=head_sha,
                    conclusion=CheckConclusion.FAILURE,
                    output=CheckOutput(title=CHECK_TITLE, summary=summary, annotations=first),
                ),
            )

            for chunk in rest:
                logger.info("Send annotations chunk of %d elements", len(chunk))
                await asyncio.to_thread(
                    self._client.update_check,
                    owner,
                    repo,
                    check["id"],
                    CheckOutput(title=CHECK_TITLE, summary=summary, annotations=chunk),
                )
        except Exception as exc:
            raise GitHubAPIError(f"Cannot create coverage check. Error: {exc}") from exc

    async def send_report(self) -> None:
        """Send the comment and the check run concurrently.

        Both sends are awaited; if either failed, the first failure is raised
        afterwards.

        Raises:
            IllegalStateError: If coverage is not bound or the report was already sent.
        """
        phase = self._require_bound()
        if isinstance(phase, _Reported):
            raise IllegalStateError("Report has already been sent")

        outcomes = await asyncio.gather(
            self.send_coverage_comment(),
            self.send_check(),
            return_exceptions=True,
        )
        self._phase = _Reported(coverage=phase.coverage, annotations=phase.annotations)

        errors = [item for item in outcomes if isinstance(item, BaseException)]
        for error in errors[1:]:
            logger.error("Reporting failed: %s", error)
        if errors:
            raise errors[0]

    # ── Internals ────────────────────────────────────────────────

    def _require_bound(self) -> _CoverageBound:
        if not isinstance(self._phase, _CoverageBound):
            raise IllegalStateError("Coverage is not bound. Call use_coverage() first.")
        return self._phase

    def _get_pull_request(self) -> PullRequestRef:
        if not self._context.is_pr:
            raise ContextError(
                "Cannot find pull_request. Coverage reports support only pull_request workflows"
            )
        return cast("PullRequestRef", self._context.pull_request)

    def _get_status_icon(self) -> str:
        return ICON_POSITIVE if self.is_coverage_ok() else ICON_NEGATIVE

    def _get_status_message(self) -> str:
        coverage = self._require_bound().coverage
        if coverage.is_empty():
            return "No code to cover."
        if not self.is_coverage_ok():
            return "PR contains uncovered code!"
        return "All code covered!"

    def _get_footer(self) -> str:
        prefix = "" if self._threshold == _FULL_COVERAGE else ">= "
        current = self.get_current_percentage()
        return f"Current: {current}, required: {prefix}{self.get_required_percentage()}"
