"""Reporters for publishing coverage results."""

from __future__ import annotations

from prcov.reporters.github_check import GitHubReporter
from prcov.reporters.terminal import CLIReporter

__all__ = [
    "CLIReporter",
    "GitHubReporter",
]
