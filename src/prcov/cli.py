"""prcov CLI: publish LCOV coverage to a GitHub pull request."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import click

from prcov import __version__
from prcov.adapters.coverage.lcov import ParseError
from prcov.analyzers.coverage import Coverage
from prcov.config import (
    CONFIG_FILE_NAME,
    INPUT_GITHUB_TOKEN,
    INPUT_MIN_THRESHOLD,
    INPUT_REPORT_FILE_PATH,
    ActionInputs,
    ConfigError,
    MappingInputs,
    PrcovConfig,
    Settings,
    SettingsLoader,
    load_config,
)
from prcov.reporters.github_check import ContextError, GitHubReporter, IllegalStateError
from prcov.reporters.terminal import CLIReporter
from prcov.utils.ci_context import detect_github_context
from prcov.utils.github import GitHubAPI, GitHubAPIError

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Failures that end the run with a readable message instead of a traceback
_RUN_ERRORS = (ConfigError, OSError, ParseError, ContextError, IllegalStateError, GitHubAPIError)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FORMAT,
        stream=sys.stderr,
    )


async def run(settings: Settings, config: PrcovConfig) -> GitHubReporter:
    """Parse the report, publish it, and return the reporter for inspection."""
    coverage = Coverage.from_report_file(settings.report_file_path)
    reporter = GitHubReporter(
        threshold=settings.min_threshold,
        client=GitHubAPI(settings.token),
        context=detect_github_context(),
        check_name=config.check_name,
        path_prefix=config.path_prefix or None,
    )

    await reporter.use_coverage(coverage)
    await reporter.send_report()
    return reporter


@click.command()
@click.option(
    "--github-token",
    default=None,
    help="GitHub token. Defaults to the INPUT_GITHUB_TOKEN action input.",
)
@click.option(
    "--min-threshold",
    default=None,
    help="Minimum coverage percentage (0-100). Defaults to INPUT_MIN_THRESHOLD.",
)
@click.option(
    "--report-file-path",
    default=None,
    help="Path to the LCOV report. Defaults to INPUT_REPORT_FILE_PATH.",
)
@click.option(
    "--config",
    "config_path",
    default=CONFIG_FILE_NAME,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Optional YAML configuration file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="prcov")
def cli(
    github_token: str | None,
    min_threshold: str | None,
    report_file_path: str | None,
    config_path: str,
    *,
    verbose: bool,
) -> None:
    """Check LCOV coverage against a threshold and report it on the pull request."""
    _configure_logging(verbose=verbose)
    terminal = CLIReporter(github_actions=os.getenv("GITHUB_ACTIONS") == "true")

    try:
        config = load_config(config_path)
        inputs = MappingInputs(
            {
                INPUT_GITHUB_TOKEN: github_token,
                INPUT_MIN_THRESHOLD: min_threshold,
                INPUT_REPORT_FILE_PATH: report_file_path,
            },
            fallback=ActionInputs(),
        )
        settings = SettingsLoader(config.default_min_threshold).from_io(inputs)
        terminal.print_info(f"Reading coverage from {settings.report_file_path}")
        reporter = asyncio.run(run(settings, config))
    except _RUN_ERRORS as exc:
        logger.debug("Run failed", exc_info=True)
        terminal.print_error(str(exc))
        sys.exit(1)

    message = reporter.get_workflow_message()
    if reporter.is_coverage_ok():
        terminal.print_success(message)
    else:
        terminal.print_error(message)
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
