"""Workflow log output with rich formatting."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console()


class CLIReporter:
    """Rich terminal output for the workflow log."""

    def __init__(self, *, github_actions: bool = False) -> None:
        self.console = console
        self.github_actions = github_actions

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def print_error(self, message: str) -> None:
        """Print an error message.

        Inside GitHub Actions the message is also emitted as an ``::error::``
        workflow command so it shows up in the run summary.
        """
        if self.github_actions:
            # Workflow commands must be a single line; escape per the runner rules.
            encoded = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
            self.console.print(
                f"::error::{encoded}", markup=False, highlight=False, soft_wrap=True
            )
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{escape(message)}[/dim]")
