# RepoWatch Console Output
# Rich-based console output for user-friendly display

from typing import Any, Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from repowatch.git.errors import ConflictError
from repowatch.git.repository import Divergence
from repowatch.pipeline import PollResult, PollState

_DIVERGENCE_LABELS = {
    Divergence.UP_TO_DATE: "[green]up to date[/green]",
    Divergence.BEHIND: "[yellow]behind (fast-forward possible)[/yellow]",
    Divergence.AHEAD: "[cyan]ahead (local commits not on remote)[/cyan]",
    Divergence.DIVERGED: "[red]diverged (merge commit needed)[/red]",
}


def short_sha(sha: Optional[str]) -> str:
    return sha[:12] if sha else "-"


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for poll runs.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(no_color=not colored, highlight=False, soft_wrap=True)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_debug(self, message: str) -> None:
        """Print message only in verbose mode."""
        if self.verbose:
            self._console.print(f"[dim]{message}[/dim]")

    def print_result(self, result: PollResult) -> None:
        """
        Print the outcome of a run.

        Args:
            result: Result returned by the pipeline.
        """
        if result.error is not None:
            self.print_error(escape(result.error.describe()))
            if isinstance(result.error, ConflictError) and result.error.paths:
                for path in result.error.paths:
                    self._console.print(f"    [red]![/red] {escape(path)}")
                self._console.print("    [dim]Merge aborted; local branch left unchanged.[/dim]")
            if self.verbose and result.error.stderr:
                self._console.print(f"[dim]{escape(result.error.stderr)}[/dim]")
            return

        if result.state == PollState.UP_TO_DATE:
            self.print_success(f"✓ {result.target} has no new commits ({short_sha(result.local_sha)})")
            return

        if result.state == PollState.MERGED:
            self._console.print(
                Panel(
                    f"[green]Merged {result.target}[/green]\n"
                    f"Before: {short_sha(result.local_sha)}\n"
                    f"Fetched: {short_sha(result.remote_sha)}\n"
                    f"HEAD now: {short_sha(result.merged_sha)}",
                    title="Summary",
                    border_style="green",
                )
            )
            return

        if result.needs_merge:
            label = _DIVERGENCE_LABELS.get(result.divergence, "differs")
            self.print_info(
                f"Dry run: {result.target} at {short_sha(result.remote_sha)} differs from HEAD "
                f"{short_sha(result.local_sha)}, {label}; nothing merged"
            )

    def print_status(self, result: PollResult) -> None:
        """Print a status table for a fetch-and-compare run."""
        if result.error is not None:
            self.print_result(result)
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Tracking")
        table.add_column("HEAD", style="cyan")
        table.add_column("Remote", style="cyan")
        table.add_column("Status")
        table.add_row(
            result.target,
            short_sha(result.local_sha),
            short_sha(result.remote_sha),
            _DIVERGENCE_LABELS.get(result.divergence, "-"),
        )
        self._console.print(table)

    def print_config(self, data: dict[str, Any], source: str) -> None:
        """Print a resolved configuration, one section per block."""
        lines = []
        for section, values in data.items():
            lines.append(f"[bold]{section}[/bold]")
            if isinstance(values, dict):
                for key, value in values.items():
                    shown = "[dim]unset[/dim]" if value is None else str(value)
                    lines.append(f"  {key}: {shown}")
            else:
                lines.append(f"  {values}")
        self._console.print(Panel("\n".join(lines), title=f"RepoWatch Configuration ({source})", border_style="blue"))


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
