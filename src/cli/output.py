"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
messages, spinners, byte-level transfer progress and result tables. Supports
verbosity levels and the --no-color flag.
"""

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.spinner import Spinner
from rich.live import Live
from rich.table import Table

from src.file_store.models import FileRecord

from .models import PutSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("notes.txt attached")
        >>> with handler.spinner("Resolving page..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )
        self._progress_lock = threading.Lock()

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single remote operations.

        Example:
            >>> with handler.spinner("Resolving page..."):
            ...     identity = session.fetch_page_identity(page_id)
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    @contextmanager
    def transfer_progress(self) -> Iterator["TransferProgress"]:
        """Display byte progress bars for uploads and downloads.

        Yields:
            TransferProgress that hands out per-file callbacks

        Example:
            >>> with handler.transfer_progress() as progress:
            ...     callback = progress.track("notes.txt", 2048)
            ...     pipeline.upload(path, block_id, space_id, progress=callback)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            yield TransferProgress(progress, self._progress_lock)

    def print_put_summary(self, summary: PutSummary) -> None:
        """Display the result of a put batch."""
        self.console.print("\n[bold]Put Summary:[/bold]")

        if summary.attached:
            self.console.print(f"  [green]↑[/green] Attached: {len(summary.attached)} file(s)")

        if summary.failed:
            self.console.print(f"  [red]✗[/red] Failed: {len(summary.failed)} file(s)")
            for name in summary.failed:
                self.console.print(f"    • {name}")

        if summary.skipped:
            self.console.print(f"  [yellow]⊘[/yellow] Skipped: {len(summary.skipped)} file(s)")

        if summary.stuck_block_ids:
            self.console.print(
                "\n[yellow]These blocks were created but never attached; "
                "remove them from the page by hand:[/yellow]"
            )
            for block_id in summary.stuck_block_ids:
                self.console.print(f"  • {block_id}")

        if summary.all_succeeded:
            self.console.print("\n[green]Put completed successfully[/green]")
        else:
            self.console.print("\n[red]Put completed with failures[/red]")

    def print_records(self, records: List[FileRecord]) -> None:
        """Display stored file records as a table."""
        if not records:
            self.console.print("[yellow]No matching files[/yellow]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Name", no_wrap=True)
        table.add_column("URL", overflow="fold")
        table.add_column("Block")
        table.add_column("Created")
        for record in records:
            table.add_row(
                record.file_name,
                record.file_url,
                record.block_id,
                record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            )
        self.console.print(table)


class TransferProgress:
    """Hands out thread-safe progress callbacks bound to Rich tasks."""

    def __init__(self, progress: Progress, lock: threading.Lock):
        self._progress = progress
        self._lock = lock

    def track(self, description: str, total: Optional[int]) -> Callable[[int], None]:
        """Add a task and return a callback that advances it by n bytes."""
        with self._lock:
            task_id = self._progress.add_task(description, total=total)

        def advance(num_bytes: int) -> None:
            self._progress.update(task_id, advance=num_bytes)

        return advance
