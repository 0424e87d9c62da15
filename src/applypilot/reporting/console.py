"""Rich-powered console output."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from applypilot.models import ApplyOutcome, JobListing, QueueRunResult, status_for

_console = Console()

_STYLE_MAP = {
    "applied": "bold green",
    "skipped": "dim",
    "failed": "bold red",
}


def print_banner() -> None:
    """Display the startup banner."""
    _console.print(
        Panel.fit(
            "[bold cyan]ApplyPilot[/bold cyan]  —  Browser-driven Job Applications",
            border_style="cyan",
        )
    )


def print_listings(jobs: list[JobListing]) -> None:
    """Show the queue that is about to be processed."""
    table = Table(title=f"{len(jobs)} job(s) queued", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Company")
    table.add_column("Location", style="dim")
    for i, job in enumerate(jobs, 1):
        table.add_row(str(i), job.title, job.company, job.location)
    _console.print(table)


def print_progress(job: JobListing, index: int, outcome: ApplyOutcome) -> None:
    """Print a single application result line."""
    status = status_for(outcome).value
    style = _STYLE_MAP.get(status, "")
    detail = f"  ({outcome.error})" if outcome.error else ""
    answered = sum(1 for q in outcome.screening_questions or [] if q.answer)
    if answered:
        detail += f"  [{answered} answer(s)]"
    _console.print(
        f"  [{style}]{index + 1:>4}[/{style}]  "
        f"[{style}]{status:<8}[/{style}]  "
        f"{job.title}  @  {job.company}{detail}"
    )


def print_run_report(source: str, result: QueueRunResult, stopped: bool = False) -> None:
    """Display a queue-run summary table."""
    table = Table(title="Run Report", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Source", source)
    table.add_row("Applied", str(result.applied))
    table.add_row("Failed", str(result.failed))
    table.add_row("Skipped (already applied)", str(result.skipped))
    table.add_row("Attempted", str(result.total))
    table.add_row("Stopped early", "yes" if stopped else "no")

    _console.print()
    _console.print(table)
    _console.print()
