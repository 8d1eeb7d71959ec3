"""
Rendering functions for migrate-npm-registry output.

Pretty summary of finished jobs, one row per version.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List

from .domain.operation import JobResult, OperationStatus

console = Console()

STATUS_STYLES = {
    OperationStatus.SUCCESS: "[green]published[/green]",
    OperationStatus.SKIPPED: "[dim]skipped[/dim]",
    OperationStatus.FAILED: "[red]failed[/red]",
    OperationStatus.CANCELLED: "[yellow]cancelled[/yellow]",
}


def render_summary(results: List[JobResult]) -> None:
    """
    Render migration results as a table.

    Args:
        results: Finished job results
    """
    if not results:
        console.print("[yellow]No packages migrated.[/yellow]")
        return

    table = Table(
        title="Migration Summary",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")

    for result in results:
        if result.error is not None:
            table.add_row(result.package, "-", STATUS_STYLES[OperationStatus.FAILED], str(result.error))
            continue

        if not result.outcomes:
            table.add_row(result.package, "-", "[dim]nothing to do[/dim]", "")
            continue

        for outcome in result.outcomes:
            detail = outcome.error or outcome.message or outcome.archive_path or ""
            table.add_row(result.package, outcome.version, STATUS_STYLES[outcome.status], detail)

    console.print(table)

    failed = sum(1 for r in results if not r.success)
    if failed:
        console.print(f"[red]{failed} of {len(results)} packages failed[/red]")
    else:
        console.print(f"[green]{len(results)} packages migrated[/green]")
