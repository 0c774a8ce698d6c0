"""History command implementation."""

import psycopg
import typer
from rich.console import Console
from rich.table import Table

from ..db import ScanManager, get_connection
from .common import get_config

console = Console()


def history_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of scans to show"),
) -> None:
    """Show recent scans."""
    config = get_config(ctx)

    try:
        with get_connection(config.get_db_config()) as conn:
            scans = ScanManager().recent_scans(conn, limit)
    except psycopg.Error as e:
        console.print(f"[red]Database error: {e}[/red]")
        raise typer.Exit(1)

    if not scans:
        console.print("[yellow]No scans recorded yet.[/yellow]")
        return

    table = Table(title="Recent Scans")
    table.add_column("ID", style="cyan")
    table.add_column("Started")
    table.add_column("Found", justify="right")
    table.add_column("Approved", justify="right", style="green")
    table.add_column("Flagged", justify="right", style="yellow")
    table.add_column("Rejected", justify="right", style="red")
    table.add_column("Duplicates", justify="right")
    table.add_column("Errors", justify="right")

    for scan in scans:
        table.add_row(
            str(scan["id"]),
            scan["started_at"].strftime("%Y-%m-%d %H:%M"),
            str(scan["total_found"]),
            str(scan["total_approved"]),
            str(scan["total_flagged"]),
            str(scan["total_rejected"]),
            str(scan["total_duplicates"]),
            str(scan["error_count"]) if scan["success"] else f"[red]{scan['error_count']}[/red]",
        )

    console.print(table)
