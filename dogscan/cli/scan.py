"""Scan command implementation."""

from typing import List, Optional

import psycopg
import typer
from rich.console import Console

from ..config import load_sources
from ..db import (
    MemoryContentStore,
    PostgresContentStore,
    PostgresRuleSource,
    ScanManager,
    create_connection_pool,
    get_connection,
    validate_connection,
)
from ..errors import ConfigError
from ..filtering import YamlRuleSource
from ..pipeline import ScanOrchestrator, print_scan_summary
from .common import get_config

console = Console()


def scan_command(
    ctx: typer.Context,
    budget: Optional[int] = typer.Option(
        None,
        "--budget",
        "-b",
        min=0,
        help="Total items to request across sources. Default: scan.default_budget",
    ),
    source_names: Optional[List[str]] = typer.Option(
        None,
        "--source",
        "-s",
        help="Only scan this source (repeatable)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Decide items against an in-memory store; nothing is written to the database",
    ),
    db_rules: bool = typer.Option(
        False,
        "--db-rules",
        help="Load filter rules from the database instead of the rules file",
    ),
) -> None:
    """Scan configured sources and queue new content."""
    config = get_config(ctx)

    try:
        sources = load_sources(config.sources_path)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if source_names:
        unknown = set(source_names) - {s.name for s in sources}
        if unknown:
            console.print(f"[red]Unknown sources: {', '.join(sorted(unknown))}[/red]")
            raise typer.Exit(1)
        sources = [s.model_copy(update={"enabled": True}) for s in sources if s.name in source_names]

    if not any(s.enabled for s in sources):
        console.print("[yellow]No enabled sources to scan.[/yellow]")
        return

    db_config = config.get_db_config()
    if db_rules:
        rule_sets = PostgresRuleSource(db_config).load_rules()
    else:
        rule_sets = YamlRuleSource(config.rules_path).load_rules()

    try:
        if dry_run:
            console.print("[dim]Dry run: using in-memory store[/dim]")
            store = MemoryContentStore()
            orchestrator = ScanOrchestrator.from_config(config.config, store, rule_sets)
            result = orchestrator.run_scan_sync(sources, budget)
        else:
            console.print("[dim]Checking database connection...[/dim]")
            if not validate_connection(db_config):
                console.print("[red]Database connection failed![/red]")
                console.print("Please check your database configuration and ensure Postgres is running.")
                raise typer.Exit(1)

            with create_connection_pool(db_config) as pool:
                store = PostgresContentStore(pool)
                orchestrator = ScanOrchestrator.from_config(config.config, store, rule_sets)
                result = orchestrator.run_scan_sync(sources, budget)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted by user[/yellow]")
        raise typer.Exit(1)

    print_scan_summary(result)

    if not dry_run:
        try:
            with get_connection(db_config) as conn:
                scan_id = ScanManager().record_scan(conn, result)
            console.print(f"[dim]Recorded scan #{scan_id}[/dim]")
        except psycopg.Error as e:
            console.print(f"[yellow]Could not record scan history: {e}[/yellow]")

    if not result.success:
        raise typer.Exit(1)
