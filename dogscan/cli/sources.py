"""Sources management commands."""

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import SourceConfig, load_sources, save_sources
from ..errors import ConfigError
from .common import get_config

console = Console()
sources_app = typer.Typer(help="Manage scan sources")


@sources_app.command("list")
def sources_list(ctx: typer.Context) -> None:
    """List all configured sources."""
    config = get_config(ctx)

    try:
        sources = load_sources(config.sources_path)
    except ConfigError as e:
        console.print(f"[red]{e}. Run 'dogscan init' first.[/red]")
        raise typer.Exit(1)

    if not sources:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Configured Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Platform", style="magenta")
    table.add_column("Enabled", style="yellow")
    table.add_column("Target", style="blue")

    for source in sources:
        target = source.url or source.query or ""
        if source.options.get("subreddit"):
            target = f"r/{source.options['subreddit']}: {target}"
        table.add_row(
            source.name,
            source.platform,
            "yes" if source.enabled else "no",
            target,
        )

    console.print(table)


@sources_app.command("add")
def sources_add(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Unique source name"),
    platform: str = typer.Option(..., "--platform", "-p", help="Platform (rss, reddit)"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Feed or API URL"),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Search query"),
    subreddit: Optional[str] = typer.Option(None, "--subreddit", help="Restrict Reddit search"),
    disabled: bool = typer.Option(False, "--disabled", help="Add the source disabled"),
) -> None:
    """Add a new source."""
    config = get_config(ctx)

    try:
        sources: List[SourceConfig] = load_sources(config.sources_path)
    except ConfigError:
        sources = []

    if any(s.name == name for s in sources):
        console.print(f"[red]Source '{name}' already exists.[/red]")
        raise typer.Exit(1)

    if platform == "rss" and not url:
        console.print("[red]RSS sources need --url.[/red]")
        raise typer.Exit(1)

    options = {"subreddit": subreddit} if subreddit else {}
    sources.append(
        SourceConfig(
            name=name,
            platform=platform,
            url=url,
            query=query,
            options=options,
            enabled=not disabled,
        )
    )
    save_sources(sources, config.sources_path)

    console.print(f"[green]Added source: {name}[/green]")


@sources_app.command("remove")
def sources_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Source name to remove"),
) -> None:
    """Remove a source."""
    config = get_config(ctx)

    try:
        sources = load_sources(config.sources_path)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    remaining = [s for s in sources if s.name != name]
    if len(remaining) == len(sources):
        console.print(f"[red]Source '{name}' not found.[/red]")
        raise typer.Exit(1)

    save_sources(remaining, config.sources_path)
    console.print(f"[green]Removed source: {name}[/green]")
