"""Init command implementation."""

from pathlib import Path
from typing import List

import psycopg
import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, SourceConfig, save_config, save_sources
from ..db import get_connection, init_database, save_rules_to_db, validate_connection
from ..filtering import default_rule_sets, save_rules

console = Console()


def create_default_sources() -> List[SourceConfig]:
    """Create default hotdog content sources."""
    return [
        SourceConfig(
            name="reddit-search",
            platform="reddit",
            query="hotdog OR \"hot dog\"",
            options={"sort": "new", "time_filter": "day"},
        ),
        SourceConfig(
            name="reddit-hotdogs",
            platform="reddit",
            query="hotdog",
            options={"subreddit": "hotdogs", "sort": "new"},
        ),
        SourceConfig(
            name="reddit-food",
            platform="reddit",
            query="hot dog",
            options={"subreddit": "food", "sort": "top", "time_filter": "week"},
        ),
        SourceConfig(
            name="hotdogs-rss",
            platform="rss",
            url="https://www.reddit.com/r/hotdogs/.rss",
        ),
        SourceConfig(
            name="seriouseats-rss",
            platform="rss",
            url="https://www.seriouseats.com/feeds/all",
            enabled=False,
        ),
    ]


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "dogscan",
        "--config-dir",
        "-d",
        help="Configuration directory",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("dogscan", "--db-name", help="Database name"),
    db_user: str = typer.Option("dogscan_user", "--db-user", help="Database user"),
    seed_sources: bool = typer.Option(
        True,
        "--seed-sources/--no-seed-sources",
        help="Seed default sources",
    ),
    skip_db: bool = typer.Option(False, "--skip-db", help="Only write config files"),
) -> None:
    """Initialize dogscan configuration, rules and database."""
    console.print(Panel.fit("dogscan - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    sources_path = config_dir / "sources.yaml"
    rules_path = config_dir / "rules.yaml"

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "DOGSCAN_DB_PASSWORD",
        },
        filtering={"rules_path": "rules.yaml"},
    )

    save_config(config, config_path)
    console.print(f"Created config: {config_path}")

    if seed_sources:
        sources = create_default_sources()
        save_sources(sources, sources_path)
        console.print(f"Created sources: {sources_path} (seeded with {len(sources)} sources)")
    else:
        save_sources([], sources_path)
        console.print(f"Created sources: {sources_path} (empty)")

    rule_sets = default_rule_sets()
    if not rules_path.exists():
        save_rules(rule_sets, rules_path)
        console.print(f"Created rules: {rules_path}")
    else:
        console.print(f"Keeping existing rules: {rules_path}")

    if skip_db:
        console.print("[yellow]Skipping database setup[/yellow]")
        return

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export DOGSCAN_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        with get_connection(db_config) as conn:
            inserted = save_rules_to_db(conn, rule_sets)
        console.print(f"Database schema initialized ({inserted} rules seeded)")
    except psycopg.Error as e:
        console.print(f"[red]Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]dogscan initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Sources: {sources_path}\n"
            f"Rules: {rules_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export DOGSCAN_DB_PASSWORD=your_password[/bold]\n"
            f"2. Try a dry run: [bold]dogscan scan --dry-run[/bold]\n"
            f"3. Run: [bold]dogscan scan[/bold]",
            style="green",
        )
    )
