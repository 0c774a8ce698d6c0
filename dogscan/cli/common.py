"""Helpers shared by CLI commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import Config
from ..errors import ConfigError

console = Console()


def get_config(ctx: typer.Context) -> Config:
    """Load configuration from the path given on the command line, or the default."""
    config_path: Optional[Path] = (ctx.obj or {}).get("config_path")
    config = Config(config_path)
    try:
        config.config
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        console.print("Run 'dogscan init' first.")
        raise typer.Exit(1)
    return config
