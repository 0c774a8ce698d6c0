"""Main CLI application."""

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

# Load .env file if it exists
load_dotenv()

from .history import history_command
from .init import init_command
from .rules import rules_app
from .scan import scan_command
from .sources import sources_app

app = typer.Typer(
    name="dogscan",
    help="dogscan - multi-source content scan and moderation",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="DOGSCAN_CONFIG",
        help="Config file (default: ~/.config/dogscan/config.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging and the config location for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = {"config_path": config}


# Register commands
app.command("init")(init_command)
app.command("scan")(scan_command)
app.command("history")(history_command)
app.add_typer(sources_app, name="sources", help="Manage scan sources")
app.add_typer(rules_app, name="rules", help="Inspect and test filter rules")


if __name__ == "__main__":
    app()
