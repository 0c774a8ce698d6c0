"""Filter rule commands."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..filtering import RULE_KINDS, FilterEngine, YamlRuleSource
from ..models import CandidateItem
from .common import get_config

console = Console()
rules_app = typer.Typer(help="Inspect and test filter rules")


@rules_app.command("list")
def rules_list(
    ctx: typer.Context,
    kind: Optional[str] = typer.Option(
        None, "--kind", "-k", help="Only show one kind (required, spam, inappropriate, unrelated)"
    ),
) -> None:
    """List the rules a scan would use."""
    if kind is not None and kind not in RULE_KINDS:
        console.print(f"[red]Unknown rule kind '{kind}'.[/red]")
        raise typer.Exit(1)

    config = get_config(ctx)
    rule_sets = YamlRuleSource(config.rules_path).load_rules()

    table = Table(title=f"Filter Rules ({config.rules_path})")
    table.add_column("Kind", style="magenta")
    table.add_column("Rule", style="cyan")
    table.add_column("Regex")

    for rule_kind, rule in rule_sets.iter_rules():
        if kind is None or rule_kind == kind:
            table.add_row(rule_kind, rule.key, "yes" if rule.is_regex else "")

    console.print(table)
    counts = ", ".join(f"{k}: {n}" for k, n in rule_sets.counts().items())
    console.print(f"[dim]{counts}[/dim]")


@rules_app.command("test")
def rules_test(
    pattern: str = typer.Argument(..., help="Pattern to test"),
    text: str = typer.Argument(..., help="Sample text"),
    regex: bool = typer.Option(False, "--regex", "-r", help="Treat the pattern as a regular expression"),
) -> None:
    """Test a single pattern against sample text."""
    result = FilterEngine.test_pattern(pattern, text, is_regex=regex)

    if result.error:
        console.print(f"[red]Invalid pattern: {result.error}[/red]")
        raise typer.Exit(1)

    if result.matched:
        console.print(f"[green]Pattern matched[/green]: {', '.join(repr(m) for m in result.matches)}")
    else:
        console.print("[yellow]No match[/yellow]")


@rules_app.command("classify")
def rules_classify(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Text to classify"),
    media_url: Optional[str] = typer.Option(None, "--media-url", help="Attached media URL"),
    engagement: Optional[float] = typer.Option(None, "--engagement", help="Engagement score"),
) -> None:
    """Classify sample text with the configured rules."""
    config = get_config(ctx)
    settings = config.config
    engine = FilterEngine(
        YamlRuleSource(config.rules_path).load_rules(),
        settings=settings.filtering,
        topic_gate_policy=settings.scan.topic_gate_policy,
    )

    item = CandidateItem(
        source_id="cli",
        external_id="cli",
        text=text,
        canonical_url="cli://sample",
        media_url=media_url,
        engagement_score=engagement,
    )
    analysis = engine.classify(item)

    table = Table(title="Classification", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Valid topic", str(analysis.is_valid_topic))
    table.add_row("Confidence", f"{analysis.confidence:.2f}")
    table.add_row("Content type", analysis.content_type.value)
    table.add_row("Spam", f"{analysis.is_spam} ({analysis.spam_confidence:.2f})")
    table.add_row("Inappropriate", str(analysis.is_inappropriate))
    table.add_row("Unrelated", str(analysis.is_unrelated))
    table.add_row("Topic rules", ", ".join(analysis.matched_topic_rules) or "-")
    table.add_row("Flagged", ", ".join(analysis.flagged_patterns) or "-")
    console.print(table)

    for note in analysis.processing_notes:
        console.print(f"[dim]  {note}[/dim]")
