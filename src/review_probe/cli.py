"""Command-line entry points for the review probes and the event logger."""

from typing import Optional

import typer
from rich import print as rprint

from .config import configure_logging, get_settings
from .context import AppContext
from .event_logger import (
    STATUS_LOGGED,
    STATUS_SAVED,
    get_or_create_client_id,
    read_webhook_url,
    save_webhook_url,
)
from .interpret import NounLevelResult, SentimentResult
from .reviewer import AnalysisOutcome, Reviewer

app = typer.Typer(
    help="Classify random product reviews with hosted models and log visitor events."
)

SENTIMENT_ICONS = {"positive": "👍", "negative": "👎", "neutral": "❓"}
NOUN_ICONS = {"high": "🟢", "medium": "🟡", "low": "🔴"}
SHORTCUT_EVENTS = {
    "cta-a": ("cta_click", "A"),
    "cta-b": ("cta_click", "B"),
    "heartbeat": ("heartbeat", ""),
}


def _context() -> AppContext:
    settings = get_settings()
    configure_logging(settings.log_level)
    return AppContext.from_settings(settings)


def _format_confidence(score: float | None) -> str:
    return f"{score * 100:.1f}%" if isinstance(score, float) else "—"


def _format_sentiment(result: SentimentResult) -> str:
    icon = SENTIMENT_ICONS.get(result.kind, SENTIMENT_ICONS["neutral"])
    return (
        f"Sentiment: {icon} {result.kind.capitalize()}  "
        f"Confidence: {_format_confidence(result.score)}"
    )


def _format_noun_level(result: NounLevelResult) -> str:
    if result.level is None:
        return "Noun Count: ❓ (unrecognized response)"
    icon = NOUN_ICONS[result.level]
    suffix = f", {result.count} nouns" if result.count is not None else ""
    return f"Noun Count: {icon} ({result.level}{suffix})"


def _load(reviewer: Reviewer, source: Optional[str]) -> None:
    loaded = reviewer.load(source)
    if loaded.error:
        rprint(f"[red]{loaded.status} {loaded.error}[/red]")
        raise typer.Exit(code=1)
    rprint(f"[cyan]{loaded.status}[/cyan]")


def _report(outcome: AnalysisOutcome, *extra: AnalysisOutcome) -> None:
    rprint(f"[bold]Review:[/bold] {outcome.review or '—'}")
    failed = False
    for item in (outcome, *extra):
        if item.sentiment is not None:
            rprint(_format_sentiment(item.sentiment))
        if item.noun_level is not None:
            rprint(_format_noun_level(item.noun_level))
        if item.error:
            rprint(f"[red]{item.status} {item.error}[/red]")
            failed = True
    if failed:
        raise typer.Exit(code=1)
    rprint(f"[green]{outcome.status}[/green]")


@app.command("pick")
def pick_command(
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="TSV path or URL (defaults to REVIEWS_SOURCE)."
    ),
):
    """Print one random review from the dataset."""
    ctx = _context()
    try:
        reviewer = Reviewer(ctx)
        _load(reviewer, source)
        rprint(reviewer.pick())
    finally:
        ctx.close()


@app.command("analyze")
def analyze_command(
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="TSV path or URL (defaults to REVIEWS_SOURCE)."
    ),
    text: Optional[str] = typer.Option(
        None, "--text", "-t", help="Classify this text instead of a random review."
    ),
    nouns: bool = typer.Option(
        False, "--nouns", help="Also grade the review's noun density."
    ),
):
    """Classify the sentiment of a random review (or of --text)."""
    ctx = _context()
    try:
        reviewer = Reviewer(ctx)
        if text is None:
            _load(reviewer, source)
            text = reviewer.pick()
        outcome = reviewer.analyze(text)
        if nouns and outcome.ok:
            _report(outcome, reviewer.count_nouns(text))
        else:
            _report(outcome)
    finally:
        ctx.close()


@app.command("nouns")
def nouns_command(
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="TSV path or URL (defaults to REVIEWS_SOURCE)."
    ),
    text: Optional[str] = typer.Option(
        None, "--text", "-t", help="Grade this text instead of a random review."
    ),
):
    """Grade the noun density of a random review (or of --text) as low/medium/high."""
    ctx = _context()
    try:
        reviewer = Reviewer(ctx)
        if text is None:
            _load(reviewer, source)
        _report(reviewer.count_nouns(text))
    finally:
        ctx.close()


@app.command("save-url")
def save_url_command(
    url: str = typer.Argument(..., help="Web app URL ending in /exec."),
):
    """Validate and persist the webhook URL used by `log`."""
    ctx = _context()
    try:
        status = save_webhook_url(ctx.store, url)
    finally:
        ctx.close()
    if status != STATUS_SAVED:
        rprint(f"[red]{status}[/red]")
        raise typer.Exit(code=1)
    rprint(f"[green]{status}[/green]")


@app.command("log")
def log_command(
    event: str = typer.Argument(
        ..., help="cta-a, cta-b, heartbeat, or any custom event name."
    ),
    variant: Optional[str] = typer.Option(None, "--variant", "-v"),
):
    """Send one event to the saved webhook."""
    name, default_variant = SHORTCUT_EVENTS.get(event, (event, ""))
    ctx = _context()
    try:
        status = ctx.event_logger().send(name, variant=variant or default_variant)
    finally:
        ctx.close()
    if status != STATUS_LOGGED:
        rprint(f"[red]{status}[/red]")
        raise typer.Exit(code=1)
    rprint(f"[green]{status}[/green]")


@app.command("whoami")
def whoami_command():
    """Show the persisted visitor id and webhook URL."""
    ctx = _context()
    try:
        rprint(f"userId: {get_or_create_client_id(ctx.store)}")
        rprint(f"webhook: {read_webhook_url(ctx.store) or '—'}")
    finally:
        ctx.close()


def main():
    app()


if __name__ == "__main__":
    main()
