"""Mnemora CLI — study commands, progress management and the HTTP daemon."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from mnemora.application.config import AppConfig, log_level, resolve_config
from mnemora.domain.errors import InvalidQuality, StorageError, UnknownCard
from mnemora.domain.progress.models import QUALITY_BUTTONS, CardId, Difficulty, Quality
from mnemora.interface import presenters

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemora: Spaced-repetition study queue (SM-2).",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mnemora configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve(ctx: typer.Context) -> AppConfig:
    return resolve_config(ctx.obj.get("overrides", {}) if ctx.obj else {})


def _service(ctx: typer.Context):
    from mnemora.application.factory import get_study_service

    return get_study_service(_resolve(ctx))


def parse_quality(raw: str) -> int:
    """Accept a number 0-5 or a button name (again, hard, good, easy)."""
    key = raw.strip().lower()
    if key in QUALITY_BUTTONS:
        return int(QUALITY_BUTTONS[key])
    try:
        return int(key)
    except ValueError:
        raise InvalidQuality(raw) from None


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_file: Annotated[
        Path | None, typer.Option(help="Progress JSON file. Defaults to config.")
    ] = None,
    catalog: Annotated[Path | None, typer.Option(help="YAML card catalog.")] = None,
    backend: Annotated[
        str | None, typer.Option(help="Progress backend: auto, json, memory.")
    ] = None,
):
    """Global settings for mnemora."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "data_file": data_file,
        "catalog_file": catalog,
        "backend": backend,
        "verbose": verbose or None,
    }
    logging.getLogger().setLevel(log_level(_resolve(ctx).verbose))


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@app.command("next")
def next_card(
    ctx: typer.Context,
    category: Annotated[str | None, typer.Option(help="Only cards in this category.")] = None,
    difficulty: Annotated[
        Difficulty | None, typer.Option(help="Only cards of this difficulty.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the [bold green]next card[/bold green] to study (overdue > due today > new)."""
    try:
        study = asyncio.run(_service(ctx).next_card(category, difficulty))
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    if study is None:
        if json_output:
            _echo_json(None)
        else:
            typer.secho("No cards due. Session complete.", fg="green")
        return

    if json_output:
        _echo_json(presenters.study_card_to_dict(study))
        return

    tag = "NEW" if study.is_new else "REVIEW"
    typer.secho(f"[{tag}] {study.card.id}", fg="cyan", bold=True)
    typer.echo(study.card.question)
    typer.echo("")
    for quality, label in study.interval_previews.items():
        typer.echo(f"  {int(quality)} {quality.label:<5} -> {label}")


@app.command()
def answer(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to rate.")],
    quality: Annotated[str, typer.Argument(help="0-5, or again/hard/good/easy.")],
    time_ms: Annotated[int, typer.Option("--time-ms", help="Response time in ms.")] = 0,
    revealed: Annotated[
        bool, typer.Option("--revealed", help="The answer was shown before rating.")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Rate a card and schedule its next review."""
    try:
        q = parse_quality(quality)
        result = asyncio.run(
            _service(ctx).answer(
                CardId(card_id), q, response_time_ms=time_ms, was_revealed=revealed
            )
        )
    except InvalidQuality as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(2) from None
    except UnknownCard as e:
        typer.secho(str(e), fg="yellow")
        raise typer.Exit(1) from None
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    if json_output:
        _echo_json(presenters.answer_to_dict(result))
        return

    state = result.progress.state
    typer.secho(f"Next review in {result.next_review_in}", fg="green")
    typer.echo(
        f"ease={state.ease_factor:.2f} interval={state.interval}d "
        f"repetitions={state.repetitions} mastery={result.mastery.value}"
    )
    typer.echo(f"Streak: {result.streak.days} day(s)")


@app.command()
def due(
    ctx: typer.Context,
    category: Annotated[str | None, typer.Option(help="Only cards in this category.")] = None,
    difficulty: Annotated[
        Difficulty | None, typer.Option(help="Only cards of this difficulty.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Summarise overdue, due-today, new and upcoming cards."""
    try:
        stats = asyncio.run(_service(ctx).session_stats(category, difficulty))
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    if json_output:
        _echo_json(presenters.stats_to_dict(stats))
        return

    typer.echo(f"Cards: {stats.total_cards}")
    typer.secho(f"Overdue: {len(stats.due.overdue)}", fg="red" if stats.due.overdue else None)
    typer.echo(f"Due today: {len(stats.due.due_today)}")
    typer.echo(f"New: {stats.new_count}")
    typer.echo(f"Upcoming: {stats.upcoming_count}")


@app.command()
def preview(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to preview.")],
):
    """Show what each rating would schedule for a card."""
    try:
        previews = asyncio.run(_service(ctx).preview(CardId(card_id)))
    except UnknownCard as e:
        typer.secho(str(e), fg="yellow")
        raise typer.Exit(1) from None
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    for q in Quality:
        typer.echo(f"{int(q)} {q.label:<5} -> {previews[q]}")


# ---------------------------------------------------------------------------
# Progress management
# ---------------------------------------------------------------------------


@app.command()
def reset(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card whose progress to reset.")],
):
    """Reset one card to its initial state and discard its history."""
    try:
        ok = asyncio.run(_service(ctx).reset(CardId(card_id)))
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    if not ok:
        typer.secho(f"No progress found for {card_id}.", fg="yellow")
        raise typer.Exit(1)
    typer.secho(f"Reset {card_id}.", fg="green")


@app.command("reset-all")
def reset_all(
    ctx: typer.Context,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Delete all progress and the study streak."""
    if not force and not typer.confirm("Delete ALL progress?"):
        raise typer.Abort()
    try:
        asyncio.run(_service(ctx).delete_all())
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None
    typer.secho("All progress deleted.", fg="green")


@app.command()
def streak(ctx: typer.Context):
    """Show the current study streak."""
    try:
        current = asyncio.run(_service(ctx).streak())
    except StorageError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from None

    last = current.last_study_date or "never"
    typer.echo(f"Streak: {current.days} day(s) (last studied: {last})")


# ---------------------------------------------------------------------------
# Daemon
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    config = _resolve(ctx)
    uvicorn.run(
        "mnemora.server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    _echo_json(d)
