# ruff: noqa: I001
"""CLI for the ``payment_signals`` package.

Developer tooling around the ingestion core:

- ``replay``: feed a recorded JSONL signal stream through the pipeline on a
  manual clock and print what happened to each signal.
- ``suggest``: rank categories for a transaction against the database.

Environment variables (``DATABASE_URL`` and the ``PAYMENT_SIGNALS_*``
settings) are loaded from a local ``.env`` using ``python-dotenv`` before
delegating to command logic. Business logic lives in ``payment_signals.api``
and related modules.
"""

from __future__ import annotations

import os
from collections import Counter
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import Direction, IngestResult, Outcome, SignalRecord, SourceTag

_err = Console(stderr=True)


def _read_signals(path: Path) -> list[SignalRecord]:
    """Parse a JSONL file; invalid lines are reported and skipped."""

    records: list[SignalRecord] = []
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                records.append(SignalRecord.model_validate_json(line))
            except ValidationError as e:
                _err.print(
                    f"[yellow]Skipping line {lineno}:[/yellow] "
                    f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}"
                )
    return records


def _result_row(index: int, result: IngestResult) -> list[str]:
    c = result.candidate
    return [
        str(index),
        result.channel.value,
        result.outcome.value,
        f"{c.amount}" if c else "",
        c.direction.value if c else "",
        c.description if c else "",
        result.reason,
    ]


def format_summary(counts: Counter[Outcome], reminders: int) -> str:
    parts = [f"{o.value}={counts.get(o, 0)}" for o in Outcome]
    parts.append(f"reminders={reminders}")
    return " ".join(parts)


def _require_database(persist: bool, database_url: str | None) -> None:
    if persist and not (database_url or os.getenv("DATABASE_URL")):
        _err.print("[red]Error:[/red] --persist requires --database-url or DATABASE_URL.")
        raise typer.Exit(1)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Payment-signal ingestion tools: replay recorded signals, suggest categories.",
)


# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults). Typer will inspect this when used as a default value below.
SIGNALS_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--signals-path",
    help="Path to a JSONL file with one recorded signal per line",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler will report nice errors
    readable=True,
)


@app.command("replay")
def replay_cmd(
    signals_path: Annotated[Path, SIGNALS_PATH_OPTION],
    *,
    persist: bool = typer.Option(False, help="Write accepted candidates to the database."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Replay recorded signals through the pipeline on a deterministic clock."""

    # Deferred imports to keep CLI startup fast
    from .api import create_pipeline
    from .clock import ManualClock
    from .config import Settings

    _require_database(persist, database_url)
    if not signals_path.is_file():
        _err.print(f"[red]Error:[/red] signals file not found: {signals_path}")
        raise typer.Exit(1)

    records = _read_signals(signals_path)
    if not records:
        _err.print("[red]Error:[/red] no valid signals to replay.")
        raise typer.Exit(1)

    settings = Settings.from_env()
    clock = ManualClock(start=records[0].observed_at)
    pipeline = create_pipeline(
        clock=clock, settings=settings, persist=persist, database_url=database_url
    )

    table = Table(title=f"Replay of {signals_path.name}")
    for col in ("#", "channel", "outcome", "amount", "direction", "description", "reason"):
        table.add_column(col)

    counts: Counter[Outcome] = Counter()
    for index, record in enumerate(records, start=1):
        clock.advance_to(record.observed_at)
        for result in pipeline.handle(record.to_signal()):
            counts[result.outcome] += 1
            table.add_row(*_result_row(index, result))
    # Let a trailing PIN timer resolve.
    clock.advance(settings.pin_confirm_delay)

    Console().print(table)
    typer.echo(format_summary(counts, pipeline.reminders_emitted))


@app.command("suggest")
def suggest_cmd(
    description: str = typer.Option(..., help="Description of the new transaction."),
    *,
    merchant: str | None = typer.Option(None, help="Merchant or counterparty name."),
    amount: str = typer.Option("0", help="Transaction amount."),
    source: SourceTag = typer.Option(SourceTag.OTHER, help="Payment source tag."),
    direction: Direction = typer.Option(Direction.EXPENSE, help="expense or income."),
    hour: int | None = typer.Option(None, min=0, max=23, help="Hour of day (default: now)."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Rank categories for a transaction using categorized history."""

    from .api import suggest_categories
    from .config import Settings
    from .models import TransactionFields
    from .persistence import SqlCategoryContext
    from .stores import StoreError

    _require_database(True, database_url)
    try:
        parsed_amount = Decimal(amount.replace(",", ""))
    except InvalidOperation:
        _err.print(f"[red]Error:[/red] invalid amount: {amount!r}")
        raise typer.Exit(1) from None

    fields = TransactionFields(
        amount=parsed_amount,
        direction=direction,
        description=description,
        merchant=merchant,
        source_tag=source,
    )
    try:
        ranked = suggest_categories(
            fields,
            SqlCategoryContext(database_url=database_url),
            settings=Settings.from_env(),
            hour=hour,
        )
    except StoreError as e:
        _err.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    table = Table(title="Suggested categories")
    table.add_column("#", justify="right")
    table.add_column("category")
    table.add_column("score", justify="right")
    table.add_column("reason")
    for i, s in enumerate(ranked, start=1):
        name = f"{s.category.emoji} {s.category.name}".strip()
        table.add_row(str(i), name, f"{s.score:.1f}", s.reason)
    Console().print(table)


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (default: PAYMENT_SIGNALS_LOG_LEVEL or INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    from .config import Settings

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level or Settings.from_env().log_level)
    except ValueError as e:
        _err.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from e


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m payment_signals.cli`
    main()
