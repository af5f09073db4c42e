"""CLI for the ``statement_ingest`` package.

Commands:

- ``detect FILE``: print the detected statement dialect.
- ``parse FILE``: dry run; parse and classify without categorizing or storing.
- ``ingest FILE --user NAME``: run the full pipeline with the OpenAI
  categorizer and the database store.

Environment variables (``OPENAI_API_KEY``, ``DATABASE_URL``,
``STATEMENT_INGEST_*``) are loaded from a local ``.env`` via ``python-dotenv``
without overriding values already set.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo

from .categorize import partition_transactions
from .config import IngestSettings
from .dialects import detect_dialect, parse_statement
from .logging_setup import configure_logging
from .pipeline import IngestOutcome, IngestStatus, decode_statement, ingest_statement
from .summary import format_skipped_stats

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Ingest bank CSV statements into categorized, deduplicated expenses.",
)

# Module-level argument object to satisfy ruff B008 (no calls in defaults).
STATEMENT_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a bank CSV export",
    dir_okay=False,
    file_okay=True,
    exists=True,
    readable=True,
)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        typer.echo(f"Error: cannot read {path}: {e}", err=True)
        raise typer.Exit(1) from e


def _echo_outcome(outcome: IngestOutcome) -> None:
    typer.echo(f"status\t{outcome.status}")
    if outcome.bank:
        typer.echo(f"bank\t{outcome.bank}")
    if outcome.error is not None:
        typer.echo(f"error\t{outcome.error.display_message()}")
        typer.echo(f"detail\t{outcome.error.type}: {outcome.error.technical_detail}")
    summary = outcome.summary
    if summary is None:
        return
    typer.echo(f"created\t{summary.created_count}")
    typer.echo(f"duplicates\t{summary.duplicate_count}")
    typer.echo(f"total\t{summary.total_count}")
    if summary.ai_fallback_count:
        typer.echo(f"ai_fallbacks\t{summary.ai_fallback_count}")
    for entry in summary.category_breakdown:
        typer.echo(f"category\t{entry.name}\t{entry.count}\t{entry.amount:.2f}")
    if summary.skipped_info_text:
        typer.echo(summary.skipped_info_text)


@app.command("detect")
def detect_cmd(path: Annotated[Path, STATEMENT_ARGUMENT]) -> None:
    """Print the detected dialect identifier."""

    typer.echo(detect_dialect(decode_statement(_read_bytes(path))))


@app.command("parse")
def parse_cmd(
    path: Annotated[Path, STATEMENT_ARGUMENT],
    *,
    user: str | None = typer.Option(
        None, help="Display name used to recognize transfers to your own accounts."
    ),
) -> None:
    """Parse and classify a statement without categorizing or storing it."""

    parsed = parse_statement(decode_statement(_read_bytes(path)), user_display_name=user)
    forced, deferred = partition_transactions(parsed.transactions)

    typer.echo(f"bank\t{parsed.bank}")
    typer.echo(f"transactions\t{len(parsed.transactions)}")
    typer.echo(f"forced\t{len(forced)}")
    typer.echo(f"deferred\t{len(deferred)}")
    typer.echo(f"skipped\t{parsed.skipped.count}")
    skipped_text = format_skipped_stats(parsed.skipped)
    if skipped_text:
        typer.echo(skipped_text)
    for tx in parsed.transactions:
        forced_cat = tx.forced_category.value if tx.forced_category else ""
        typer.echo(f"{tx.date}\t{tx.amount:.2f}\t{tx.merchant}\t{forced_cat}")
    for err in parsed.errors:
        typer.echo(err, err=True)


@app.command("ingest")
def ingest_cmd(
    path: Annotated[Path, STATEMENT_ARGUMENT],
    *,
    user: str = typer.Option(..., help="User the expenses belong to."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Categorize and store a statement, printing the summary."""

    # Deferred imports keep `detect`/`parse` usable without API or DB setup.
    from .openai_categorizer import OpenAIBatchCategorizer
    from .persistence import ExpenseRepository

    if not os.getenv("OPENAI_API_KEY"):
        typer.echo("Error: OPENAI_API_KEY is not set in the environment.", err=True)
        raise typer.Exit(1)

    settings = IngestSettings.from_env()
    content = _read_bytes(path)
    outcome = ingest_statement(
        content,
        declared_size=len(content),
        file_name=path.name,
        user=user,
        categorizer=OpenAIBatchCategorizer(model=settings.categorizer_model),
        store=ExpenseRepository(database_url),
        on_progress=lambda n: typer.echo(f"progress\t{n}", err=True),
        settings=settings,
    )
    _echo_outcome(outcome)
    if outcome.status in (IngestStatus.FAILED, IngestStatus.REJECTED):
        raise typer.Exit(1)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
