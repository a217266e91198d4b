"""CLI for the ``finance_ingest`` package.

Thin collaborator surface over the library: each ``cmd_*`` handler loads the
saved state, applies one operation, saves and prints plain tab-separated
lines. Environment variables are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in
:mod:`finance_ingest.pipeline`, :mod:`finance_ingest.review` and friends.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from typer.models import ArgumentInfo

from .logging_setup import configure_logging
from .models import AppState, Source
from .pipeline import IngestionPipeline, SourceFile
from .recurring import find_recurring
from .review import BulkApprove, EditTransaction, apply, needs_review, review_queue
from .store import BlobStore, FileBlobStore, SqlBlobStore, load_state, save_state

_REVIEW_VIEWS = ("pending", "transfers", "approved", "all")


def _open_store(state_path: str | None, database_url: str | None) -> BlobStore:
    """Pick the state store: SQL when a database URL is configured, else a file."""

    url = database_url or os.getenv("FI_DATABASE_URL")
    if url:
        return SqlBlobStore(url)
    return FileBlobStore(state_path)


def _load(store: BlobStore) -> AppState | None:
    try:
        return load_state(store)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    except SQLAlchemyError as e:
        print(f"Error: could not read state from the database: {e}", file=sys.stderr)
        return None


def _save(store: BlobStore, state: AppState) -> int:
    if not save_state(store, state):
        print("Error: failed to save state.", file=sys.stderr)
        return 1
    return 0


# ---- Command handlers --------------------------------------------------------


def cmd_import(
    paths: Sequence[str | Path],
    *,
    store: BlobStore,
    source: Source | None = None,
    account: str | None = None,
) -> int:
    """Import one or more export files and print a summary line per file.

    Files that cannot be read or tokenized are reported on stderr; every other
    file in the batch is still committed. Returns ``1`` when any file failed.
    """

    state = _load(store)
    if state is None:
        return 1

    status = 0
    files: list[SourceFile] = []
    for p in paths:
        path = Path(p)
        try:
            text = path.read_text(encoding="utf-8")
        except (FileNotFoundError, PermissionError, UnicodeDecodeError) as e:
            print(f"Error: cannot read {path}: {e}", file=sys.stderr)
            status = 1
            continue
        files.append(SourceFile(text=text, name=path.name, source=source, account=account))

    result = IngestionPipeline().import_batch(state.transactions, files)
    for failure in result.failures:
        print(f"Error: failed to parse {failure.name}: {failure.error}", file=sys.stderr)
        status = 1
    for s in result.summaries:
        typer.echo(
            f"{s.file_name}\t{s.source}\t{s.account}\t"
            f"imported={s.imported}\tskipped={s.skipped}\tflagged={s.flagged}"
        )

    state = state.model_copy(update={"transactions": result.transactions})
    return _save(store, state) or status


def cmd_review(
    *,
    store: BlobStore,
    view: str = "pending",
    source: Source | None = None,
    search: str | None = None,
) -> int:
    if view not in _REVIEW_VIEWS:
        print(f"Error: --view must be one of {', '.join(_REVIEW_VIEWS)}", file=sys.stderr)
        return 1
    state = _load(store)
    if state is None:
        return 1

    queue = review_queue(
        state.transactions, view=view, source=source, search=search  # type: ignore[arg-type]
    )
    for tx in queue:
        typer.echo(
            f"{tx.id}\t{tx.date}\t{tx.amount}\t{tx.category}\t"
            f"{tx.confidence:.2f}\t{tx.status}\t{tx.description}"
        )
    typer.echo(f"{needs_review(state.transactions)} transactions need review")
    return 0


def cmd_approve(ids: Sequence[str], *, store: BlobStore, all_pending: bool = False) -> int:
    state = _load(store)
    if state is None:
        return 1

    wanted = set(ids)
    if all_pending:
        wanted |= {tx.id for tx in review_queue(state.transactions, view="pending")}
    if not wanted:
        print("Error: no transaction ids given.", file=sys.stderr)
        return 1
    try:
        txns = apply(state.transactions, BulkApprove(frozenset(wanted)))
    except KeyError as e:
        print(f"Error: unknown transaction id(s): {e.args[0]}", file=sys.stderr)
        return 1
    typer.echo(f"approved {len(wanted)} transaction(s)")
    return _save(store, state.model_copy(update={"transactions": txns}))


def cmd_categorize(txn_id: str, category: str, *, store: BlobStore) -> int:
    state = _load(store)
    if state is None:
        return 1
    try:
        txns = apply(state.transactions, EditTransaction(txn_id=txn_id, category=category))
    except KeyError:
        print(f"Error: unknown transaction id: {txn_id}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return _save(store, state.model_copy(update={"transactions": txns}))


def cmd_recurring(*, store: BlobStore) -> int:
    state = _load(store)
    if state is None:
        return 1
    for charge in find_recurring(state.transactions):
        typer.echo(
            f"{charge.description}\t{charge.average:.2f}\t{charge.count}\t{charge.annual:.2f}"
        )
    return 0


# ---- Typer wiring ------------------------------------------------------------

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Normalize, classify and de-duplicate bank, brokerage and exchange exports.",
)

# Module-level argument object to satisfy ruff B008 (no calls in parameter
# defaults). Typer will inspect this when used as a default value below.
FILES_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="CSV export files to import, committed in the order given.",
    dir_okay=False,
)


def _store_from(ctx: typer.Context) -> BlobStore:
    obj: dict[str, Any] = ctx.obj or {}
    return _open_store(obj.get("state_path"), obj.get("database_url"))


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    files: list[Path] = FILES_ARGUMENT,
    *,
    source: Source | None = typer.Option(
        None, help="Force the source format instead of detecting it from the header."
    ),
    account: str | None = typer.Option(
        None, help="Account label for the imported records (defaults per source)."
    ),
) -> None:
    raise typer.Exit(cmd_import(files, store=_store_from(ctx), source=source, account=account))


@app.command("review")
def review_cmd(
    ctx: typer.Context,
    *,
    view: str = typer.Option("pending", help="pending | transfers | approved | all"),
    source: Source | None = typer.Option(None, help="Only show records from this source."),
    search: str | None = typer.Option(None, help="Case-insensitive description filter."),
) -> None:
    raise typer.Exit(cmd_review(store=_store_from(ctx), view=view, source=source, search=search))


@app.command("approve")
def approve_cmd(
    ctx: typer.Context,
    ids: list[str] | None = typer.Argument(None, help="Transaction ids to approve."),
    *,
    all_pending: bool = typer.Option(False, help="Approve every record awaiting review."),
) -> None:
    raise typer.Exit(cmd_approve(ids or [], store=_store_from(ctx), all_pending=all_pending))


@app.command("categorize")
def categorize_cmd(
    ctx: typer.Context,
    txn_id: str = typer.Argument(..., help="Transaction id."),
    category: str = typer.Argument(..., help="New category, e.g. 'Dining'."),
) -> None:
    raise typer.Exit(cmd_categorize(txn_id, category, store=_store_from(ctx)))


@app.command("recurring")
def recurring_cmd(ctx: typer.Context) -> None:
    raise typer.Exit(cmd_recurring(store=_store_from(ctx)))


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    state_path: str | None = typer.Option(
        None, help="State file path (falls back to FI_STATE_PATH, then ./.finance_ingest)."
    ),
    database_url: str | None = typer.Option(
        None, help="Store state in this database instead of a file (or set FI_DATABASE_URL)."
    ),
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to FINANCE_INGEST_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)
    ctx.obj = {"state_path": state_path, "database_url": database_url}


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
