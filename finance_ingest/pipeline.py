"""Import orchestration: detect -> parse -> dedupe -> merge -> pair -> flag.

Work is split in two phases:

- **parse** (:meth:`IngestionPipeline.parse`): a pure function of one file's
  text. Files in a batch are parsed concurrently.
- **commit** (:meth:`IngestionPipeline.commit`): dedupe against the current
  collection, append survivors, detect transfer pairs over the full updated
  collection and flag the paired records of this import batch. Commits run
  one file at a time, in submission order, each over an immutable snapshot; a
  batch may stop between files but never mid-file.

Row-level problems never raise. A file fails only when it has no tabular
structure (:class:`~finance_ingest.tabular.UnparseableFileError`) or names an
unknown source; inside a batch the failure is recorded and every other file
is still committed.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Collection, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .dedupe import deduplicate
from .detect import default_account, detect_source
from .ids import IdFactory, uuid_ids
from .logging_setup import get_logger
from .models import ImportSummary, Source, Status, Transaction
from .parsers import parse_rows
from .tabular import UnparseableFileError, read_rows, strip_preamble
from .transfers import detect_transfer_pairs, flag_transfer_pairs

_logger = get_logger("finance_ingest.pipeline")


@dataclass(frozen=True, slots=True)
class ParsedFile:
    """Result of the parse phase for one file."""

    name: str | None
    source: Source
    account: str
    row_count: int
    transactions: tuple[Transaction, ...]


@dataclass(frozen=True, slots=True)
class ImportResult:
    transactions: list[Transaction]
    summary: ImportSummary


@dataclass(frozen=True, slots=True)
class FileFailure:
    name: str | None
    error: str


@dataclass(frozen=True, slots=True)
class BatchResult:
    transactions: list[Transaction]
    summaries: list[ImportSummary] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One input of a batch: file text plus optional explicit overrides."""

    text: str
    name: str | None = None
    source: Source | str | None = None
    account: str | None = None


def _resolve_max_workers(n_files: int) -> int:
    """Parse-phase thread count: ``FI_PARSE_MAX_WORKERS`` capped to 1..32."""

    env_workers = os.getenv("FI_PARSE_MAX_WORKERS")
    try:
        max_workers = int(env_workers) if env_workers else None
    except ValueError:
        max_workers = None
    if max_workers is not None and max_workers > 0:
        return max(1, min(max_workers, n_files, 32))
    return max(1, min(8, n_files))


class IngestionPipeline:
    """Import export files into a record collection.

    ``id_factory`` supplies record ids; inject
    :func:`~finance_ingest.ids.sequential_ids` for deterministic tests.
    """

    def __init__(self, *, id_factory: IdFactory | None = None) -> None:
        self._next_id = id_factory or uuid_ids()

    def parse(
        self,
        text: str,
        *,
        name: str | None = None,
        source: Source | str | None = None,
        account: str | None = None,
    ) -> ParsedFile:
        table = read_rows(strip_preamble(text.lstrip("\ufeff")))
        resolved = Source(source) if source else detect_source(table.headers)
        label = (account or "").strip() or default_account(resolved)
        transactions = tuple(
            parse_rows(resolved, table.rows, account=label, id_factory=self._next_id)
        )
        return ParsedFile(
            name=name,
            source=resolved,
            account=label,
            row_count=len(table.rows),
            transactions=transactions,
        )

    def commit(
        self,
        collection: Sequence[Transaction],
        parsed: ParsedFile,
        *,
        batch_ids: Collection[str] = (),
    ) -> ImportResult:
        """Merge ``parsed`` into ``collection`` and flag transfer pairs.

        Only records of the current import are rewritten by pair flagging:
        this file's fresh records plus ``batch_ids`` (records committed by
        earlier files of the same batch). Anything stored before keeps the
        category and status a reviewer gave it.
        """

        result = deduplicate(collection, parsed.transactions)
        merged = [*collection, *result.fresh]
        fresh_ids = {tx.id for tx in result.fresh}
        pairs = detect_transfer_pairs(merged)
        merged = flag_transfer_pairs(merged, pairs, only_ids=fresh_ids | set(batch_ids))

        flagged = sum(
            1 for tx in merged if tx.id in fresh_ids and tx.status is not Status.APPROVED
        )
        summary = ImportSummary(
            source=parsed.source,
            account=parsed.account,
            imported=len(result.fresh),
            skipped=parsed.row_count - len(result.fresh),
            flagged=flagged,
            file_name=parsed.name,
            duplicates=result.duplicates,
        )
        _logger.info(
            "imported %s (%s, %s): imported=%d skipped=%d flagged=%d pairs=%d",
            parsed.name or "<text>",
            summary.source,
            summary.account,
            summary.imported,
            summary.skipped,
            summary.flagged,
            len(pairs),
        )
        if result.duplicates:
            _logger.info(
                "%d duplicate(s) dropped from %s; review if any were distinct transactions",
                len(result.duplicates),
                parsed.name or "<text>",
            )
        return ImportResult(transactions=merged, summary=summary)

    def import_text(
        self,
        collection: Sequence[Transaction],
        text: str,
        *,
        name: str | None = None,
        source: Source | str | None = None,
        account: str | None = None,
    ) -> ImportResult:
        """Parse and commit a single file."""

        parsed = self.parse(text, name=name, source=source, account=account)
        return self.commit(collection, parsed)

    def import_batch(
        self,
        collection: Sequence[Transaction],
        files: Sequence[SourceFile],
        *,
        should_continue: Callable[[], bool] | None = None,
    ) -> BatchResult:
        """Parse ``files`` concurrently, then commit them in submission order.

        ``should_continue`` is consulted before each commit; returning False
        stops the batch with everything committed so far retained.
        """

        def _parse(f: SourceFile) -> ParsedFile | FileFailure:
            try:
                return self.parse(f.text, name=f.name, source=f.source, account=f.account)
            except (UnparseableFileError, ValueError) as exc:
                # ValueError: an explicit source that names no known parser.
                return FileFailure(name=f.name, error=str(exc))

        if not files:
            return BatchResult(transactions=list(collection))

        with ThreadPoolExecutor(max_workers=_resolve_max_workers(len(files))) as pool:
            parsed_files = list(pool.map(_parse, files))

        current = list(collection)
        committed: set[str] = set()
        summaries: list[ImportSummary] = []
        failures: list[FileFailure] = []
        for item in parsed_files:
            if should_continue is not None and not should_continue():
                _logger.info("batch stopped before %s", item.name or "<text>")
                break
            if isinstance(item, FileFailure):
                _logger.warning("could not parse %s: %s", item.name or "<text>", item.error)
                failures.append(item)
                continue
            known = {tx.id for tx in current}
            result = self.commit(current, item, batch_ids=committed)
            current = result.transactions
            committed |= {tx.id for tx in current} - known
            summaries.append(result.summary)
        return BatchResult(transactions=current, summaries=summaries, failures=failures)


__all__ = [
    "BatchResult",
    "FileFailure",
    "ImportResult",
    "IngestionPipeline",
    "ParsedFile",
    "SourceFile",
]
