"""Duplicate filtering across repeated imports.

Identity is the exact triple ``(date, description, amount)``, deliberately
ignoring source and account so overlapping statement exports do not
re-admit the same rows.

Known limitation: two genuinely distinct transactions with the same day,
payee and amount collapse into one. Dropped records are returned in
:class:`DedupeResult` so callers can surface them for confirmation rather
than losing them silently.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("finance_ingest.dedupe")

type DedupeKey = tuple[str, str, Decimal]


def dedupe_key(tx: Transaction) -> DedupeKey:
    return (tx.date, tx.description, tx.amount)


@dataclass(frozen=True, slots=True)
class DedupeResult:
    fresh: tuple[Transaction, ...]
    duplicates: tuple[Transaction, ...]


def deduplicate(
    existing: Iterable[Transaction], incoming: Iterable[Transaction]
) -> DedupeResult:
    """Split ``incoming`` into records not yet stored and duplicates.

    Only previously stored records are consulted; two identical rows inside
    the same file are both admitted.
    """

    seen: set[DedupeKey] = {dedupe_key(tx) for tx in existing}
    fresh: list[Transaction] = []
    duplicates: list[Transaction] = []
    for tx in incoming:
        if dedupe_key(tx) in seen:
            _logger.debug("duplicate dropped: %s %s %s", tx.date, tx.description, tx.amount)
            duplicates.append(tx)
        else:
            fresh.append(tx)
    return DedupeResult(fresh=tuple(fresh), duplicates=tuple(duplicates))


__all__ = ["DedupeResult", "dedupe_key", "deduplicate"]
