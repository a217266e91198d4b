"""Detection of transfers between the user's own accounts.

A transfer shows up as two records in different accounts with opposite,
equal-magnitude amounts a few days apart. :func:`detect_transfer_pairs` finds
them greedily: records are sorted by date and each unmatched record takes the
first unmatched partner that fits. Pairing is not globally optimal; once
paired, a record is never reconsidered.

Scaling: the forward scan stops at the first candidate outside the date
window, so cost grows with the number of records per window. A window holding
most of the collection still degrades to quadratic time, which is fine for
personal-finance volumes (thousands of records).
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from .models import Category, Status, Transaction

PAIR_WINDOW_DAYS = 5
PAIR_CONFIDENCE = 0.9
_AMOUNT_TOLERANCE = Decimal("0.01")


class TransferPair(NamedTuple):
    first: Transaction
    second: Transaction


def detect_transfer_pairs(
    records: Sequence[Transaction], *, window_days: int = PAIR_WINDOW_DAYS
) -> list[TransferPair]:
    # Stable sort: equal dates keep collection order, so ties resolve to the
    # earliest-indexed candidate.
    ordered = sorted(records, key=lambda tx: tx.date)
    days = [date.fromisoformat(tx.date) for tx in ordered]
    used = [False] * len(ordered)
    pairs: list[TransferPair] = []

    for i, a in enumerate(ordered):
        if used[i] or a.amount == 0:
            continue
        for j in range(i + 1, len(ordered)):
            if (days[j] - days[i]).days > window_days:
                break
            if used[j]:
                continue
            b = ordered[j]
            if a.account != b.account and abs(a.amount + b.amount) < _AMOUNT_TOLERANCE:
                used[i] = used[j] = True
                pairs.append(TransferPair(a, b))
                break
    return pairs


def flag_transfer_pairs(
    records: Sequence[Transaction],
    pairs: Sequence[TransferPair],
    *,
    only_ids: Collection[str] | None = None,
) -> list[Transaction]:
    """Return ``records`` with paired, not-yet-transfer records flagged.

    Flagged records become ``Transfer`` with ``isTransfer`` set, confidence
    0.9 and status ``flagged``: the pairing overrides the classifier, so a
    human still has to confirm it. ``only_ids`` limits the rewrite to the
    records of the current import; stored records belong to the reviewer.
    """

    paired = {tx.id for pair in pairs for tx in pair}
    if only_ids is not None:
        paired &= set(only_ids)

    flagged: list[Transaction] = []
    for tx in records:
        if tx.id in paired and not tx.is_transfer:
            tx = tx.model_copy(
                update={
                    "category": Category.TRANSFER,
                    "is_transfer": True,
                    "status": Status.FLAGGED,
                    "confidence": PAIR_CONFIDENCE,
                    "reviewed": False,
                }
            )
        flagged.append(tx)
    return flagged


__all__ = [
    "PAIR_WINDOW_DAYS",
    "TransferPair",
    "detect_transfer_pairs",
    "flag_transfer_pairs",
]
