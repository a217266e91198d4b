"""Review state: the auto-approval gate and reviewer edits.

Reviewer actions are explicit commands applied by a reducer,
``apply(collection, edit) -> collection'``. The input collection is never
modified; edited records are replaced by new :class:`Transaction` instances.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from .models import Category, Source, Status, Transaction

AUTO_APPROVE_THRESHOLD = 0.8

ReviewFilter = Literal["pending", "transfers", "approved", "all"]


def review_state(confidence: float) -> tuple[bool, Status]:
    """Return ``(reviewed, status)`` for a freshly classified record."""

    if confidence >= AUTO_APPROVE_THRESHOLD:
        return True, Status.APPROVED
    return False, Status.PENDING


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EditTransaction:
    """Change the category and/or status of one record (marks it reviewed)."""

    txn_id: str
    category: Category | str | None = None
    status: Status | str | None = None


@dataclass(frozen=True, slots=True)
class BulkApprove:
    txn_ids: frozenset[str]


type Edit = EditTransaction | BulkApprove


def _edit_one(tx: Transaction, edit: EditTransaction) -> Transaction:
    update: dict[str, object] = {"reviewed": True}
    if edit.category is not None:
        try:
            category = Category(edit.category)
        except ValueError as exc:
            raise ValueError(f"unknown category: {edit.category!r}") from exc
        update["category"] = category
        # Keep the transfer flag consistent with the category.
        update["is_transfer"] = category is Category.TRANSFER
    if edit.status is not None:
        update["status"] = Status(edit.status)
    return tx.model_copy(update=update)


def apply(collection: Sequence[Transaction], edit: Edit) -> list[Transaction]:
    """Return a new collection with ``edit`` applied.

    Raises ``KeyError`` when an edit names an id that is not in the
    collection.
    """

    if isinstance(edit, EditTransaction):
        if not any(tx.id == edit.txn_id for tx in collection):
            raise KeyError(edit.txn_id)
        return [_edit_one(tx, edit) if tx.id == edit.txn_id else tx for tx in collection]

    if isinstance(edit, BulkApprove):
        missing = edit.txn_ids - {tx.id for tx in collection}
        if missing:
            raise KeyError(", ".join(sorted(missing)))
        return [
            tx.model_copy(update={"status": Status.APPROVED, "reviewed": True})
            if tx.id in edit.txn_ids
            else tx
            for tx in collection
        ]

    raise TypeError(f"unsupported edit: {edit!r}")


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


def review_queue(
    collection: Iterable[Transaction],
    *,
    view: ReviewFilter = "pending",
    source: Source | str | None = None,
    search: str | None = None,
) -> list[Transaction]:
    """Return records to show a reviewer, flagged first then newest first."""

    needle = (search or "").strip().lower()
    wanted_source = Source(source) if source else None

    def keep(tx: Transaction) -> bool:
        if view == "pending" and tx.status is Status.APPROVED:
            return False
        if view == "approved" and tx.status is not Status.APPROVED:
            return False
        if view == "transfers" and not tx.is_transfer:
            return False
        if wanted_source is not None and tx.source is not wanted_source:
            return False
        return not needle or needle in tx.description.lower()

    selected = [tx for tx in collection if keep(tx)]
    # Two stable passes: newest date first, then flagged ahead of the rest.
    selected.sort(key=lambda tx: tx.date, reverse=True)
    selected.sort(key=lambda tx: tx.status is not Status.FLAGGED)
    return selected


def needs_review(collection: Iterable[Transaction]) -> int:
    return sum(1 for tx in collection if tx.status is not Status.APPROVED)


__all__ = [
    "AUTO_APPROVE_THRESHOLD",
    "BulkApprove",
    "Edit",
    "EditTransaction",
    "apply",
    "needs_review",
    "review_queue",
    "review_state",
]
