"""Data models for ``finance_ingest``.

The canonical unit is :class:`Transaction`, an immutable pydantic model. Every
post-creation change (transfer flagging, reviewer edits) produces a new
instance via ``model_copy(update=...)`` so a committed collection is a stable
snapshot.

Serialized records are flat mappings using the external field names
(``isTransfer``); optional fields that do not apply to a source are omitted
rather than written as ``null``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Source(StrEnum):
    BANK = "bank"
    BROKERAGE = "brokerage"
    EXCHANGE = "exchange"


class Category(StrEnum):
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    GROCERIES = "Groceries"
    DINING = "Dining"
    TRANSPORTATION = "Transportation"
    AUTO = "Auto"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    SUBSCRIPTIONS = "Subscriptions"
    INSURANCE = "Insurance"
    EDUCATION = "Education"
    PERSONAL_CARE = "Personal Care"
    FEES_AND_CHARGES = "Fees & Charges"
    INVESTMENTS = "Investments"
    CRYPTO = "Crypto"
    INCOME = "Income"
    TRANSFER = "Transfer"
    UNCATEGORIZED = "Uncategorized"


class TxType(StrEnum):
    """Semantic subtype of a record; which values appear depends on the source."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    TRADE = "trade"
    STAKING = "staking"
    SPEND = "spend"
    RECEIVE = "receive"
    EARN = "earn"
    OTHER = "other"


class Status(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    # Auto-detected transfer pair awaiting human confirmation.
    FLAGGED = "flagged"


# ---------------------------------------------------------------------------
# Canonical record
# ---------------------------------------------------------------------------

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Transaction(BaseModel):
    """One normalized financial event.

    Invariants enforced at construction:

    - ``date`` is a real calendar date in ``YYYY-MM-DD`` form;
    - ``confidence`` lies within ``[0, 1]``;
    - ``is_transfer`` implies ``category == Category.TRANSFER``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str
    date: str
    description: str
    amount: Decimal
    category: Category
    confidence: float
    is_transfer: bool = Field(alias="isTransfer")
    source: Source
    account: str
    type: TxType
    symbol: str | None = None
    quantity: Decimal | None = None
    fees: Decimal | None = None
    balance: Decimal | None = None
    reviewed: bool = False
    status: Status = Status.PENDING

    @field_validator("date")
    @classmethod
    def _iso_calendar_date(cls, v: str) -> str:
        if not _ISO_DATE_RE.fullmatch(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        datetime.strptime(v, "%Y-%m-%d")
        return v

    @field_validator("confidence")
    @classmethod
    def _confidence_in_unit_interval(cls, v: float) -> float:
        fv = float(v)
        if 0.0 <= fv <= 1.0:
            return fv
        raise ValueError("confidence must be within [0,1]")

    @model_validator(mode="after")
    def _transfer_implies_category(self) -> Transaction:
        if self.is_transfer and self.category is not Category.TRANSFER:
            raise ValueError("isTransfer requires category 'Transfer'")
        return self

    def to_record(self) -> dict[str, Any]:
        """Return the flat, JSON-friendly mapping for this record."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Classification(NamedTuple):
    category: Category
    confidence: float
    is_transfer: bool


# ---------------------------------------------------------------------------
# Import results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ImportSummary:
    """Outcome of committing one file.

    ``skipped`` counts unparseable rows plus duplicates. ``flagged`` counts
    records from this file that still need review (pending or flagged).
    ``duplicates`` holds the dropped duplicate records so a reviewer can
    confirm that none of them was a genuinely distinct transaction.
    """

    source: Source
    account: str
    imported: int
    skipped: int
    flagged: int
    file_name: str | None = None
    duplicates: tuple[Transaction, ...] = field(default=(), repr=False)


# ---------------------------------------------------------------------------
# Persisted state
# ---------------------------------------------------------------------------


class AppState(BaseModel):
    """Everything saved in the state blob.

    Only ``transactions`` belongs to the ingestion core; the sibling
    collections are carried through untouched for other collaborators.
    """

    model_config = ConfigDict(extra="forbid")

    transactions: list[Transaction] = Field(default_factory=list)
    net_worth: list[dict[str, Any]] = Field(default_factory=list)
    protected_funds: list[dict[str, Any]] = Field(default_factory=list)
    budgets: dict[str, float] = Field(default_factory=dict)


__all__ = [
    "AppState",
    "Category",
    "Classification",
    "ImportSummary",
    "Source",
    "Status",
    "Transaction",
    "TxType",
]
