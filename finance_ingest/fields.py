"""Fuzzy column lookup for exports with unpredictable header spelling.

Institutions name the same concept differently ("Posted Date", "Date",
"Time"). A :class:`FieldSpec` describes one logical field as an ordered list
of candidate fragments; :meth:`FieldSpec.resolve` returns the value of the
first column whose normalized name contains a candidate. Supporting a new
institution means supplying a new priority list, not a new code path.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_column(name: str) -> str:
    """Lowercase ``name`` and drop every non-alphanumeric character."""

    return _NON_ALNUM_RE.sub("", name.lower())


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Ordered-candidates-first-match strategy for one logical field.

    Candidates are tried in priority order; for each candidate the columns are
    scanned in row order. The first hit wins, even when its cell is empty.
    """

    name: str
    candidates: tuple[str, ...]

    def resolve(self, row: Mapping[str, str | None]) -> str | None:
        columns = [(normalize_column(k), k) for k in row if k is not None]
        for fragment in self.candidates:
            needle = normalize_column(fragment)
            if not needle:
                continue
            for normalized, original in columns:
                if needle in normalized:
                    return row[original]
        return None


# ---------------------------------------------------------------------------
# Per-source priority lists
# ---------------------------------------------------------------------------

BANK_FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("date", ("date", "posted date")),
        FieldSpec("description", ("description", "payee", "original description")),
        FieldSpec("amount", ("amount",)),
        FieldSpec("debit", ("debit", "withdrawal")),
        FieldSpec("credit", ("credit", "deposit")),
        FieldSpec("balance", ("balance", "running bal")),
    )
}

BROKERAGE_FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("date", ("date",)),
        FieldSpec("description", ("description",)),
        FieldSpec("action", ("action", "type")),
        FieldSpec("amount", ("amount", "net amount")),
        FieldSpec("price", ("price",)),
        FieldSpec("quantity", ("quantity",)),
        FieldSpec("symbol", ("symbol",)),
        FieldSpec("fees", ("fees", "comm")),
    )
}

EXCHANGE_FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("timestamp", ("time",)),
        FieldSpec("type", ("type",)),
        FieldSpec("asset", ("asset",)),
        FieldSpec("amount", ("amount",)),
        FieldSpec("fee", ("fee",)),
        FieldSpec("balance", ("balance",)),
    )
}


__all__ = [
    "BANK_FIELDS",
    "BROKERAGE_FIELDS",
    "EXCHANGE_FIELDS",
    "FieldSpec",
    "normalize_column",
]
