"""Guess which source parser applies to a file from its header row.

A priority-ordered heuristic, not a schema validator: ambiguous headers always
resolve to :attr:`Source.BANK`.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import Source

_BROKERAGE_MARKERS = ("action", "symbol", "fees")
_EXCHANGE_MARKERS = ("txid", "refid", "asset")

DEFAULT_ACCOUNTS: dict[Source, str] = {
    Source.BANK: "Bank Account",
    Source.BROKERAGE: "Brokerage Account",
    Source.EXCHANGE: "Exchange Account",
}


def detect_source(headers: Iterable[str]) -> Source:
    h = " ".join(headers).lower()
    clean_bank = (
        "date" in h
        and "description" in h
        and "amount" in h
        and "action" not in h
        and "symbol" not in h
    )
    if "running bal" in h or clean_bank:
        return Source.BANK
    if any(m in h for m in _BROKERAGE_MARKERS):
        return Source.BROKERAGE
    if any(m in h for m in _EXCHANGE_MARKERS):
        return Source.EXCHANGE
    return Source.BANK


def default_account(source: Source) -> str:
    return DEFAULT_ACCOUNTS[source]


__all__ = ["DEFAULT_ACCOUNTS", "default_account", "detect_source"]
