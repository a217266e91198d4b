"""Recurring-charge detection over approved spending.

Outflows are grouped by a normalized description (digits and ``#`` removed,
first 30 characters). A group of two or more charges whose amounts have a
population variance below twice their mean is treated as recurring.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from .models import Status, Transaction

_STRIP_RE = re.compile(r"[#0-9]")
_KEY_LENGTH = 30


@dataclass(frozen=True, slots=True)
class RecurringCharge:
    description: str
    average: Decimal
    count: int

    @property
    def annual(self) -> Decimal:
        return self.average * 12


def recurring_key(description: str) -> str:
    return _STRIP_RE.sub("", description).strip()[:_KEY_LENGTH]


def find_recurring(records: Iterable[Transaction]) -> list[RecurringCharge]:
    groups: dict[str, list[Decimal]] = defaultdict(list)
    for tx in records:
        if tx.is_transfer or tx.status is not Status.APPROVED or tx.amount >= 0:
            continue
        groups[recurring_key(tx.description)].append(abs(tx.amount))

    found: list[RecurringCharge] = []
    for key, amounts in groups.items():
        if len(amounts) < 2:
            continue
        mean = sum(amounts, Decimal(0)) / len(amounts)
        variance = sum(((a - mean) ** 2 for a in amounts), Decimal(0)) / len(amounts)
        if variance < mean * 2:
            found.append(RecurringCharge(description=key, average=mean, count=len(amounts)))
    found.sort(key=lambda c: c.annual, reverse=True)
    return found


__all__ = ["RecurringCharge", "find_recurring", "recurring_key"]
