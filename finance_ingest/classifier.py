"""Rule-based classification of bank records.

:func:`classify` is a pure function of ``(description, amount)``. Brokerage and
exchange records never pass through it; their category comes from structural
columns instead.

Evaluation order, first match wins:

1. transfer keyword -> ``Transfer`` (0.85, transfer)
2. income keyword -> ``Income`` (0.9)
3. per-category keyword table, in declaration order -> that category (0.8)
4. positive whole amount of at least 100 -> weak ``Transfer`` guess (0.5)
5. any other positive amount -> weak ``Income`` guess (0.3)
6. otherwise ``Uncategorized`` (0.1)

The amount-shape fallbacks only bias review ordering; they stay below the
auto-approval threshold.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from .keywords import CATEGORY_KEYWORDS, INCOME_KEYWORDS, TRANSFER_KEYWORDS
from .models import Category, Classification

TRANSFER_CONFIDENCE = 0.85
INCOME_CONFIDENCE = 0.9
KEYWORD_CONFIDENCE = 0.8
ROUND_TRANSFER_CONFIDENCE = 0.5
INCOME_GUESS_CONFIDENCE = 0.3
UNCATEGORIZED_CONFIDENCE = 0.1

_ROUND_TRANSFER_MIN = Decimal(100)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(kw in text for kw in keywords)


def match_category(
    description: str,
    table: Mapping[Category, Iterable[str]] = CATEGORY_KEYWORDS,
) -> Category | None:
    """Return the first category whose keyword appears in ``description``."""

    text = description.lower()
    for category, keywords in table.items():
        if _contains_any(text, keywords):
            return category
    return None


def classify(description: str | None, amount: Decimal | float | int) -> Classification:
    text = (description or "").lower()
    if _contains_any(text, TRANSFER_KEYWORDS):
        return Classification(Category.TRANSFER, TRANSFER_CONFIDENCE, True)
    if _contains_any(text, INCOME_KEYWORDS):
        return Classification(Category.INCOME, INCOME_CONFIDENCE, False)
    category = match_category(text)
    if category is not None:
        return Classification(category, KEYWORD_CONFIDENCE, False)

    value = Decimal(str(amount))
    if value >= _ROUND_TRANSFER_MIN and value == value.to_integral_value():
        return Classification(Category.TRANSFER, ROUND_TRANSFER_CONFIDENCE, True)
    if value > 0:
        return Classification(Category.INCOME, INCOME_GUESS_CONFIDENCE, False)
    return Classification(Category.UNCATEGORIZED, UNCATEGORIZED_CONFIDENCE, False)


__all__ = ["classify", "match_category"]
