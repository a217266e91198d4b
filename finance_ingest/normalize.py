"""Amount and date normalization for raw export cells.

Both helpers are total: malformed input degrades to ``None`` and never raises,
so a single bad cell only ever drops its own row.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

_PLACEHOLDERS = frozenset({"--", "n/a", "na", "-"})
_CURRENCY_SYMBOLS = "$€£¥"

_QUALIFIER_RE = re.compile(r"\s*as of .*$", re.IGNORECASE)
_US_LONG_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_US_SHORT_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$")
_ISO_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def parse_amount(raw: object) -> Decimal | None:
    """Parse a locale-formatted currency cell into a signed ``Decimal``.

    Handles currency symbols, thousands separators, explicit ``+``/``-`` signs
    and accounting parentheses (``"(45.00)"`` is ``-45.00``). Returns ``None``
    for empty cells, placeholders (``"--"``, ``"N/A"``) and anything that is
    not a finite number.
    """

    if raw is None:
        return None
    s = str(raw).strip()
    if not s or s.lower() in _PLACEHOLDERS:
        return None

    negative = False
    # Strip sign, currency symbol and surrounding parentheses in any order,
    # e.g. "-$1,234.56", "$(1,234.56)", "($1,234.56)".
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s and s[0] in _CURRENCY_SYMBOLS:
            s = s[1:].lstrip()
            changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return -abs(d) if negative else d


def _iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_date(raw: object) -> str | None:
    """Parse a raw date cell into canonical ``YYYY-MM-DD``.

    Recognized, in order: ``M/D/YYYY``, ``M/D/YY`` (two-digit years are
    ``20YY``) and ``YYYY-MM-DD`` with an optional trailing time or offset. A
    trailing ``"as of ..."`` qualifier is removed first. Unrecognized formats
    and impossible calendar dates yield ``None``.
    """

    if raw is None:
        return None
    s = _QUALIFIER_RE.sub("", str(raw)).strip()
    if not s:
        return None

    m = _US_LONG_RE.match(s)
    if m:
        return _iso(int(m.group(3)), int(m.group(1)), int(m.group(2)))
    m = _US_SHORT_RE.match(s)
    if m:
        return _iso(2000 + int(m.group(3)), int(m.group(1)), int(m.group(2)))
    m = _ISO_PREFIX_RE.match(s)
    if m:
        return _iso(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    return None


__all__ = ["parse_amount", "parse_date"]
