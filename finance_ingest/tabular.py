"""Turn raw export text into header-keyed rows.

Bank exports often prepend a human-readable summary block above the real
header. :func:`strip_preamble` scans the first lines for the header row and
drops everything before it; :func:`read_rows` tokenizes the remainder with the
stdlib :mod:`csv` module (RFC 4180 quoting, embedded newlines).
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from io import StringIO

PREAMBLE_SCAN_LINES = 15


class UnparseableFileError(csv.Error):
    """The input has no tabular structure at all."""


@dataclass(frozen=True, slots=True)
class Table:
    headers: tuple[str, ...]
    rows: list[dict[str, str]]


def _is_header_line(line: str) -> bool:
    ll = line.lower().replace('"', "").strip()
    return ll.startswith("date,") and ("description" in ll or "action" in ll)


def strip_preamble(text: str, *, scan_lines: int = PREAMBLE_SCAN_LINES) -> str:
    """Return ``text`` starting at the date-led header row, when one is found.

    Only the first ``scan_lines`` lines are inspected. Text without such a
    header (exchange ledgers, for example) is returned unchanged.
    """

    # Keep original line endings so quoted newlines survive the slice.
    lines = text.splitlines(keepends=True)
    for idx, line in enumerate(lines[:scan_lines]):
        if _is_header_line(line):
            return "".join(lines[idx:])
    return text


def read_rows(text: str) -> Table:
    """Tokenize CSV text into a :class:`Table`.

    Blank rows are discarded. Raises :class:`UnparseableFileError` when there
    is no header with at least two columns or the tokenizer rejects the input.
    """

    text = text.lstrip("\ufeff")
    try:
        with StringIO(text, newline="") as f:
            reader = csv.DictReader(f)
            fieldnames = reader.fieldnames
            headers = tuple(h.strip() for h in (fieldnames or []) if h is not None)
            if len([h for h in headers if h]) < 2:
                raise UnparseableFileError("no tabular header row found")
            rows: list[dict[str, str]] = []
            for row in reader:
                # DictReader collects overflow cells under a None key; drop them.
                normalized = {
                    k.strip(): (v if isinstance(v, str) else "")
                    for k, v in row.items()
                    if k is not None
                }
                if all(v.strip() == "" for v in normalized.values()):
                    continue
                rows.append(normalized)
    except UnparseableFileError:
        raise
    except csv.Error as exc:
        raise UnparseableFileError(f"CSV tokenizer failed: {exc}") from exc
    return Table(headers=headers, rows=rows)


__all__ = ["PREAMBLE_SCAN_LINES", "Table", "UnparseableFileError", "read_rows", "strip_preamble"]
