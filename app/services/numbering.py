"""
Document numbers for inspection forms: ``PREFIX-YY-N``.

``YY`` is the last two digits of the current year and ``N`` restarts at 1
every year. The next number is derived from the numbers already stored, so
two concurrent creations can compute the same value; the unique constraint
on ``document_no`` rejects the loser, which then recomputes.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date


def year_prefix(prefix: str, today: date) -> str:
    """``AGI-APR-25-`` for 2025: the prefix every number of that year starts with."""
    return f"{prefix}-{today.year % 100:02d}-"


def next_document_number(existing: Iterable[str], today: date, prefix: str) -> str:
    """Return max(N) + 1 among *existing* numbers for today's year.

    Entries that do not fully match ``PREFIX-<digits>-<digits>`` or that
    belong to another year are ignored.
    """
    year = f"{today.year % 100:02d}"
    pattern = re.compile(rf"{re.escape(prefix)}-(\d+)-(\d+)")

    max_sequence = 0
    for number in existing:
        match = pattern.fullmatch(number or "")
        if match is None or match.group(1) != year:
            continue
        max_sequence = max(max_sequence, int(match.group(2)))

    return f"{year_prefix(prefix, today)}{max_sequence + 1}"
