"""
Run bounds from free-text input.

Date mode: each bound is a date in any form parse_date_string() accepts, a
sentinel for the open bound ("", start/anfang/end/ende) or today/heute.
Bounds are ordered so lower <= upper whichever field they were typed into.

Index mode: start index (default 0) and end index (default -1 = last),
clamped to the loaded item count.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from utils.date_utils import parse_date_string
from utils.Errors import InvalidDateInputError, InvalidIndexRangeError

OPEN_SENTINELS = ("", "start", "anfang", "end", "ende")
TODAY_SENTINELS = ("today", "heute")


@dataclass(frozen=True)
class RunRange:
    """Resolved date bounds; None is an open bound."""

    lower: Optional[date] = None
    upper: Optional[date] = None

    def contains(self, day: date) -> bool:
        if self.lower is not None and day < self.lower:
            return False
        if self.upper is not None and day > self.upper:
            return False
        return True


@dataclass(frozen=True)
class IndexRange:
    start: int
    end: int

    def __iter__(self):
        return iter(range(self.start, self.end + 1))


def parse_bound(text: Optional[str], label: str, today: Optional[date] = None) -> Optional[date]:
    """
    Parse one bound.

    Returns:
        The date, or None for an open bound.

    Raises:
        InvalidDateInputError: text is neither a sentinel nor a parseable date.
    """
    raw = (text or "").strip()
    value = raw.lower()
    if value in OPEN_SENTINELS:
        return None
    today = today or date.today()
    if value in TODAY_SENTINELS:
        return today
    parts = parse_date_string(value, today.year)
    if parts is None:
        raise InvalidDateInputError(label, raw)
    return parts.to_date()


def resolve_run_range(start_text: Optional[str], end_text: Optional[str], today: Optional[date] = None) -> RunRange:
    """
    Resolve the date range of a run.

    Example:
        >>> resolve_run_range("2024-01-01", "2023-06-01")
        RunRange(lower=datetime.date(2023, 6, 1), upper=datetime.date(2024, 1, 1))
    """
    start = parse_bound(start_text, "start", today)
    end = parse_bound(end_text, "end", today)
    if start is not None and end is not None and start > end:
        start, end = end, start
    return RunRange(lower=start, upper=end)


def _parse_index(text: Optional[str], label: str, open_value: int) -> int:
    raw = (text or "").strip()
    if raw.lower() in OPEN_SENTINELS:
        return open_value
    try:
        return int(raw)
    except ValueError:
        raise InvalidDateInputError(label, raw) from None


def resolve_index_range(start_text: Optional[str], end_text: Optional[str], count: int) -> IndexRange:
    """
    Resolve an index range over count loaded items.

    Negative starts count as 0; a negative end means the last item and larger
    ends are clamped to it.

    Raises:
        InvalidDateInputError: a bound is not an integer.
        InvalidIndexRangeError: start > end after clamping (also for count == 0).
    """
    start = max(0, _parse_index(start_text, "start", 0))
    end = _parse_index(end_text, "end", -1)
    end = count - 1 if end < 0 else min(end, count - 1)
    if start > end:
        raise InvalidIndexRangeError(start, end)
    return IndexRange(start=start, end=end)
