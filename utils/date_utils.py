"""
Date parsing and formatting for timeline text fragments.

Timeline rows, document actions and modal headers show dates as loose text
("15.03.", "03/05/24", "25. Juni 2025 um 10:39"). These helpers turn such
fragments into DateParts and format DateParts back through a token template
(YYYY, YY, MM, DD, hh, mm).
"""

import re
import unicodedata
from dataclasses import dataclass, replace
from datetime import MAXYEAR, MINYEAR, date, timedelta
from typing import Any, Optional, Tuple

_ISO_RE = re.compile(r"(?<!\d)(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
_SLASH_RE = re.compile(r"(\d{1,2})/(\d{1,2})/?(\d{2,4})?")
_DOT_RE = re.compile(r"(\d{1,2})\.(\d{1,2})\.?(\d{2,4})?")
_MONTH_NAME_RE = re.compile(r"(?<!\d)(\d{1,2})\.\s*([A-Za-zÄÖÜäöüß]+)\.?(?:\s+(\d{4}|\d{2})(?![\d:]))?")
_FORMAT_TOKEN_RE = re.compile(r"YYYY|YY|MM|DD|hh|mm")
_SEPARATOR_RUN_RE = re.compile(r"([._\-]){2,}")
_HEADING_YEAR_RE = re.compile(r"(?:19|20)\d{2}")
_MODAL_YEAR_RE = re.compile(r"((?:19|20)\d{2})(?!\s*:)")
_MODAL_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")
_SUBTITLE_DATE_RE = re.compile(r"^(\d{1,2}[./]\d{1,2}(?:[./]\d{2,4})?)(?!\d)(.*)$")
_SUBTITLE_LEAD_RE = re.compile(r"^[\s.\-–—_/\\|]+")

MONTHS = {
    "januar": 1, "january": 1, "jan": 1,
    "februar": 2, "february": 2, "feb": 2,
    "maerz": 3, "march": 3, "mar": 3, "mrz": 3,
    "april": 4, "apr": 4,
    "mai": 5, "may": 5,
    "juni": 6, "june": 6, "jun": 6,
    "juli": 7, "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "oktober": 10, "october": 10, "okt": 10, "oct": 10,
    "november": 11, "nov": 11,
    "dezember": 12, "december": 12, "dez": 12, "dec": 12,
}


@dataclass(frozen=True)
class DateParts:
    """A calendar date with optional time of day. Day, month and year are always set."""

    day: int
    month: int
    year: int
    hour: Optional[int] = None
    minute: Optional[int] = None

    def to_date(self) -> date:
        """
        Convert to a datetime.date.

        Days past the end of the month roll over into the next month
        (31.02.2024 is 2024-03-02), matching how the timeline's own
        calendar arithmetic treats such values.
        """
        return date(self.year, self.month, 1) + timedelta(days=self.day - 1)

    def with_time(self, hour: Optional[int], minute: Optional[int]) -> "DateParts":
        return replace(self, hour=hour, minute=minute)


@dataclass(frozen=True)
class ModalTimeInfo:
    """Year and time of day read from an overlay header; any field may be missing."""

    year: Optional[int] = None
    hour: Optional[int] = None
    minute: Optional[int] = None


def _current_year() -> int:
    return date.today().year


def _promote_year(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    year = int(raw)
    if year < 100:
        year += 2000
    return year


def normalize_month_name(name: str) -> str:
    """
    Normalize a month name for lookup in MONTHS.

    Umlauts are expanded to their digraphs, remaining diacritics are stripped,
    whitespace is removed.

    Example:
        >>> normalize_month_name(" März ")
        'maerz'
    """
    text = (name or "").lower()
    text = text.replace("ä", "ae").replace("ö", "oe").replace("ü", "ue").replace("ß", "ss")
    text = unicodedata.normalize("NFD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    return re.sub(r"\s+", "", text)


def _slash_order(a: int, b: int) -> Tuple[int, int]:
    """Return (day, month) for a slash date; day-first unless only the second part can be a day."""
    if b > 12 >= a:
        return b, a
    return a, b


def parse_date_string(text: Optional[str], fallback_year: Optional[int] = None) -> Optional[DateParts]:
    """
    Parse a free-text date fragment.

    Accepted forms, tried in order: year first ``YYYY-MM-DD`` or
    ``YYYY/MM/DD``, slash ``D/M[/YY[YY]]``, dotted ``D.M.[YY[YY]]`` and
    ``D. Monthname [YYYY]``. Two-digit years get 2000 added. A missing year is taken from fallback_year, else the current
    year. Slash dates whose parts are both <= 12 are read day first.

    Returns:
        DateParts, or None if no day and month could be read or the year lies
        outside what datetime.date supports. Never raises.
    """
    if not text:
        return None
    text = text.strip()
    day: Optional[int] = None
    month: Optional[int] = None
    year: Optional[int] = None

    match = _ISO_RE.search(text)
    if match:
        year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
    else:
        match = _SLASH_RE.search(text)
        if match:
            day, month = _slash_order(int(match.group(1)), int(match.group(2)))
            year = _promote_year(match.group(3))
        else:
            match = _DOT_RE.search(text)
            if match:
                day, month = int(match.group(1)), int(match.group(2))
                year = _promote_year(match.group(3))
            else:
                match = _MONTH_NAME_RE.search(text)
                if match:
                    month = MONTHS.get(normalize_month_name(match.group(2)))
                    if month is not None:
                        day = int(match.group(1))
                        year = _promote_year(match.group(3))

    if not day or not month or day > 31 or month > 12:
        return None
    if year is None:
        year = fallback_year or _current_year()
    if not MINYEAR <= year <= MAXYEAR:
        return None
    return DateParts(day=day, month=month, year=year)


def resolve_date_parts(meta: Any) -> Optional[DateParts]:
    """
    Resolve the date for a pending download.

    Reads doc_date, item_date, item_year, modal_year, modal_hour and
    modal_minute from meta (missing attributes count as absent). The
    document's own date text wins over the item's. A year read from the
    overlay header replaces the section-heading year as fallback, and the
    header's time of day is attached when present.
    """
    fallback_year = getattr(meta, "modal_year", None) or getattr(meta, "item_year", None) or _current_year()
    parts = (
        parse_date_string(getattr(meta, "doc_date", None), fallback_year)
        or parse_date_string(getattr(meta, "item_date", None), fallback_year)
    )
    if parts is None:
        return None
    hour = getattr(meta, "modal_hour", None)
    if hour is not None:
        parts = parts.with_time(hour, getattr(meta, "modal_minute", None))
    return parts


def format_date_parts(parts: Optional[DateParts], fmt: str) -> str:
    """
    Substitute YYYY, YY, MM, DD, hh and mm in fmt.

    Missing hour/minute become empty; separator runs left behind collapse to
    one character and dangling separators at either end are dropped.

    Example:
        >>> format_date_parts(DateParts(day=5, month=3, year=2024), "YYYY-MM-DD_hhmm")
        '2024-03-05'
    """
    if parts is None:
        return ""

    def pad(value: Optional[int]) -> str:
        return "" if value is None else f"{value:02d}"

    values = {
        "YYYY": str(parts.year),
        "YY": str(parts.year)[-2:],
        "MM": pad(parts.month),
        "DD": pad(parts.day),
        "hh": pad(parts.hour),
        "mm": pad(parts.minute),
    }
    out = _FORMAT_TOKEN_RE.sub(lambda m: values[m.group(0)], fmt)
    out = _SEPARATOR_RUN_RE.sub(r"\1", out)
    return out.strip("._- :")


def has_format_token(fmt: Optional[str]) -> bool:
    """True if fmt contains at least one date token."""
    return bool(fmt) and _FORMAT_TOKEN_RE.search(fmt) is not None


def extract_year_from_heading(text: Optional[str], default: Optional[int] = None) -> int:
    """Return the first 19xx/20xx year in a section heading, else default or the current year."""
    match = _HEADING_YEAR_RE.search(text or "")
    if match:
        return int(match.group(0))
    return default if default is not None else _current_year()


def extract_modal_time_info(text: Optional[str]) -> ModalTimeInfo:
    """
    Read year and time of day from an overlay header such as "25. Juni 2025 um 10:39".

    A year is a 19xx/20xx number not followed by ':' (so "20:15" is a time).
    """
    if not text:
        return ModalTimeInfo()
    year_match = _MODAL_YEAR_RE.search(text)
    time_match = _MODAL_TIME_RE.search(text)
    year = int(year_match.group(1)) if year_match else None
    hour = minute = None
    if time_match:
        h, m = int(time_match.group(1)), int(time_match.group(2))
        if h < 24 and m < 60:
            hour, minute = h, m
    return ModalTimeInfo(year=year, hour=hour, minute=minute)


def split_subtitle(text: Optional[str]) -> Tuple[str, str]:
    """
    Split a timeline row subtitle into (date fragment, remaining subtitle).

    "15.03. - Sparplan ausgeführt" gives ("15.03", "Sparplan ausgeführt");
    "Gestern - Kauf" gives ("Gestern", "Kauf"); anything else is all subtitle.
    """
    text = (text or "").strip()
    match = _SUBTITLE_DATE_RE.match(text)
    if match:
        return match.group(1), _SUBTITLE_LEAD_RE.sub("", match.group(2) or "").strip()
    if " - " in text:
        head, _, rest = text.partition(" - ")
        return head.strip(), rest.strip()
    return "", text
