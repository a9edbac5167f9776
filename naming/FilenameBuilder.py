"""
Builds the file name for a captured document download.

Template mini-language: {title}, {date}, {subtitle}, {doc} ({docname} is
accepted as an alias). Token names are case-insensitive; unknown tokens
expand to nothing. The result is sanitized and always ends in .pdf.
"""

import re
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlsplit

from utils.date_utils import format_date_parts, resolve_date_parts
from utils.file_utils import DEFAULT_FILENAME, ensure_suffix, sanitize_filename

PDF_SUFFIX = ".pdf"

_TOKEN_RE = re.compile(r"\{([A-Za-z_]+)\}")
_TOKEN_ALIASES = {"docname": "doc"}
_ONLY_SEPARATORS = re.compile(r"^[\s._\-]*$")
_PDF_TAIL_RE = re.compile(r"\.pdf$", re.IGNORECASE)


def url_tail(url: Optional[str]) -> str:
    """Last path segment of url without query, or 'document.pdf'."""
    try:
        path = urlsplit(url or "").path
    except ValueError:
        path = ""
    tail = unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path else ""
    return tail or f"{DEFAULT_FILENAME}{PDF_SUFFIX}"


def expand_template(template: str, tokens: Dict[str, str]) -> str:
    """
    Replace {token} placeholders case-insensitively; unknown tokens become ''.

    Example:
        >>> expand_template("{DATE}_{Title}_{x}", {"date": "2024-03-05", "title": "Kauf"})
        '2024-03-05_Kauf_'
    """
    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1).lower()
        name = _TOKEN_ALIASES.get(name, name)
        return tokens.get(name, "") or ""

    return _TOKEN_RE.sub(substitute, template or "")


def _text(meta: Any, attr: str) -> str:
    return (getattr(meta, attr, None) or "").strip()


def build_download_name(meta: Any, source_url: str, settings: Any) -> str:
    """
    Return the file name for a captured download.

    Args:
        meta: PendingDownloadMeta (or anything with the same attributes; None allowed).
        source_url: URL the page tried to open.
        settings: Provides use_custom_names, filename_template and date_format.

    With custom names off, the sanitized URL tail is used. Otherwise the
    template is expanded with title/date/subtitle/doc; date is the resolved
    and formatted date, or the raw date text when it cannot be parsed. An
    expansion with no content falls back to the document title, then to the
    URL tail.
    """
    tail = url_tail(source_url)
    tail_stem = _PDF_TAIL_RE.sub("", tail)

    if not getattr(settings, "use_custom_names", True):
        return ensure_suffix(sanitize_filename(tail), PDF_SUFFIX)

    raw_date = _text(meta, "item_date")
    parts = resolve_date_parts(meta) if meta is not None else None
    formatted = format_date_parts(parts, settings.date_format) if parts else ""

    tokens = {
        "title": _text(meta, "item_title"),
        "date": formatted or _text(meta, "doc_date") or raw_date,
        "subtitle": _text(meta, "item_subtitle"),
        "doc": _text(meta, "doc_title") or tail_stem,
    }

    base = expand_template(settings.filename_template, tokens)
    if _ONLY_SEPARATORS.match(base):
        base = tokens["doc"] or tail_stem
    base = sanitize_filename(_PDF_TAIL_RE.sub("", base))
    return ensure_suffix(base, PDF_SUFFIX)
