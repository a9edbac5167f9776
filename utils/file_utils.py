"""
Utilities for file names and download destinations.

Provides filename sanitization, the .pdf suffix rule, human-readable sizes
and collision-free destination paths.
"""

import re
import unicodedata
from pathlib import Path
from typing import Optional

DEFAULT_FILENAME = "document"

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f-\x9f]')
_UNDERSCORE_OR_SPACE_RUN = re.compile(r"[_\s]+")


def sanitize_filename(name: Optional[str], max_length: int = 180) -> str:
    """
    Sanitize a filename to be valid on Windows, macOS and Linux.

    Illegal and control characters become '_', runs of whitespace and
    underscores collapse into a single '_', and leading/trailing
    underscores and dots are removed. Idempotent.

    Args:
        name: Original filename (may be empty or None)
        max_length: Maximum length for the sanitized name

    Returns:
        Sanitized filename, "document" when nothing usable is left

    Example:
        >>> sanitize_filename("Kauf: Apple  Inc. <2024>")
        'Kauf_Apple_Inc._2024'
        >>> sanitize_filename("test–file—name")
        'test-file-name'
    """
    if not name:
        return DEFAULT_FILENAME

    sanitized = unicodedata.normalize("NFC", str(name))

    replacements = {
        '\u2013': '-',  # en dash
        '\u2014': '-',  # em dash
        '\u2018': "'",  # left single quotation mark
        '\u2019': "'",  # right single quotation mark
        '\u2026': '...',  # ellipsis
        '\u00A0': ' ',  # non-breaking space
    }
    for old_char, new_char in replacements.items():
        sanitized = sanitized.replace(old_char, new_char)

    sanitized = _ILLEGAL_CHARS.sub("_", sanitized)
    sanitized = _UNDERSCORE_OR_SPACE_RUN.sub("_", sanitized)
    sanitized = sanitized.strip("._")

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length].strip("._")

    return sanitized or DEFAULT_FILENAME


def ensure_suffix(name: str, suffix: str = ".pdf") -> str:
    """
    Append suffix unless name already ends with it (case-insensitive).

    Example:
        >>> ensure_suffix("Report.PDF")
        'Report.PDF'
        >>> ensure_suffix("Report")
        'Report.pdf'
    """
    if name.lower().endswith(suffix.lower()):
        return name
    return f"{name}{suffix}"


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count in human-readable form (KB, MB, GB).

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size_bytes < 0:
        size_bytes = 0
    for unit, suffix in [(1024**3, "GB"), (1024**2, "MB"), (1024, "KB")]:
        if size_bytes >= unit:
            return f"{size_bytes / unit:.1f} {suffix}"
    return f"{size_bytes} B"


def unique_destination(folder: Path, filename: str) -> Path:
    """
    Return folder/filename, or folder/stem_1.ext, stem_2.ext, ... if taken.

    Creates folder if it does not exist.
    """
    folder.mkdir(parents=True, exist_ok=True)
    candidate = folder / filename
    if not candidate.exists():
        return candidate
    stem, suffix = candidate.stem, candidate.suffix
    counter = 1
    while True:
        candidate = folder / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
