"""
Preferences and the immutable per-run settings snapshot.

Preferences live in Storage as strings and are read one key at a time; a
missing or invalid value falls back to its default without affecting the
other keys. RunSettings.snapshot() combines command line/config overrides
(Args), stored preferences and defaults once at run start; the run never
re-reads them afterwards.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from storage import Storage
from utils.Args import Args
from utils.date_utils import has_format_token
from utils.Logger import Logger

PREF_FILENAME_TEMPLATE = "filename_template"
PREF_DATE_FORMAT = "date_format"
PREF_USE_CUSTOM_NAMES = "use_custom_names"
PREF_LANG = "lang"
PREF_LAST_START = "last_start"
PREF_LAST_END = "last_end"

DEFAULT_FILENAME_TEMPLATE = "{date}_{title}_{subtitle}_{doc}"
DEFAULT_DATE_FORMAT = "YYYY-MM-DD_hhmm"
SUPPORTED_LANGS = ("de", "en")

_TRUE_VALUES = ("true", "1")
_FALSE_VALUES = ("false", "0")


def default_lang() -> str:
    """German when the environment locale is German, English otherwise."""
    env = os.environ.get("LANG", "") or os.environ.get("LANGUAGE", "")
    return "de" if env.lower().startswith("de") else "en"


def _defaults() -> Dict[str, str]:
    return {
        PREF_FILENAME_TEMPLATE: DEFAULT_FILENAME_TEMPLATE,
        PREF_DATE_FORMAT: DEFAULT_DATE_FORMAT,
        PREF_USE_CUSTOM_NAMES: "true",
        PREF_LANG: default_lang(),
        PREF_LAST_START: "",
        PREF_LAST_END: "",
    }


def _validate_template(value: str) -> str:
    if not value.strip():
        raise ValueError("filename template must not be empty")
    return value.strip()


def _validate_date_format(value: str) -> str:
    if not has_format_token(value):
        raise ValueError("date format needs at least one of YYYY, YY, MM, DD, hh, mm")
    return value.strip()


def _validate_bool(value: str) -> str:
    text = value.strip().lower()
    if text in _TRUE_VALUES:
        return "true"
    if text in _FALSE_VALUES:
        return "false"
    raise ValueError(f"expected true/false, got {value!r}")


def _validate_lang(value: str) -> str:
    text = value.strip().lower()
    if text not in SUPPORTED_LANGS:
        raise ValueError(f"language must be one of {', '.join(SUPPORTED_LANGS)}")
    return text


def _validate_bound(value: str) -> str:
    return value.strip()


_VALIDATORS: Dict[str, Callable[[str], str]] = {
    PREF_FILENAME_TEMPLATE: _validate_template,
    PREF_DATE_FORMAT: _validate_date_format,
    PREF_USE_CUSTOM_NAMES: _validate_bool,
    PREF_LANG: _validate_lang,
    PREF_LAST_START: _validate_bound,
    PREF_LAST_END: _validate_bound,
}

RESET_SCOPES: Dict[str, tuple] = {
    "filename": (PREF_FILENAME_TEMPLATE,),
    "date": (PREF_DATE_FORMAT,),
    "all": tuple(_VALIDATORS),
}


def validate_preference(key: str, value: Any) -> str:
    """
    Normalize a preference value for storage.

    Booleans are accepted for use_custom_names and stored as "true"/"false".

    Raises:
        KeyError: Unknown preference key.
        ValueError: Value is not acceptable for key.
    """
    if key not in _VALIDATORS:
        raise KeyError(key)
    if isinstance(value, bool):
        value = "true" if value else "false"
    elif isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return _VALIDATORS[key](value)


def load_preferences() -> Dict[str, str]:
    """Return every preference, each from Storage if valid, else its default."""
    defaults = _defaults()
    out: Dict[str, str] = {}
    for key, default in defaults.items():
        raw = Storage.get_preference(key)
        if raw is None:
            out[key] = default
            continue
        try:
            out[key] = validate_preference(key, raw)
        except ValueError as e:
            Logger.warning(f"Ignoring stored preference {key}={raw!r}: {e}")
            out[key] = default
    return out


def save_preferences(values: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate and store the given preferences. Nothing is written if any value is invalid.

    Returns:
        The normalized values that were stored.
    """
    normalized = {key: validate_preference(key, value) for key, value in values.items()}
    for key, value in normalized.items():
        Storage.set_preference(key, value)
    return normalized


def reset_preferences(scope: str = "all") -> None:
    """Drop stored preferences for scope ('filename', 'date' or 'all') so defaults apply."""
    if scope not in RESET_SCOPES:
        raise ValueError(f"Unknown reset scope {scope!r}. Valid: {', '.join(RESET_SCOPES)}")
    for key in RESET_SCOPES[scope]:
        Storage.delete_preference(key)


@dataclass(frozen=True)
class Timings:
    """Fixed waits in milliseconds for one pacing preset."""

    wait_after_open_item: int
    wait_between_doc_clicks: int
    wait_after_close_overlay: int
    after_each_item_pace: int
    auto_scroll_delay: int
    focus_delay: int
    modal_poll_interval: int
    close_check_window: int
    backdrop_click_gap: int
    tab_fix_timeout: int = 800
    overlay_open_ceiling: int = 5000

    @classmethod
    def slow(cls) -> "Timings":
        return cls(900, 900, 900, 120, 500, 80, 50, 500, 80)

    @classmethod
    def fast(cls) -> "Timings":
        return cls(300, 220, 300, 60, 300, 40, 40, 300, 60)


@dataclass(frozen=True)
class RunSettings:
    """Everything a run needs, fixed at run start."""

    start_text: str = ""
    end_text: str = ""
    filename_template: str = DEFAULT_FILENAME_TEMPLATE
    date_format: str = DEFAULT_DATE_FORMAT
    use_custom_names: bool = True
    lang: str = "en"
    auto_load_more: bool = True
    max_load_more: int = 500
    lock_tab: bool = True
    timings: Timings = field(default_factory=Timings.slow)
    download_dir: Path = Path("downloads")
    download_timeout_s: float = 60.0
    capture_timeout_s: float = 10.0
    popup_grace_s: float = 1.5
    stop_file: Optional[Path] = None
    status_file: Optional[Path] = None

    @classmethod
    def snapshot(cls) -> "RunSettings":
        """
        Build the run snapshot from Args overrides, stored preferences and defaults.

        Args.start/Args.end of None mean "use the last-used bound".
        """
        prefs = load_preferences()

        def override(arg_name: str, pref_key: str) -> str:
            value = getattr(Args, arg_name, None)
            if value is None:
                return prefs[pref_key]
            try:
                return validate_preference(pref_key, value)
            except ValueError as e:
                Logger.warning(f"Ignoring --{arg_name.replace('_', '-')} {value!r}: {e}")
                return prefs[pref_key]

        stop_file = getattr(Args, "stop_file", None)
        status_file = getattr(Args, "status_file", None)
        return cls(
            start_text=override("start", PREF_LAST_START),
            end_text=override("end", PREF_LAST_END),
            filename_template=override("filename_template", PREF_FILENAME_TEMPLATE),
            date_format=override("date_format", PREF_DATE_FORMAT),
            use_custom_names=override("use_custom_names", PREF_USE_CUSTOM_NAMES) == "true",
            lang=override("lang", PREF_LANG),
            auto_load_more=bool(Args.auto_load_more),
            max_load_more=int(Args.max_load_more),
            lock_tab=bool(Args.lock_tab),
            timings=Timings.slow() if Args.slow_mode else Timings.fast(),
            download_dir=Path(Args.download_dir),
            download_timeout_s=float(Args.download_timeout_s),
            capture_timeout_s=float(Args.capture_timeout_s),
            popup_grace_s=float(Args.popup_grace_s),
            stop_file=Path(stop_file) if stop_file else None,
            status_file=Path(status_file) if status_file else None,
        )

    def remember_last_used(self, include_bounds: bool = True) -> None:
        """Store the naming settings (and date bounds) of this run as the new last-used values."""
        values: Dict[str, Any] = {
            PREF_FILENAME_TEMPLATE: self.filename_template,
            PREF_DATE_FORMAT: self.date_format,
            PREF_USE_CUSTOM_NAMES: self.use_custom_names,
        }
        if include_bounds:
            values[PREF_LAST_START] = self.start_text
            values[PREF_LAST_END] = self.end_text
        save_preferences(values)
