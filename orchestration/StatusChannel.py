"""
User-visible status line of a run.

Every state transition sets one localized status string with a severity
color. The line is logged and, when a status file is configured (the control
API sets TBD_STATUS_FILE), written there as JSON so the run can be watched
from another process.
"""

import json
import os
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from orchestration.RunState import RunState, Severity
from utils.Logger import Logger

MESSAGES: Dict[str, Dict[str, str]] = {
    "de": {
        "fieldStart": "Von (Datum)",
        "fieldEnd": "Bis (Datum)",
        "boundStart": "Anfang",
        "boundEnd": "Ende",
        "ready": "Bereit.",
        "statusSearch": "Suche Listeneinträge …",
        "statusLoadMore": "Lade weitere Einträge …",
        "statusNoEntries": "Keine Einträge gefunden.",
        "statusFilter": "Filter: {from} bis {to} (lade…)",
        "statusStopRequested": "Stop angefordert …",
        "statusInvalidDate": 'Ungültiges Datum bei "{label}": {value} (z.B. 01.01.2025 oder Heute/Anfang/Ende)',
        "statusInvalidRange": "Ungültiger Bereich ({start} > {end}).",
        "statusNoRange": "Keine Einträge im Datumsbereich.",
        "statusRunDone": "Durchlauf abgeschlossen ✅",
        "statusAborted": "Abgebrochen.",
        "statusOpenItem": "({i}/{end}) Öffne Eintrag …",
        "statusNoOverlay": "({i}/{end}) Kein Overlay – skip",
        "statusOpenDocs": "({i}/{end}) Öffne Dokumente …",
        "statusCloseOverlay": "({i}/{end}) Schließe Overlay …",
        "statusDoneItem": "({i}/{end}) Fertig – {count} Dokument(e).",
        "statusSessionLost": "Session verloren (bei Eintrag {i}/{end}). Bitte neu einloggen und erneut starten.",
        "statusNotLoggedIn": "Timeline nicht erreicht. Bitte einloggen und erneut starten.",
    },
    "en": {
        "fieldStart": "From (date)",
        "fieldEnd": "To (date)",
        "boundStart": "Start",
        "boundEnd": "End",
        "ready": "Ready.",
        "statusSearch": "Searching list entries …",
        "statusLoadMore": "Loading more entries …",
        "statusNoEntries": "No entries found.",
        "statusFilter": "Filter: {from} to {to} (loading…)",
        "statusStopRequested": "Stop requested …",
        "statusInvalidDate": 'Invalid date in "{label}": {value} (e.g. 01/01/2025 or Today/Start/End)',
        "statusInvalidRange": "Invalid range ({start} > {end}).",
        "statusNoRange": "No entries in date range.",
        "statusRunDone": "Run finished ✅",
        "statusAborted": "Aborted.",
        "statusOpenItem": "({i}/{end}) Opening entry …",
        "statusNoOverlay": "({i}/{end}) No overlay – skip",
        "statusOpenDocs": "({i}/{end}) Opening documents …",
        "statusCloseOverlay": "({i}/{end}) Closing overlay …",
        "statusDoneItem": "({i}/{end}) Done – {count} document(s).",
        "statusSessionLost": "Session lost (at entry {i}/{end}). Please log in again and restart.",
        "statusNotLoggedIn": "Timeline not reached. Please log in and start again.",
    },
}

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def format_message(template: str, **ctx: Any) -> str:
    """Fill {name} placeholders; unknown names stay as they are."""
    return _PLACEHOLDER_RE.sub(lambda m: str(ctx[m.group(1)]) if m.group(1) in ctx else m.group(0), template)


class StatusChannel:
    """Current status string + severity, logged and mirrored to an optional JSON file."""

    def __init__(self, lang: str = "en", status_file: Optional[Path] = None, state: Optional[RunState] = None) -> None:
        self.lang = lang if lang in MESSAGES else "en"
        self._status_file = Path(status_file) if status_file else None
        self._state = state
        self.key = "ready"
        self.message = self.translate("ready")
        self.severity = Severity.INFO

    def translate(self, key: str, **ctx: Any) -> str:
        template = MESSAGES[self.lang].get(key) or MESSAGES["en"].get(key) or key
        return format_message(template, **ctx)

    def field_label(self, field: str) -> str:
        """Localized name of the "start"/"end" input field."""
        return self.translate("fieldStart" if field == "start" else "fieldEnd")

    def bound_label(self, bound: Optional[date], lower: bool) -> str:
        """Display text of a resolved bound; open bounds show Start/End."""
        if bound is not None:
            return bound.isoformat()
        return self.translate("boundStart" if lower else "boundEnd")

    def set(self, key: str, severity: Severity = Severity.INFO, **ctx: Any) -> str:
        """Publish a new status and return its text."""
        self.key = key
        self.message = self.translate(key, **ctx)
        self.severity = severity
        Logger.log(severity.log_level, self.message)
        self._write()
        return self.message

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "key": self.key,
            "message": self.message,
            "severity": self.severity.name.lower(),
            "color": self.severity.color,
            "updated_at": datetime.now().isoformat(timespec="seconds"),
        }
        if self._state is not None:
            data.update(
                running=self._state.running,
                stop_requested=self._state.stop_requested,
                current_index=self._state.current_index,
            )
        return data

    def _write(self) -> None:
        if self._status_file is None:
            return
        tmp = self._status_file.with_name(self._status_file.name + ".tmp")
        try:
            self._status_file.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self.as_dict(), f, ensure_ascii=False)
            os.replace(tmp, self._status_file)
        except OSError as e:
            Logger.warning(f"Could not write status file {self._status_file}: {e}")
