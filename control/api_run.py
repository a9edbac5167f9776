"""
Flask API for starting, stopping and watching a run.

A run is main.py executed in a subprocess. It is told where the stop file and
the status file live through TBD_STOP_FILE / TBD_STATUS_FILE; stopping
touches the stop file and the run ends before its next item.
"""

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Blueprint, request

from utils.Logger import Logger

# Project root (parent of control)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_MAIN_PY = _PROJECT_ROOT / "main.py"
_STOP_FILE = _PROJECT_ROOT / ".tbd_stop"
_STATUS_FILE = _PROJECT_ROOT / ".tbd_status.json"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
# Modules that make no sense as a run subprocess
_NOT_RUNNABLE = ("noop", "control")

# Current run (so POST /stop and GET /status can see it)
_current_proc: Optional[subprocess.Popen] = None

run_bp = Blueprint("run", __name__, url_prefix="/api/run")


def _modules() -> Dict[str, Dict[str, Any]]:
    """Return the MODULES registry from the orchestrator."""
    from orchestration.Orchestrator import MODULES
    return dict(MODULES)


def _is_running() -> bool:
    return _current_proc is not None and _current_proc.poll() is None


def _read_status() -> Optional[Dict[str, Any]]:
    """Last status JSON written by the run, or None if there is none (yet)."""
    try:
        with open(_STATUS_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        Logger.debug(f"Status file not readable: {e}")
        return None


def _text_option(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    return str(value).strip()


@run_bp.route("/modules", methods=["GET"])
def list_modules() -> Any:
    """
    Return the modules a run can be started with.

    Returns:
        JSON: { "modules": ["timeline", "timeline_index"] }
    """
    return {"modules": [m for m in _modules() if m not in _NOT_RUNNABLE]}


@run_bp.route("/start", methods=["POST"])
def start_run() -> Any:
    """
    Start a run in a subprocess.

    Request JSON: module (required), start (optional), end (optional),
    log_level (optional).

    Returns:
        JSON { "ok": true, "pid": ... }; 400 on invalid input, 409 while a
        run is active.
    """
    global _current_proc
    data: Dict[str, Any] = (request.get_json(silent=True) or {}) if request.is_json else {}

    module = (data.get("module") or "").strip()
    if not module:
        return {"error": "module is required"}, 400
    modules = _modules()
    if module not in modules:
        return {"error": f"Unknown module {module!r}. Valid: {sorted(modules.keys())}"}, 400
    if module in _NOT_RUNNABLE:
        return {"error": f"Module {module!r} cannot be started as a run"}, 400
    if _is_running():
        return {"error": "A run is already active"}, 409

    argv: List[str] = [sys.executable, str(_MAIN_PY), module]
    start = _text_option(data, "start")
    end = _text_option(data, "end")
    if start is not None:
        argv.extend(["--start", start])
    if end is not None:
        argv.extend(["--end", end])
    log_level = (data.get("log_level") or "").strip().upper()
    if log_level in _LOG_LEVELS:
        argv.extend(["--log-level", log_level])

    # Stop and status files from any previous run must not leak into this one
    for path in (_STOP_FILE, _STATUS_FILE):
        if path.exists():
            path.unlink()
    env = os.environ.copy()
    env["TBD_STOP_FILE"] = str(_STOP_FILE)
    env["TBD_STATUS_FILE"] = str(_STATUS_FILE)
    env["PYTHONUNBUFFERED"] = "1"
    try:
        _current_proc = subprocess.Popen(argv, cwd=str(_PROJECT_ROOT), env=env)
    except OSError as e:
        Logger.error(f"Could not start run: {e}")
        return {"error": f"Could not start run: {e}"}, 500
    Logger.info(f"Run started: {' '.join(argv[2:])} (pid {_current_proc.pid})")
    return {"ok": True, "pid": _current_proc.pid}


@run_bp.route("/stop", methods=["POST"])
def stop_run() -> Any:
    """
    Request the current run to stop.

    Writes the stop file; the run finishes its current item and ends with
    status aborted. With {"force": true} the subprocess is also terminated.
    """
    data: Dict[str, Any] = (request.get_json(silent=True) or {}) if request.is_json else {}
    try:
        _STOP_FILE.touch()
    except OSError as e:
        Logger.warning(f"Could not write stop file {_STOP_FILE}: {e}")
    if data.get("force") and _is_running():
        _current_proc.terminate()
    return {"ok": True, "running": _is_running()}


@run_bp.route("/status", methods=["GET"])
def run_status() -> Any:
    """
    Return whether a run is active and its last published status.

    Returns:
        JSON: { "running": bool, "status": {...} or null }
    """
    return {"running": _is_running(), "status": _read_status()}
