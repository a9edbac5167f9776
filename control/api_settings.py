"""
Flask API for the stored preferences (filename template, date format,
custom naming, language, last-used bounds).
"""

from typing import Any, Dict

from flask import Blueprint, request

from settings.RunSettings import load_preferences, reset_preferences, save_preferences

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.route("", methods=["GET"])
def get_settings() -> Any:
    """Effective preferences (stored value if valid, else default)."""
    return load_preferences()


@settings_bp.route("", methods=["POST"])
def update_settings() -> Any:
    """
    Store the provided preference keys.

    Nothing is stored when any key is unknown or any value invalid (400).
    """
    data: Dict[str, Any] = request.get_json(silent=True) if request.is_json else None
    if not isinstance(data, dict) or not data:
        return {"error": "JSON object with preference values required"}, 400
    try:
        save_preferences(data)
    except KeyError as e:
        return {"error": f"Unknown preference {e.args[0]!r}"}, 400
    except ValueError as e:
        return {"error": str(e)}, 400
    return load_preferences()


@settings_bp.route("/reset", methods=["POST"])
def reset_settings() -> Any:
    """Restore defaults for scope filename, date or all (default all)."""
    data: Dict[str, Any] = (request.get_json(silent=True) or {}) if request.is_json else {}
    try:
        reset_preferences(str(data.get("scope") or "all"))
    except ValueError as e:
        return {"error": str(e)}, 400
    return load_preferences()
