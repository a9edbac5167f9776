"""Run settings: preferences, defaults and the per-run snapshot."""

from settings.RunSettings import RunSettings, Timings

__all__ = ["RunSettings", "Timings"]
