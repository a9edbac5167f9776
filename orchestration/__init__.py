"""
Orchestration for the timeline batch downloader.

Orchestrator resolves the module from MODULES and wires the run; TimelineRun
is the per-run state machine over the timeline.
"""

from orchestration.Orchestrator import Orchestrator

__all__ = ["Orchestrator"]
