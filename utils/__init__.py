"""Utility modules for the timeline batch downloader."""

from .Args import Args
from .Logger import Logger

__all__ = ["Args", "Logger"]
