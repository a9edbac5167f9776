"""Storage package for the timeline batch downloader."""

from .Storage import Storage
from .StorageSQLLite import StorageSQLLite

__all__ = ["Storage", "StorageSQLLite"]
