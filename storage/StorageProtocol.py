"""
Storage protocol interface for the timeline batch downloader.

Storage keeps user preferences: named string values (filename template,
date format, custom-naming flag, language, last-used range bounds).
"""

from pathlib import Path
from typing import Dict, Optional, Protocol


class StorageProtocol(Protocol):
    """
    Protocol defining the preferences storage API.

    Values are always strings; callers parse and validate them.
    """

    def initialize(self, db_path: Optional[Path] = None) -> None:
        """
        Initialize the storage backend.

        Args:
            db_path: Optional path to storage file/database.
        """
        ...

    def get_preference(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Return the stored value for key, or default if it was never set.

        Args:
            key: Preference name
            default: Value returned when key is absent
        """
        ...

    def set_preference(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            ValueError: If key is empty or value is not a string
        """
        ...

    def delete_preference(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""
        ...

    def all_preferences(self) -> Dict[str, str]:
        """Return every stored preference."""
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...

    def get_db_path(self) -> Path:
        """Return the database file path."""
        ...
