"""
Process-wide preference store.

Storage wraps one backend chosen by name (the --storage-implementation
argument) and exposes its preference calls on the class itself, the same way
Args and Logger are used:

    Storage.initialize("StorageSQLLite", db_path=Path("batch_downloader.db"))
    Storage.set_preference("lang", "de")
    Storage.get_preference("lang")  # "de"
    Storage.all_preferences()        # {"lang": "de"}
"""

from pathlib import Path
from typing import Dict, FrozenSet, Optional, Type

from storage.StorageProtocol import StorageProtocol
from storage.StorageSQLLite import StorageSQLLite

BACKENDS: Dict[str, Type[StorageProtocol]] = {
    "StorageSQLLite": StorageSQLLite,
}

PREFERENCE_CALLS: FrozenSet[str] = frozenset(
    {"get_preference", "set_preference", "delete_preference", "all_preferences", "get_db_path"}
)


class StorageMeta(type):
    """Forwards the preference calls to the active backend."""

    def __getattr__(cls, name: str):
        if name not in PREFERENCE_CALLS:
            raise AttributeError(f"Storage has no preference call {name!r}")
        if cls._backend is None:
            raise RuntimeError("Storage has not been initialized. Call Storage.initialize() first.")
        return getattr(cls._backend, name)


class Storage(metaclass=StorageMeta):
    """Singleton preference store; initialize() once per process, reset() in tests."""

    _backend: Optional[StorageProtocol] = None

    @classmethod
    def initialize(cls, implementation: str, db_path: Optional[Path] = None) -> StorageProtocol:
        """
        Open the named backend, or return the one already open.

        Raises:
            ValueError: implementation is not in BACKENDS.
        """
        if cls._backend is not None:
            return cls._backend
        backend_class = BACKENDS.get(implementation)
        if backend_class is None:
            raise ValueError(
                f"Unknown storage implementation: {implementation}. "
                f"Available implementations: {', '.join(sorted(BACKENDS))}"
            )
        backend = backend_class()
        backend.initialize(db_path=db_path)
        cls._backend = backend
        return backend

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._backend is not None

    @classmethod
    def reset(cls) -> None:
        """Close the backend; initialize() must run again before the next call."""
        if cls._backend is not None:
            cls._backend.close()
        cls._backend = None
