"""
SQLite implementation of the Storage protocol.

Keeps preferences in a single key/value table. WAL mode lets the control
API and a running download process share the database file.

This class should be instantiated via Storage.initialize() factory method.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from utils.Errors import record_crash
from utils.Logger import Logger


class StorageSQLLite:
    """
    SQLite implementation of the Storage protocol.

    Type checkers verify the StorageProtocol methods through structural typing.
    """

    _connection: Optional[sqlite3.Connection] = None
    _db_path: Optional[Path] = None
    _initialized: bool = False

    _schema_sql = """
    CREATE TABLE IF NOT EXISTS preferences (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT (datetime('now'))
    );
    """

    def _ensure_initialized(self) -> None:
        """
        Ensure storage is initialized and connection is available.

        Raises:
            RuntimeError: If storage is not initialized or connection is not available
        """
        if not self._initialized:
            record_crash("Storage has not been initialized. Call initialize() first.")

        if self._connection is None:
            record_crash("Database connection is not available.")

    def _execute_query(
        self,
        query: str,
        parameters: Optional[Tuple[Any, ...]] = None,
        operation_name: str = "operation",
        commit: bool = True
    ) -> sqlite3.Cursor:
        """
        Execute a SQL query, committing unless commit is False.

        Raises:
            RuntimeError: If storage is not initialized
            sqlite3.Error: If query execution fails
        """
        self._ensure_initialized()

        try:
            if parameters:
                cursor = self._connection.execute(query, parameters)
            else:
                cursor = self._connection.execute(query)

            if commit:
                self._connection.commit()

            return cursor

        except sqlite3.Error as e:
            Logger.error(f"Failed to {operation_name}: {e}")
            raise

    def initialize(self, db_path: Optional[Path] = None) -> None:
        """
        Open the database and create the preferences table if needed.

        Args:
            db_path: Path to SQLite database file. If None, uses
                'batch_downloader.db' in the current working directory.

        Raises:
            RuntimeError: If the database cannot be opened
        """
        if self._initialized:
            return

        if db_path is None:
            db_path = Path.cwd() / "batch_downloader.db"

        self._db_path = Path(db_path)

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = sqlite3.connect(
                str(self._db_path),
                check_same_thread=False,  # Control API serves requests from worker threads
                timeout=30.0
            )
            self._connection.execute("PRAGMA journal_mode=WAL")
            self._connection.execute("PRAGMA busy_timeout=30000")
            self._connection.execute("PRAGMA synchronous=NORMAL")

            self._connection.executescript(self._schema_sql)
            self._connection.commit()

            self._initialized = True
            Logger.debug(f"Storage initialized: {self._db_path}")

        except sqlite3.Error as e:
            self._connection = None
            self._initialized = False
            record_crash(f"Failed to initialize database at {self._db_path}: {e}")

    def get_preference(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the stored value for key, or default."""
        cursor = self._execute_query(
            "SELECT value FROM preferences WHERE key = ?",
            (key,),
            operation_name=f"read preference '{key}'",
            commit=False,
        )
        row = cursor.fetchone()
        return row[0] if row is not None else default

    def set_preference(self, key: str, value: str) -> None:
        """
        Store value under key.

        Raises:
            ValueError: If key is empty or value is not a string
        """
        if not key:
            raise ValueError("Preference key must not be empty")
        if not isinstance(value, str):
            raise ValueError(f"Preference '{key}' must be a string, got {type(value).__name__}")
        self._execute_query(
            "INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, datetime('now')) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
            (key, value),
            operation_name=f"write preference '{key}'",
        )

    def delete_preference(self, key: str) -> None:
        """Remove key if present."""
        self._execute_query(
            "DELETE FROM preferences WHERE key = ?",
            (key,),
            operation_name=f"delete preference '{key}'",
        )

    def all_preferences(self) -> Dict[str, str]:
        """Return all stored preferences as a dict."""
        cursor = self._execute_query(
            "SELECT key, value FROM preferences ORDER BY key",
            operation_name="list preferences",
            commit=False,
        )
        return {key: value for key, value in cursor.fetchall()}

    def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            try:
                self._connection.close()
                Logger.debug("Database connection closed")
            except sqlite3.Error as e:
                Logger.warning(f"Error closing database connection: {e}")
            finally:
                self._connection = None
                self._initialized = False

    def get_db_path(self) -> Path:
        """
        Get the path to the database file.

        Raises:
            RuntimeError: If Storage is not initialized
        """
        self._ensure_initialized()

        if self._db_path is None:
            raise RuntimeError("Database path is not set.")

        return self._db_path
