"""
SQLite database connection and initialization.
"""
import sqlite3
from pathlib import Path
from typing import Optional, List
from contextlib import contextmanager

from .config import DB_PATH, SCHEMA_FILE


class Database:
    """Database manager for SQLite operations."""

    def __init__(self, db_path: Path = DB_PATH, schema_file: Path = SCHEMA_FILE):
        self.db_path = db_path
        self.schema_file = schema_file
        self.ensure_tables()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections."""
        conn = self.get_connection_raw()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_connection_raw(self):
        """Get a raw connection (for operations that need manual commit)."""
        conn = sqlite3.connect(str(self.db_path), timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def ensure_tables(self):
        """Create all tables if they don't exist."""
        if self.schema_file.exists():
            with open(self.schema_file, "r") as f:
                schema = f.read()

            with self.get_connection() as conn:
                conn.executescript(schema)

    def execute(self, query: str, params: Optional[tuple] = None) -> List[sqlite3.Row]:
        """Execute a SELECT query and return results."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params or ())
            return cursor.fetchall()

    def execute_one(self, query: str, params: Optional[tuple] = None) -> Optional[sqlite3.Row]:
        """Execute a SELECT query and return first result."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_write(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute an INSERT/UPDATE/DELETE query and return the affected row count."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params or ())
            return cursor.rowcount
