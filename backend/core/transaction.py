"""
Database transaction management with rollback support.
"""
import logging
from typing import Optional
from contextlib import contextmanager

from core.database import Database

logger = logging.getLogger(__name__)


class TransactionManager:
    """Runs several statements against one connection as a single unit."""

    def __init__(self, database: Database):
        self.database = database

    @contextmanager
    def transaction(self, isolation_level: Optional[str] = None):
        """
        Context manager for database transactions.

        Usage:
            with transaction_manager.transaction("IMMEDIATE") as conn:
                conn.execute(...)
                conn.execute(...)
                # If exception raised, all writes rolled back

        Args:
            isolation_level: Optional SQLite transaction mode
                - None: Default (DEFERRED)
                - "IMMEDIATE": Take the write lock immediately
                - "EXCLUSIVE": Exclusive lock

        Yields:
            Connection object for manual operations
        """
        conn = self.database.get_connection_raw()
        # Manual transaction control; sqlite3 must not open its own
        conn.isolation_level = None

        try:
            conn.execute(f"BEGIN {isolation_level}" if isolation_level else "BEGIN")

            yield conn

            conn.execute("COMMIT")

        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.warning("Transaction rolled back", exc_info=True)
            raise

        finally:
            conn.close()
