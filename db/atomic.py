"""Transaction coordinator for atomic writes and snapshot reads.

Every multi-row mutation of the category forest goes through
``TransactionCoordinator.run_atomic`` so that its checks and writes commit or
roll back as one unit. Read operations use ``read`` to see a single snapshot
across all of their statements.
"""

import sqlite3
import time
from contextlib import contextmanager
from typing import Callable, Optional, TypeVar

from errors import BackendError, OperationTimeout
from logger import get_logger

logger = get_logger()

T = TypeVar("T")

# SQLite VM instructions between deadline checks
_PROGRESS_STEPS = 1000


class TransactionCoordinator:
    """Runs store operations inside database transactions.

    Args:
        db_manager: Database manager providing per-operation connections.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def run_atomic(
        self,
        operation: Callable[[sqlite3.Connection], T],
        timeout: Optional[float] = None,
    ) -> T:
        """Run ``operation(conn)`` inside one write transaction.

        The write lock is taken before ``operation`` reads anything, so a
        check followed by an update cannot interleave with another writer.
        Any exception rolls back every change made by ``operation``. Nothing
        is retried.

        Args:
            operation: Callable receiving the open connection.
            timeout: Optional deadline in seconds for the whole call,
                including the wait for the write lock.

        Returns:
            Whatever ``operation`` returns.

        Raises:
            OperationTimeout: If the deadline passed before commit.
            BackendError: If the database failed.
        """
        with self._transaction("BEGIN IMMEDIATE", timeout) as conn:
            return operation(conn)

    @contextmanager
    def read(self, timeout: Optional[float] = None):
        """Yield a connection inside a read transaction (one snapshot).

        Raises:
            OperationTimeout: If the deadline passed.
            BackendError: If the database failed.
        """
        with self._transaction("BEGIN", timeout) as conn:
            yield conn

    @contextmanager
    def _transaction(self, begin: str, timeout: Optional[float]):
        deadline = time.monotonic() + timeout if timeout is not None else None
        try:
            with self.db_manager.connect() as conn:
                if deadline is not None:
                    self._arm_deadline(conn, deadline, timeout)
                try:
                    conn.execute(begin)
                    yield conn
                    conn.commit()
                except BaseException:
                    conn.set_progress_handler(None, 0)
                    if conn.in_transaction:
                        conn.rollback()
                        logger.debug("Transaction rolled back")
                    raise
                finally:
                    conn.set_progress_handler(None, 0)
                    if deadline is not None:
                        conn.execute(
                            f"PRAGMA busy_timeout = {int(self.db_manager.timeout * 1000)}"
                        )
        except sqlite3.Error as e:
            if deadline is not None and _is_deadline_error(e, deadline):
                raise OperationTimeout(
                    f"Operation exceeded its {timeout}s deadline", cause=e
                ) from e
            raise BackendError(f"Database error: {e}", cause=e) from e
        except OSError as e:
            # The database file or its directory cannot be created or opened
            raise BackendError(f"Database unavailable: {e}", cause=e) from e

    @staticmethod
    def _arm_deadline(conn, deadline: float, timeout: float) -> None:
        # Bounds both the wait for locks and statement execution
        conn.execute(f"PRAGMA busy_timeout = {max(int(timeout * 1000), 0)}")
        conn.set_progress_handler(
            lambda: 1 if time.monotonic() >= deadline else 0, _PROGRESS_STEPS
        )


def _is_deadline_error(error: sqlite3.Error, deadline: float) -> bool:
    if time.monotonic() >= deadline:
        return True
    return isinstance(error, sqlite3.OperationalError) and str(error) in (
        "interrupted",
        "database is locked",
    )
