"""
Generic executor for merge batcher.

This module provides an executor that works with any database connection
that follows the Python DB-API 2.0 specification and the "named" paramstyle,
such as ``sqlite3``.
"""
import logging
from typing import Any, Callable, List, Optional, Tuple

from merge_batcher.exceptions import OpenReaderError
from merge_batcher.executors.base import StatementExecutor
from merge_batcher.statements import Statement
from merge_batcher.utils import split_statements

logger = logging.getLogger(__name__)


class GenericExecutor(StatementExecutor):
    """
    Executor for DB-API compatible connections.

    Example:
        >>> import sqlite3
        >>> from merge_batcher import MergeBatcher, PendingStatement, Parameter
        >>> from merge_batcher.executors.generic import GenericExecutor
        >>>
        >>> conn = sqlite3.connect(":memory:")
        >>> conn.execute("CREATE TABLE users (id INTEGER, name TEXT)")
        >>>
        >>> # sqlite3 runs one command per call
        >>> executor = GenericExecutor(conn, split_statements=True)
        >>> batcher = MergeBatcher(executor, batch_size=50)
        >>> batcher.add_to_batch(PendingStatement(
        ...     "INSERT INTO users (id, name) VALUES (:id, :name)",
        ...     [Parameter("id", 1), Parameter("name", "Alice")],
        ... ))
        >>> batcher.execute_batch()

    Attributes:
        connection: DB-API connection
        split_statements: Run each command of a multi-statement text separately
        auto_commit: Commit after each successful execution
    """

    def __init__(
        self,
        connection: Any,
        create_cursor_fn: Optional[Callable] = None,
        split_statements: bool = False,
        auto_commit: bool = False,
    ):
        """
        Initialize a generic DB-API executor.

        Args:
            connection: A DB-API compatible connection object
            create_cursor_fn: Optional function to create a cursor (defaults to connection.cursor())
            split_statements: Execute the commands of a merged statement one call at a
                time and sum their row counts, for drivers that accept a single command per call
            auto_commit: Whether to commit after each statement
        """
        self.connection = connection
        self.create_cursor_fn = create_cursor_fn or (lambda conn: conn.cursor())
        self.split_statements = split_statements
        self.auto_commit = auto_commit
        self._cursor = None
        self._reader = None

        logger.debug(f"Initialized GenericExecutor with split_statements={split_statements}")

    def _get_cursor(self) -> Any:
        """Get a cursor, creating it if necessary."""
        if self._cursor is None:
            self._cursor = self.create_cursor_fn(self.connection)
        return self._cursor

    def check_open_readers(self) -> None:
        if self._reader is not None:
            raise OpenReaderError("A result set is still open; call close_reader() before executing statements")

    def execute_non_query(self, statement: Statement) -> int:
        """
        Execute a statement and return the number of rows it affected.

        Args:
            statement: The statement to execute

        Returns:
            Number of rows affected (commands reporting -1 count as 0 when split)
        """
        cursor = self._get_cursor()
        params = statement.bind()

        try:
            if self.split_statements:
                rows_affected = 0
                for sql in split_statements(statement.sql):
                    cursor.execute(sql, params)
                    rows_affected += max(cursor.rowcount, 0)
            else:
                cursor.execute(statement.sql, params)
                rows_affected = cursor.rowcount

            if self.auto_commit and hasattr(self.connection, 'commit'):
                self.connection.commit()

            return rows_affected
        except Exception as e:
            logger.error(f"Error executing SQL: {str(e)}", exc_info=True)
            raise

    def execute_reader(self, statement: Statement) -> Any:
        """
        Execute a query and return the cursor for reading its rows.

        The reader stays open until ``close_reader`` is called; no statement
        can be executed in the meantime.
        """
        self.check_open_readers()
        cursor = self.create_cursor_fn(self.connection)
        cursor.execute(statement.sql, statement.bind())
        self._reader = cursor
        return cursor

    def close_reader(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None

    def execute_query(self, statement: Statement) -> List[Tuple]:
        """Execute a query and fetch all of its rows."""
        cursor = self.execute_reader(statement)
        try:
            return cursor.fetchall()
        finally:
            self.close_reader()

    def close(self) -> None:
        """Close the cursor."""
        self.close_reader()
        if self._cursor:
            self._cursor.close()
            self._cursor = None

        logger.debug("Closed DB cursor")

    def begin_transaction(self) -> None:
        """Begin a database transaction."""
        if hasattr(self.connection, 'begin'):
            self.connection.begin()

    def commit_transaction(self) -> None:
        """Commit the current database transaction."""
        if hasattr(self.connection, 'commit'):
            self.connection.commit()

    def rollback_transaction(self) -> None:
        """Rollback the current database transaction."""
        if hasattr(self.connection, 'rollback'):
            self.connection.rollback()
