"""
Base executor interface for merge batcher.

An executor is the only part of the system that talks to a database. The
batcher depends on nothing but this interface.
"""
import logging
from abc import ABC, abstractmethod

from merge_batcher.statements import Statement

logger = logging.getLogger(__name__)


class StatementExecutor(ABC):
    """
    Abstract base class for statement executors.

    Subclasses implement ``execute_non_query``; the remaining hooks have
    working defaults that subclasses may override.
    """

    def log_statement(self, statement: Statement) -> None:
        """
        Record a statement about to be executed.

        Args:
            statement: The statement to be executed
        """
        logger.debug(f"Executing SQL ({len(statement.parameters)} parameters): {statement.sql}")

    def check_open_readers(self) -> None:
        """
        Make sure no result set is still being read on the connection.

        Default implementation does nothing, override as needed.
        """
        pass

    def prepare(self, statement: Statement) -> None:
        """
        Prepare a statement before execution, e.g. adapt its placeholder syntax.

        Default implementation does nothing, override as needed.
        """
        pass

    @abstractmethod
    def execute_non_query(self, statement: Statement) -> int:
        """
        Execute a statement that returns no rows.

        Args:
            statement: The statement to execute

        Returns:
            Number of rows affected
        """
        pass

    def close(self) -> None:
        """
        Close any open database resources.

        Default implementation does nothing, override as needed.
        """
        pass

    def begin_transaction(self) -> None:
        """
        Begin a database transaction.

        Default implementation does nothing, override as needed.
        """
        pass

    def commit_transaction(self) -> None:
        """
        Commit the current database transaction.

        Default implementation does nothing, override as needed.
        """
        pass

    def rollback_transaction(self) -> None:
        """
        Rollback the current database transaction.

        Default implementation does nothing, override as needed.
        """
        pass
