"""
PostgreSQL executor for merge batcher.

This module provides an executor for PostgreSQL built on psycopg2. By default
the commands of a merged statement are executed one after another and their
row counts summed. With ``split_statements=False`` the whole text goes out in
a single ``cursor.execute`` call (psycopg2 interpolates parameters client
side), but only the last command's row count is reported.
"""
import logging
import re
from typing import Any, Dict, Iterable, Optional

import psycopg2
from psycopg2.extensions import (
    ISOLATION_LEVEL_READ_COMMITTED,
    ISOLATION_LEVEL_REPEATABLE_READ,
    ISOLATION_LEVEL_SERIALIZABLE,
)

from merge_batcher.executors.base import StatementExecutor
from merge_batcher.statements import Statement
from merge_batcher.utils import split_statements

logger = logging.getLogger(__name__)

ISOLATION_LEVELS = {
    "read_committed": ISOLATION_LEVEL_READ_COMMITTED,
    "repeatable_read": ISOLATION_LEVEL_REPEATABLE_READ,
    "serializable": ISOLATION_LEVEL_SERIALIZABLE,
}

_PYFORMAT_TOKENS = re.compile(r"'(?:[^']|'')*'|(?<![\w:]):([A-Za-z_]\w*)|%")


def to_pyformat(sql: str, names: Iterable[str]) -> str:
    """
    Convert ``:name`` placeholders to psycopg2's ``%(name)s`` syntax.

    Literal ``%`` characters, including those inside string literals, are
    doubled since psycopg2 treats the whole text as a format string.

    Args:
        sql: SQL text using the named paramstyle
        names: Names of the bound parameters; other ``:tokens`` are left alone

    Returns:
        SQL text using the pyformat paramstyle
    """
    names = set(names)

    def substitute(match: "re.Match") -> str:
        token = match.group(0)
        name = match.group(1)
        if name is not None:
            return f"%({name})s" if name in names else token
        return token.replace("%", "%%")

    return _PYFORMAT_TOKENS.sub(substitute, sql)


class PostgreSQLExecutor(StatementExecutor):
    """
    Executor for PostgreSQL connections.

    psycopg2 reports the row count of the last command only when several
    commands are sent in one call, so a merged statement holding more than
    one command fails batch verification unless it is split. Pass
    ``split_statements=False`` only when every merged statement is a single
    command, such as one multi-row insert.

    Attributes:
        connection: psycopg2 connection
        cursor: Cursor used for execution
        split_statements: Run each command of a merged statement separately
    """

    def __init__(
        self,
        connection_params: Optional[Dict[str, Any]] = None,
        connection: Optional[Any] = None,
        isolation_level: str = "read_committed",
        split_statements: bool = True,
        application_name: Optional[str] = "merge_batcher",
    ):
        """
        Initialize the PostgreSQL executor.

        Args:
            connection_params: Dictionary of PostgreSQL connection parameters
            connection: Existing psycopg2 connection to use (optional)
            isolation_level: Transaction isolation level
                (read_committed, repeatable_read, serializable)
            split_statements: Execute the commands of a merged statement one at a time
                and sum their row counts (default); False sends the text in one call
            application_name: Application name to set in PostgreSQL (for monitoring)

        Raises:
            ValueError: If both connection and connection_params are None, or
                the isolation level is unknown
        """
        if isolation_level not in ISOLATION_LEVELS:
            raise ValueError(
                f"Invalid isolation level: {isolation_level}. "
                f"Valid values are: {', '.join(ISOLATION_LEVELS.keys())}"
            )
        if connection is None and connection_params is None:
            raise ValueError("Either connection or connection_params must be provided")

        self.isolation_level = ISOLATION_LEVELS[isolation_level]
        self.split_statements = split_statements

        if connection is None:
            conn_params = dict(connection_params)
            if application_name and "application_name" not in conn_params:
                conn_params["application_name"] = application_name
            self.connection = psycopg2.connect(**conn_params)
            self.connection.set_isolation_level(self.isolation_level)
            self.connection.autocommit = False
        else:
            self.connection = connection

        self.cursor = self.connection.cursor()
        self._prepared: Optional[tuple] = None

    def check_open_readers(self) -> None:
        # Named (server side) cursors are the only readers that outlive a call
        if getattr(self.cursor, "name", None):
            logger.warning(f"Executing on server-side cursor {self.cursor.name}")

    def prepare(self, statement: Statement) -> None:
        """Translate the statement's placeholders for psycopg2."""
        names = [param.name for param in statement.parameters]
        self._prepared = (statement, to_pyformat(statement.sql, names))

    def _prepared_sql(self, statement: Statement) -> str:
        if self._prepared is not None and self._prepared[0] is statement:
            return self._prepared[1]
        return to_pyformat(statement.sql, [param.name for param in statement.parameters])

    def execute_non_query(self, statement: Statement) -> int:
        """
        Execute a statement and return the number of rows it affected.

        Args:
            statement: The statement to execute

        Returns:
            Number of rows affected
        """
        sql = self._prepared_sql(statement)
        params = statement.bind()
        self._prepared = None

        try:
            if self.split_statements:
                rows_affected = 0
                for command in split_statements(sql):
                    self.cursor.execute(command, params)
                    rows_affected += max(self.cursor.rowcount, 0)
                return rows_affected

            self.cursor.execute(sql, params)
            return self.cursor.rowcount
        except psycopg2.Error as e:
            logger.error(f"PostgreSQL error: {str(e)}")
            raise

    def begin_transaction(self) -> None:
        # psycopg2 opens a transaction implicitly on the first statement
        pass

    def commit_transaction(self) -> None:
        self.connection.commit()

    def rollback_transaction(self) -> None:
        self.connection.rollback()

    def close(self) -> None:
        """
        Close the connection.
        """
        if hasattr(self, 'cursor') and self.cursor:
            self.cursor.close()

        if hasattr(self, 'connection') and self.connection:
            self.connection.close()
