"""
Exceptions raised by the merge batcher.

Driver errors raised while executing a statement are not wrapped: they reach
the caller unchanged.
"""


class MergeBatcherError(Exception):
    """Base class for merge batcher errors."""


class ExpectationViolationError(MergeBatcherError):
    """
    The affected-row count reported by the server does not match the expectation.

    Raised after the statement has already run, so server-side effects have
    happened and the calling session is expected to roll back.

    Attributes:
        expected: Expected number of affected rows
        actual: Number of rows the server reported
        sql: Statement text that was verified, if known
    """

    def __init__(self, message: str, expected: int, actual: int, sql: str = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.sql = sql


class StaleStateError(ExpectationViolationError):
    """Fewer rows were affected than expected (e.g. a concurrent update or delete)."""


class TooManyRowsAffectedError(ExpectationViolationError):
    """More rows were affected than expected."""


class MalformedStatementError(MergeBatcherError, ValueError):
    """A statement classified as ``INSERT ... VALUES`` could not be scanned."""


class OpenReaderError(MergeBatcherError):
    """An executor still holds an unconsumed result set."""
