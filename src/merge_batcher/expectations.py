"""
Expectation policies describing how many rows a statement should affect.

A statement that can be merged contributes its expected row count to the
batch total; after the merged statement runs only that total can be checked
against the count the server reports. A statement that cannot be merged is
executed alone and verified on its own.
"""
import logging
from abc import ABC, abstractmethod

from merge_batcher.exceptions import StaleStateError, TooManyRowsAffectedError
from merge_batcher.statements import Statement

logger = logging.getLogger(__name__)


def verify_outcome_batched(expected_row_count: int, rows_affected: int) -> None:
    """
    Compare the aggregate row count of a merged statement against the accumulated expectation.

    Args:
        expected_row_count: Sum of the expected row counts of every merged statement
        rows_affected: Row count reported for the merged statement

    Raises:
        StaleStateError: If fewer rows were affected than expected
        TooManyRowsAffectedError: If more rows were affected than expected
    """
    if expected_row_count > rows_affected:
        logger.warning(f"Batch affected {rows_affected} rows, expected {expected_row_count}")
        raise StaleStateError(
            f"Batch update returned unexpected row count from update; "
            f"actual row count: {rows_affected}; expected: {expected_row_count}",
            expected=expected_row_count,
            actual=rows_affected,
        )
    if expected_row_count < rows_affected:
        logger.warning(f"Batch affected {rows_affected} rows, expected {expected_row_count}")
        raise TooManyRowsAffectedError(
            f"Batch update affected more rows than expected; "
            f"actual row count: {rows_affected}; expected: {expected_row_count}",
            expected=expected_row_count,
            actual=rows_affected,
        )


class Expectation(ABC):
    """Policy for a single pending statement."""

    can_be_merged: bool = True
    expected_row_count: int = 0

    @abstractmethod
    def verify_single(self, rows_affected: int, statement: Statement) -> None:
        """
        Verify the row count of a statement that was executed on its own.

        Args:
            rows_affected: Row count reported by the executor
            statement: The executed statement
        """
        pass


class BasicExpectation(Expectation):
    """
    Expects an exact number of affected rows.

    Args:
        expected_row_count: Number of rows the statement must affect
        can_be_merged: Whether the statement may be folded into a merged statement
    """

    def __init__(self, expected_row_count: int = 1, can_be_merged: bool = True):
        if expected_row_count < 0:
            raise ValueError("Expected row count must be greater than or equal to zero")
        self.expected_row_count = expected_row_count
        self.can_be_merged = can_be_merged

    def verify_single(self, rows_affected: int, statement: Statement) -> None:
        if self.expected_row_count > rows_affected:
            raise StaleStateError(
                f"Unexpected row count: {rows_affected}; expected: {self.expected_row_count}",
                expected=self.expected_row_count,
                actual=rows_affected,
                sql=statement.sql,
            )
        if self.expected_row_count < rows_affected:
            raise TooManyRowsAffectedError(
                f"Unexpected row count: {rows_affected}; expected: {self.expected_row_count}",
                expected=self.expected_row_count,
                actual=rows_affected,
                sql=statement.sql,
            )

    def __repr__(self) -> str:
        return (f"BasicExpectation(expected_row_count={self.expected_row_count}, "
                f"can_be_merged={self.can_be_merged})")


class NoneExpectation(Expectation):
    """
    No verification at all.

    The affected-row count of such a statement is unknown, so it cannot take
    part in an aggregate check and always runs on its own.
    """

    can_be_merged = False

    def verify_single(self, rows_affected: int, statement: Statement) -> None:
        pass

    def __repr__(self) -> str:
        return "NoneExpectation()"


class Expectations:
    """Shared expectation instances."""
    BASIC = BasicExpectation(1)
    NONE = NoneExpectation()

    @staticmethod
    def rows(count: int) -> BasicExpectation:
        return BasicExpectation(count)
