"""
Core merge batcher implementation.

This module contains the MergeBatcher class, which folds pending statements
into merged statements and executes each merged statement in one round trip.
"""
import logging
from typing import Optional

from merge_batcher.executors.base import StatementExecutor
from merge_batcher.expectations import verify_outcome_batched
from merge_batcher.mergers import GenericStatementMerger, InsertValuesMerger, is_insert_values
from merge_batcher.query_collector import BATCH, SINGLE, QueryCollector
from merge_batcher.settings import BatcherSettings, validate_batch_size
from merge_batcher.state import BatchState
from merge_batcher.statements import PendingStatement

logger = logging.getLogger(__name__)


class MergeBatcher:
    """
    Merges pending statements to reduce round trips to the database.

    Statements are merged in the order they are added:

    * consecutive ``INSERT INTO ... VALUES (...)`` statements with the same
      target and columns become one multi-row insert;
    * any other statement is appended to the merged text;
    * parameters are renamed so no two merged parameters share a name.

    The merged statement is executed when ``batch_size`` statements have been
    merged, when ``execute_batch`` is called, or right before a statement that
    cannot be merged. Its row count is then checked against the sum of the
    expected row counts of the statements it contains.

    A batcher is bound to one executor and is not thread safe.

    Attributes:
        executor: Executor running statements against the database
        settings: Batcher settings
        query_collector: Optional collector of every statement handed to the executor
    """

    def __init__(
        self,
        executor: Optional[StatementExecutor],
        batch_size: Optional[int] = None,
        settings: Optional[BatcherSettings] = None,
        query_collector: Optional[QueryCollector] = None,
    ):
        """
        Initialize a merge batcher.

        Args:
            executor: Executor for merged and single statements; may be None in dry run mode
            batch_size: Flush threshold, overriding ``settings.batch_size``
            settings: Batcher settings (defaults to ``BatcherSettings()``)
            query_collector: Optional query collector

        Raises:
            ValueError: If batch_size is not a positive integer, or no executor
                is given outside dry run mode
        """
        self.settings = settings or BatcherSettings()
        self._batch_size = validate_batch_size(
            batch_size if batch_size is not None else self.settings.batch_size
        )
        if executor is None and not self.settings.dry_run:
            raise ValueError("An executor is required unless running in dry run mode")

        self.executor = executor
        self.query_collector = query_collector
        self.dry_run = self.settings.dry_run
        self._state: Optional[BatchState] = None
        self._insert_merger = InsertValuesMerger()
        self._generic_merger = GenericStatementMerger()

        logger.debug(f"Initialized MergeBatcher with batch_size={self._batch_size}, dry_run={self.dry_run}")

    @property
    def batch_size(self) -> int:
        """Number of merged statements that triggers a flush."""
        return self._batch_size

    @batch_size.setter
    def batch_size(self, value: int) -> None:
        self._batch_size = validate_batch_size(value)

    @property
    def count_of_statements_in_current_batch(self) -> int:
        return self._state.merged_count if self._state else 0

    @property
    def has_pending_batch(self) -> bool:
        return self._state is not None and not self._state.is_empty

    def add_to_batch(self, statement: PendingStatement) -> None:
        """
        Add a pending statement.

        A statement that cannot be merged is executed on its own right away,
        after any pending merged work has been flushed.

        Args:
            statement: Statement queued by the session

        Raises:
            MalformedStatementError: If an insert-shaped statement cannot be scanned
            ExpectationViolationError: If a flush or a single execution affected an unexpected number of rows
        """
        if not statement.can_be_merged:
            self.execute_batch()
            self._execute_single(statement)
            return

        if self._state is None:
            self._state = BatchState(self.settings.parameter_prefix)

        if is_insert_values(statement.sql):
            self._insert_merger.merge(statement, self._state)
        else:
            self._generic_merger.merge(statement, self._state)

        self._state.expected_row_count += statement.expected_row_count
        self._state.merged_count += 1
        logger.debug(f"Adding to batch ({self._state.merged_count}/{self._batch_size})")

        if self._state.merged_count >= self._batch_size:
            self.execute_batch()

    def execute_batch(self) -> int:
        """
        Execute the merged statement built so far.

        State is discarded whatever the outcome, so the next statement always
        starts a fresh batch.

        Returns:
            Number of source statements that were flushed

        Raises:
            ExpectationViolationError: If the merged statement affected an unexpected number of rows
        """
        state, self._state = self._state, None
        if state is None or state.is_empty:
            return 0

        statement = state.build_statement()
        merged_count = state.merged_count

        if self.query_collector is not None:
            self.query_collector.add_query(
                statement, kind=BATCH, merged_count=merged_count,
                expected_rows=state.expected_row_count,
            )

        if self.dry_run:
            logger.info(f"[DRY RUN] Merged statement with {merged_count} statements "
                        f"and {len(statement.parameters)} parameters")
            logger.debug(f"[DRY RUN] Merged statement content:\n{statement.sql}")
            return merged_count

        logger.info(f"Executing batch of {merged_count} statements")
        self.executor.check_open_readers()
        self.executor.log_statement(statement)
        self.executor.prepare(statement)

        try:
            rows_affected = self.executor.execute_non_query(statement)
        except Exception as e:
            logger.error(f"Error executing batch: {str(e)}", exc_info=True)
            raise

        verify_outcome_batched(state.expected_row_count, rows_affected)
        return merged_count

    def _execute_single(self, statement: PendingStatement) -> None:
        if self.query_collector is not None:
            self.query_collector.add_query(statement, kind=SINGLE)

        if self.dry_run:
            logger.info("[DRY RUN] Single statement")
            return

        self.executor.check_open_readers()
        self.executor.log_statement(statement)
        self.executor.prepare(statement)

        try:
            rows_affected = self.executor.execute_non_query(statement)
        except Exception as e:
            logger.error(f"Error executing statement: {str(e)}", exc_info=True)
            raise

        statement.expectation.verify_single(rows_affected, statement)

    def abort_batch(self) -> None:
        """Discard the pending batch without executing it."""
        if self._state is not None:
            logger.info(f"Aborting batch of {self._state.merged_count} statements")
        self._state = None

    def __enter__(self) -> "MergeBatcher":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.execute_batch()
        else:
            self.abort_batch()


class MergeBatcherFactory:
    """Creates batchers bound to an executor."""

    def __init__(self, settings: Optional[BatcherSettings] = None):
        self.settings = settings or BatcherSettings()

    def create_batcher(self, executor: Optional[StatementExecutor],
                       query_collector: Optional[QueryCollector] = None) -> MergeBatcher:
        return MergeBatcher(executor, settings=self.settings, query_collector=query_collector)


def create_batcher(executor: Optional[StatementExecutor],
                   settings: Optional[BatcherSettings] = None) -> MergeBatcher:
    """Create a MergeBatcher with the given settings."""
    return MergeBatcherFactory(settings).create_batcher(executor)
