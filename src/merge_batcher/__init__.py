"""
Merge Batcher - fewer round trips by merging pending SQL statements

This package provides a MergeBatcher class that folds queued statements into
merged statements: single-row inserts sharing a target become multi-row
inserts, other statements are concatenated, and bound parameters are renamed
so they never collide. Affected-row counts are verified against the sum of
each statement's expectation.
"""

from merge_batcher.batcher import MergeBatcher, MergeBatcherFactory, create_batcher
from merge_batcher.exceptions import (
    ExpectationViolationError,
    MalformedStatementError,
    MergeBatcherError,
    OpenReaderError,
    StaleStateError,
    TooManyRowsAffectedError,
)
from merge_batcher.expectations import BasicExpectation, Expectation, Expectations, NoneExpectation
from merge_batcher.query_collector import QueryCollector
from merge_batcher.settings import BatcherSettings
from merge_batcher.statements import Parameter, ParameterDirection, PendingStatement, Statement

__version__ = "0.1.0"
__all__ = [
    "MergeBatcher",
    "MergeBatcherFactory",
    "create_batcher",
    "BatcherSettings",
    "QueryCollector",
    "Parameter",
    "ParameterDirection",
    "Statement",
    "PendingStatement",
    "Expectation",
    "BasicExpectation",
    "NoneExpectation",
    "Expectations",
    "MergeBatcherError",
    "ExpectationViolationError",
    "StaleStateError",
    "TooManyRowsAffectedError",
    "MalformedStatementError",
    "OpenReaderError",
]
