"""
Merge Batcher executors for specific database drivers.

The PostgreSQL executor lives in ``merge_batcher.executors.postgresql`` and
is not imported here, so the generic executor can be used without psycopg2
being loaded.
"""

from merge_batcher.executors.base import StatementExecutor
from merge_batcher.executors.generic import GenericExecutor

__all__ = ["StatementExecutor", "GenericExecutor"]
