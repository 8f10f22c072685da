"""
Query collector for merge batcher.

Stores the statements a batcher hands to its executor, or would have handed
to it in dry run mode, so they can be inspected without a database.
"""
import logging
from typing import Any, Dict, List, Optional

from merge_batcher.statements import Statement

logger = logging.getLogger(__name__)

BATCH = "batch"
SINGLE = "single"


class QueryCollector:
    """
    Collects merged and single statements for analysis.

    Example:
        >>> from merge_batcher import MergeBatcher, QueryCollector, BatcherSettings
        >>> collector = QueryCollector()
        >>> batcher = MergeBatcher(
        ...     executor=None,
        ...     settings=BatcherSettings(dry_run=True),
        ...     query_collector=collector,
        ... )
        >>> # ... add statements, then
        >>> batcher.execute_batch()
        >>> print(collector.queries[0]["sql"])
    """

    def __init__(self):
        """Initialize a new query collector."""
        self.queries: List[Dict[str, Any]] = []
        self.stats: Dict[str, int] = {
            "batches": 0,
            "single_statements": 0,
            "merged_statements": 0,
            "parameters": 0,
            "expected_rows": 0,
        }

    def add_query(self, statement: Statement, kind: str = BATCH,
                  merged_count: int = 1, expected_rows: Optional[int] = None) -> None:
        """
        Add a statement to the collector.

        Args:
            statement: Statement handed (or about to be handed) to the executor
            kind: ``"batch"`` for a merged statement, ``"single"`` for one run alone
            merged_count: Number of source statements folded into it
            expected_rows: Expected affected rows, if known
        """
        self.queries.append({
            "sql": statement.sql,
            "parameters": statement.bind(),
            "kind": kind,
            "merged_count": merged_count,
            "expected_rows": expected_rows,
        })
        if kind == BATCH:
            self.stats["batches"] += 1
            self.stats["merged_statements"] += merged_count
        else:
            self.stats["single_statements"] += 1
        self.stats["parameters"] += len(statement.parameters)
        self.stats["expected_rows"] += expected_rows or 0
        logger.debug(f"Collected {kind} statement ({merged_count} merged, {len(statement.parameters)} parameters)")

    def get_queries_by_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [q for q in self.queries if q["kind"] == kind]

    def clear(self) -> None:
        """Clear all collected queries."""
        self.queries = []
        for key in self.stats:
            self.stats[key] = 0

    def get_summary(self) -> Dict[str, Any]:
        """
        Get a summary of collected queries.

        Returns:
            Dictionary with counts and a sample statement
        """
        return {
            "query_count": len(self.queries),
            "stats": dict(self.stats),
            "sample_query": self.queries[0]["sql"] if self.queries else None,
        }

    def log_summary(self) -> None:
        """Log a summary of the collected queries"""
        logger.info("=== DRY RUN SUMMARY ===")
        logger.info(f"Merged statements: {self.stats['batches']} "
                    f"(from {self.stats['merged_statements']} source statements)")
        logger.info(f"Single statements: {self.stats['single_statements']}")
        logger.info(f"Bound parameters: {self.stats['parameters']}")
        logger.info(f"Expected affected rows: {self.stats['expected_rows']}")

        if self.queries:
            sample = self.queries[0]["sql"]
            # Truncate if too long
            if len(sample) > 200:
                sample = sample[:200] + "..."
            logger.info("Sample statement:")
            logger.info(sample)

        logger.info("========================")
