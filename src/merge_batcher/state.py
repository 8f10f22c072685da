"""
Per-batch state of the merged statement under construction.
"""
from typing import List, Optional

from merge_batcher.mergers import InsertGroup
from merge_batcher.renamer import DEFAULT_PARAMETER_PREFIX, ParameterRenamer
from merge_batcher.statements import Statement


class BatchState:
    """
    Everything accumulated since the last flush.

    A fresh instance is created for the first mergeable statement after a
    flush and dropped as soon as the batch is executed or aborted, so nothing
    (buffered text, parameter names, expected rows) leaks into the next batch.

    Attributes:
        buffer: Text fragments of the merged statement, in add order
        renamer: Parameter renamer, holding the merged parameter list
        insert_group: Insert group currently collecting value tuples
        merged_count: Number of statements folded in
        expected_row_count: Sum of the expected row counts of folded statements
    """

    def __init__(self, parameter_prefix: str = DEFAULT_PARAMETER_PREFIX):
        self.buffer: List[str] = []
        self.renamer = ParameterRenamer(parameter_prefix)
        self.insert_group: Optional[InsertGroup] = None
        self.merged_count = 0
        self.expected_row_count = 0

    @property
    def is_empty(self) -> bool:
        return not self.buffer and not self.insert_group

    def write_insert_group(self) -> None:
        """Write the pending insert group, if it holds any rows, to the buffer."""
        if self.insert_group:
            self.buffer.append(self.insert_group.render())
        self.insert_group = None

    def build_statement(self) -> Statement:
        """Close the pending insert group and assemble the merged statement."""
        self.write_insert_group()
        return Statement(sql="".join(self.buffer), parameters=list(self.renamer.parameters))
