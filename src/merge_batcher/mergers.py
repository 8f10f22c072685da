"""
Mergers that fold one pending statement into the batch under construction.

Two shapes are recognised by a lexical test:

* ``INSERT INTO <target> (<columns>) VALUES (<tuple>)``: consecutive inserts
  with the same prefix are coalesced into one multi-row insert.
* anything else: the statement is appended as is, terminated with ``;``.

Both rename the statement's parameters so that identical names used by
different source statements never collide in the merged text.

Known limits: SQL is handled lexically. String literals and nested
parentheses are respected when splitting a VALUES tuple, but dialect-specific
quoting (dollar quoting, ``E''`` escapes, comments) is not understood.
Statements relying on such syntax should be marked as not mergeable.
"""
import logging
import re
from typing import Dict, List, Tuple, TYPE_CHECKING

from merge_batcher.exceptions import MalformedStatementError
from merge_batcher.renamer import ParameterRenamer, find_placeholders, rewrite_placeholders
from merge_batcher.statements import PendingStatement
from merge_batcher.utils import find_closing_parenthesis, split_and_trim

if TYPE_CHECKING:
    from merge_batcher.state import BatchState

logger = logging.getLogger(__name__)

INSERT_KEYWORD = "INSERT INTO"
VALUES_KEYWORD = "VALUES"
STATEMENT_TERMINATOR = ";\n"

_VALUES_TOKEN = re.compile(r"\b" + VALUES_KEYWORD + r"\b")


def is_insert_values(sql: str) -> bool:
    """Whether a statement should go through the insert-values merger."""
    return sql.lstrip().startswith(INSERT_KEYWORD) and _VALUES_TOKEN.search(sql) is not None


def split_insert(sql: str) -> Tuple[str, str]:
    """
    Split an insert statement into its prefix and the content of its value tuple.

    Args:
        sql: Statement text shaped like ``INSERT INTO t (a, b) VALUES (:a, :b)``

    Returns:
        Tuple of (prefix up to and including ``VALUES``, text between the tuple's parentheses)

    Raises:
        MalformedStatementError: If the statement does not have exactly one value tuple
    """
    text = sql.strip()
    match = _VALUES_TOKEN.search(text)
    if match is None:
        raise MalformedStatementError(f"No {VALUES_KEYWORD} keyword in insert statement: {sql}")

    prefix = text[:match.end()]
    open_index = text.find("(", match.end())
    if open_index < 0 or text[match.end():open_index].strip():
        raise MalformedStatementError(f"Expected '(' after {VALUES_KEYWORD}: {sql}")

    close_index = find_closing_parenthesis(text, open_index)
    if close_index < 0:
        raise MalformedStatementError(f"Unbalanced parentheses in value tuple: {sql}")

    trailing = text[close_index + 1:].strip()
    if trailing not in ("", ";"):
        raise MalformedStatementError(
            f"Unexpected text after value tuple ({trailing!r}); only single-row inserts can be merged: {sql}"
        )

    return prefix, text[open_index + 1:close_index]


class InsertGroup:
    """
    A run of consecutive inserts sharing one prefix.

    Attributes:
        prefix: ``INSERT INTO target (cols) VALUES`` text shared by the group
        tuples: Rendered value tuples, in add order
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self.tuples: List[str] = []

    def __bool__(self) -> bool:
        return bool(self.tuples)

    def render(self) -> str:
        return f"{self.prefix} {', '.join(self.tuples)}{STATEMENT_TERMINATOR}"


class InsertValuesMerger:
    """Coalesces single-row inserts into multi-row inserts."""

    def merge(self, statement: PendingStatement, state: "BatchState") -> None:
        """
        Fold an insert statement into the current insert group.

        A statement with a different prefix closes the current group (writing
        it to the buffer) and opens a new one.

        Raises:
            MalformedStatementError: If the statement cannot be scanned; the state is left unchanged
        """
        prefix, content = split_insert(statement.sql)

        if state.insert_group is None or state.insert_group.prefix != prefix:
            state.write_insert_group()
            state.insert_group = InsertGroup(prefix)

        sources = {param.name: param for param in statement.parameters}
        renames: Dict[str, str] = {}

        def renamed(name: str) -> str:
            if name not in renames:
                renames[name] = state.renamer.rename(sources[name]).name
            return renames[name]

        elements = []
        for element in split_and_trim(content, ","):
            name = element[1:] if element.startswith(":") else None
            if name is not None and name in sources:
                elements.append(ParameterRenamer.placeholder(renamed(name)))
                continue

            # Literal; parameters nested inside expressions still need renaming
            nested = [ref for ref in find_placeholders(element) if ref in sources]
            if nested:
                element = rewrite_placeholders(element, {ref: renamed(ref) for ref in nested})
            elements.append(element)

        state.insert_group.tuples.append(f"({', '.join(elements)})")
        logger.debug(f"Merged insert into group '{prefix}' ({len(state.insert_group.tuples)} rows)")


class GenericStatementMerger:
    """Appends any statement to the buffer with its parameters renamed."""

    def merge(self, statement: PendingStatement, state: "BatchState") -> None:
        renames = {
            param.name: state.renamer.rename(param).name
            for param in statement.parameters
        }
        sql = rewrite_placeholders(statement.sql.strip(), renames)
        if sql.endswith(";"):
            sql = sql[:-1].rstrip()

        # Pending insert rows were added first, so they go first
        state.write_insert_group()
        state.buffer.append(sql + STATEMENT_TERMINATOR)
        logger.debug(f"Merged statement with {len(renames)} parameters")
