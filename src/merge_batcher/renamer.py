"""
Collision-free parameter naming for merged statements.
"""
import logging
import re
from typing import Dict, List

from merge_batcher.statements import PLACEHOLDER_MARKER, Parameter

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER_PREFIX = "p"

# Single-quoted literal, with '' as an escaped quote
_STRING_LITERAL = r"'(?:[^']|'')*'"


def rewrite_placeholders(sql: str, renames: Dict[str, str]) -> str:
    """
    Replace every ``:old`` reference in one pass.

    A reference only matches as a whole token: it may not be preceded by an
    identifier character or another ``:`` (so ``::int`` casts are left alone)
    and may not be followed by an identifier character (so ``:p1`` never
    matches inside ``:p10``). Text inside single-quoted literals is skipped.

    Args:
        sql: SQL text
        renames: Mapping of old bare name to new bare name

    Returns:
        Rewritten SQL text
    """
    if not renames:
        return sql

    names = sorted(renames, key=len, reverse=True)
    pattern = re.compile(
        _STRING_LITERAL
        + r"|(?<![\w:])" + re.escape(PLACEHOLDER_MARKER)
        + "(" + "|".join(re.escape(name) for name in names) + r")(?!\w)"
    )

    def substitute(match: "re.Match") -> str:
        name = match.group(1)
        if name is None:
            return match.group(0)
        return PLACEHOLDER_MARKER + renames[name]

    return pattern.sub(substitute, sql)


def find_placeholders(sql: str) -> List[str]:
    """Return the bare names of every ``:name`` reference outside string literals, in order."""
    pattern = re.compile(
        _STRING_LITERAL + r"|(?<![\w:])" + re.escape(PLACEHOLDER_MARKER) + r"([A-Za-z_]\w*)"
    )
    return [match.group(1) for match in pattern.finditer(sql) if match.group(1)]


class ParameterRenamer:
    """
    Hands out unique parameter names for one merged statement.

    Attributes:
        prefix: Prefix of generated names
        counter: Next number to use
        parameters: Renamed copies registered on the merged statement, in order
    """

    def __init__(self, prefix: str = DEFAULT_PARAMETER_PREFIX):
        self.prefix = prefix
        self.counter = 0
        self.parameters: List[Parameter] = []

    def next_name(self) -> str:
        name = f"{self.prefix}{self.counter}"
        self.counter += 1
        return name

    @staticmethod
    def placeholder(name: str) -> str:
        return PLACEHOLDER_MARKER + name

    def rename(self, parameter: Parameter) -> Parameter:
        """
        Register a renamed copy of a source parameter on the merged statement.

        The source parameter is left untouched.

        Args:
            parameter: Parameter of a pending statement

        Returns:
            The renamed copy
        """
        merged = parameter.renamed(self.next_name())
        self.parameters.append(merged)
        logger.debug(f"Renamed parameter {parameter.placeholder} to {merged.placeholder}")
        return merged
