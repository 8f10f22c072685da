"""
Utility helpers for merge batcher: lexical splitting and logging setup.

The splitting helpers understand just enough SQL to stay correct for the
statements the batcher produces: single-quoted string literals, double-quoted
identifiers and nested parentheses. They are not a SQL parser.
"""
import logging
from typing import List, Optional

QUOTE_CHARS = ("'", '"')


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("merge_batcher")


def split_top_level(text: str, delimiter: str = ",") -> List[str]:
    """
    Split text on a single-character delimiter that is outside quotes and parentheses.

    Args:
        text: Text to split
        delimiter: Delimiter character

    Returns:
        List of pieces, untrimmed. Splitting an empty string yields ``[""]``.
    """
    pieces = []
    current = []
    quote: Optional[str] = None
    depth = 0

    for char in text:
        if quote:
            # A doubled quote ('') toggles twice, which leaves us inside the literal
            if char == quote:
                quote = None
        elif char in QUOTE_CHARS:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == delimiter and depth == 0:
            pieces.append("".join(current))
            current = []
            continue
        current.append(char)

    pieces.append("".join(current))
    return pieces


def split_and_trim(text: Optional[str], delimiter: str = ",", remove_empty: bool = True) -> List[str]:
    """
    Split text on top-level delimiters and trim whitespace from every piece.

    Args:
        text: Text to split; None yields an empty list
        delimiter: Delimiter character
        remove_empty: Drop pieces that are empty after trimming

    Returns:
        List of trimmed pieces
    """
    if text is None:
        return []
    pieces = [piece.strip() for piece in split_top_level(text, delimiter)]
    if remove_empty:
        pieces = [piece for piece in pieces if piece]
    return pieces


def split_statements(sql: str, terminator: str = ";") -> List[str]:
    """Split a multi-statement string into its individual commands."""
    return split_and_trim(sql, terminator)


def find_closing_parenthesis(text: str, open_index: int) -> int:
    """
    Find the parenthesis matching the one at ``open_index``.

    Args:
        text: Text to scan
        open_index: Index of an opening parenthesis

    Returns:
        Index of the matching closing parenthesis, or -1 when there is none
    """
    if open_index < 0 or open_index >= len(text) or text[open_index] != "(":
        return -1

    quote: Optional[str] = None
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if quote:
            if char == quote:
                quote = None
        elif char in QUOTE_CHARS:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1
