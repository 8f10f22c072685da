"""
Statement and parameter types passed between a session, the batcher and an executor.

Parameters are referenced in SQL text using the DB-API "named" paramstyle,
i.e. a parameter called ``user_id`` appears as ``:user_id``.
"""
import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from merge_batcher.expectations import Expectation

PLACEHOLDER_MARKER = ":"


class ParameterDirection(enum.Enum):
    """Direction of a bound parameter."""
    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


INPUT_DIRECTIONS = (ParameterDirection.INPUT, ParameterDirection.INPUT_OUTPUT)


@dataclass(frozen=True)
class Parameter:
    """
    A bound statement parameter.

    Attributes:
        name: Bare parameter name (without the ``:`` marker)
        value: Value bound to the parameter
        direction: Parameter direction
        db_type: Optional database type hint, carried through untouched
    """
    name: str
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    db_type: Optional[str] = None

    @property
    def placeholder(self) -> str:
        """The parameter reference as it appears in SQL text."""
        return PLACEHOLDER_MARKER + self.name

    def renamed(self, name: str) -> "Parameter":
        """Return a copy carrying the same value, direction and type under a new name."""
        return replace(self, name=name)


@dataclass
class Statement:
    """
    SQL text plus its ordered parameter list.

    This is the unit handed to a StatementExecutor, both for a single
    statement and for a merged batch.
    """
    sql: str
    parameters: List[Parameter] = field(default_factory=list)

    def bind(self) -> Dict[str, Any]:
        """
        Build the mapping handed to a DB-API ``cursor.execute`` call.

        Output and return-value parameters are bound as None, so every
        placeholder in the text has a value.
        """
        return {
            param.name: param.value if param.direction in INPUT_DIRECTIONS else None
            for param in self.parameters
        }

    def find_parameter(self, name: str) -> Optional[Parameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


@dataclass
class PendingStatement(Statement):
    """
    A statement queued by the calling session.

    The SQL text must not change once the statement is handed to the batcher.

    Attributes:
        expectation: Policy describing how many rows the statement should affect
    """
    expectation: Optional["Expectation"] = None

    def __post_init__(self) -> None:
        if self.expectation is None:
            from merge_batcher.expectations import Expectations
            self.expectation = Expectations.BASIC

    @property
    def can_be_merged(self) -> bool:
        return self.expectation.can_be_merged

    @property
    def expected_row_count(self) -> int:
        return self.expectation.expected_row_count
