"""Pydantic models shared across the calculator, history and batch modules."""
import time

from pydantic import BaseModel, ConfigDict, Field

from simple_calculator.common.formatter import ResultFormatter
from simple_calculator.common.parser import ExpressionParser


# Largest value a SQLite INTEGER column can hold
MAX_TIMESTAMP = 2**63 - 1


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class CalculationResult(BaseModel):
    """Represents one evaluated expression together with its display form."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Expression as it was evaluated")
    result: float = Field(..., description="Evaluated numeric result, NaN on error")
    display: str = Field(..., description="Formatted result shown to the user")

    @classmethod
    def from_expression(cls, expression: str) -> "CalculationResult":
        """
        Evaluate an expression and format its result.

        :param str expression: Expression to evaluate

        :return: Evaluated calculation
        :rtype: CalculationResult
        """
        result = ExpressionParser.evaluate(expression)
        return cls(expression=expression, result=result, display=ResultFormatter.format(result))

    @property
    def calculation(self) -> str:
        """Calculation string as stored in history: "<expression>=<display>"."""
        return f"{self.expression}={self.display}"


class HistoryEntry(BaseModel):
    """Represents a single calculation stored in history."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(..., ge=0, le=MAX_TIMESTAMP, description="Creation time in epoch milliseconds")
    calculation: str = Field(..., description='Calculation formatted as "<expression>=<result>"')

    @classmethod
    def for_calculation(cls, expression: str, display: str, timestamp: int) -> "HistoryEntry":
        """
        Build a history entry from an expression and its displayed result.

        :param str expression: Evaluated expression
        :param str display: Formatted result
        :param int timestamp: Epoch milliseconds

        :return: History entry
        :rtype: HistoryEntry
        """
        return cls(timestamp=timestamp, calculation=f"{expression}={display}")
