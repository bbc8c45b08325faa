"""Parse and evaluate keypad or voice arithmetic expressions."""
from collections.abc import Callable as ABCCallable
import math
import operator
import re
from typing import Callable, List, Tuple

from simple_calculator.common.logger import logger


# Type alias for operator functions (taking two floats, returning a float)
OperatorFn: ABCCallable[[float, float], float] = Callable[[float, float], float]

PLUS = "+"
MINUS = "-"
TIMES = "×"
DIVIDE = "÷"


def safe_divide(a: float, b: float) -> float:
    """
    Divide a by b, returning NaN instead of raising or producing infinity on a zero divisor.

    :param float a: Dividend
    :param float b: Divisor

    :return: Quotient, or NaN when b is zero
    :rtype: float
    """
    if b == 0.0:
        return math.nan
    return a / b


# Mapping of operator symbols to (precedence, function)
OPERATORS: dict[str, Tuple[int, OperatorFn]] = {
    PLUS: (1, operator.add),
    MINUS: (1, operator.sub),
    TIMES: (2, operator.mul),
    DIVIDE: (2, safe_divide),
}

# ASCII and typographic spellings accepted in place of the canonical glyphs
OPERATOR_ALIASES: dict[str, str] = {
    "*": TIMES,
    "/": DIVIDE,
    "−": MINUS,
}

_TRAILING_NON_NUMERIC = re.compile(r"[^0-9.]+$")
_WHITESPACE = re.compile(r"\s+")
_OPERATOR_SPLIT = re.compile("([" + re.escape("".join(OPERATORS)) + "])")
_NUMBER = re.compile(r"\d+\.?\d*|\.\d+")


class ExpressionParser:
    """
    Parse and evaluate arithmetic expressions typed on a keypad or dictated by voice.

    The input does not need to be well-formed: it may end with a dangling
    operator while being typed, or contain stray operators produced by a noisy
    speech transcript. Evaluation never raises; failures produce NaN.

    Algorithm:
        1. Normalize ASCII operators ("*", "/") to the canonical glyphs ("×", "÷")
        2. Strip the trailing run of non-numeric characters ("2+" -> "2")
        3. Split at operator boundaries, keeping operators as tokens
        4. Reduce with an operand stack and an operator stack (Shunting-yard),
           discarding any operator that finds fewer than two operands

    Examples:
        - "2+3×4" evaluates to 14.0
        - "10-2-3" evaluates to 5.0 (left-to-right within a precedence tier)
        - "10÷0" evaluates to NaN
    """

    @staticmethod
    def normalize_operators(expr: str) -> str:
        """
        Replace ASCII operator aliases with the canonical operator glyphs.

        :param str expr: Raw expression

        :return: Expression using only "+", "-", "×" and "÷" as operators
        :rtype: str
        """
        for alias, symbol in OPERATOR_ALIASES.items():
            expr = expr.replace(alias, symbol)
        return expr

    @staticmethod
    def sanitize(expr: str) -> str:
        """
        Strip any trailing characters that are neither digits nor a decimal point.

        :param str expr: Expression, possibly ending with an operator

        :return: Expression ending with a digit or decimal point, or an empty string
        :rtype: str
        """
        return _TRAILING_NON_NUMERIC.sub("", expr)

    @staticmethod
    def tokenize(expr: str) -> List[str]:
        """
        Split an expression into number and operator tokens.

        Whitespace is removed first, then the expression is cut at every
        operator character. Empty tokens are skipped.

        :param str expr: Arithmetic expression as a string

        :return: List of tokens
        :rtype: List[str]
        """
        compact = _WHITESPACE.sub("", expr)
        return [token for token in _OPERATOR_SPLIT.split(compact) if token]

    @staticmethod
    def is_operator(token: str) -> bool:
        """
        Determine if a token is one of the four supported operators.

        :param str token: Token string

        :return: True for "+", "-", "×" or "÷"
        :rtype: bool
        """
        return token in OPERATORS

    @staticmethod
    def parse_number(token: str) -> float:
        """
        Convert a digit/decimal run into a float.

        :param str token: Numeric token such as "12", "1.5", ".5" or "3."

        :return: Parsed value
        :rtype: float
        :raises ValueError: If the token is not a plain decimal literal
        """
        if not _NUMBER.fullmatch(token):
            raise ValueError(f"Malformed numeric literal: {token!r}")
        return float(token)

    @staticmethod
    def has_precedence(incoming: str, top: str) -> bool:
        """
        Tell whether the operator on top of the stack must be applied before pushing the incoming one.

        :param str incoming: Operator about to be pushed
        :param str top: Operator currently on top of the operator stack

        :return: True if top binds at least as tightly as incoming
        :rtype: bool
        """
        return OPERATORS[top][0] >= OPERATORS[incoming][0]

    @staticmethod
    def apply_operator(op: str, a: float, b: float) -> float:
        """
        Apply a binary operator, a being the left-hand operand.

        :param str op: Operator symbol
        :param float a: Left-hand operand
        :param float b: Right-hand operand

        :return: Result of a op b (NaN for a division by zero)
        :rtype: float
        """
        return OPERATORS[op][1](a, b)

    @staticmethod
    def _reduce(values: List[float], ops: List[str]) -> None:
        """Pop one operator and apply it, or discard it when operands are missing."""
        op = ops.pop()
        if len(values) < 2:
            # Dangling operator, e.g. a leading "-"
            return
        b = values.pop()
        a = values.pop()
        values.append(ExpressionParser.apply_operator(op, a, b))

    @staticmethod
    def evaluate(expr: str) -> float:
        """
        Evaluate an arithmetic expression, tolerating partial or malformed input.

        :param str expr: Arithmetic expression string

        :return: Computed result, 0.0 for an empty expression, NaN on failure
        :rtype: float
        """
        try:
            sanitized = ExpressionParser.sanitize(ExpressionParser.normalize_operators(expr))
            if not sanitized:
                return 0.0

            values: List[float] = []
            ops: List[str] = []

            for token in ExpressionParser.tokenize(sanitized):
                if ExpressionParser.is_operator(token):
                    # Pop operators with higher or equal precedence first
                    while ops and ExpressionParser.has_precedence(token, ops[-1]):
                        ExpressionParser._reduce(values, ops)
                    ops.append(token)
                else:
                    values.append(ExpressionParser.parse_number(token))

            while ops:
                ExpressionParser._reduce(values, ops)

            return values[-1] if values else 0.0

        except Exception as exc:
            logger.debug(f"🧮❌ Could not evaluate {expr!r}: {exc}")
            return math.nan
