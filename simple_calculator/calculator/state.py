"""Keypad and voice input state machine."""
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from simple_calculator.common.formatter import ResultFormatter
from simple_calculator.common.logger import logger
from simple_calculator.common.models import CalculationResult, HistoryEntry, now_millis
from simple_calculator.common.parser import OPERATOR_ALIASES, OPERATORS, ExpressionParser
from simple_calculator.history.store import HistoryStore
from simple_calculator.voice.normalizer import VoicePhraseNormalizer
from simple_calculator.voice.recognition import (
    MIC_PERMISSION_MESSAGE,
    RECOGNIZER_NOT_FOUND_MESSAGE,
    RecognitionError,
)


DECIMAL_POINT = "."
EQUALS = "="
CLEAR_KEY = "C"
BACKSPACE_KEYS = ("⌫", "<")


class Mode(str, Enum):
    """Whether the display holds a live partial result or a finished calculation."""

    ENTERING = "entering"
    RESULT_SHOWN = "result_shown"


class CalculatorState(BaseModel):
    """Immutable snapshot of the calculator: expression text, display text and mode."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(default="", description="Expression being typed, or the last calculation")
    display: str = Field(default="0", description="Text currently shown to the user")
    mode: Mode = Field(default=Mode.ENTERING, description="Current input mode")


StateListener = Callable[[CalculatorState], None]


class Calculator:
    """
    Drive a calculator from keypad and voice events.

    State is held in an immutable CalculatorState replaced on every
    transition; rendering code subscribes to the replacements instead of
    reading mutable fields. Finished calculations go to the injected history
    store as "<expression>=<result>" entries.

    Transitions:
        - digit or decimal point after a result starts a new expression
        - an operator after a result continues from that result
        - "=" on an empty expression, or right after a result, does nothing
        - backspace after a result clears everything
    """

    def __init__(
        self,
        history: Optional[HistoryStore] = None,
        normalizer: Optional[VoicePhraseNormalizer] = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.history = history
        self.normalizer = normalizer or VoicePhraseNormalizer()
        self.clock = clock
        self._state = CalculatorState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> CalculatorState:
        return self._state

    @property
    def expression(self) -> str:
        return self._state.expression

    @property
    def display(self) -> str:
        return self._state.display

    @property
    def mode(self) -> Mode:
        return self._state.mode

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback invoked with every new state.

        :param StateListener listener: Callback receiving the new state

        :return: Function removing the listener again
        :rtype: Callable[[], None]
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes) -> CalculatorState:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as exc:
                logger.error(f"🖼️❌ State listener failed: {exc}")
        return self._state

    def _live(self, expression: str) -> CalculatorState:
        """Store a partial expression and show its best-effort evaluation."""
        display = ResultFormatter.format(ExpressionParser.evaluate(expression))
        return self._set_state(expression=expression, display=display, mode=Mode.ENTERING)

    @staticmethod
    def _trailing_number(expression: str) -> str:
        """Digits and decimal point typed since the last operator."""
        for index in range(len(expression) - 1, -1, -1):
            if ExpressionParser.is_operator(expression[index]):
                return expression[index + 1:]
        return expression

    def input_digit(self, digit: str) -> CalculatorState:
        """
        Append one or more digits.

        :param str digit: Digit characters "0" to "9"

        :return: New state
        :rtype: CalculatorState
        :raises ValueError: If the input contains anything other than digits
        """
        if not digit or not all(char in "0123456789" for char in digit):
            raise ValueError(f"Not a digit: {digit!r}")

        expression = "" if self.mode is Mode.RESULT_SHOWN else self.expression
        return self._live(expression + digit)

    def input_operator(self, op: str) -> CalculatorState:
        """
        Append an operator, replacing a trailing operator if there is one.

        After a result the new expression starts from the previous result.

        :param str op: "+", "-", "×", "÷" or one of the ASCII aliases "*" and "/"

        :return: New state
        :rtype: CalculatorState
        :raises ValueError: If op is not a supported operator
        """
        op = OPERATOR_ALIASES.get(op, op)
        if op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {op!r}")

        expression = self.expression
        if self.mode is Mode.RESULT_SHOWN:
            expression = expression.split(EQUALS)[-1]

        if expression and ExpressionParser.is_operator(expression[-1]):
            expression = expression[:-1]

        return self._live(expression + op)

    def input_decimal(self) -> CalculatorState:
        """
        Append a decimal point unless the current number already has one.

        A "0" is inserted when the decimal point would start a number.

        :return: New state
        :rtype: CalculatorState
        """
        expression = "0" if self.mode is Mode.RESULT_SHOWN else self.expression

        trailing = self._trailing_number(expression)
        if DECIMAL_POINT in trailing:
            return self._state

        prefix = "" if trailing else "0"
        return self._live(expression + prefix + DECIMAL_POINT)

    def evaluate(self) -> CalculatorState:
        """
        Compute the result, record it in history and show it.

        :return: New state, unchanged when there is nothing to evaluate
        :rtype: CalculatorState
        """
        if not self.expression or self.mode is Mode.RESULT_SHOWN:
            return self._state

        calculation = CalculationResult.from_expression(self.expression)
        self._record(HistoryEntry.for_calculation(calculation.expression, calculation.display, self.clock()))

        return self._set_state(
            expression=calculation.calculation,
            display=calculation.display,
            mode=Mode.RESULT_SHOWN,
        )

    def _record(self, entry: HistoryEntry) -> None:
        if self.history is None:
            return
        try:
            self.history.append(entry)
        except Exception as exc:
            logger.error(f"💾❌ Could not record {entry.calculation!r}: {exc}")

    def backspace(self) -> CalculatorState:
        """
        Remove the last typed character, or clear everything after a result.

        :return: New state
        :rtype: CalculatorState
        """
        if self.mode is Mode.RESULT_SHOWN:
            return self.clear()

        if not self.expression:
            return self._state

        expression = self.expression[:-1]
        if not expression:
            return self._set_state(expression="", display="0")
        return self._live(expression)

    def clear(self) -> CalculatorState:
        """Reset expression and display."""
        return self._set_state(expression="", display="0", mode=Mode.ENTERING)

    def press(self, key: str) -> CalculatorState:
        """
        Dispatch a single keypad key.

        :param str key: Digit, ".", operator, "=", "C" or backspace ("⌫" or "<")

        :return: New state
        :rtype: CalculatorState
        :raises ValueError: If the key is unknown
        """
        if key.isdigit():
            return self.input_digit(key)
        if key == DECIMAL_POINT:
            return self.input_decimal()
        if key == EQUALS:
            return self.evaluate()
        if key.upper() == CLEAR_KEY:
            return self.clear()
        if key in BACKSPACE_KEYS:
            return self.backspace()
        return self.input_operator(key)

    def process_voice_input(self, transcript: str) -> CalculatorState:
        """
        Evaluate a speech transcript such as "12 plus 48".

        :param str transcript: Raw speech-to-text output

        :return: New state showing the result
        :rtype: CalculatorState
        """
        expression = self.normalizer.normalize(transcript)
        self._set_state(expression=expression, mode=Mode.ENTERING)
        return self.evaluate()

    def _show_message(self, message: str) -> CalculatorState:
        return self._set_state(expression="", display=message, mode=Mode.ENTERING)

    def on_voice_recognition_error(self, error: RecognitionError) -> CalculatorState:
        """Show the message matching a speech recognition failure."""
        error = RecognitionError.from_code(error)
        logger.warning(f"🎙️❌ Voice recognition failed: {error.name}")
        return self._show_message(error.message)

    def on_mic_permission_denied(self) -> CalculatorState:
        return self._show_message(MIC_PERMISSION_MESSAGE)

    def on_speech_recognizer_not_found(self) -> CalculatorState:
        return self._show_message(RECOGNIZER_NOT_FOUND_MESSAGE)
