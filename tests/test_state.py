"""Test the Calculator input state machine."""
from typing import List

import pytest

from simple_calculator.calculator.state import Calculator, CalculatorState, Mode
from simple_calculator.history.store import InMemoryHistoryStore
from simple_calculator.voice.recognition import RecognitionError


@pytest.fixture
def history() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def calculator(history: InMemoryHistoryStore) -> Calculator:
    return Calculator(history=history, clock=lambda: 1_000)


def press_all(calculator: Calculator, keys: str) -> CalculatorState:
    state = calculator.state
    for key in keys:
        state = calculator.press(key)
    return state


def test_initial_state(calculator: Calculator) -> None:
    """A new calculator shows 0 with an empty expression."""
    assert calculator.expression == ""
    assert calculator.display == "0"
    assert calculator.mode is Mode.ENTERING


def test_digits_update_live_display(calculator: Calculator) -> None:
    """Typing digits builds the expression and shows its value."""
    state = press_all(calculator, "12")
    assert state.expression == "12"
    assert state.display == "12"


def test_operator_shows_partial_result(calculator: Calculator) -> None:
    """A trailing operator is ignored by the live display."""
    state = press_all(calculator, "12+3×")
    assert state.expression == "12+3×"
    assert state.display == "15"


def test_backspace_recomputes_display(calculator: Calculator) -> None:
    """Backspace on "12+3" leaves "12+" and shows 12."""
    press_all(calculator, "12+3")
    state = calculator.backspace()
    assert state.expression == "12+"
    assert state.display == "12"


def test_backspace_to_empty_shows_zero(calculator: Calculator) -> None:
    """Removing the last character resets the display to 0."""
    calculator.input_digit("5")
    state = calculator.backspace()
    assert state.expression == ""
    assert state.display == "0"


def test_backspace_on_empty_expression_is_noop(calculator: Calculator) -> None:
    """Backspace with nothing typed keeps the state."""
    before = calculator.state
    assert calculator.backspace() == before


def test_evaluate_records_history(calculator: Calculator, history: InMemoryHistoryStore) -> None:
    """Evaluating shows the result and appends "<expression>=<result>" to history."""
    press_all(calculator, "2+3")
    state = calculator.evaluate()

    assert state.display == "5"
    assert state.expression == "2+3=5"
    assert state.mode is Mode.RESULT_SHOWN

    entries = history.list_all()
    assert len(entries) == 1
    assert entries[0].calculation == "2+3=5"
    assert entries[0].timestamp == 1_000


def test_evaluate_twice_is_noop(calculator: Calculator, history: InMemoryHistoryStore) -> None:
    """A second "=" right after a result changes nothing."""
    press_all(calculator, "2+3=")
    state = calculator.evaluate()
    assert state.expression == "2+3=5"
    assert len(history.list_all()) == 1


def test_evaluate_empty_is_noop(calculator: Calculator, history: InMemoryHistoryStore) -> None:
    """Pressing "=" without an expression does not touch history."""
    state = calculator.evaluate()
    assert state.display == "0"
    assert history.list_all() == []


def test_division_by_zero_shows_error(calculator: Calculator, history: InMemoryHistoryStore) -> None:
    """Division by zero is displayed and recorded as Error."""
    state = press_all(calculator, "10÷0=")
    assert state.display == "Error"
    assert history.list_all()[0].calculation == "10÷0=Error"


def test_digit_after_result_starts_new_expression(calculator: Calculator) -> None:
    """A digit typed after a result replaces the calculation."""
    press_all(calculator, "2+3=")
    state = calculator.input_digit("7")
    assert state.expression == "7"
    assert state.display == "7"
    assert state.mode is Mode.ENTERING


def test_operator_after_result_continues_from_result(calculator: Calculator) -> None:
    """An operator typed after a result chains from that result."""
    press_all(calculator, "2+3=")
    state = calculator.input_operator("×")
    assert state.expression == "5×"
    assert state.display == "5"

    state = press_all(calculator, "4=")
    assert state.expression == "5×4=20"


def test_operator_replaces_trailing_operator(calculator: Calculator) -> None:
    """An expression never ends with two consecutive operators."""
    press_all(calculator, "2+")
    state = calculator.input_operator("÷")
    assert state.expression == "2÷"


def test_ascii_operator_is_normalized(calculator: Calculator) -> None:
    """ASCII operators are stored as the canonical glyphs."""
    press_all(calculator, "6*7/2")
    assert calculator.expression == "6×7÷2"
    assert calculator.display == "21"


@pytest.mark.parametrize("op", ["%", "^", "", "++"])
def test_unsupported_operator(calculator: Calculator, op: str) -> None:
    """Unknown operators are rejected."""
    with pytest.raises(ValueError):
        calculator.input_operator(op)


@pytest.mark.parametrize("digit", ["a", "", "1.", "²"])
def test_invalid_digit(calculator: Calculator, digit: str) -> None:
    """Only plain digits are accepted as digit input."""
    with pytest.raises(ValueError):
        calculator.input_digit(digit)


def test_decimal_on_empty_expression(calculator: Calculator) -> None:
    """A decimal point starting a number gets a leading zero."""
    state = calculator.input_decimal()
    assert state.expression == "0."
    assert state.display == "0"


def test_decimal_after_operator(calculator: Calculator) -> None:
    """A decimal point right after an operator also gets a leading zero."""
    press_all(calculator, "2+")
    state = calculator.input_decimal()
    assert state.expression == "2+0."
    assert state.display == "2"


def test_second_decimal_in_number_is_rejected(calculator: Calculator) -> None:
    """A number holds at most one decimal point."""
    press_all(calculator, "1.5")
    state = calculator.input_decimal()
    assert state.expression == "1.5"


def test_decimal_allowed_in_next_number(calculator: Calculator) -> None:
    """The decimal point check only looks at the number being typed."""
    state = press_all(calculator, "1.5+2.5")
    assert state.expression == "1.5+2.5"
    assert state.display == "4"


def test_decimal_after_result(calculator: Calculator) -> None:
    """A decimal point after a result starts a new number from 0."""
    press_all(calculator, "2+3=")
    state = calculator.input_decimal()
    assert state.expression == "0."
    assert state.mode is Mode.ENTERING


def test_backspace_after_result_clears(calculator: Calculator) -> None:
    """Backspace after a result behaves like clear."""
    press_all(calculator, "2+3=")
    state = calculator.backspace()
    assert state == CalculatorState()


def test_clear(calculator: Calculator) -> None:
    """Clear resets expression, display and mode."""
    press_all(calculator, "9×9")
    state = calculator.press("C")
    assert state == CalculatorState()


def test_press_backspace_key(calculator: Calculator) -> None:
    """Both backspace keys remove one character."""
    press_all(calculator, "123<")
    assert calculator.expression == "12"
    calculator.press("⌫")
    assert calculator.expression == "1"


def test_process_voice_input(calculator: Calculator, history: InMemoryHistoryStore) -> None:
    """A transcript is normalized, evaluated and recorded."""
    state = calculator.process_voice_input("12 plus 48")
    assert state.display == "60"
    assert state.expression == "12+48=60"
    assert history.list_all()[0].calculation == "12+48=60"


def test_process_voice_input_after_result(calculator: Calculator) -> None:
    """Voice input is evaluated even when a result is already shown."""
    press_all(calculator, "1+1=")
    state = calculator.process_voice_input("6 times 7")
    assert state.display == "42"


@pytest.mark.parametrize("error,message", [
    (RecognitionError.AUDIO, "Audio error"),
    (RecognitionError.CLIENT, "Client error"),
    (RecognitionError.NETWORK, "Network error"),
    (RecognitionError.NO_MATCH, "No match found"),
    (RecognitionError.SERVER, "Server error"),
    (RecognitionError.UNKNOWN, "Recognition failed"),
    (99, "Recognition failed"),
])
def test_voice_recognition_error(calculator: Calculator, error, message: str) -> None:
    """Recognition failures show a fixed message and reset the expression."""
    press_all(calculator, "12+")
    state = calculator.on_voice_recognition_error(error)
    assert state.display == message
    assert state.expression == ""


def test_capability_messages(calculator: Calculator) -> None:
    """Missing permission or recognizer is reported on the display."""
    assert calculator.on_mic_permission_denied().display == "Mic permission needed"
    assert calculator.on_speech_recognizer_not_found().display == "Speech recognizer not found"


def test_subscribe_and_unsubscribe(calculator: Calculator) -> None:
    """Listeners receive every new state until they unsubscribe."""
    seen: List[CalculatorState] = []
    unsubscribe = calculator.subscribe(seen.append)

    press_all(calculator, "1+2")
    assert [state.expression for state in seen] == ["1", "1+", "1+2"]

    unsubscribe()
    calculator.input_digit("3")
    assert len(seen) == 3


def test_failing_listener_does_not_break_calculator(calculator: Calculator) -> None:
    """An exception raised by a listener is not propagated."""
    def broken(state: CalculatorState) -> None:
        raise RuntimeError("render failed")

    calculator.subscribe(broken)
    state = press_all(calculator, "4×4=")
    assert state.display == "16"


def test_failing_history_does_not_break_evaluate() -> None:
    """A history write failure does not prevent showing the result."""
    class BrokenStore(InMemoryHistoryStore):
        def append(self, entry) -> None:
            raise OSError("disk full")

    calculator = Calculator(history=BrokenStore())
    state = press_all(calculator, "3×3=")
    assert state.display == "9"
    assert state.mode is Mode.RESULT_SHOWN


def test_calculator_without_history() -> None:
    """A calculator works without a history store."""
    calculator = Calculator()
    assert press_all(calculator, "7-9=").display == "-2"
