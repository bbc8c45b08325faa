"""Render evaluation results as display strings."""
import math


ERROR_TEXT = "Error"
FRACTION_DIGITS = 10


class ResultFormatter:
    """
    Convert evaluation results into the canonical display form.

    Rules:
        - NaN or infinite values are shown as "Error"
        - Integral values are shown without a fractional part ("5", not "5.0")
        - Other values keep 10 fractional digits, then trailing zeros and a
          trailing decimal point are stripped ("1.5000000000" -> "1.5")
    """

    @staticmethod
    def format(value: float) -> str:
        """
        Format a numeric result for display.

        :param float value: Evaluation result, possibly NaN

        :return: Display string
        :rtype: str
        """
        if math.isnan(value) or math.isinf(value):
            return ERROR_TEXT

        if value == math.trunc(value):
            return str(math.trunc(value))

        return f"{value:.{FRACTION_DIGITS}f}".rstrip("0").rstrip(".")

    @staticmethod
    def speech_text(display: str) -> str:
        """
        Build the sentence handed to the speech output after a voice calculation.

        :param str display: Display string of the result

        :return: Sentence to speak
        :rtype: str
        """
        return f"The result is {display}"
