"""Speech recognition error codes and speech output collaborators."""
from enum import Enum
from typing import Protocol, Union

from simple_calculator.common.logger import logger


MIC_PERMISSION_MESSAGE = "Mic permission needed"
RECOGNIZER_NOT_FOUND_MESSAGE = "Speech recognizer not found"


class RecognitionError(int, Enum):
    """Failure codes reported by the speech recognizer."""

    AUDIO = 5
    CLIENT = 2
    NETWORK = 4
    NO_MATCH = 1
    SERVER = 3
    UNKNOWN = 0

    @property
    def message(self) -> str:
        """User-visible message displayed for this failure."""
        return _MESSAGES[self]

    @classmethod
    def from_code(cls, code: Union[int, "RecognitionError"]) -> "RecognitionError":
        """
        Map a raw recognizer result code to a known failure, UNKNOWN when unmapped.

        :param int code: Result code handed over by the recognizer

        :return: Matching recognition error
        :rtype: RecognitionError
        """
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


_MESSAGES = {
    RecognitionError.AUDIO: "Audio error",
    RecognitionError.CLIENT: "Client error",
    RecognitionError.NETWORK: "Network error",
    RecognitionError.NO_MATCH: "No match found",
    RecognitionError.SERVER: "Server error",
    RecognitionError.UNKNOWN: "Recognition failed",
}


class SpeechOutput(Protocol):
    """Text-to-speech engine. Completion is never reported back."""

    def speak(self, text: str) -> None:
        ...


class LoggingSpeechOutput:
    """Speech output that writes the sentence to the log instead of a speaker."""

    def speak(self, text: str) -> None:
        logger.info(f"🔊 {text}")
