"""Glue between the speech collaborators and the calculator."""
from typing import Optional, Union

from simple_calculator.calculator.state import Calculator, CalculatorState, Mode
from simple_calculator.common.formatter import ResultFormatter
from simple_calculator.common.logger import logger
from simple_calculator.voice.recognition import LoggingSpeechOutput, RecognitionError, SpeechOutput


class VoiceController:
    """
    Route recognizer callbacks into a calculator and speak results back.

    Recognition and speech output are best-effort: a failing speech engine is
    logged, and recognition failures only change the displayed message.
    """

    def __init__(self, calculator: Calculator, speech_output: Optional[SpeechOutput] = None) -> None:
        self.calculator = calculator
        self.speech_output = speech_output or LoggingSpeechOutput()

    def on_transcript(self, transcript: str) -> CalculatorState:
        """
        Evaluate a transcript and speak the displayed result.

        :param str transcript: Best recognition hypothesis

        :return: Calculator state after evaluation
        :rtype: CalculatorState
        """
        logger.info(f"🎙️ Heard: {transcript!r}")
        state = self.calculator.process_voice_input(transcript)
        self._speak(ResultFormatter.speech_text(state.display))
        return state

    def speak_display(self) -> str:
        """
        Read the current display aloud.

        A shown result is announced as a sentence, a live value is read as is
        and an untouched display is read as "Zero".

        :return: Text handed to the speech output
        :rtype: str
        """
        state = self.calculator.state
        if state.mode is Mode.RESULT_SHOWN:
            text = ResultFormatter.speech_text(state.display)
        elif state.display != "0":
            text = state.display
        else:
            text = "Zero"
        self._speak(text)
        return text

    def on_error(self, code: Union[int, RecognitionError]) -> CalculatorState:
        """Report a recognition failure on the display."""
        return self.calculator.on_voice_recognition_error(RecognitionError.from_code(code))

    def _speak(self, text: str) -> None:
        try:
            self.speech_output.speak(text)
        except Exception as exc:
            logger.error(f"🔊❌ Speech output failed: {exc}")
