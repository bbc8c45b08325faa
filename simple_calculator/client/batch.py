"""Evaluate files of expressions or voice transcripts."""
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, FilePath

from simple_calculator.common.formatter import ERROR_TEXT
from simple_calculator.common.logger import logger
from simple_calculator.common.models import CalculationResult, HistoryEntry, now_millis
from simple_calculator.history.store import HistoryStore
from simple_calculator.voice.normalizer import PhraseTable, VoicePhraseNormalizer


def build_output_path(input_path: Path) -> Path:
    """
    Construct the results file path for an input file.

    - Keeps the input's folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/operations.txt
    output: resources/operations_txt_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffixes = "".join(input_path.suffixes)
    stem = input_path.name[: -len(suffixes)] if suffixes else input_path.name
    return input_path.with_name(f"{stem}{suffixes.replace('.', '_')}_results.txt")


class BatchEvaluator(BaseModel):
    """
    Evaluate every line of a text file and write the calculations to a results file.

    The batch evaluator:
    - reads the non-empty lines of a plain text file
    - normalizes each line first when it holds voice transcripts
    - writes one "<expression>=<result>" line per input line
    - optionally appends each calculation to a history store
    """

    # Make the Pydantic instance immutable (read-only)
    model_config = ConfigDict(frozen=True)

    mode: Literal["keypad", "voice"] = Field(default="keypad", description="How input lines are interpreted")
    phrase_table: PhraseTable = Field(default_factory=PhraseTable, description="Rules used in voice mode")

    def read_lines(self, input_file: FilePath) -> List[str]:
        """
        Load the non-empty lines of an input file.

        :param FilePath input_file: Path to the .txt input file

        :return: Stripped, non-empty lines
        :rtype: List[str]
        :raises ValueError: If the file is not a .txt file
        """
        if input_file.suffix != ".txt":
            raise ValueError(f"📄❌ Unsupported input format: {input_file.suffix or input_file.name}")

        content = input_file.read_text(encoding="utf-8")
        return [line.strip() for line in content.splitlines() if line.strip()]

    def evaluate_lines(self, lines: List[str]) -> List[CalculationResult]:
        """
        Evaluate lines, normalizing them first in voice mode.

        :param List[str] lines: Expressions or transcripts

        :return: One calculation per line
        :rtype: List[CalculationResult]
        """
        normalizer = VoicePhraseNormalizer.from_table(self.phrase_table) if self.mode == "voice" else None

        calculations: List[CalculationResult] = []
        for line_number, line in enumerate(lines, start=1):
            expression = normalizer.normalize(line) if normalizer else line
            calculation = CalculationResult.from_expression(expression)
            logger.debug(f"📄 Line {line_number}: {calculation.calculation}")
            calculations.append(calculation)
        return calculations

    def evaluate_file(
        self,
        input_file: FilePath,
        output_file: Path,
        history: Optional[HistoryStore] = None,
    ) -> List[CalculationResult]:
        """
        Evaluate an input file and write the calculations to an output file.

        :param FilePath input_file: Path to the .txt input file
        :param Path output_file: Path where results will be written
        :param Optional[HistoryStore] history: Store receiving every calculation

        :return: Evaluated calculations, in input order
        :rtype: List[CalculationResult]
        :raises ValueError: If the file is not a .txt file
        """
        calculations = self.evaluate_lines(self.read_lines(input_file))

        with output_file.open("w", encoding="utf-8") as f_out:
            for calculation in calculations:
                f_out.write(f"{calculation.calculation}\n")
                if history is not None:
                    history.append(
                        HistoryEntry.for_calculation(calculation.expression, calculation.display, now_millis())
                    )

        errors = sum(1 for calculation in calculations if calculation.display == ERROR_TEXT)
        logger.info(f"📄✅ Evaluated {len(calculations)} lines from {input_file} ({errors} errors) into {output_file}")
        return calculations
