"""
Command line entrypoint.

Subcommands:
- eval: evaluate a keypad expression
- voice: normalize and evaluate a speech transcript
- batch: evaluate a text file of expressions or transcripts
- history: list, search, clear or import the calculation history

Every calculation is appended to a SQLite history file.
"""

import argparse
from datetime import date
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError

from simple_calculator.calculator.state import Calculator
from simple_calculator.client.batch import BatchEvaluator, build_output_path
from simple_calculator.common.logger import configure_logging, logger
from simple_calculator.history.grouping import day_header, filter_by_day, group_by_day
from simple_calculator.history.legacy import import_legacy_history
from simple_calculator.history.store import BackgroundHistoryWriter, SqliteHistoryStore
from simple_calculator.voice.controller import VoiceController
from simple_calculator.voice.normalizer import PhraseTable, VoicePhraseNormalizer


DEFAULT_HISTORY_PATH = Path.home() / ".simple_calculator" / "history.db"


class CalculatorSettings(BaseModel):
    """
    Pydantic model used to validate the global CLI options.

    Attributes
    ----------
    history_path : Path
        SQLite file holding the calculation history.
    phrase_table : Optional[FilePath]
        JSON file replacing the default voice phrase table.
    log_level : str
        Name of the logging level.
    """

    history_path: Path = Field(default=DEFAULT_HISTORY_PATH)
    phrase_table: Optional[FilePath] = Field(default=None)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="WARNING")

    def load_phrase_table(self) -> PhraseTable:
        """Phrase table from the configured file, or the default table."""
        if self.phrase_table is None:
            return PhraseTable()
        return PhraseTable.from_json_file(self.phrase_table)


class BatchArgs(BaseModel):
    """Validated arguments of the batch subcommand."""

    file_path: FilePath
    voice: bool = False


class LegacyImportArgs(BaseModel):
    """Validated arguments of the history import-legacy subcommand."""

    file_path: FilePath


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser with all subcommands.

    :return: Configured parser
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="simple-calculator",
        description="Keypad and voice calculator with history",
    )
    parser.add_argument("--history", dest="history_path", default=str(DEFAULT_HISTORY_PATH),
                        help="SQLite file holding the calculation history")
    parser.add_argument("--phrase-table", dest="phrase_table", default=None,
                        help="JSON file with the voice phrase substitution rules")
    parser.add_argument("--log-level", dest="log_level", default="WARNING", type=str.upper,
                        help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    commands = parser.add_subparsers(dest="command", required=True)

    eval_parser = commands.add_parser("eval", help="Type an expression key by key, such as '2+3×4'")
    eval_parser.add_argument("expression")

    voice_parser = commands.add_parser("voice", help="Evaluate a spoken phrase such as '12 plus 48'")
    voice_parser.add_argument("transcript")

    batch_parser = commands.add_parser("batch", help="Evaluate every line of a .txt file")
    batch_parser.add_argument("file_path", help="Path to the .txt file")
    batch_parser.add_argument("--voice", action="store_true", help="Treat lines as speech transcripts")

    history_parser = commands.add_parser("history", help="Browse the calculation history")
    history_commands = history_parser.add_subparsers(dest="history_command", required=True)
    list_parser = history_commands.add_parser("list", help="List calculations, newest first")
    search_parser = history_commands.add_parser("search", help="Find calculations containing a text")
    search_parser.add_argument("query")
    for day_parser in (list_parser, search_parser):
        day_parser.add_argument("--day", type=date.fromisoformat, default=None, help="Only show YYYY-MM-DD")
    history_commands.add_parser("clear", help="Delete all calculations")
    import_parser = history_commands.add_parser("import-legacy", help="Import a legacy history export")
    import_parser.add_argument("file_path")

    return parser


def render_history(entries, day: Optional[date] = None) -> List[str]:
    """
    Lay out history entries under per-day headings.

    :param entries: History entries, newest first
    :param Optional[date] day: Only keep entries of this day

    :return: Output lines
    :rtype: List[str]
    """
    lines: List[str] = []
    for entry_date, day_entries in group_by_day(filter_by_day(entries, day)).items():
        lines.append(day_header(entry_date))
        lines.extend(f"  {entry.calculation}" for entry in day_entries)
    return lines


def run(args: argparse.Namespace, settings: CalculatorSettings) -> List[str]:
    """
    Execute a parsed command and return the lines to print.

    :param argparse.Namespace args: Parsed arguments
    :param CalculatorSettings settings: Validated global options

    :return: Output lines
    :rtype: List[str]
    :raises ValueError: If an input file cannot be processed
    :raises ValidationError: If subcommand arguments are invalid
    """
    store = SqliteHistoryStore(path=settings.history_path)

    if args.command == "history":
        if args.history_command == "list":
            return render_history(store.list_all(), args.day)
        if args.history_command == "search":
            return render_history(store.search(args.query), args.day)
        if args.history_command == "clear":
            store.clear()
            return ["History cleared"]
        legacy_file = LegacyImportArgs(file_path=args.file_path).file_path
        count = import_legacy_history(store, legacy_file.read_text(encoding="utf-8"))
        return [f"Imported {count} entries"]

    if args.command == "batch":
        batch_args = BatchArgs(file_path=args.file_path, voice=args.voice)
        evaluator = BatchEvaluator(
            mode="voice" if batch_args.voice else "keypad",
            phrase_table=settings.load_phrase_table(),
        )
        output_path = build_output_path(batch_args.file_path)
        calculations = evaluator.evaluate_file(batch_args.file_path, output_path, history=store)
        return [f"{len(calculations)} results written to {output_path}"]

    with BackgroundHistoryWriter(store) as history:
        normalizer = VoicePhraseNormalizer.from_table(settings.load_phrase_table())
        calculator = Calculator(history=history, normalizer=normalizer)

        if args.command == "voice":
            state = VoiceController(calculator).on_transcript(args.transcript)
            return [state.expression]

        for key in args.expression.replace(" ", ""):
            calculator.press(key)
        calculator.evaluate()
        return [calculator.display]


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main function executed by the console script.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = CalculatorSettings(
            history_path=args.history_path,
            phrase_table=args.phrase_table,
            log_level=args.log_level,
        )
    except ValidationError as exc:
        parser.error(str(exc))

    configure_logging(settings.log_level)

    try:
        lines = run(args, settings)
    except (ValidationError, ValueError) as exc:
        logger.error(f"❌ {exc}")
        parser.error(str(exc))

    for line in lines:
        print(line)


if __name__ == "__main__":
    main()
