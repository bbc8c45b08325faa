"""Rewrite speech transcripts into calculator expressions."""
from pathlib import Path
import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, FilePath

from simple_calculator.common.logger import logger
from simple_calculator.common.parser import DIVIDE, MINUS, PLUS, TIMES


class PhraseRule(BaseModel):
    """A single substring substitution applied to a lower-cased transcript."""

    model_config = ConfigDict(frozen=True)

    phrase: str = Field(..., min_length=1, description="Lower-case text to look for")
    symbol: str = Field(..., description="Replacement text")


def _rules(symbol: str, phrases: Sequence[str]) -> List[PhraseRule]:
    return [PhraseRule(phrase=phrase, symbol=symbol) for phrase in phrases]


# Order matters: substitutions run top to bottom as plain substring replacements,
# so longer phrases must come before the shorter phrases they contain.
DEFAULT_RULES: List[PhraseRule] = [
    *_rules(TIMES, [
        "multiplied by", "multiplied", "multiply", "into", "times",
        "tines",  # misheard "times"
        "product of", "x", "*",
    ]),
    *_rules(DIVIDE, [
        "divided by", "divide by", "divide", "over",
        "hour", "all",  # misheard "over"
        "per", "/", "by",
    ]),
    *_rules(PLUS, [
        "plus", "add", "sum", "and", "increased by", "total of",
        "bless",  # misheard "plus"
    ]),
    *_rules(MINUS, [
        "minus",
        "mines",  # misheard "minus"
        "subtract", "take away", "less", "decreased by", "difference of",
    ]),
    PhraseRule(phrase="one", symbol="1"),
    PhraseRule(phrase="two", symbol="2"),
    PhraseRule(phrase="to", symbol="2"),
    PhraseRule(phrase="three", symbol="3"),
    PhraseRule(phrase="four", symbol="4"),
    PhraseRule(phrase="for", symbol="4"),
    PhraseRule(phrase="five", symbol="5"),
    PhraseRule(phrase="six", symbol="6"),
    PhraseRule(phrase="seven", symbol="7"),
    PhraseRule(phrase="eight", symbol="8"),
    PhraseRule(phrase="nine", symbol="9"),
    PhraseRule(phrase="zero", symbol="0"),
]


class PhraseTable(BaseModel):
    """Ordered phrase-to-symbol substitution policy, loadable from JSON."""

    rules: List[PhraseRule] = Field(default_factory=lambda: list(DEFAULT_RULES))

    @classmethod
    def from_json_file(cls, path: FilePath) -> "PhraseTable":
        """
        Load a phrase table from a JSON document such as {"rules": [{"phrase": "plus", "symbol": "+"}]}.

        :param FilePath path: Path to the JSON file

        :return: Validated phrase table
        :rtype: PhraseTable
        :raises pydantic.ValidationError: If the document does not describe a phrase table
        """
        table = cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
        logger.info(f"🗣️ Loaded {len(table.rules)} phrase rules from {path}")
        return table


_WHITESPACE = re.compile(r"\s+")


class VoicePhraseNormalizer:
    """
    Best-effort rewrite of a spoken transcript into an expression string.

    This is a rule set, not a grammar: every rule is a plain substring
    replacement, so a short rule can fire inside a longer word ("for" in
    "before"). The output is deterministic for a given table but not
    idempotent, and it is not validated; the evaluator copes with whatever
    comes out.
    """

    def __init__(self, rules: Optional[Sequence[PhraseRule]] = None) -> None:
        self.rules: List[PhraseRule] = list(DEFAULT_RULES if rules is None else rules)

    @classmethod
    def from_table(cls, table: PhraseTable) -> "VoicePhraseNormalizer":
        """Build a normalizer applying the rules of a phrase table."""
        return cls(rules=table.rules)

    def normalize(self, transcript: str) -> str:
        """
        Convert a transcript such as "12 plus 48" into "12+48".

        :param str transcript: Raw speech-to-text output

        :return: Expression string for the evaluator
        :rtype: str
        """
        # "3:22" is a misheard "322"
        processed = transcript.lower().replace(":", "")
        for rule in self.rules:
            processed = processed.replace(rule.phrase, rule.symbol)

        expression = _WHITESPACE.sub("", processed)
        logger.debug(f"🗣️ Normalized {transcript!r} into {expression!r}")
        return expression
