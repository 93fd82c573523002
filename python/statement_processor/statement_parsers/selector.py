"""
Parser Selector

Picks the statement parser for a document by scoring it against every
registered format.
"""

import logging
from dataclasses import dataclass

from ..exceptions import FormatNotRecognized
from ..rules_store import RuleStore
from .banco_chile import BancoChileParser
from .base import BaseStatementParser, FormatScore
from .falabella import FalabellaParser
from .santander import SantanderParser
from .santander_checking import SantanderCheckingParser

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Parser chosen for a document."""

    parser: BaseStatementParser
    confidence: int
    format_name: str

    @property
    def bank_code(self) -> str:
        return self.parser.BANK_CODE


def default_parsers(store: RuleStore | None = None, year_hint: int | None = None) -> list[BaseStatementParser]:
    """Build the supported parsers in registration order.

    The order decides ties. The checking account format precedes the
    credit card format because a checking statement saturates the
    generic "santander" indicators of the card format. Callers indexing
    the list should look parsers up by BANK_CODE instead, since the card
    format is registered third, after the checking format.

    Args:
        store: Rule store shared by all parsers
        year_hint: Statement year for formats whose dates omit it
    """
    store = store or RuleStore.default()
    return [
        FalabellaParser(store),
        SantanderCheckingParser(store, year_hint=year_hint),
        SantanderParser(store),
        BancoChileParser(store),
    ]


class ParserSelector:
    """Chooses among a fixed, ordered list of parsers."""

    def __init__(self, parsers: list[BaseStatementParser] | None = None, store: RuleStore | None = None):
        """Initialize the selector.

        Args:
            parsers: Registered parsers; the default formats when omitted
            store: Rule store for the default parsers
        """
        self._parsers = tuple(parsers) if parsers else tuple(default_parsers(store))

    @property
    def parsers(self) -> tuple[BaseStatementParser, ...]:
        return self._parsers

    def scores(self, text: str) -> list[FormatScore]:
        """Score a document against every parser, in registration order."""
        return [parser.can_parse(text) for parser in self._parsers]

    def select(self, text: str) -> Selection:
        """Select the parser with the highest confidence.

        Only parsers whose own threshold is met take part; on a tie the
        first registered parser wins.

        Args:
            text: Full document text

        Returns:
            Selection with the chosen parser

        Raises:
            FormatNotRecognized: If no parser accepts the document
        """
        if not text or not text.strip():
            raise FormatNotRecognized()

        best: tuple[BaseStatementParser, FormatScore] | None = None
        scores = {}

        for parser in self._parsers:
            score = parser.can_parse(text)
            scores[parser.BANK_CODE] = score.confidence
            if score.can_parse and (best is None or score.confidence > best[1].confidence):
                best = (parser, score)

        if best is None:
            logger.info(f"No parser accepted the document: {scores}")
            raise FormatNotRecognized(scores=scores)

        parser, score = best
        logger.info(f"Selected {parser.BANK_NAME} parser (confidence {score.confidence}%)")
        return Selection(parser=parser, confidence=score.confidence, format_name=parser.BANK_NAME)

    def get_parser(self, bank_code: str) -> BaseStatementParser:
        """Look up a parser by its bank scope code.

        Raises:
            KeyError: If no parser handles that scope
        """
        for parser in self._parsers:
            if parser.BANK_CODE == bank_code:
                return parser
        raise KeyError(bank_code)

    def supported_formats(self) -> list[dict]:
        return [parser.get_format_info() for parser in self._parsers]
