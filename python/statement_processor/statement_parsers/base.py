"""
Base Statement Parser Module

Abstract base class for bank-specific statement line parsers.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from ..description_corrector import CorrectionResult, DescriptionCorrector
from ..exceptions import LineParseError
from ..line_filter import LineFilterEngine
from ..models import Transaction, TransactionType
from ..rules_store import RuleStore

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_LETTER = re.compile(r"[^\W\d_]")
_DIGITS_AND_PUNCTUATION = re.compile(r"^[\d\s\W_]+$")


@dataclass
class FormatScore:
    """How confident a parser is that it understands a document."""

    bank_name: str
    bank_code: str
    confidence: int
    can_parse: bool

    def to_dict(self) -> dict:
        return {
            "bank_name": self.bank_name,
            "bank_code": self.bank_code,
            "confidence": self.confidence,
            "can_parse": self.can_parse,
        }


class BaseStatementParser(ABC):
    """Abstract base class for statement line parsers.

    Subclasses implement the format grammar in ``_parse`` and the
    document scoring in ``_score``. Filtering, description correction
    and validation are shared.
    """

    BANK_NAME: str = "Unknown"
    BANK_CODE: str = "unknown"
    PRODUCT_TYPE: str = ""
    VERSION: str = "1.0.0"

    # Minimum document score for can_parse
    MIN_CONFIDENCE: int = 50
    MIN_LINE_LENGTH: int = 10
    LINE_CONFIDENCE: int = 90

    # Tokens that are never a description on their own
    LOCATIONS: list[str] = []
    TRANSACTION_CODES: list[str] = []

    def __init__(
        self,
        store: RuleStore | None = None,
        line_filter: LineFilterEngine | None = None,
        corrector: DescriptionCorrector | None = None,
    ):
        """Initialize the parser.

        Args:
            store: Rule store; the built-in defaults when omitted
            line_filter: Filter engine, built from the store when omitted
            corrector: Description corrector, built from the store when omitted
        """
        self.store = store or (line_filter.store if line_filter else RuleStore.default())
        self.line_filter = line_filter or LineFilterEngine(self.store)
        self.corrector = corrector or DescriptionCorrector(self.store)

    # ------------------------------------------------------------------
    # Format detection
    # ------------------------------------------------------------------

    def can_parse(self, text: str) -> FormatScore:
        """Score how well the document matches this format.

        Args:
            text: Full document text

        Returns:
            FormatScore with a 0-100 confidence
        """
        score = self._score(text) if text and isinstance(text, str) else 0
        confidence = max(0, min(score, 100))
        return FormatScore(
            bank_name=self.BANK_NAME,
            bank_code=self.BANK_CODE,
            confidence=confidence,
            can_parse=confidence >= self.MIN_CONFIDENCE,
        )

    @abstractmethod
    def _score(self, text: str) -> int:
        """Raw weighted indicator score for a document."""
        pass

    def get_format_info(self) -> dict:
        return {
            "bank_name": self.BANK_NAME,
            "bank_code": self.BANK_CODE,
            "product_type": self.PRODUCT_TYPE,
            "version": self.VERSION,
            "min_confidence": self.MIN_CONFIDENCE,
        }

    def extract_additional_data(self, text: str) -> dict[str, Any]:
        """Statement-level figures (billed amount, due date...). Empty by default."""
        return {}

    # ------------------------------------------------------------------
    # Line parsing
    # ------------------------------------------------------------------

    def parse_line(self, line: str, line_number: int | None = None) -> Transaction | None:
        """Parse a single line. Never raises.

        Args:
            line: Candidate statement line
            line_number: Position of the line in its batch

        Returns:
            Transaction, or None when the line is not a valid transaction
        """
        try:
            return self.parse_line_strict(line, line_number)
        except LineParseError as e:
            logger.debug(f"[{self.BANK_CODE}] Rejected line {line!r}: {e}")
        except Exception as e:
            logger.warning(f"[{self.BANK_CODE}] Unexpected error parsing line {line!r}: {e}")
        return None

    def parse_line_strict(self, line: str, line_number: int | None = None) -> Transaction | None:
        """Parse a single line, raising on lines that look like broken transactions.

        Returns:
            Transaction, or None for lines that are not transactions at all

        Raises:
            LineParseError: If the line cannot be reduced to a valid transaction
        """
        if not isinstance(line, str):
            return None

        clean_line = self._clean_text(line)
        if len(clean_line) < self.MIN_LINE_LENGTH:
            return None

        if self.should_skip_line(clean_line):
            return None

        return self._parse(clean_line, line, line_number)

    def parse_multiple_transactions(
        self,
        lines: Iterable[str],
        errors: list[str] | None = None,
    ) -> list[Transaction]:
        """Parse a batch of lines, skipping the ones that fail.

        Args:
            lines: Candidate lines in document order
            errors: Optional list that receives one message per failed line

        Returns:
            Parsed transactions in source order
        """
        transactions = []

        for line_number, line in enumerate(lines, start=1):
            try:
                txn = self.parse_line_strict(line, line_number)
            except LineParseError as e:
                logger.debug(f"[{self.BANK_CODE}] Line {line_number} rejected: {e}")
                if errors is not None:
                    errors.append(f"Line {line_number}: {e}")
                continue
            except Exception as e:
                logger.warning(f"[{self.BANK_CODE}] Error parsing line {line_number}: {e}")
                if errors is not None:
                    errors.append(f"Line {line_number}: {e}")
                continue

            if txn is not None:
                transactions.append(txn)

        logger.info(f"[{self.BANK_CODE}] Parsed {len(transactions)} transactions from batch")
        return transactions

    def should_skip_line(self, line: str) -> bool:
        """Check stored filter rules, then the format's own noise filter."""
        decision = self.line_filter.should_skip(line, self.BANK_CODE)
        if decision.skip:
            logger.debug(f"[{self.BANK_CODE}] Line filtered by rule: {decision.reason}: {line!r}")
            return True
        return self.is_noise_line(line)

    def is_noise_line(self, line: str) -> bool:
        """Format-specific headers, totals and metadata lines."""
        return False

    @abstractmethod
    def _parse(self, line: str, raw_line: str, line_number: int | None) -> Transaction | None:
        """Parse a cleaned, unfiltered line."""
        pass

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clean_text(text: str) -> str:
        return _WHITESPACE.sub(" ", text).strip()

    @staticmethod
    def _digits(token: str) -> str:
        return re.sub(r"\D", "", token)

    @staticmethod
    def _parse_amount(amount_str: str) -> int:
        """Convert a Chilean formatted amount ("$ -1.234,00") to an integer.

        Raises:
            LineParseError: If no number can be read
        """
        cleaned = amount_str.replace("$", "").replace(" ", "")
        cleaned = cleaned.split(",")[0].replace(".", "")
        try:
            return int(cleaned)
        except ValueError:
            raise LineParseError(f"Cannot parse amount: {amount_str}")

    @staticmethod
    def _make_date(day: int | str, month: int | str, year: int | str) -> date:
        """Build a date, rejecting impossible calendar values.

        Raises:
            LineParseError: If the date does not exist
        """
        try:
            return date(int(year), int(month), int(day))
        except ValueError:
            raise LineParseError(f"Invalid date: {day}/{month}/{year}")

    def _is_valid_description(self, description: str) -> bool:
        """Reject empty, digit-only and bare code or location descriptions."""
        text = description.strip() if description else ""
        if not text:
            return False
        if _DIGITS_AND_PUNCTUATION.match(text) or not _LETTER.search(text):
            return False
        lowered = text.lower()
        if any(lowered == code.lower() for code in self.TRANSACTION_CODES):
            return False
        if any(lowered == location.lower() for location in self.LOCATIONS):
            return False
        return True

    def _correct(self, description: str) -> CorrectionResult:
        return self.corrector.apply(description, self.BANK_CODE)

    def _build_transaction(
        self,
        *,
        raw_line: str,
        line_number: int | None,
        txn_date: date,
        correction: CorrectionResult,
        amount: int,
        txn_type: TransactionType,
        confidence: int | None = None,
        **extra: Any,
    ) -> Transaction:
        """Assemble and validate a transaction.

        Raises:
            LineParseError: If the result breaks a transaction invariant
        """
        txn = Transaction(
            date=txn_date,
            description=correction.corrected.strip(),
            amount=amount,
            type=txn_type,
            raw_line=raw_line,
            confidence=self.LINE_CONFIDENCE if confidence is None else confidence,
            bank_name=self.BANK_NAME,
            line_number=line_number,
            original_description=correction.original,
            applied_corrections=correction.applied_ids,
            **extra,
        )

        problems = txn.validate()
        if problems:
            raise LineParseError("; ".join(problems), raw_line)

        return txn
