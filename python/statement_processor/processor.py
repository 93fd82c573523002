"""
Statement Processor Module

Runs a whole document through format detection, line parsing,
classification and statement-level data extraction.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .categories import CategoryTaxonomy
from .categorizer import TransactionClassifier
from .models import Transaction
from .rules_store import RuleStore
from .statement_parsers import ParserSelector, default_parsers

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Result of processing a statement document."""

    bank_name: str
    bank_code: str
    confidence: int
    transactions: list[Transaction] = field(default_factory=list)
    total_lines: int = 0
    failed_lines: int = 0
    additional_data: dict = field(default_factory=dict)
    category_stats: dict = field(default_factory=dict)
    raw_lines: list[str] = field(default_factory=list)
    processed_at: datetime = field(default_factory=datetime.now)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def success_rate(self) -> int:
        """Percentage of candidate lines that became transactions."""
        if not self.total_lines:
            return 0
        return int(self.transaction_count / self.total_lines * 100 + 0.5)

    @property
    def total_expenses(self) -> int:
        return sum(abs(t.amount) for t in self.transactions if t.is_expense)

    @property
    def total_income(self) -> int:
        return sum(abs(t.amount) for t in self.transactions if not t.is_expense)

    def to_dict(self) -> dict:
        return {
            "bank_name": self.bank_name,
            "bank_code": self.bank_code,
            "confidence": self.confidence,
            "total_lines": self.total_lines,
            "parsed_transactions": self.transaction_count,
            "failed_lines": self.failed_lines,
            "success_rate": self.success_rate,
            "processed_at": self.processed_at.isoformat(),
            "transactions": [t.to_dict() for t in self.transactions],
            "additional_data": self.additional_data,
            "category_stats": self.category_stats,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class StatementProcessor:
    """Coordinates selection, parsing and classification for one document at a time."""

    MIN_CANDIDATE_LENGTH = 10

    HEADER_KEYWORDS = [
        "página",
        "page",
        "fecha emisión",
        "rut",
        "nombre",
        "dirección",
        "total",
        "saldo",
        "resumen",
        "detalle",
        "movimientos",
        "estado de cuenta",
        "═",
        "─",
        "***",
        "---",
        "___",
    ]

    FULL_DATE_PATTERN = re.compile(r"\b\d{1,2}/\d{1,2}/(\d{4}|\d{2})\b")
    SHORT_DATE_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}\s")

    def __init__(
        self,
        store: RuleStore | None = None,
        taxonomy: CategoryTaxonomy | None = None,
        selector: ParserSelector | None = None,
        classifier: TransactionClassifier | None = None,
        config_dir: Path | str | None = None,
        year_hint: int | None = None,
    ):
        """Initialize the processor.

        Args:
            store: Rule store; loaded from the config dir when omitted
            taxonomy: Category taxonomy; loaded from the config dir when omitted
            selector: Parser selector; the default formats when omitted
            classifier: Transaction classifier built from store and taxonomy when omitted
            config_dir: Path to configuration directory
            year_hint: Statement year for formats whose dates omit it
        """
        self.store = store or RuleStore.from_config(config_dir)
        self.taxonomy = taxonomy or CategoryTaxonomy.from_config(config_dir)
        self.selector = selector or ParserSelector(default_parsers(self.store, year_hint=year_hint))
        self.classifier = classifier or TransactionClassifier(self.store, self.taxonomy)

    def extract_candidate_lines(self, text: str) -> list[str]:
        """Keep the lines of a document that may hold a transaction.

        Args:
            text: Full document text

        Returns:
            Trimmed candidate lines in document order
        """
        candidates = []

        for raw in text.splitlines():
            line = raw.strip()
            if len(line) < self.MIN_CANDIDATE_LENGTH:
                continue
            if self._is_header_or_footer(line):
                continue
            if self.FULL_DATE_PATTERN.search(line) or self.SHORT_DATE_PATTERN.match(line):
                candidates.append(line)

        logger.debug(f"Extracted {len(candidates)} candidate lines")
        return candidates

    def _is_header_or_footer(self, line: str) -> bool:
        if self.FULL_DATE_PATTERN.search(line) and "$" in line:
            return False
        lower_line = line.lower()
        return any(keyword in lower_line for keyword in self.HEADER_KEYWORDS)

    def process_document(
        self,
        text: str,
        lines: list[str] | None = None,
        classify: bool = True,
    ) -> ProcessingResult:
        """Extract and classify the transactions of a statement.

        Args:
            text: Full document text, used for format detection
            lines: Candidate lines; extracted from the text when omitted
            classify: Whether to assign categories

        Returns:
            ProcessingResult

        Raises:
            FormatNotRecognized: If no parser accepts the document
        """
        selection = self.selector.select(text)
        parser = selection.parser

        candidates = lines if lines is not None else self.extract_candidate_lines(text)
        result = ProcessingResult(
            bank_name=parser.BANK_NAME,
            bank_code=parser.BANK_CODE,
            confidence=selection.confidence,
            total_lines=len(candidates),
            raw_lines=list(candidates),
        )

        transactions = parser.parse_multiple_transactions(candidates, errors=result.warnings)
        result.failed_lines = len(result.warnings)

        if classify and transactions:
            transactions = self.classifier.classify_batch(transactions)
            result.category_stats = self.classifier.categorization_stats(transactions)

        result.transactions = transactions
        result.additional_data = parser.extract_additional_data(text)

        if not transactions:
            result.errors.append("No transactions found in document")

        logger.info(
            f"Processed {parser.BANK_NAME} statement: {result.transaction_count}/{result.total_lines} "
            f"lines parsed ({result.success_rate}%)"
        )
        return result
