"""
Statement Processor Module

Extracts transactions from Chilean bank statement text, filters and
corrects their descriptions with a persisted rule store, and classifies
them into spending categories.
"""

from .exceptions import (
    StatementProcessingError,
    FormatNotRecognized,
    LineParseError,
    InvalidRuleDefinition,
    InvalidCategoryReference,
    InvalidCategory,
    MalformedRuleDocument,
    ProtectedCategoryError,
)
from .models import Transaction, TransactionType
from .rules_store import RuleStore, FilterRule, CorrectionRule, LearnedPattern
from .line_filter import LineFilterEngine, FilterDecision
from .description_corrector import DescriptionCorrector, CorrectionResult, Suggestion
from .categories import CategoryTaxonomy, CategoryDefinition, DEFAULT_CATEGORY
from .categorizer import TransactionClassifier, Classification
from .statement_parsers import (
    BaseStatementParser,
    FalabellaParser,
    SantanderParser,
    SantanderCheckingParser,
    BancoChileParser,
    ParserSelector,
    Selection,
    default_parsers,
)
from .processor import StatementProcessor, ProcessingResult

__all__ = [
    # Errors
    "StatementProcessingError",
    "FormatNotRecognized",
    "LineParseError",
    "InvalidRuleDefinition",
    "InvalidCategoryReference",
    "InvalidCategory",
    "MalformedRuleDocument",
    "ProtectedCategoryError",
    # Records
    "Transaction",
    "TransactionType",
    # Rules
    "RuleStore",
    "FilterRule",
    "CorrectionRule",
    "LearnedPattern",
    "LineFilterEngine",
    "FilterDecision",
    "DescriptionCorrector",
    "CorrectionResult",
    "Suggestion",
    # Classification
    "CategoryTaxonomy",
    "CategoryDefinition",
    "DEFAULT_CATEGORY",
    "TransactionClassifier",
    "Classification",
    # Parsing
    "BaseStatementParser",
    "FalabellaParser",
    "SantanderParser",
    "SantanderCheckingParser",
    "BancoChileParser",
    "ParserSelector",
    "Selection",
    "default_parsers",
    "StatementProcessor",
    "ProcessingResult",
]
