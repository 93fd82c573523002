"""
Transaction Classifier Module

Assigns a category, a confidence and a reason to each transaction with a
five stage cascade: learned patterns, keyword scoring, amount heuristics,
fuzzy similarity against example phrases, and the default category.
"""

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path

from rapidfuzz.distance import Levenshtein

from .categories import DEFAULT_CATEGORY, DEFAULT_COLOR, DEFAULT_ICON, CategoryTaxonomy, normalize_text
from .models import Transaction
from .rules_store import LearnedPattern, RuleStore

logger = logging.getLogger(__name__)


@dataclass
class Classification:
    """Category assigned to a description."""

    category: str
    confidence: int
    reason: str
    method: str  # 'learned', 'keyword', 'amount', 'fuzzy', 'default'

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "confidence": self.confidence,
            "reason": self.reason,
            "classification_method": self.method,
        }


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


class TransactionClassifier:
    """Cascading rule-based transaction classifier."""

    CONFIDENCE_THRESHOLD = 60
    FUZZY_THRESHOLD = 30
    FUZZY_MIN_SIMILARITY = 0.6
    LEARNED_CONFIDENCE = 95
    DEFAULT_CONFIDENCE = 20

    # Keyword scoring
    KEYWORD_LENGTH_WEIGHT = 5
    KEYWORD_BASE_CAP = 50
    EXACT_MATCH_BONUS = 30
    LEADING_MATCH_BONUS = 25
    WHOLE_WORD_BONUS = 15

    # Extra points for keywords that open the description
    LEADING_KEYWORD_EXCEPTIONS = {
        "transf": 10,
    }

    INCOME_KEYWORDS = ["anulacion", "devolucion", "reembolso", "abono", "transferencia recibida"]
    HIGH_INCOME_AMOUNT = 500000
    FUEL_KEYWORDS = ["shell", "petrobras", "copec"]
    FUEL_RANGE = (20000, 80000)
    UTILITY_KEYWORDS = ["agua", "luz", "gas"]
    UTILITY_RANGE = (10000, 100000)

    def __init__(
        self,
        store: RuleStore,
        taxonomy: CategoryTaxonomy | None = None,
        config_dir: Path | str | None = None,
    ):
        """Initialize the classifier.

        Args:
            store: Rule store holding the learned patterns
            taxonomy: Category taxonomy; loaded from the config dir if omitted
            config_dir: Path to configuration directory
        """
        self.store = store
        self.taxonomy = taxonomy or CategoryTaxonomy.from_config(config_dir)

    @staticmethod
    def clean_description(description: str) -> str:
        """Lowercase, replace punctuation with spaces and collapse whitespace."""
        return normalize_text(description)

    def classify(self, description: str, amount: int | None = None) -> Classification:
        """Classify a single description.

        Args:
            description: Transaction description
            amount: Signed amount, used by the amount heuristics

        Returns:
            Classification from the first stage that accepts
        """
        if not description or not isinstance(description, str):
            return Classification(DEFAULT_CATEGORY, 0, "Descripción inválida", "default")

        clean = self.clean_description(description)

        result = self._match_learned(clean)
        if result and result.confidence >= self.CONFIDENCE_THRESHOLD:
            return result

        result = self._score_keywords(clean)
        if result and result.confidence >= self.CONFIDENCE_THRESHOLD:
            return result

        result = self._match_amount(clean, amount)
        if result and result.confidence >= self.CONFIDENCE_THRESHOLD:
            return result

        result = self._match_fuzzy(clean)
        if result and result.confidence >= self.FUZZY_THRESHOLD:
            return result

        return Classification(
            DEFAULT_CATEGORY,
            self.DEFAULT_CONFIDENCE,
            "No se encontró patrón específico",
            "default",
        )

    def _match_learned(self, description: str) -> Classification | None:
        for learned in self.store.learned_patterns():
            fragment = self.clean_description(learned.pattern)
            if fragment and fragment in description:
                return Classification(
                    learned.category,
                    self.LEARNED_CONFIDENCE,
                    f'Patrón aprendido: "{learned.pattern}"',
                    "learned",
                )
        return None

    def keyword_score(self, keyword: str, description: str) -> int:
        """Score one keyword against a cleaned description, 0 if absent."""
        keyword = keyword.lower()
        if keyword not in description:
            return 0

        score = min(len(keyword) * self.KEYWORD_LENGTH_WEIGHT, self.KEYWORD_BASE_CAP)
        if description == keyword:
            score += self.EXACT_MATCH_BONUS
        if description.startswith(keyword):
            score += self.LEADING_MATCH_BONUS
            score += self.LEADING_KEYWORD_EXCEPTIONS.get(keyword, 0)
        if re.search(rf"\b{re.escape(keyword)}\b", description):
            score += self.WHOLE_WORD_BONUS
        return score

    def _score_keywords(self, description: str) -> Classification | None:
        best_category = None
        best_score = 0
        best_keywords: list[str] = []

        for category in self.taxonomy.matchable():
            total = 0
            found = []
            for keyword in category.keywords:
                score = self.keyword_score(keyword, description)
                if score:
                    total += score
                    found.append(keyword)

            if total > best_score:
                best_category = category.name
                best_score = total
                best_keywords = found

        if best_category is None:
            return None

        return Classification(
            best_category,
            min(best_score, 100),
            f"Keywords encontradas: {', '.join(best_keywords)}",
            "keyword",
        )

    def _match_amount(self, description: str, amount: int | None) -> Classification | None:
        if not amount or isinstance(amount, bool):
            return None

        if amount > 0:
            for keyword in self.INCOME_KEYWORDS:
                if keyword in description:
                    return Classification("Ingresos", 75, f'Monto positivo + keyword: "{keyword}"', "amount")
            if amount > self.HIGH_INCOME_AMOUNT:
                return Classification("Ingresos", 40, "Monto alto sugiere ingreso", "amount")

        if amount < 0:
            value = abs(amount)
            low, high = self.FUEL_RANGE
            if low <= value <= high and any(k in description for k in self.FUEL_KEYWORDS):
                return Classification("Transporte", 60, "Monto típico de combustible", "amount")
            low, high = self.UTILITY_RANGE
            if low <= value <= high and any(k in description for k in self.UTILITY_KEYWORDS):
                return Classification("Servicios Básicos", 50, "Monto típico de servicios", "amount")

        return None

    @staticmethod
    def similarity(first: str, second: str) -> float:
        """Normalized Levenshtein similarity in [0, 1]."""
        if not first and not second:
            return 1.0
        return Levenshtein.normalized_similarity(first, second)

    def _match_fuzzy(self, description: str) -> Classification | None:
        # First example over the threshold wins, in taxonomy order
        for category in self.taxonomy.matchable():
            for example in category.examples:
                similarity = self.similarity(description, example.lower())
                if similarity >= self.FUZZY_MIN_SIMILARITY:
                    return Classification(
                        category.name,
                        _round_half_up(similarity * 50),
                        f'Similitud con: "{example}" ({_round_half_up(similarity * 100)}%)',
                        "fuzzy",
                    )
        return None

    def classify_transaction(self, transaction: Transaction) -> Transaction:
        """Return a copy of the transaction annotated with its category."""
        result = self.classify(transaction.description, transaction.amount)
        category = self.taxonomy.get(result.category)
        return replace(
            transaction,
            category=result.category,
            category_confidence=result.confidence,
            category_reason=result.reason,
            category_color=(category.color if category else None) or DEFAULT_COLOR,
            category_icon=(category.icon if category else None) or DEFAULT_ICON,
        )

    def classify_batch(self, transactions: list[Transaction]) -> list[Transaction]:
        """Classify each transaction independently.

        Args:
            transactions: Parsed transactions

        Returns:
            Annotated copies, in the same order
        """
        classified = [self.classify_transaction(txn) for txn in transactions]

        if classified:
            specific = sum(1 for t in classified if t.category != DEFAULT_CATEGORY)
            logger.info(f"Classified {len(classified)} transactions ({specific} with a specific category)")

        return classified

    def learn(self, pattern: str, category: str, source: str = "admin") -> LearnedPattern:
        """Memorize a description fragment for a category and persist the store.

        Raises:
            InvalidCategoryReference: If the category is not in the taxonomy
            ValueError: If the pattern is empty
        """
        if not pattern or not pattern.strip():
            raise ValueError("Pattern is required")

        return self.store.add_learned_pattern(pattern, category, self.taxonomy.names(), source)

    def categorization_stats(self, transactions: list[Transaction]) -> dict[str, dict]:
        """Count, absolute total and average confidence per category."""
        stats = {
            name: {"count": 0, "total_amount": 0, "avg_confidence": 0, "confidences": []}
            for name in self.taxonomy.names()
        }

        for txn in transactions:
            result = self.classify(txn.description, txn.amount)
            entry = stats.setdefault(
                result.category,
                {"count": 0, "total_amount": 0, "avg_confidence": 0, "confidences": []},
            )
            entry["count"] += 1
            entry["total_amount"] += abs(txn.amount or 0)
            entry["confidences"].append(result.confidence)

        for entry in stats.values():
            confidences = entry.pop("confidences")
            if confidences:
                entry["avg_confidence"] = _round_half_up(sum(confidences) / len(confidences))

        return stats
