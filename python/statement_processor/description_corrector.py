"""
Description Corrector Module

Normalizes extracted descriptions with the ordered correction rules of a
RuleStore, and suggests corrections for descriptions that carry common
extraction artifacts.
"""

import logging
import re
from dataclasses import dataclass, field

from .exceptions import InvalidRuleDefinition
from .rules_store import CorrectionRule, RuleStore, compile_rule_pattern

logger = logging.getLogger(__name__)

LOWERCASE_CONNECTORS = {"de", "del", "la", "el", "en", "con", "por", "para", "y", "o", "a"}

_WHITESPACE = re.compile(r"\s+")
_TRAILING_CODE = re.compile(r"\b[A-Z]{1,2}\s*$")
_PROCESS_DATE = re.compile(r"\d{2}/\d{2}\s*[a-z]{3}-\d{4}", re.IGNORECASE)

_REPEATED_NUMBER = re.compile(r"^(.+?)\s+(\d+)(\s+\2){2,}\s*$")
_DUPLICATED_PHRASE = re.compile(r"^(.+?)\s+\1\s", re.IGNORECASE)
_BRAND_CODE_SUFFIX = re.compile(r"\s+(eec|cmr)\s+\d+\s+\d{2}/\d{2}\s*$", re.IGNORECASE)
_DATE_CODE_PREFIX = re.compile(r"^\d{2}-\d{2}\s+(.+?)\s+\d+\s+\d+")
_DATE_CODE_HEAD = re.compile(r"^\d{2}-\d{2}\s+(.+?)\s+\d+")


@dataclass
class CorrectionResult:
    """Outcome of applying corrections to a description."""

    original: str
    corrected: str
    applied_rules: list[CorrectionRule] = field(default_factory=list)

    @property
    def was_modified(self) -> bool:
        return self.original != self.corrected

    @property
    def applied_ids(self) -> list[str]:
        return [rule.id for rule in self.applied_rules]


@dataclass
class Suggestion:
    """Proposed exact_replace correction for a description."""

    pattern: str
    replacement: str
    reason: str
    confidence: int
    match_type: str = "exact_replace"

    def to_dict(self) -> dict:
        return {
            "type": self.match_type,
            "pattern": self.pattern,
            "replacement": self.replacement,
            "reason": self.reason,
            "confidence": self.confidence,
        }


def capitalize_words(text: str) -> str:
    """Title-case words, keeping Spanish connectors lowercase unless leading."""
    words = text.lower().split(" ")
    result = []
    for index, word in enumerate(words):
        if index > 0 and word in LOWERCASE_CONNECTORS:
            result.append(word)
        else:
            result.append(word[:1].upper() + word[1:])
    return " ".join(result)


def cleanup_text(text: str) -> str:
    """Collapse whitespace, strip trailing short uppercase codes and process dates.

    Repeated until the text stops changing, so a second pass is a no-op.
    """
    while True:
        cleaned = _PROCESS_DATE.sub("", text)
        cleaned = _WHITESPACE.sub(" ", cleaned).strip()
        cleaned = _TRAILING_CODE.sub("", cleaned).strip()
        if cleaned == text:
            return cleaned
        text = cleaned


class DescriptionCorrector:
    """Applies global then bank-scoped corrections to descriptions."""

    def __init__(self, store: RuleStore):
        """Initialize the corrector.

        Args:
            store: Rule store holding the corrections
        """
        self.store = store
        self._compiled: dict[str, re.Pattern | None] = {}

    def apply(self, description: str, bank_scope: str) -> CorrectionResult:
        """Apply all active corrections in order.

        Each correction sees the output of the previous one.

        Args:
            description: Extracted description
            bank_scope: Bank scope code

        Returns:
            CorrectionResult with the corrected text and the rules that changed it
        """
        if not description or not description.strip():
            return CorrectionResult(original=description, corrected=description)

        corrected = description
        applied = []

        for correction in self.store.corrections_for_bank(bank_scope):
            before = corrected
            corrected = self.apply_single(corrected, correction)
            if corrected != before:
                applied.append(correction)
                self.store.record_correction_usage(correction.id)

        if applied:
            logger.debug(f"Corrected description {description!r} -> {corrected!r}")

        return CorrectionResult(original=description, corrected=corrected, applied_rules=applied)

    def apply_single(self, text: str, correction: CorrectionRule) -> str:
        """Apply one correction to a text."""
        if not correction.active:
            return text

        if correction.match_type == "cleanup":
            return cleanup_text(text)

        regex = self._regex_for(correction)
        if regex is None:
            return text

        if correction.match_type == "regex_replace":
            try:
                return regex.sub(correction.replacement, text)
            except re.error as e:
                logger.warning(f"Invalid replacement in correction {correction.id}: {e}")
                return text

        # Literal replacement text for word and exact replaces
        return regex.sub(lambda _: correction.replacement, text)

    def _regex_for(self, correction: CorrectionRule) -> re.Pattern | None:
        key = f"{correction.id}:{correction.match_type}:{correction.case_insensitive}:{correction.pattern}"
        if key in self._compiled:
            return self._compiled[key]

        if correction.match_type == "word_replace":
            source = rf"\b{re.escape(correction.pattern)}\b"
        elif correction.match_type == "exact_replace":
            source = re.escape(correction.pattern)
        elif correction.match_type == "regex_replace":
            source = correction.pattern
        else:
            logger.warning(f"Unknown correction type {correction.match_type!r} in {correction.id}")
            self._compiled[key] = None
            return None

        flags = re.IGNORECASE if correction.case_insensitive else 0
        try:
            self._compiled[key] = compile_rule_pattern(correction.id, source, flags)
        except InvalidRuleDefinition as e:
            logger.warning(f"{e}; correction skipped")
            self._compiled[key] = None
        return self._compiled[key]

    def test(self, description: str, bank_scope: str) -> dict:
        """Dry run of ``apply`` for admin previews."""
        result = self.apply(description, bank_scope)
        return {
            "original": result.original,
            "corrected": result.corrected,
            "was_modified": result.was_modified,
            "applied_corrections": [
                {
                    "id": rule.id,
                    "description": rule.description,
                    "pattern": rule.pattern,
                    "replacement": rule.replacement,
                    "type": rule.match_type,
                }
                for rule in result.applied_rules
            ],
        }

    def suggest(self, description: str) -> Suggestion | None:
        """Suggest a correction for common extraction artifacts.

        Checks, in order: a trailing number repeated three or more times,
        a duplicated leading phrase, a trailing brand code with a date, and
        a leading date with numeric codes.

        Returns:
            The first suggestion found, or None
        """
        if not description:
            return None

        match = _REPEATED_NUMBER.match(description)
        if match:
            return Suggestion(
                pattern=description,
                replacement=match.group(1).strip(),
                reason="Números repetidos al final detectados",
                confidence=90,
            )

        match = _DUPLICATED_PHRASE.match(description)
        if match:
            return Suggestion(
                pattern=description,
                replacement=capitalize_words(match.group(1)),
                reason="Texto duplicado detectado",
                confidence=85,
            )

        if _BRAND_CODE_SUFFIX.search(description):
            cleaned = _BRAND_CODE_SUFFIX.sub("", description).strip()
            return Suggestion(
                pattern=description,
                replacement=capitalize_words(cleaned),
                reason="Códigos innecesarios al final",
                confidence=95,
            )

        if _DATE_CODE_PREFIX.match(description):
            match = _DATE_CODE_HEAD.match(description)
            cleaned = re.sub(r"\s+\d+.*$", "", match.group(1))
            return Suggestion(
                pattern=description,
                replacement=capitalize_words(cleaned),
                reason="Fecha y números innecesarios detectados",
                confidence=88,
            )

        return None
