"""
Line Filter Module

Decides whether a candidate statement line is non-transactional noise
using the global and bank-scoped filter rules of a RuleStore.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from .exceptions import InvalidRuleDefinition
from .rules_store import FilterRule, RuleStore, compile_rule_pattern

logger = logging.getLogger(__name__)

# A predicate receives (line, bank_scope) and returns True to skip the line
LinePredicate = Callable[[str, str], bool]


@dataclass
class FilterDecision:
    """Outcome of evaluating a line against the filter rules."""

    skip: bool
    matched_rule: FilterRule | None = None
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.skip


class LineFilterEngine:
    """Evaluates filter rules against candidate lines."""

    def __init__(self, store: RuleStore, predicates: list[LinePredicate] | None = None):
        """Initialize the engine.

        Args:
            store: Rule store holding the filter rules
            predicates: Extra skip predicates evaluated after the stored rules,
                in order. Fixed for the lifetime of the engine.
        """
        self.store = store
        self._predicates: tuple[LinePredicate, ...] = tuple(predicates or ())
        self._compiled: dict[str, re.Pattern | None] = {}

    def should_skip(self, line: str, bank_scope: str) -> FilterDecision:
        """Check whether a line should be discarded.

        Args:
            line: Candidate line
            bank_scope: Bank scope code of the active parser

        Returns:
            FilterDecision; ``matched_rule`` is set when a stored rule fired
        """
        for rule in self.store.rules_for_bank(bank_scope):
            if self.test_rule(rule, line):
                self.store.record_rule_usage(rule.id)
                return FilterDecision(skip=True, matched_rule=rule, reason=rule.description)

        for predicate in self._predicates:
            if predicate(line, bank_scope):
                name = getattr(predicate, "__name__", "predicate")
                return FilterDecision(skip=True, reason=name)

        return FilterDecision(skip=False)

    def test_rule(self, rule: FilterRule, line: str) -> bool:
        """Evaluate a single rule against a line."""
        if not rule.active:
            return False

        lower_line = line.lower()
        pattern = rule.pattern.lower()

        if rule.match_type == "contains":
            return pattern in lower_line
        if rule.match_type == "starts":
            return lower_line.startswith(pattern)
        if rule.match_type == "ends":
            return lower_line.endswith(pattern)
        if rule.match_type == "exact":
            return lower_line.strip() == pattern.strip()
        if rule.match_type == "regex":
            regex = self._regex_for(rule)
            return bool(regex and regex.search(line))

        logger.warning(f"Unknown filter match type {rule.match_type!r} in rule {rule.id}")
        return False

    def _regex_for(self, rule: FilterRule) -> re.Pattern | None:
        key = f"{rule.id}:{rule.pattern}"
        if key not in self._compiled:
            try:
                self._compiled[key] = compile_rule_pattern(rule.id, rule.pattern, re.IGNORECASE)
            except InvalidRuleDefinition as e:
                logger.warning(f"{e}; rule treated as non-matching")
                self._compiled[key] = None
        return self._compiled[key]
