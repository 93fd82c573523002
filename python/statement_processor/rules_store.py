"""
Rule Store Module

Persisted, versioned document of line filter rules, description
corrections and learned classification patterns, scoped globally or
per bank. Components receive a RuleStore instance explicitly; there is
no module-level singleton.
"""

import copy
import json
import logging
import random
import re
import string
import time
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .exceptions import InvalidCategoryReference, InvalidRuleDefinition, MalformedRuleDocument
from .rule_schema import (
    CORRECTION_MATCH_TYPES,
    FILTER_MATCH_TYPES,
    LEGACY_FILTER_TYPES,
    CorrectionRuleModel,
    FilterRuleModel,
    RuleDocumentModel,
)

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"
DOCUMENT_VERSION = "2.0.0"
RULES_FILENAME = "parsing_rules.json"

DEFAULT_SETTINGS = {
    "enableAnalytics": True,
    "autoSync": False,
    "debugMode": False,
    "maxRulesPerBank": 50,
    "cacheTimeout": 3600000,
}

FILTER_RULE_MUTABLE_FIELDS = {"active", "pattern", "description", "match_type"}
CORRECTION_MUTABLE_FIELDS = {"active", "pattern", "replacement", "description", "match_type", "case_insensitive"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _random_suffix(length: int = 6) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def compile_rule_pattern(rule_id: str, pattern: str, flags: int = 0) -> re.Pattern:
    """Compile a rule regex.

    Raises:
        InvalidRuleDefinition: If the pattern does not compile
    """
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise InvalidRuleDefinition(rule_id, pattern, str(e)) from e


@dataclass
class FilterRule:
    """Rule that marks a candidate line as non-transactional noise."""

    id: str
    scope: str
    match_type: str
    pattern: str
    active: bool = True
    description: str | None = None
    created_at: str | None = None
    author: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "matchType": self.match_type,
            "pattern": self.pattern,
            "description": self.description,
            "active": self.active,
            "createdAt": self.created_at,
            "author": self.author,
        }


@dataclass
class CorrectionRule:
    """Rule that rewrites part of an extracted description."""

    id: str
    scope: str
    pattern: str
    replacement: str
    match_type: str = "exact_replace"
    case_insensitive: bool = True
    active: bool = True
    description: str | None = None
    created_at: str | None = None
    author: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pattern": self.pattern,
            "replacement": self.replacement,
            "matchType": self.match_type,
            "caseInsensitive": self.case_insensitive,
            "description": self.description,
            "active": self.active,
            "createdAt": self.created_at,
            "author": self.author,
        }


@dataclass
class LearnedPattern:
    """Lowercase description fragment memorized for a category."""

    pattern: str
    category: str
    source: str = "admin"
    timestamp: str | None = None

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "source": self.source,
            "timestamp": self.timestamp,
        }


@dataclass
class RuleUsage:
    """How often a rule has fired."""

    times_used: int = 0
    first_used: str | None = None
    last_used: str | None = None

    def record(self) -> None:
        now = _now()
        self.times_used += 1
        if self.first_used is None:
            self.first_used = now
        self.last_used = now

    def to_dict(self) -> dict:
        return {
            "timesUsed": self.times_used,
            "firstUsed": self.first_used,
            "lastUsed": self.last_used,
        }


def default_document(organization_id: str = "default") -> dict:
    """Build the rule document used when nothing has been persisted yet."""
    now = _now()

    def filter_rule(rule_id: str, pattern: str, description: str) -> dict:
        return {
            "id": rule_id,
            "matchType": "contains",
            "pattern": pattern,
            "description": description,
            "active": True,
            "createdAt": now,
            "author": "system",
        }

    def exact_correction(rule_id: str, pattern: str, replacement: str, description: str) -> dict:
        return {
            "id": rule_id,
            "pattern": pattern,
            "replacement": replacement,
            "matchType": "exact_replace",
            "caseInsensitive": True,
            "description": description,
            "active": True,
            "createdAt": now,
            "author": "system",
        }

    return {
        "metadata": {
            "organizationId": organization_id,
            "version": DOCUMENT_VERSION,
            "createdAt": now,
            "updatedAt": now,
        },
        "globalRules": [
            filter_rule("global_1", "página", "Filtrar numeración de páginas"),
            filter_rule("global_2", "www.", "Filtrar URLs web"),
        ],
        "bankSpecificRules": {
            "BancoFalabella": [
                filter_rule("falabella_1", "CMR Puntos", "Filtrar notificaciones de puntos CMR"),
            ],
            "BancoSantander": [],
            "BancoSantanderCuentaCorriente": [],
            "BancoChile": [],
        },
        "descriptionCorrections": {
            GLOBAL_SCOPE: [],
            "BancoFalabella": [
                exact_correction(
                    "falabella_desc_1",
                    "anulacion pago tarjeta cmr eec 0 01/01",
                    "Anulación pago tarjeta CMR",
                    "Limpiar anulación CMR",
                ),
                exact_correction(
                    "falabella_desc_2",
                    "09-12 seg cesantia 75489 784 784 784",
                    "Seguro cesantía",
                    "Limpiar seguro cesantía",
                ),
                exact_correction(
                    "falabella_desc_3",
                    "uber eats uber eats 500 500 500",
                    "Uber Eats",
                    "Limpiar Uber Eats duplicado",
                ),
            ],
        },
        "learnedPatterns": {},
        "settings": dict(DEFAULT_SETTINGS),
    }


class RuleStore:
    """In-memory handle over the persisted rule document.

    The store is loaded once, mutated through the methods below and
    saved explicitly after each mutation when it is bound to a file.
    It assumes a single writer.
    """

    def __init__(
        self,
        document: dict | None = None,
        path: Path | str | None = None,
        organization_id: str = "default",
    ):
        """Initialize the store.

        Args:
            document: Rule document; the built-in default when omitted
            path: File the store saves itself to after every mutation
            organization_id: Owner recorded in new documents

        Raises:
            MalformedRuleDocument: If the document fails validation
        """
        self.path = Path(path) if path else None
        self.organization_id = organization_id
        self._rule_usage: dict[str, RuleUsage] = {}
        self._correction_usage: dict[str, RuleUsage] = {}
        self._usage_totals = {"rules_applied": 0, "corrections_applied": 0}

        model = self._validate(document if document is not None else default_document(organization_id))
        self._apply(model)

    # ------------------------------------------------------------------
    # Construction and persistence
    # ------------------------------------------------------------------

    @classmethod
    def default(cls, path: Path | str | None = None) -> "RuleStore":
        """Create a store holding the built-in default rules."""
        return cls(default_document(), path=path)

    @classmethod
    def load(cls, path: Path | str) -> "RuleStore":
        """Load a store from a JSON rule document.

        A missing file yields the default document bound to ``path``.

        Raises:
            MalformedRuleDocument: If the file is not a valid rule document
        """
        path = Path(path)

        if not path.exists():
            logger.warning(f"Rule document not found, using defaults: {path}")
            return cls.default(path=path)

        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Rule document is not valid JSON: {path}: {e}")
            raise MalformedRuleDocument(f"Invalid JSON in {path}: {e}") from e

        store = cls(document, path=path)
        logger.info(
            f"Loaded rule document {path} "
            f"({len(store._global_rules)} global rules, {len(store._bank_rules)} bank scopes)"
        )
        return store

    @classmethod
    def from_config(cls, config_dir: Path | str | None = None) -> "RuleStore":
        """Load the store from the configuration directory."""
        config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"
        return cls.load(config_dir / RULES_FILENAME)

    def save(self, path: Path | str | None = None) -> Path:
        """Write the document as JSON.

        Args:
            path: Target file, defaults to the bound path

        Returns:
            Path written
        """
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No path bound to this rule store")

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.to_document(), f, ensure_ascii=False, indent=2)

        logger.info(f"Saved rule document to {target}")
        return target

    def _persist(self) -> None:
        self._metadata["updatedAt"] = _now()
        if self.path is not None:
            self.save()

    @staticmethod
    def _validate(document: dict) -> RuleDocumentModel:
        if not isinstance(document, dict):
            raise MalformedRuleDocument("Rule document must be a JSON object")
        try:
            return RuleDocumentModel.model_validate(document)
        except ValidationError as e:
            missing = [".".join(str(p) for p in err["loc"]) or err["msg"] for err in e.errors()]
            raise MalformedRuleDocument(
                f"Invalid rule document: {', '.join(missing)}", details=e.errors()
            ) from e

    def _apply(self, model: RuleDocumentModel) -> None:
        metadata = dict(model.metadata)
        # Older documents named these "created" and "lastUpdated"
        if "createdAt" not in metadata and "created" in metadata:
            metadata["createdAt"] = metadata.pop("created")
        if "updatedAt" not in metadata and "lastUpdated" in metadata:
            metadata["updatedAt"] = metadata.pop("lastUpdated")
        metadata.setdefault("organizationId", self.organization_id)
        metadata.setdefault("version", DOCUMENT_VERSION)

        global_rules = [self._filter_from_model(r, GLOBAL_SCOPE) for r in model.global_rules]
        bank_rules = {
            scope: [self._filter_from_model(r, scope) for r in rules]
            for scope, rules in model.bank_specific_rules.items()
        }
        corrections = {
            scope: [self._correction_from_model(c, scope) for c in items]
            for scope, items in model.description_corrections.items()
        }
        learned = {
            pattern.lower(): LearnedPattern(
                pattern=pattern.lower(),
                category=info.category,
                source=info.source,
                timestamp=info.timestamp,
            )
            for pattern, info in model.learned_patterns.items()
        }

        self._metadata = metadata
        self._global_rules: list[FilterRule] = global_rules
        self._bank_rules: dict[str, list[FilterRule]] = bank_rules
        self._global_corrections: list[CorrectionRule] = corrections.pop(GLOBAL_SCOPE, [])
        self._bank_corrections: dict[str, list[CorrectionRule]] = corrections
        self._learned: dict[str, LearnedPattern] = learned
        self._settings = {**DEFAULT_SETTINGS, **model.settings}

    @staticmethod
    def _filter_from_model(model: FilterRuleModel, scope: str) -> FilterRule:
        return FilterRule(
            id=model.id,
            scope=scope,
            match_type=model.match_type,
            pattern=model.pattern,
            active=model.active,
            description=model.description,
            created_at=model.created_at,
            author=model.author,
        )

    @staticmethod
    def _correction_from_model(model: CorrectionRuleModel, scope: str) -> CorrectionRule:
        return CorrectionRule(
            id=model.id,
            scope=scope,
            pattern=model.pattern,
            replacement=model.replacement,
            match_type=model.match_type,
            case_insensitive=model.case_insensitive,
            active=model.active,
            description=model.description,
            created_at=model.created_at,
            author=model.author,
        )

    def to_document(self) -> dict:
        """Serialize the store to the persisted document structure."""
        corrections = {GLOBAL_SCOPE: [c.to_dict() for c in self._global_corrections]}
        for scope, items in self._bank_corrections.items():
            corrections[scope] = [c.to_dict() for c in items]

        return {
            "metadata": dict(self._metadata),
            "globalRules": [r.to_dict() for r in self._global_rules],
            "bankSpecificRules": {
                scope: [r.to_dict() for r in rules]
                for scope, rules in self._bank_rules.items()
            },
            "descriptionCorrections": corrections,
            "learnedPatterns": {p.pattern: p.to_dict() for p in self._learned.values()},
            "settings": dict(self._settings),
        }

    def export_document(self, exported_by: str = "admin") -> dict:
        """Export the document plus export metadata."""
        document = self.to_document()
        document["exportMetadata"] = {
            "exportedAt": _now(),
            "exportedBy": exported_by,
            "version": DOCUMENT_VERSION,
        }
        return document

    def export_json(self, exported_by: str = "admin") -> str:
        return json.dumps(self.export_document(exported_by), ensure_ascii=False, indent=2)

    def import_document(self, payload: dict | str) -> None:
        """Replace the whole store with an imported document.

        The payload is validated before anything is replaced; on failure
        the current rules are left untouched.

        Args:
            payload: Document dict or its JSON text

        Raises:
            MalformedRuleDocument: If the payload is not a valid rule document
        """
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise MalformedRuleDocument(f"Invalid JSON: {e}") from e

        model = self._validate(payload)

        backup = copy.deepcopy(self.__dict__)
        try:
            self._apply(model)
            self._persist()
        except OSError:
            self.__dict__.update(backup)
            raise

        logger.info(
            f"Imported rule document ({len(self._global_rules)} global rules, "
            f"{sum(len(r) for r in self._bank_rules.values())} bank rules)"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def metadata(self) -> dict:
        return dict(self._metadata)

    @property
    def settings(self) -> dict:
        return dict(self._settings)

    @property
    def analytics_enabled(self) -> bool:
        return bool(self._settings.get("enableAnalytics", True))

    def bank_scopes(self) -> list[str]:
        """Return every scope that has filter rules or corrections."""
        scopes = list(self._bank_rules)
        for scope in self._bank_corrections:
            if scope not in scopes:
                scopes.append(scope)
        return scopes

    def global_rules(self) -> list[FilterRule]:
        return list(self._global_rules)

    def bank_rules(self, scope: str) -> list[FilterRule]:
        return list(self._bank_rules.get(scope, []))

    def rules_for_bank(self, scope: str) -> list[FilterRule]:
        """Return the active global rules followed by the active rules of ``scope``."""
        rules = self._global_rules + self._bank_rules.get(scope, [])
        return [r for r in rules if r.active]

    def global_corrections(self) -> list[CorrectionRule]:
        return list(self._global_corrections)

    def bank_corrections(self, scope: str) -> list[CorrectionRule]:
        return list(self._bank_corrections.get(scope, []))

    def corrections_for_bank(self, scope: str) -> list[CorrectionRule]:
        """Return the active global corrections followed by those of ``scope``."""
        corrections = self._global_corrections + self._bank_corrections.get(scope, [])
        return [c for c in corrections if c.active]

    def find_filter_rule(self, rule_id: str) -> FilterRule | None:
        for rule in self._global_rules:
            if rule.id == rule_id:
                return rule
        for rules in self._bank_rules.values():
            for rule in rules:
                if rule.id == rule_id:
                    return rule
        return None

    def find_correction(self, correction_id: str) -> CorrectionRule | None:
        for correction in self._global_corrections:
            if correction.id == correction_id:
                return correction
        for items in self._bank_corrections.values():
            for correction in items:
                if correction.id == correction_id:
                    return correction
        return None

    def learned_patterns(self) -> list[LearnedPattern]:
        """Return learned patterns in insertion order."""
        return list(self._learned.values())

    def _all_ids(self) -> set[str]:
        ids = {r.id for r in self._global_rules}
        ids.update(r.id for rules in self._bank_rules.values() for r in rules)
        ids.update(c.id for c in self._global_corrections)
        ids.update(c.id for items in self._bank_corrections.values() for c in items)
        return ids

    def _generate_id(self, scope: str, kind: str = "") -> str:
        prefix = GLOBAL_SCOPE if scope == GLOBAL_SCOPE else scope.lower()
        if kind:
            prefix = f"{prefix}_{kind}"
        existing = self._all_ids()
        while True:
            rule_id = f"{prefix}_{int(time.time() * 1000)}_{_random_suffix()}"
            if rule_id not in existing:
                return rule_id

    # ------------------------------------------------------------------
    # Filter rule administration
    # ------------------------------------------------------------------

    def add_filter_rule(
        self,
        scope: str,
        match_type: str,
        pattern: str,
        description: str | None = None,
        author: str = "admin",
    ) -> FilterRule:
        """Add a line filter rule.

        Args:
            scope: "global" or a bank scope code
            match_type: contains, starts, ends, exact or regex
            pattern: Text or regex to match
            description: Human readable purpose
            author: Who created the rule

        Returns:
            The created rule

        Raises:
            ValueError: On an unknown match type, empty pattern or a full scope
        """
        if not scope:
            raise ValueError("Rule scope is required")
        match_type = LEGACY_FILTER_TYPES.get(match_type, match_type)
        if match_type not in FILTER_MATCH_TYPES:
            raise ValueError(f"Unknown filter match type: {match_type}")
        if not pattern:
            raise ValueError("Rule pattern is required")

        if scope != GLOBAL_SCOPE:
            limit = self._settings.get("maxRulesPerBank")
            if limit and len(self._bank_rules.get(scope, [])) >= limit:
                raise ValueError(f"Scope {scope} already has {limit} rules")

        if match_type == "regex":
            try:
                compile_rule_pattern("new", pattern)
            except InvalidRuleDefinition as e:
                logger.warning(f"Storing filter rule that will never match: {e}")

        rule = FilterRule(
            id=self._generate_id(scope),
            scope=scope,
            match_type=match_type,
            pattern=pattern,
            active=True,
            description=description or f'Filtrar "{pattern}"',
            created_at=_now(),
            author=author,
        )

        if scope == GLOBAL_SCOPE:
            self._global_rules.append(rule)
        else:
            self._bank_rules.setdefault(scope, []).append(rule)

        self._persist()
        logger.info(f"Added filter rule {rule.id} ({match_type} {pattern!r}) to {scope}")
        return rule

    def update_filter_rule(self, rule_id: str, **changes: Any) -> bool:
        """Update mutable fields of a filter rule.

        Returns:
            True if the rule exists and was updated
        """
        unknown = set(changes) - FILTER_RULE_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update filter rule fields: {', '.join(sorted(unknown))}")
        if "match_type" in changes:
            changes["match_type"] = LEGACY_FILTER_TYPES.get(changes["match_type"], changes["match_type"])
            if changes["match_type"] not in FILTER_MATCH_TYPES:
                raise ValueError(f"Unknown filter match type: {changes['match_type']}")

        rule = self.find_filter_rule(rule_id)
        if rule is None:
            return False

        for name, value in changes.items():
            setattr(rule, name, value)

        self._persist()
        logger.info(f"Updated filter rule {rule_id}: {sorted(changes)}")
        return True

    def delete_filter_rule(self, rule_id: str) -> bool:
        """Delete a filter rule by id."""
        for rules in [self._global_rules, *self._bank_rules.values()]:
            for index, rule in enumerate(rules):
                if rule.id == rule_id:
                    del rules[index]
                    self._rule_usage.pop(rule_id, None)
                    self._persist()
                    logger.info(f"Deleted filter rule {rule_id}")
                    return True
        return False

    # ------------------------------------------------------------------
    # Correction administration
    # ------------------------------------------------------------------

    def add_correction(
        self,
        scope: str,
        pattern: str,
        replacement: str = "",
        match_type: str = "exact_replace",
        case_insensitive: bool = True,
        description: str | None = None,
        author: str = "admin",
    ) -> CorrectionRule:
        """Add a description correction.

        Returns:
            The created correction

        Raises:
            ValueError: On an unknown match type or a missing pattern
        """
        if not scope:
            raise ValueError("Correction scope is required")
        if match_type not in CORRECTION_MATCH_TYPES:
            raise ValueError(f"Unknown correction type: {match_type}")
        if match_type != "cleanup" and not pattern:
            raise ValueError("Correction pattern is required")

        correction = CorrectionRule(
            id=self._generate_id(scope, "corr"),
            scope=scope,
            pattern=pattern,
            replacement=replacement,
            match_type=match_type,
            case_insensitive=case_insensitive,
            active=True,
            description=description or f'Corregir "{pattern}"',
            created_at=_now(),
            author=author,
        )

        if scope == GLOBAL_SCOPE:
            self._global_corrections.append(correction)
        else:
            self._bank_corrections.setdefault(scope, []).append(correction)

        self._persist()
        logger.info(f"Added correction {correction.id} ({match_type} {pattern!r}) to {scope}")
        return correction

    def update_correction(self, correction_id: str, **changes: Any) -> bool:
        """Update mutable fields of a correction."""
        unknown = set(changes) - CORRECTION_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update correction fields: {', '.join(sorted(unknown))}")
        if "match_type" in changes and changes["match_type"] not in CORRECTION_MATCH_TYPES:
            raise ValueError(f"Unknown correction type: {changes['match_type']}")

        correction = self.find_correction(correction_id)
        if correction is None:
            return False

        for name, value in changes.items():
            setattr(correction, name, value)

        self._persist()
        logger.info(f"Updated correction {correction_id}: {sorted(changes)}")
        return True

    def delete_correction(self, correction_id: str) -> bool:
        """Delete a correction by id."""
        for items in [self._global_corrections, *self._bank_corrections.values()]:
            for index, correction in enumerate(items):
                if correction.id == correction_id:
                    del items[index]
                    self._correction_usage.pop(correction_id, None)
                    self._persist()
                    logger.info(f"Deleted correction {correction_id}")
                    return True
        return False

    # ------------------------------------------------------------------
    # Learned patterns
    # ------------------------------------------------------------------

    def add_learned_pattern(
        self,
        pattern: str,
        category: str,
        categories: Collection[str],
        source: str = "admin",
    ) -> LearnedPattern:
        """Store a learned pattern, overwriting the category of an existing one.

        Args:
            pattern: Description fragment to memorize
            category: Category the fragment maps to
            categories: Valid category names from the taxonomy
            source: Who taught the pattern

        Raises:
            InvalidCategoryReference: If the category is not in ``categories``
            ValueError: If the pattern is empty
        """
        if category not in categories:
            raise InvalidCategoryReference(category)
        key = pattern.strip().lower()
        if not key:
            raise ValueError("Pattern is required")

        learned = LearnedPattern(pattern=key, category=category, source=source, timestamp=_now())
        previous = self._learned.get(key)
        self._learned[key] = learned

        self._persist()
        if previous and previous.category != category:
            logger.info(f"Learned pattern {key!r} moved from {previous.category} to {category}")
        else:
            logger.info(f"Learned pattern {key!r} -> {category}")
        return learned

    # ------------------------------------------------------------------
    # Usage analytics
    # ------------------------------------------------------------------

    def record_rule_usage(self, rule_id: str) -> None:
        if not self.analytics_enabled:
            return
        self._rule_usage.setdefault(rule_id, RuleUsage()).record()
        self._usage_totals["rules_applied"] += 1

    def record_correction_usage(self, correction_id: str) -> None:
        if not self.analytics_enabled:
            return
        self._correction_usage.setdefault(correction_id, RuleUsage()).record()
        self._usage_totals["corrections_applied"] += 1

    def rule_usage(self, rule_id: str) -> RuleUsage | None:
        return self._rule_usage.get(rule_id)

    def correction_usage(self, correction_id: str) -> RuleUsage | None:
        return self._correction_usage.get(correction_id)

    def analytics(self) -> dict:
        """Return recorded usage of rules and corrections."""
        return {
            "usage": {
                "total_rules_applied": self._usage_totals["rules_applied"],
                "total_corrections_applied": self._usage_totals["corrections_applied"],
            },
            "rule_effectiveness": {k: v.to_dict() for k, v in self._rule_usage.items()},
            "correction_effectiveness": {k: v.to_dict() for k, v in self._correction_usage.items()},
        }

    def stats(self) -> dict:
        """Summary counts for the admin view."""
        global_count = sum(1 for r in self._global_rules if r.active)
        bank_counts = {
            scope: sum(1 for r in rules if r.active)
            for scope, rules in self._bank_rules.items()
        }
        bank_total = sum(bank_counts.values())
        corrections = len(self._global_corrections) + sum(
            len(items) for items in self._bank_corrections.values()
        )

        return {
            "total_active_rules": global_count + bank_total,
            "global_rules": global_count,
            "bank_rules": bank_total,
            "bank_counts": bank_counts,
            "total_banks": len(self._bank_rules),
            "total_corrections": corrections,
            "learned_patterns": len(self._learned),
            "total_rules_applied": self._usage_totals["rules_applied"],
            "total_corrections_applied": self._usage_totals["corrections_applied"],
        }
