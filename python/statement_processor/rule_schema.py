"""
Rule Document Schema

Pydantic models validating the persisted rule document on load and import.
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

FILTER_MATCH_TYPES = ("contains", "starts", "ends", "exact", "regex")
CORRECTION_MATCH_TYPES = ("word_replace", "exact_replace", "regex_replace", "cleanup")

# Older documents used these names for the filter match types
LEGACY_FILTER_TYPES = {
    "filter_line": "contains",
    "filter_line_regex": "regex",
    "exact_match": "exact",
}


class FilterRuleModel(BaseModel):
    """A line filter rule as stored in the document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    match_type: Literal["contains", "starts", "ends", "exact", "regex"] = Field(
        validation_alias=AliasChoices("matchType", "type", "match_type"),
        serialization_alias="matchType",
    )
    pattern: str = Field(validation_alias=AliasChoices("pattern", "text"))
    active: bool = True
    description: str | None = None
    created_at: str | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created", "created_at"),
        serialization_alias="createdAt",
    )
    author: str | None = None

    @field_validator("match_type", mode="before")
    @classmethod
    def _map_legacy_type(cls, value):
        if isinstance(value, str):
            return LEGACY_FILTER_TYPES.get(value, value)
        return value


class CorrectionRuleModel(BaseModel):
    """A description correction rule as stored in the document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    pattern: str = ""
    replacement: str = ""
    match_type: Literal["word_replace", "exact_replace", "regex_replace", "cleanup"] = Field(
        default="exact_replace",
        validation_alias=AliasChoices("matchType", "type", "match_type"),
        serialization_alias="matchType",
    )
    case_insensitive: bool = Field(
        default=True,
        validation_alias=AliasChoices("caseInsensitive", "case_insensitive"),
        serialization_alias="caseInsensitive",
    )
    active: bool = True
    description: str | None = None
    created_at: str | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created", "created_at"),
        serialization_alias="createdAt",
    )
    author: str | None = None


class LearnedPatternModel(BaseModel):
    """A memorized description fragment and the category it maps to."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    category: str
    source: str = "admin"
    timestamp: str | None = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "addedDate"),
    )


class RuleDocumentModel(BaseModel):
    """Top-level rule document.

    ``globalRules`` and ``bankSpecificRules`` are required; every other
    section falls back to an empty default.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    metadata: dict = Field(default_factory=dict)
    global_rules: list[FilterRuleModel] = Field(alias="globalRules")
    bank_specific_rules: dict[str, list[FilterRuleModel]] = Field(alias="bankSpecificRules")
    description_corrections: dict[str, list[CorrectionRuleModel]] = Field(
        default_factory=dict, alias="descriptionCorrections"
    )
    learned_patterns: dict[str, LearnedPatternModel] = Field(
        default_factory=dict, alias="learnedPatterns"
    )
    settings: dict = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "RuleDocumentModel":
        # Filter rules and corrections share one id space across all scopes
        rules = list(self.global_rules)
        for scoped in self.bank_specific_rules.values():
            rules.extend(scoped)
        for scoped in self.description_corrections.values():
            rules.extend(scoped)

        seen = set()
        duplicates = []
        for rule in rules:
            if rule.id in seen and rule.id not in duplicates:
                duplicates.append(rule.id)
            seen.add(rule.id)

        if duplicates:
            raise ValueError(f"Duplicate rule ids: {', '.join(duplicates)}")
        return self
