"""
Category Taxonomy Module

Loads and maintains the category definitions used by the classifier.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .exceptions import InvalidCategoryReference, ProtectedCategoryError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Otros"
DEFAULT_COLOR = "#9ca3af"
DEFAULT_ICON = "❓"
CATEGORIES_FILENAME = "categories.yaml"

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    text = _NON_WORD.sub(" ", text.strip().lower())
    return _WHITESPACE.sub(" ", text).strip()


def _normalize_keywords(keywords) -> list[str]:
    # Descriptions are matched after normalization, so keywords must be too
    normalized = (normalize_text(str(k)) for k in keywords or [])
    return list(dict.fromkeys(k for k in normalized if k))


@dataclass
class CategoryDefinition:
    """A category with its matching vocabulary and presentation metadata."""

    name: str
    keywords: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    color: str | None = None
    icon: str | None = None
    description: str | None = None

    def to_dict(self) -> dict:
        return {
            "keywords": list(self.keywords),
            "examples": list(self.examples),
            "color": self.color,
            "icon": self.icon,
            "description": self.description,
        }


def _default_category() -> CategoryDefinition:
    return CategoryDefinition(
        name=DEFAULT_CATEGORY,
        color=DEFAULT_COLOR,
        icon=DEFAULT_ICON,
        description="Transacciones que no se ajustan a ninguna categoría específica",
    )


class CategoryTaxonomy:
    """Ordered set of categories plus the reserved fallback category."""

    def __init__(self, document: dict | None = None):
        """Initialize the taxonomy.

        Args:
            document: Mapping of category name to its definition
        """
        self._categories: dict[str, CategoryDefinition] = {}

        for name, data in (document or {}).items():
            if name == DEFAULT_CATEGORY:
                continue
            data = data or {}
            self._categories[name] = CategoryDefinition(
                name=name,
                keywords=_normalize_keywords(data.get("keywords")),
                examples=list(data.get("examples", [])),
                color=data.get("color"),
                icon=data.get("icon"),
                description=data.get("description"),
            )

        fallback = _default_category()
        fallback_data = (document or {}).get(DEFAULT_CATEGORY) or {}
        fallback.color = fallback_data.get("color", fallback.color)
        fallback.icon = fallback_data.get("icon", fallback.icon)
        fallback.description = fallback_data.get("description", fallback.description)
        self._categories[DEFAULT_CATEGORY] = fallback

    @classmethod
    def load(cls, path: Path | str) -> "CategoryTaxonomy":
        """Load a taxonomy from a YAML file."""
        path = Path(path)
        if not path.exists():
            logger.warning(f"Category taxonomy not found: {path}")
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        taxonomy = cls(data.get("categories", data))
        logger.info(f"Loaded {len(taxonomy) - 1} categories from {path}")
        return taxonomy

    @classmethod
    def from_config(cls, config_dir: Path | str | None = None) -> "CategoryTaxonomy":
        config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"
        return cls.load(config_dir / CATEGORIES_FILENAME)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, name: str) -> bool:
        return name in self._categories

    def __iter__(self):
        return iter(self._categories.values())

    def names(self) -> list[str]:
        return list(self._categories)

    def get(self, name: str) -> CategoryDefinition | None:
        return self._categories.get(name)

    def is_valid(self, name: str) -> bool:
        return name in self._categories

    def colors(self) -> dict[str, str]:
        return {name: c.color or DEFAULT_COLOR for name, c in self._categories.items()}

    def matchable(self) -> list[CategoryDefinition]:
        """Categories that take part in keyword and fuzzy matching."""
        return [c for name, c in self._categories.items() if name != DEFAULT_CATEGORY]

    def add_category(
        self,
        name: str,
        keywords: list[str] | None = None,
        examples: list[str] | None = None,
        color: str | None = None,
        icon: str | None = None,
        description: str | None = None,
    ) -> CategoryDefinition:
        """Add a category ahead of the fallback category."""
        if not name:
            raise ValueError("Category name is required")
        if name in self._categories:
            raise ValueError(f"Category already exists: {name}")

        category = CategoryDefinition(
            name=name,
            keywords=_normalize_keywords(keywords),
            examples=list(examples or []),
            color=color,
            icon=icon,
            description=description,
        )
        fallback = self._categories.pop(DEFAULT_CATEGORY)
        self._categories[name] = category
        self._categories[DEFAULT_CATEGORY] = fallback

        logger.info(f"Added category {name}")
        return category

    def add_keyword(self, name: str, keyword: str) -> None:
        """Add a keyword to an existing category."""
        if name == DEFAULT_CATEGORY:
            raise ProtectedCategoryError(f"{DEFAULT_CATEGORY} has no keywords")
        category = self._require(name)
        keyword = normalize_text(keyword)
        if keyword and keyword not in category.keywords:
            category.keywords.append(keyword)

    def remove_category(self, name: str) -> None:
        if name == DEFAULT_CATEGORY:
            raise ProtectedCategoryError(f"{DEFAULT_CATEGORY} cannot be removed")
        self._require(name)
        del self._categories[name]
        logger.info(f"Removed category {name}")

    def rename_category(self, old_name: str, new_name: str) -> None:
        if DEFAULT_CATEGORY in (old_name, new_name):
            raise ProtectedCategoryError(f"{DEFAULT_CATEGORY} cannot be renamed")
        self._require(old_name)
        if new_name in self._categories:
            raise ValueError(f"Category already exists: {new_name}")

        # Rebuild to keep the category in place
        self._categories = {
            (new_name if name == old_name else name): category
            for name, category in self._categories.items()
        }
        self._categories[new_name].name = new_name
        logger.info(f"Renamed category {old_name} to {new_name}")

    def _require(self, name: str) -> CategoryDefinition:
        category = self._categories.get(name)
        if category is None:
            raise InvalidCategoryReference(name)
        return category

    def to_document(self) -> dict:
        """Serialize the editable categories; the fallback is implicit."""
        return {
            name: category.to_dict()
            for name, category in self._categories.items()
            if name != DEFAULT_CATEGORY
        }

    def save(self, path: Path | str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                {"categories": self.to_document()},
                f,
                allow_unicode=True,
                sort_keys=False,
            )
        logger.info(f"Saved category taxonomy to {path}")
