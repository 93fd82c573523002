"""
Statement Processing Exceptions

Error kinds raised while detecting formats, parsing lines,
maintaining rules and training the classifier.
"""


class StatementProcessingError(Exception):
    """Base class for all statement processing errors."""


class FormatNotRecognized(StatementProcessingError):
    """No registered parser accepts the document."""

    def __init__(self, message: str = "unsupported statement format", scores: dict | None = None):
        super().__init__(message)
        self.scores = scores or {}


class LineParseError(StatementProcessingError, ValueError):
    """A candidate line cannot be reduced to a valid transaction."""

    def __init__(self, message: str, line: str | None = None):
        super().__init__(message)
        self.line = line


class InvalidRuleDefinition(StatementProcessingError, ValueError):
    """A stored filter or correction rule has a pattern that does not compile."""

    def __init__(self, rule_id: str, pattern: str, reason: str):
        super().__init__(f"Invalid pattern in rule {rule_id}: {pattern!r} ({reason})")
        self.rule_id = rule_id
        self.pattern = pattern


class InvalidCategoryReference(StatementProcessingError, KeyError):
    """A category name is not part of the taxonomy."""

    def __init__(self, category: str):
        super().__init__(category)
        self.category = category

    def __str__(self) -> str:
        return f"Unknown category: {self.category!r}"


InvalidCategory = InvalidCategoryReference


class ProtectedCategoryError(StatementProcessingError, ValueError):
    """The reserved fallback category cannot be removed or renamed."""


class MalformedRuleDocument(StatementProcessingError, ValueError):
    """An imported rule document is missing required sections or is not valid JSON."""

    def __init__(self, message: str, details: list | None = None):
        super().__init__(message)
        self.details = details or []
