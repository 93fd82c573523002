"""
Transaction Model

Structured record produced from a single statement line.
"""

import hashlib
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class TransactionType(str, Enum):
    """Kind of movement a statement line represents."""

    PURCHASE = "purchase"
    PAYMENT = "payment"
    CHARGE = "charge"
    DEPOSIT = "deposit"


_LETTER = re.compile(r"[^\W\d_]")


@dataclass
class Transaction:
    """Represents a parsed transaction from a bank statement.

    Amounts are whole currency units. The sign follows the issuing
    bank's convention (see each parser).
    """

    date: date
    description: str
    amount: int
    type: TransactionType = TransactionType.PURCHASE
    raw_line: str = ""
    confidence: int = 0
    category: str | None = None
    category_confidence: int | None = None
    category_reason: str | None = None
    category_color: str | None = None
    category_icon: str | None = None
    bank_name: str | None = None
    line_number: int | None = None
    location: str | None = None
    balance: int | None = None
    original_description: str | None = None
    applied_corrections: list[str] = field(default_factory=list)
    raw_data: dict = field(default_factory=dict)

    @property
    def is_expense(self) -> bool:
        """Check if this transaction decreases the account holder's funds."""
        return self.type in (TransactionType.PURCHASE, TransactionType.CHARGE)

    @property
    def hash(self) -> str:
        """Generate a hash for duplicate detection."""
        data = f"{self.date.isoformat()}|{self.description}|{self.amount}"
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def validate(self) -> list[str]:
        """Check the record invariants.

        Returns:
            List of problems, empty when the transaction is valid
        """
        problems = []
        if not isinstance(self.date, date):
            problems.append("date is not a calendar date")
        if not self.description or not self.description.strip():
            problems.append("description is empty")
        elif not _LETTER.search(self.description):
            problems.append("description has no letters")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            problems.append("amount is not an integer")
        elif self.amount == 0:
            problems.append("amount is zero")
        if not 0 <= self.confidence <= 100:
            problems.append("confidence out of range")
        return problems

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": self.amount,
            "type": self.type.value,
            "raw_line": self.raw_line,
            "confidence": self.confidence,
            "category": self.category,
            "category_confidence": self.category_confidence,
            "category_reason": self.category_reason,
            "category_color": self.category_color,
            "category_icon": self.category_icon,
            "bank_name": self.bank_name,
            "line_number": self.line_number,
            "location": self.location,
            "balance": self.balance,
            "applied_corrections": list(self.applied_corrections),
        }
