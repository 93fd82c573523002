"""
Bank-specific statement line parsers.
"""

from .base import BaseStatementParser, FormatScore
from .falabella import FalabellaParser
from .santander import SantanderParser
from .santander_checking import SantanderCheckingParser
from .banco_chile import BancoChileParser
from .selector import ParserSelector, Selection, default_parsers

__all__ = [
    "BaseStatementParser",
    "FormatScore",
    "FalabellaParser",
    "SantanderParser",
    "SantanderCheckingParser",
    "BancoChileParser",
    "ParserSelector",
    "Selection",
    "default_parsers",
]
