"""
Banco Santander Checking Account Parser

Parses "cartola" lines of a Santander checking account.

Line layout:
    DD/MM Branch [Document] Description [Code] Amount [Balance]

Dates carry no year, so the statement year is supplied by the caller
(the current year by default). Amounts are unsigned; the sign comes
from the transaction type.
"""

import logging
import math
import re
from datetime import date

from ..models import Transaction, TransactionType
from .base import BaseStatementParser

logger = logging.getLogger(__name__)

_AMOUNT = r"(\d{1,3}(?:\.\d{3})*)"


class SantanderCheckingParser(BaseStatementParser):
    """Parser for Banco Santander checking account statements."""

    BANK_NAME = "Banco Santander - Cuenta Corriente"
    BANK_CODE = "BancoSantanderCuentaCorriente"
    PRODUCT_TYPE = "Cuenta Corriente"
    MIN_CONFIDENCE = 50

    INDICATORS = [
        ("cuenta corriente ml", 30),
        ("banco santander chile", 25),
        ("cartola desde hasta", 20),
        ("o.gerencia", 15),
        ("compra nacional", 15),
        ("saldos diarios", 10),
        ("detalle de movimientos", 10),
        ("informacion de cuenta corriente", 15),
    ]
    # Bonus once this many lines open with a DD/MM date
    DATED_LINES_REQUIRED = 3
    DATED_LINES_BONUS = 20

    DATED_LINE_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}\s")

    # Line grammars, tried in this order
    NATIONAL_PURCHASE_PATTERN = re.compile(
        rf"^(\d{{1,2}}/\d{{1,2}})\s+([A-Za-z.]+)\s+Compra Nacional\s+(.+?)\s+(\d+)\s+{_AMOUNT}\s*{_AMOUNT}?$"
    )
    CODED_TRANSFER_PATTERN = re.compile(
        rf"^(\d{{1,2}}/\d{{1,2}})\s+([A-Za-z.]+)\s+(\d+)\s+(.+?)\s+{_AMOUNT}\s*{_AMOUNT}?$"
    )
    # A document code is a token holding at least one digit
    TRANSACTION_PATTERN = re.compile(
        rf"^(\d{{1,2}}/\d{{1,2}})\s+([A-Za-z.]+)\s+(\S*\d\S*\s+)?(.+?)\s+{_AMOUNT}\s*{_AMOUNT}?$"
    )

    DEPOSIT_KEYWORDS = ["transf de", "fondo mutuo", "deposito"]

    ACCOUNT_SUMMARY_PATTERN = re.compile(
        r"INFORMACION DE CUENTA CORRIENTE[\s\S]*?SALDO INICIAL\s+DEPOSITOS\s+OTROS ABONOS\s+CHEQUES\s+"
        r"OTROS CARGOS\s+IMPUESTOS\s+SALDO FINAL\s+(\d{1,3}(?:\.\d{3})*)\s+(\d+)\s+(\d{1,3}(?:\.\d{3})*)\s+"
        r"(\d+)\s+(\d{1,3}(?:\.\d{3})*)\s+(\d+)\s+(\d{1,3}(?:\.\d{3})*)"
    )
    CREDIT_LINE_PATTERN = re.compile(
        r"INFORMACION DE LINEA DE[\s\S]*?CUPO APROBADO\s+MONTO UTILIZADO\s+SALDO DISPONIBLE\s+FECHA VENCIMIENTO\s+"
        r"(\d{1,3}(?:\.\d{3})*)\s+(\d+)\s+(\d{1,3}(?:\.\d{3})*)\s+(\d{1,2}/\d{1,2}/\d{4})"
    )
    PERIOD_PATTERN = re.compile(
        r"CARTOLA\s+DESDE\s+HASTA\s+PAGINA\s+(\d+)\s+(\d{1,2}/\d{1,2}/\d{4})\s+(\d{1,2}/\d{1,2}/\d{4})"
    )

    def __init__(self, *args, year_hint: int | None = None, **kwargs):
        """Initialize the parser.

        Args:
            year_hint: Statement year for the DD/MM dates; defaults to the current year
        """
        super().__init__(*args, **kwargs)
        self.year_hint = year_hint

    def _score(self, text: str) -> int:
        lower_text = text.lower()
        score = sum(weight for indicator, weight in self.INDICATORS if indicator in lower_text)

        dated_lines = 0
        for line in text.splitlines():
            if self.DATED_LINE_PATTERN.match(line.strip()):
                dated_lines += 1
                if dated_lines >= self.DATED_LINES_REQUIRED:
                    score += self.DATED_LINES_BONUS
                    break

        return score

    def _parse(self, line: str, raw_line: str, line_number: int | None) -> Transaction | None:
        match = self.NATIONAL_PURCHASE_PATTERN.match(line)
        if match:
            date_str, branch, description, code, amount_str, balance_str = match.groups()
            description = f"Compra Nacional {description}"
        else:
            match = self.CODED_TRANSFER_PATTERN.match(line) or self.TRANSACTION_PATTERN.match(line)
            if not match:
                return None
            date_str, branch, code, description, amount_str, balance_str = match.groups()

        description = description.strip()
        code = code.strip() if code else None

        day, month = date_str.split("/")
        txn_date = self._make_date(day, month, self.statement_year())

        txn_type = self.transaction_type(description)
        value = self._parse_amount(amount_str)
        amount = value if txn_type == TransactionType.DEPOSIT else -value

        return self._build_transaction(
            raw_line=raw_line,
            line_number=line_number,
            txn_date=txn_date,
            correction=self._correct(description),
            amount=amount,
            txn_type=txn_type,
            location=branch or None,
            balance=self._parse_amount(balance_str) if balance_str else None,
            raw_data={"original_date": date_str, "original_amount": amount_str, "document_code": code},
        )

    def statement_year(self) -> int:
        return self.year_hint or date.today().year

    def transaction_type(self, description: str) -> TransactionType:
        """Deposits add funds; everything else is treated as an expense."""
        lower_desc = description.lower()
        if any(keyword in lower_desc for keyword in self.DEPOSIT_KEYWORDS):
            return TransactionType.DEPOSIT
        return TransactionType.PURCHASE

    def extract_additional_data(self, text: str) -> dict:
        data = {}

        match = self.ACCOUNT_SUMMARY_PATTERN.search(text)
        if match:
            values = [self._parse_amount(group) for group in match.groups()]
            (
                data["opening_balance"],
                data["deposits"],
                data["other_credits"],
                data["cheques"],
                data["other_charges"],
                data["taxes"],
                data["closing_balance"],
            ) = values

            data["total_credits"] = data["other_credits"]
            data["total_charges"] = data["other_charges"] + data["taxes"]
            data["balance_variation"] = data["closing_balance"] - data["opening_balance"]
            if data["opening_balance"] > 0:
                data["variation_percent"] = math.floor(data["balance_variation"] / data["opening_balance"] * 100 + 0.5)
            else:
                data["variation_percent"] = 0

        match = self.CREDIT_LINE_PATTERN.search(text)
        if match:
            data["credit_line"] = {
                "approved": self._parse_amount(match.group(1)),
                "used": self._parse_amount(match.group(2)),
                "available": self._parse_amount(match.group(3)),
                "due_date": match.group(4),
            }

        match = self.PERIOD_PATTERN.search(text)
        if match:
            data["cartola_number"] = int(match.group(1))
            data["period_start"] = match.group(2)
            data["period_end"] = match.group(3)

        return data
