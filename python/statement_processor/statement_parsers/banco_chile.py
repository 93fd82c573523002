"""
Banco de Chile Credit Card Parser

Line layout:
    [Location] DD/MM/YY Reference Description $ Amount $ Amount NN/NN $ Installment

The last printed amount is the installment charged in this statement.
"""

import logging
import re
from datetime import date

from ..exceptions import LineParseError
from ..models import Transaction, TransactionType
from .base import BaseStatementParser

logger = logging.getLogger(__name__)


class BancoChileParser(BaseStatementParser):
    """Parser for Banco de Chile credit card statements."""

    BANK_NAME = "Banco de Chile"
    BANK_CODE = "BancoChile"
    PRODUCT_TYPE = "Tarjeta de Crédito"
    MIN_CONFIDENCE = 50
    MIN_LINE_LENGTH = 15

    LOCATIONS = [
        "SANTIAGO",
        "CL",
        "PROVIDENCIA",
        "LAS CONDES",
        "VITACURA",
        "LA FLORIDA",
        "MAIPU",
        "ÑUÑOA",
        "HUECHURABA",
        "LA REINA",
    ]

    KEYWORDS = ["BANCO DE CHILE", "BANCHILE", "ESTADO DE CUENTA NACIONAL DE TARJETA"]
    KEYWORD_WEIGHT = 50

    DATE_PATTERN = re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})")
    AMOUNT_PATTERN = re.compile(r"\$\s*(-?\d{1,3}(?:\.\d{3})*(?:,\d{2})?)")
    REFERENCE_PATTERN = re.compile(r"^(\d{12})\s+(.+?)\s*\$")

    PAYMENT_KEYWORDS = ["pago", "abono", "transferencia", "deposito", "depósito"]

    METADATA_KEYWORDS = [
        "cupo total",
        "cupo utilizado",
        "cupo disponible",
        "tasa interes",
        "cae",
        "periodo facturado",
        "pagar hasta",
        "saldo adeudado",
        "total operaciones",
        "total pagos",
        "total pat",
        "total tarjeta",
        "total transacciones",
        "total cargos",
        "total productos",
        "sin movimientos",
        "monto facturado",
        "monto minimo",
        "monto pagado",
        "vencimiento",
        "impuesto decreto",
        "nombre del titular",
        "fecha estado de cuenta",
        "informacion general",
        "periodo anterior",
        "periodo actual",
        "lugar de operacion",
        "descripcion operacion",
        "valor cuota",
        "cargos del mes",
    ]

    HEADER_PATTERNS = [
        re.compile(r"^\s*[A-Z\s]{5,}\s*$", re.IGNORECASE),
        re.compile(r"^\s*\d+\s+de\s+\d+\s*$", re.IGNORECASE),
        re.compile(r"^\s*página", re.IGNORECASE),
        re.compile(r"^={3,}"),
        re.compile(r"^-{3,}"),
    ]

    def _score(self, text: str) -> int:
        upper_text = text.upper()
        return sum(self.KEYWORD_WEIGHT for keyword in self.KEYWORDS if keyword in upper_text)

    def is_noise_line(self, line: str) -> bool:
        lower_line = line.lower()
        if any(keyword in lower_line for keyword in self.METADATA_KEYWORDS):
            return True
        return any(pattern.search(line) for pattern in self.HEADER_PATTERNS)

    def _parse(self, line: str, raw_line: str, line_number: int | None) -> Transaction | None:
        date_match = self.DATE_PATTERN.search(line)
        if not date_match:
            return None
        date_str = date_match.group(1)

        amounts = self.AMOUNT_PATTERN.findall(line)
        if not amounts:
            return None

        amount_str = amounts[-1]
        printed = self._parse_amount(amount_str)
        if printed == 0:
            raise LineParseError("Zero amount", raw_line)

        prefix = line[: date_match.start()].strip().upper()
        after_date = line[date_match.end():].strip()

        description = self.clean_description(self.extract_description(after_date))
        if len(description) < 3:
            raise LineParseError("Description too short", raw_line)

        correction = self._correct(description)

        is_payment = printed < 0 or self.is_payment(correction.corrected)
        amount = abs(printed) if is_payment else -abs(printed)

        return self._build_transaction(
            raw_line=raw_line,
            line_number=line_number,
            txn_date=self.parse_date(date_str),
            correction=correction,
            amount=amount,
            txn_type=TransactionType.PAYMENT if is_payment else TransactionType.PURCHASE,
            location=prefix if prefix in self.LOCATIONS else None,
            raw_data={"original_date": date_str, "original_amount": amount_str, "all_amounts": amounts},
        )

    def extract_description(self, after_date: str) -> str:
        """Text between the reference number and the first amount."""
        match = self.REFERENCE_PATTERN.match(after_date)
        if match:
            return match.group(2).strip()

        dollar = after_date.find("$")
        if dollar <= 0:
            return ""
        return re.sub(r"^\d+\s+", "", after_date[:dollar].strip())

    def clean_description(self, description: str) -> str:
        """Remove trailing location tokens."""
        cleaned = description.strip()
        for location in self.LOCATIONS:
            cleaned = re.sub(rf"\s+{re.escape(location)}\s*$", "", cleaned, flags=re.IGNORECASE)
        return self._clean_text(cleaned)

    def is_payment(self, description: str) -> bool:
        lower_desc = description.lower()
        return any(keyword in lower_desc for keyword in self.PAYMENT_KEYWORDS)

    def parse_date(self, date_str: str) -> date:
        """Parse DD/MM/YY or DD/MM/YYYY; two-digit years below 50 are 20YY."""
        day, month, year = date_str.split("/")
        if len(year) == 2:
            year = f"20{year}" if int(year) < 50 else f"19{year}"
        return self._make_date(day, month, year)

    def extract_additional_data(self, text: str) -> dict:
        data = {}

        match = re.search(
            r"monto\s+facturado\s+a\s+pagar\s*\(?\s*per[ií]odo\s+anterior\s*\)?[\s\S]*?\$?\s*(\d{1,3}(?:\.\d{3})*)",
            text,
            re.IGNORECASE,
        )
        if match:
            data["billed_amount"] = self._parse_amount(match.group(1))
        else:
            logger.warning("[BANCO CHILE] Billed amount not found in statement")

        match = re.search(r"pagar\s+hasta\s+(\d{1,2}/\d{1,2}/\d{4})", text, re.IGNORECASE)
        if match:
            try:
                data["due_date"] = self.parse_date(match.group(1)).isoformat()
            except LineParseError as e:
                logger.warning(f"[BANCO CHILE] Invalid due date: {e}")

        match = re.search(
            r"per[ií]odo\s+facturado\s+(\d{1,2}/\d{1,2}/\d{4})\s+(\d{1,2}/\d{1,2}/\d{4})",
            text,
            re.IGNORECASE,
        )
        if match:
            try:
                data["billing_period"] = {
                    "start": self.parse_date(match.group(1)).isoformat(),
                    "end": self.parse_date(match.group(2)).isoformat(),
                }
            except LineParseError as e:
                logger.warning(f"[BANCO CHILE] Invalid billing period: {e}")

        match = re.search(r"n[°º]\s+de\s+tarjeta\s+de\s+cr[ée]dito\s+([\dX ]+)", text, re.IGNORECASE)
        if match:
            data["card_number"] = match.group(1).strip()

        return data
