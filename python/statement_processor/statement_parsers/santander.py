"""
Banco Santander Credit Card Parser

Parses VISA GOLD LATAM statement lines.

Line layout:
    [Location] DD/MM/YY Description $Amount

Amounts are printed as charged: positive amounts are expenses and
minus-marked amounts are payments.
"""

import logging
import re
from datetime import date

from ..exceptions import LineParseError
from ..models import Transaction, TransactionType
from .base import BaseStatementParser

logger = logging.getLogger(__name__)

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_AMOUNT = r"(-?\d{1,3}(?:\.\d{3})*)"


class SantanderParser(BaseStatementParser):
    """Parser for Banco Santander credit card statements."""

    BANK_NAME = "Banco Santander"
    BANK_CODE = "BancoSantander"
    PRODUCT_TYPE = "Tarjeta de Crédito VISA GOLD LATAM"
    MIN_CONFIDENCE = 30

    LOCATIONS = ["SANTIAGO", "LAS CONDES", "PROVIDENCIA", "VITACURA", "MAIPÚ", "ÑUÑOA", "HUECHURABA"]

    MERCHANT_PREFIXES = [
        "PAYU *",
        "DL RAPPI",
        "MERPAGO*",
        "PPRO",
        "ADOBE",
        "DL*GOOGLE",
        "DLOCAL *",
        "MERPAGO*CABIFY",
        "MERPAGO*ALIPAY",
    ]

    BANK_CHARGES = [
        "INTERESES",
        "IMPUESTOS",
        "IVA USO INTERNACIONAL",
        "SERVICIO USO INTERNACIONAL",
        "COMISION DE MANTENCION",
        "MONTO CANCELADO",
    ]

    INDICATORS = [
        ("banco santander", 50),
        ("santander", 50),
        ("visa gold latam", 30),
        ("estado de cuenta en moneda nacional de tarjeta de crédito", 10),
        ("payu *uber trip", 10),
        ("dl rappi chile", 10),
        ("merpago*", 10),
    ]
    # Both merchant gateways on the same statement
    GATEWAY_BONUS = 20

    # Line grammars, tried in this order
    WITH_LOCATION_PATTERN = re.compile(rf"^([A-Z\s]+?)\s+{_DATE}\s+(.+?)\s+\$\s*{_AMOUNT}$")
    COMPLEX_PATTERN = re.compile(rf"^{_DATE}\s+([A-Z\s]+?)\s+\d+[,.]\d+\s*%.*?\$\s*{_AMOUNT}(?:\s+\$.*)?$")
    BANK_CHARGE_PATTERN = re.compile(rf"^{_DATE}\s+(.+?)\s+(?:\d+[,.]\d+\s*%\s+)?\$\s*{_AMOUNT}(?:\s+\$.*)?$")
    SIMPLE_PATTERN = re.compile(rf"^{_DATE}\s+(.+?)\s+\$\s*{_AMOUNT}$")

    PAT_SUFFIX_PATTERN = re.compile(r"\s*(COMPRAS\s*P\.A\.T\.|P\.A\.T\.)$", re.IGNORECASE)
    PRINTED_AMOUNT_PATTERN = re.compile(r"\$\s*\d{1,3}(?:\.\d{3})*")
    NUMERIC_DESCRIPTION_PATTERN = re.compile(r"^[\d\s$.,/\-]+$")

    METADATA_PATTERNS = [
        re.compile(r"MONTO\s+TOTAL", re.IGNORECASE),
        re.compile(r"CUPO\s+TOTAL", re.IGNORECASE),
        re.compile(r"COSTO\s+MONETARIO", re.IGNORECASE),
        re.compile(r"FACTURADO\s+A\s+PAGAR", re.IGNORECASE),
        re.compile(r"PRÓXIMO\s+PERÍODO", re.IGNORECASE),
        re.compile(r"PERÍODO\s+DE\s+FACTURACIÓN", re.IGNORECASE),
    ]

    NON_TRANSACTION_PATTERNS = [
        re.compile(r"^TOTAL OPERACIONES", re.IGNORECASE),
        re.compile(r"^MOVIMIENTOS TARJETA", re.IGNORECASE),
        re.compile(r"^PRODUCTOS O SERVICIOS", re.IGNORECASE),
        re.compile(r"^CARGOS, COMISIONES", re.IGNORECASE),
        re.compile(r"^INFORMACION COMPRAS", re.IGNORECASE),
        re.compile(r"^\d+\.\s*(TOTAL|PRODUCTOS|CARGOS|INFORMACION)", re.IGNORECASE),
        re.compile(r"^(MONTO|ORIGEN|OPERACIÓN|O COBRO|FECHA DE|LUGAR DE)$", re.IGNORECASE),
        re.compile(r"^DESCRIPCIÓN OPERACIÓN O COBRO$", re.IGNORECASE),
        re.compile(r"^(VALOR CUOTA|MENSUAL|CARGO DEL MES|PERÍODO ACTUAL)$", re.IGNORECASE),
        # Only amounts, currency signs and percentages
        re.compile(r"^[$\d.\s,%-]+$"),
        re.compile(r"^\$[\d.]+$"),
        # Page numbering
        re.compile(r"^\d{1,2}\s*DE\s*\d{1,2}$", re.IGNORECASE),
    ]

    def _score(self, text: str) -> int:
        lower_text = text.lower()
        score = sum(weight for indicator, weight in self.INDICATORS if indicator in lower_text)
        if "payu *" in lower_text and "merpago*" in lower_text:
            score += self.GATEWAY_BONUS
        return score

    def is_noise_line(self, line: str) -> bool:
        return any(pattern.search(line) for pattern in self.NON_TRANSACTION_PATTERNS)

    def _parse(self, line: str, raw_line: str, line_number: int | None) -> Transaction | None:
        parsed = (
            self._match_with_location(line)
            or self._match_complex(line)
            or self._match_bank_charge(line)
            or self._match_simple(line)
        )
        if parsed is None:
            return None

        date_str, description, amount_str, location, grammar = parsed

        amount = self._parse_amount(amount_str)
        if amount == 0:
            raise LineParseError("Zero amount", raw_line)

        correction = self._correct(self.clean_description(description))
        txn_type = self._transaction_type(description, amount, grammar)

        return self._build_transaction(
            raw_line=raw_line,
            line_number=line_number,
            txn_date=self.parse_date(date_str),
            correction=correction,
            amount=amount,
            txn_type=txn_type,
            confidence=self.line_confidence(correction.corrected, amount, location),
            location=location,
            raw_data={"original_date": date_str, "original_amount": amount_str, "grammar": grammar},
        )

    def _match_with_location(self, line: str) -> tuple | None:
        match = self.WITH_LOCATION_PATTERN.match(line)
        if not match:
            return None

        location, date_str, description, amount_str = match.groups()
        location = location.strip().upper()
        if not any(known in location or location in known for known in self.LOCATIONS):
            logger.debug(f"[SANTANDER] Unknown location {location!r} in line {line!r}")
            return None

        return date_str, description.strip(), amount_str, location, "with_location"

    def _match_complex(self, line: str) -> tuple | None:
        match = self.COMPLEX_PATTERN.match(line)
        if not match:
            return None
        date_str, description, amount_str = match.groups()
        return date_str, description.strip(), amount_str, None, "complex"

    def _match_bank_charge(self, line: str) -> tuple | None:
        match = self.BANK_CHARGE_PATTERN.match(line)
        if not match:
            return None
        date_str, description, amount_str = match.groups()
        if self.is_metadata_line(line, date_str, description.strip()):
            return None
        return date_str, description.strip(), amount_str, None, "bank_charge"

    def _match_simple(self, line: str) -> tuple | None:
        match = self.SIMPLE_PATTERN.match(line)
        if not match:
            return None
        date_str, description, amount_str = match.groups()
        if self.is_metadata_line(line, date_str, description.strip()):
            return None
        return date_str, description.strip(), amount_str, None, "simple"

    def is_metadata_line(self, line: str, date_str: str, description: str) -> bool:
        """Detect account summary lines that share the transaction grammar."""
        if date_str in description:
            return True

        printed = self.PRINTED_AMOUNT_PATTERN.findall(line)
        if len(printed) > 1 and len(set(printed)) == 1:
            return True

        if self.NUMERIC_DESCRIPTION_PATTERN.match(description):
            return True

        for pattern in self.METADATA_PATTERNS:
            if pattern.search(description) or pattern.search(line):
                return True

        return False

    def _transaction_type(self, description: str, amount: int, grammar: str) -> TransactionType:
        if amount < 0:
            return TransactionType.PAYMENT
        if grammar in ("bank_charge", "simple"):
            upper_desc = description.upper()
            if any(charge in upper_desc for charge in self.BANK_CHARGES):
                return TransactionType.CHARGE
        return TransactionType.PURCHASE

    def parse_date(self, date_str: str) -> date:
        day, month, year = date_str.split("/")
        if len(year) == 2:
            year = f"20{year}"
        return self._make_date(day, month, year)

    def clean_description(self, description: str) -> str:
        """Remove payment gateway prefixes and the P.A.T. suffix."""
        cleaned = description
        for prefix in self.MERCHANT_PREFIXES:
            if cleaned.startswith(prefix):
                cleaned = cleaned[len(prefix):].strip()

        cleaned = self.PAT_SUFFIX_PATTERN.sub("", cleaned)
        return cleaned or description

    def line_confidence(self, description: str, amount: int, location: str | None) -> int:
        confidence = 80
        if description and len(description) > 3:
            confidence += 10
        if location and location in self.LOCATIONS:
            confidence += 5
        if abs(amount) < 100:
            confidence -= 5
        return min(confidence, 95)

    def extract_additional_data(self, text: str) -> dict:
        data = {}

        searches = {
            "billed_amount": r"MONTO TOTAL FACTURADO A PAGAR\s+\$(\d{1,3}(?:\.\d{3})*)",
            "previous_billed_amount": r"MONTO FACTURADO A PAGAR \(PERÍODO ANTERIOR\)\s+\$\s*(\d{1,3}(?:\.\d{3})*)",
            "previous_paid_amount": r"MONTO PAGADO PERÍODO ANTERIOR\s+\$\s*(-?\d{1,3}(?:\.\d{3})*)",
            "minimum_payment": r"MONTO MÍNIMO A PAGAR\s+\$(\d{1,3}(?:\.\d{3})*)",
        }
        for key, pattern in searches.items():
            match = re.search(pattern, text)
            if match:
                data[key] = self._parse_amount(match.group(1))

        match = re.search(r"PAGAR HASTA\s+(\d{1,2}/\d{1,2}/\d{4})", text)
        if match:
            data["due_date"] = match.group(1)

        match = re.search(r"XXXX XXXX XXXX (\d{4})", text)
        if match:
            data["card_last_four"] = match.group(1)

        match = re.search(r"NOMBRE DEL TITULAR\s+([A-ZÁÉÍÓÚÑ .]+)", text, re.IGNORECASE)
        if match:
            data["account_holder"] = match.group(1).strip()

        return data
