"""
Banco Falabella Credit Card Parser

Parses CMR credit card statement lines.

Line layout:
    [Location] DD/MM/YYYY Description Code Amount Amount NN/NN mmm-YYYY Amount

The settled amount is printed three times because of the columnar layout,
for example "S/I 27/07/2025 Compra falabella plaza vespucio T 37.905 37.905
01/01 sep-2025 37.905".
"""

import logging
import re

from ..exceptions import LineParseError
from ..models import Transaction, TransactionType
from .base import BaseStatementParser

logger = logging.getLogger(__name__)


class FalabellaParser(BaseStatementParser):
    """Parser for Banco Falabella CMR credit card statements."""

    BANK_NAME = "Banco Falabella"
    BANK_CODE = "BancoFalabella"
    PRODUCT_TYPE = "Tarjeta de Crédito CMR"
    MIN_CONFIDENCE = 20
    LINE_CONFIDENCE = 95

    LOCATIONS = ["Santiago", "Las Condes", "S/I", "Nunoa", "Huechuraba"]
    TRANSACTION_CODES = ["T", "A2"]

    # Statement text indicators and their weights
    INDICATORS = [
        ("banco falabella", 50),
        ("tarjeta cmr", 10),
        ("falabella", 10),
        ("sodimac", 10),
    ]
    # Code followed by the repeated amount and a process date
    LAYOUT_PATTERN = re.compile(
        r"\b(?:T|A2)\s+(-?\d{1,3}(?:\.\d{3})*)\s+-?\1\s+\d{1,2}/\d{1,2}\s*[a-z]{3}-\d{4}",
        re.IGNORECASE,
    )
    LAYOUT_WEIGHT = 10

    DATE_PATTERN = re.compile(r"\b(\d{1,2}/\d{1,2}/\d{4})\b")
    AMOUNT_PATTERN = re.compile(r"(-?\d{1,3}(?:\.\d{3})*)")
    PROCESS_DATE_PATTERN = re.compile(r"\b\d{1,2}/\d{1,2}\s*[a-z]{3}-\d{4}\b", re.IGNORECASE)
    SHORT_DATE_PATTERN = re.compile(r"\s+\d{1,2}/\d{1,2}(?=\s|$)")
    LONE_ZERO_PATTERN = re.compile(r"\s+0(?=\s|$)")

    MIN_YEAR = 2020
    MAX_YEAR = 2030

    ANNULMENT_KEYWORDS = [
        "anulacion",
        "anulación",
        "reverso",
        "devolucion",
        "devolución",
        "reembolso",
        "cancelacion",
        "cancelación",
    ]

    SKIP_PATTERNS = [
        # Headers and titles
        re.compile(r"^\s*(movimientos|transacciones|fecha|descripción|monto|saldo)", re.IGNORECASE),
        re.compile(r"^\s*(estado de cuenta|banco falabella|tarjeta cmr)", re.IGNORECASE),
        re.compile(r"^\s*(periodo|desde|hasta|total)", re.IGNORECASE),
        # Totals and summaries
        re.compile(r"^\s*(total\s+gastos|total\s+abonos|saldo\s+anterior|saldo\s+actual)", re.IGNORECASE),
        re.compile(r"^\s*(pago\s+mínimo|pago\s+contado|fecha\s+vencimiento)", re.IGNORECASE),
        # Only numbers or separators
        re.compile(r"^\s*[\d.\-\s]*$"),
        re.compile(r"^\s*[_\-=*+\s]*$"),
        re.compile(r"^\s*\d{1,2}/\d{1,2}/\d{4}\s*$"),
        # Only a location or a code
        re.compile(r"^\s*(santiago|las condes|s/i|nunoa|huechuraba)\s*$", re.IGNORECASE),
        re.compile(r"^\s*(t|a2)\s*$", re.IGNORECASE),
        # Bulleted metadata
        re.compile(r"^\s*[•●◦▪▫]\s*"),
    ]

    SKIP_KEYWORDS = [
        "página",
        "hoja",
        "continuación",
        "subtotal",
        "resumen",
        "detalle",
        "información",
        "contacto",
        "servicio al cliente",
        "www.",
        "http",
        "email",
        "@",
        "pagar hasta",
        "cmr puntos",
        "puntos acumulados",
        "puntos por vencer",
        "tasa interés",
        "tasa de interés",
        "cae ",
        "período facturado",
        "período de facturación",
        "período a facturar",
        "próximo período",
        "cupo total",
        "cupo disponible",
        "cupo utilizado",
        "cupo avance",
        "cupo súper avance",
        "cupo compras",
        "monto total facturado",
        "monto mínimo",
        "total a pagar",
        "fecha vencimiento",
        "fecha facturación",
        "estado de cuenta",
        "cupón de pago",
        "nombre del titular",
        "número de tarjeta",
        "tarjeta de crédito",
    ]

    BILLED_AMOUNT_PATTERN = re.compile(
        r"monto\s+facturado\s+o\s+a\s+pagar\s+per[ií]odo\s+anterior[\s\S]*?(\d{1,3}(?:\.\d{3})*)",
        re.IGNORECASE,
    )
    CREDIT_LIMIT_PATTERN = re.compile(
        r"l[ií]mite\s+de\s+cr[ée]dito[\s\S]*?(\d{1,3}(?:\.\d{3})*)",
        re.IGNORECASE,
    )

    def _score(self, text: str) -> int:
        lower_text = text.lower()
        score = sum(weight for indicator, weight in self.INDICATORS if indicator in lower_text)
        if self.LAYOUT_PATTERN.search(text):
            score += self.LAYOUT_WEIGHT
        return score

    def is_noise_line(self, line: str) -> bool:
        for pattern in self.SKIP_PATTERNS:
            if pattern.search(line):
                logger.debug(f"[FALABELLA] Skipped line (pattern): {line!r}")
                return True

        lower_line = line.lower()
        for keyword in self.SKIP_KEYWORDS:
            if keyword in lower_line:
                logger.debug(f"[FALABELLA] Skipped line (keyword {keyword!r}): {line!r}")
                return True

        return False

    def _parse(self, line: str, raw_line: str, line_number: int | None) -> Transaction | None:
        dates = self._extract_dates(line)
        if not dates:
            return None
        txn_date_str = dates[0]

        amounts = self._extract_amounts(line)
        if not amounts:
            return None

        amount_str = self.select_best_amount(amounts)

        description = self.extract_description(line, txn_date_str, amount_str)
        if not self._is_valid_description(description) or len(description.strip()) < 3:
            raise LineParseError("No usable description in line", raw_line)

        correction = self._correct(description.strip())
        annulment = self.is_annulment(correction.corrected)
        amount = self.signed_amount(amount_str, annulment)

        day, month, year = txn_date_str.split("/")
        return self._build_transaction(
            raw_line=raw_line,
            line_number=line_number,
            txn_date=self._make_date(day, month, year),
            correction=correction,
            amount=amount,
            txn_type=TransactionType.PURCHASE if amount < 0 else TransactionType.PAYMENT,
            raw_data={
                "original_date": txn_date_str,
                "original_amount": amount_str,
                "all_dates": dates,
                "all_amounts": amounts,
                "is_annulment": annulment,
            },
        )

    def _extract_dates(self, line: str) -> list[str]:
        dates = []
        for match in self.DATE_PATTERN.finditer(line):
            day, month, year = (int(part) for part in match.group(1).split("/"))
            if 1 <= day <= 31 and 1 <= month <= 12 and self.MIN_YEAR <= year <= self.MAX_YEAR:
                dates.append(match.group(1))
        return dates

    def _extract_amounts(self, line: str) -> list[str]:
        amounts = []
        for match in self.AMOUNT_PATTERN.finditer(line):
            token = match.group(1)
            digits = self._digits(token)
            if digits and int(digits) > 0:
                amounts.append(token)
        return amounts

    def select_best_amount(self, amounts: list[str]) -> str | None:
        """Pick the settled amount among the numeric tokens of a line.

        Short day/month fragments are ignored; the numerically largest
        remaining token wins, the first one on ties.
        """
        if not amounts:
            return None

        candidates = []
        for token in amounts:
            if re.fullmatch(r"\d{2}/\d{2}", token):
                continue
            digits = self._digits(token)
            if len(digits) <= 2 and int(digits) <= 12:
                continue
            candidates.append(token)

        if not candidates:
            return amounts[-1]

        best = candidates[0]
        best_value = int(self._digits(best))
        for token in candidates[1:]:
            value = int(self._digits(token))
            if value > best_value:
                best, best_value = token, value
        return best

    def extract_description(self, line: str, txn_date: str, amount: str) -> str:
        """Strip location, dates, codes and repeated amounts from a line."""
        description = line

        for location in self.LOCATIONS:
            description = re.sub(rf"^\s*{re.escape(location)}\s+", "", description, flags=re.IGNORECASE)

        description = re.sub(rf"\b{re.escape(txn_date)}\b", "", description)

        for code in self.TRANSACTION_CODES:
            description = re.sub(rf"\s+{re.escape(code)}\s+", " ", description)

        description = self.PROCESS_DATE_PATTERN.sub("", description)
        description = self.SHORT_DATE_PATTERN.sub("", description)
        description = self.LONE_ZERO_PATTERN.sub("", description)

        description = self.remove_tripled_amounts(description, amount)

        for token in self._exact_amounts(line):
            description = re.sub(rf"\s+{re.escape(token)}(?=\s|$)", "", description)

        for match in self.DATE_PATTERN.finditer(line):
            description = re.sub(rf"\b{re.escape(match.group(1))}\b", "", description)

        return self._clean_text(description)

    def remove_tripled_amounts(self, description: str, amount: str | None) -> str:
        """Remove the repeated occurrences of the settled amount's digits."""
        if not amount:
            return description

        digits = self._digits(amount)
        cleaned = re.sub(rf"\b{digits}\s+{digits}\b", "", description)
        cleaned = re.sub(rf"\s+{digits}\s*$", "", cleaned)
        cleaned = re.sub(rf"\s+{digits}(?=\s|$)", "", cleaned)
        return self._clean_text(cleaned)

    def _exact_amounts(self, line: str) -> list[str]:
        tokens = []
        for match in self.AMOUNT_PATTERN.finditer(line):
            token = match.group(1)
            digits = self._digits(token)
            if not digits or int(digits) == 0:
                continue
            if re.fullmatch(r"\d{1,2}|\d{4}", token):
                continue
            if len(digits) >= 3 or "." in token:
                tokens.append(token)
        return tokens

    def is_annulment(self, description: str) -> bool:
        lower_desc = description.lower()
        return any(keyword in lower_desc for keyword in self.ANNULMENT_KEYWORDS)

    def signed_amount(self, amount_str: str, annulment: bool = False) -> int:
        """Apply the Falabella sign convention.

        Unmarked amounts are expenses (negative) and minus-marked amounts
        are credits (positive). Annulments are always expenses.
        """
        value = abs(self._parse_amount(amount_str))
        if annulment:
            return -value
        if amount_str.strip().startswith("-"):
            return value
        return -value

    def extract_additional_data(self, text: str) -> dict:
        data = {}

        match = self.BILLED_AMOUNT_PATTERN.search(text)
        data["billed_amount"] = int(match.group(1).replace(".", "")) if match else 0

        match = self.CREDIT_LIMIT_PATTERN.search(text)
        if match:
            data["credit_limit"] = int(match.group(1).replace(".", ""))

        return data
