"""
Statement Processor Tests

End-to-end tests from document text to classified transactions.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_processor import StatementProcessor
from statement_processor.categories import DEFAULT_CATEGORY
from statement_processor.exceptions import FormatNotRecognized
from statement_processor.models import TransactionType


@pytest.fixture
def processor(rule_store, taxonomy):
    return StatementProcessor(store=rule_store, taxonomy=taxonomy, year_hint=2025)


class TestCandidateLines:
    """Tests for candidate line extraction."""

    def test_dated_lines_kept(self, processor, falabella_document):
        lines = processor.extract_candidate_lines(falabella_document)

        assert len(lines) == 4
        assert lines[0].startswith("S/I 27/07/2025")

    def test_short_dates(self, processor, santander_checking_document):
        lines = processor.extract_candidate_lines(santander_checking_document)

        assert len(lines) == 5
        assert lines[0].startswith("CARTOLA DESDE HASTA")
        assert lines[-1].startswith("27/05 Agustinas")

    def test_header_lines_dropped(self, processor):
        text = "\n".join(
            [
                "Saldo anterior al 01/05/2025",
                "Total operaciones 30/06/2025",
                "RUT 12.345.678-9 emitido 01/05/2025",
                "05/08/25 MONTO TOTAL $1.000",
                "short 1/1",
            ]
        )
        assert processor.extract_candidate_lines(text) == ["05/08/25 MONTO TOTAL $1.000"]


class TestProcessDocument:
    """Tests for whole-document processing."""

    def test_falabella(self, processor, falabella_document):
        result = processor.process_document(falabella_document)

        assert result.bank_code == "BancoFalabella"
        assert result.bank_name == "Banco Falabella"
        assert result.confidence == 80
        assert result.total_lines == 4
        assert result.transaction_count == 4
        assert result.success_rate == 100
        assert result.failed_lines == 0
        assert result.errors == []
        assert [t.amount for t in result.transactions] == [-37905, -351357, -17040, -89990]
        assert result.total_expenses == 496292
        assert result.total_income == 0

    def test_transactions_classified(self, processor, falabella_document):
        result = processor.process_document(falabella_document)
        categories = [t.category for t in result.transactions]

        assert categories == ["Compras", "Salud y Médicos", "Ingresos", DEFAULT_CATEGORY]
        assert result.category_stats["Salud y Médicos"]["count"] == 1
        assert result.category_stats[DEFAULT_CATEGORY]["count"] == 1

    def test_santander(self, processor, santander_document):
        result = processor.process_document(santander_document)

        assert result.bank_code == "BancoSantander"
        assert result.total_lines == 5
        assert result.transaction_count == 4
        assert result.success_rate == 80
        assert [t.type for t in result.transactions] == [
            TransactionType.PURCHASE,
            TransactionType.PURCHASE,
            TransactionType.CHARGE,
            TransactionType.PAYMENT,
        ]
        assert result.total_expenses == 28467
        assert result.total_income == 251900
        assert result.additional_data["billed_amount"] == 283540

    def test_santander_checking(self, processor, santander_checking_document):
        result = processor.process_document(santander_checking_document)

        assert result.bank_code == "BancoSantanderCuentaCorriente"
        assert result.transaction_count == 4
        assert result.success_rate == 80
        assert [t.date.year for t in result.transactions] == [2025] * 4
        assert result.transactions[-1].type == TransactionType.DEPOSIT
        assert result.additional_data["cartola_number"] == 5

    def test_banco_chile(self, processor, banco_chile_document):
        result = processor.process_document(banco_chile_document)

        assert result.bank_code == "BancoChile"
        assert result.total_lines == 4
        assert result.transaction_count == 3
        assert result.success_rate == 75
        assert result.transactions[0].amount == 70113
        assert result.additional_data["due_date"] == "2025-09-05"

    def test_failed_lines_counted(self, processor, falabella_document):
        document = falabella_document + "S/I 27/07/2025 T 37.905 37.905 01/01 sep-2025 37.905\n"
        result = processor.process_document(document)

        assert result.total_lines == 5
        assert result.transaction_count == 4
        assert result.failed_lines == 1
        assert len(result.warnings) == 1

    def test_explicit_lines(self, processor, falabella_document):
        lines = ["Santiago 05/08/2025 Colmena golden cross A2 351.357 351.357 01/01 sep-2025 351.357"]
        result = processor.process_document(falabella_document, lines=lines)

        assert result.total_lines == 1
        assert result.transactions[0].description == "Colmena golden cross"

    def test_without_classification(self, processor, falabella_document):
        result = processor.process_document(falabella_document, classify=False)

        assert all(t.category is None for t in result.transactions)
        assert result.category_stats == {}

    def test_no_transactions(self, processor):
        result = processor.process_document("BANCO FALABELLA\nTARJETA CMR\n")

        assert result.transaction_count == 0
        assert result.success_rate == 0
        assert result.errors == ["No transactions found in document"]

    def test_unrecognized_document(self, processor, unrelated_document):
        with pytest.raises(FormatNotRecognized):
            processor.process_document(unrelated_document)

    def test_to_dict(self, processor, santander_document):
        data = processor.process_document(santander_document).to_dict()

        assert data["parsed_transactions"] == 4
        assert data["success_rate"] == 80
        assert data["transactions"][0]["description"] == "UBER TRIP"
        assert data["transactions"][0]["date"] == "2025-07-23"

    def test_rule_usage_recorded(self, rule_store, processor, falabella_document):
        document = falabella_document + "Sus CMR Puntos acumulados 12/08/2025 1.200\n"
        processor.process_document(document)

        assert rule_store.rule_usage("falabella_1").times_used == 1
