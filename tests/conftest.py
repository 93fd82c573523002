"""
Pytest configuration and fixtures for statement processor tests.
"""

import sys
from pathlib import Path

import pytest

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

sys.path.insert(0, str(PROJECT_ROOT / "python"))

from statement_processor.categories import CategoryTaxonomy
from statement_processor.categorizer import TransactionClassifier
from statement_processor.description_corrector import DescriptionCorrector
from statement_processor.line_filter import LineFilterEngine
from statement_processor.rules_store import RuleStore


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_dir() -> Path:
    """Return the config directory path."""
    return PROJECT_ROOT / "config"


@pytest.fixture
def rule_store() -> RuleStore:
    """Built-in default rules, not bound to any file."""
    return RuleStore.default()


@pytest.fixture
def bound_store(tmp_path: Path) -> RuleStore:
    """Default rules bound to a temporary JSON file."""
    return RuleStore.default(path=tmp_path / "parsing_rules.json")


@pytest.fixture
def taxonomy(config_dir: Path) -> CategoryTaxonomy:
    """Load the category taxonomy configuration."""
    return CategoryTaxonomy.from_config(config_dir)


@pytest.fixture
def line_filter(rule_store: RuleStore) -> LineFilterEngine:
    return LineFilterEngine(rule_store)


@pytest.fixture
def corrector(rule_store: RuleStore) -> DescriptionCorrector:
    return DescriptionCorrector(rule_store)


@pytest.fixture
def classifier(rule_store: RuleStore, taxonomy: CategoryTaxonomy) -> TransactionClassifier:
    return TransactionClassifier(rule_store, taxonomy)


@pytest.fixture
def falabella_document() -> str:
    """Banco Falabella CMR statement text."""
    return """BANCO FALABELLA
ESTADO DE CUENTA TARJETA CMR
S/I 27/07/2025 Compra falabella plaza vespucio T 37.905 37.905 01/01 sep-2025 37.905
Santiago 05/08/2025 Colmena golden cross A2 351.357 351.357 01/01 sep-2025 351.357
06/08/2025 Anulacion pago automatico abono T 17.040 -17.040 01/01 sep-2025 -17.040
Las Condes 19/07/2025 Mercadopago *sociedad A2 89.990 89.990 01/01 sep-2025 89.990
Página 1 de 3
"""


@pytest.fixture
def santander_document() -> str:
    """Banco Santander credit card statement text."""
    return """BANCO SANTANDER
ESTADO DE CUENTA EN MONEDA NACIONAL DE TARJETA DE CRÉDITO
VISA GOLD LATAM
NOMBRE DEL TITULAR MARIA SOTO
SANTIAGO 23/07/25 PAYU *UBER TRIP $4.693
LAS CONDES 26/07/25 DL RAPPI CHILE RAPP COMPRAS P.A.T. $9.160
25/08/25 INTERESES $14.614
05/08/25 MONTO CANCELADO $-251.900
MONTO TOTAL FACTURADO A PAGAR $283.540
PAGAR HASTA 05/09/2025
XXXX XXXX XXXX 4321
"""


@pytest.fixture
def santander_checking_document() -> str:
    """Banco Santander checking account cartola text."""
    return """BANCO SANTANDER CHILE
CARTOLA DESDE HASTA PAGINA 5 01/05/2025 31/05/2025
CUENTA CORRIENTE ML 0-000-12345-6
DETALLE DE MOVIMIENTOS
02/05 O.Gerencia 0160136375 Transf a Angeles Hernandez 25.000
02/05 O.Gerencia Compra Nacional CASA IDEAS PLAZA EGANA 512066 19.990
05/05 Agustinas Traspaso Internet a T. Crédito 400.000
27/05 Agustinas 077680794K Transf de TRADING COMPANY WM 466.666 648.170
"""


@pytest.fixture
def banco_chile_document() -> str:
    """Banco de Chile credit card statement text."""
    return """BANCO DE CHILE
ESTADO DE CUENTA NACIONAL DE TARJETA DE CRÉDITO
CUPO TOTAL $ 18.930.000
MONTO FACTURADO A PAGAR (PERÍODO ANTERIOR) $ 70.113
PAGAR HASTA 05/09/2025
07/08/25 070800000000 PAGO AUTOMATICO $ -70.113 $ -70.113 01/01 $ -70.113
CL 28/07/25 290780659639 PEDIDOSYA CL PLUS CL $ 3.990 $ 3.990 01/01 $ 3.990
SANTIAGO 08/08/25 120811439124 BANCHILE SEGUROS(RE SANTIAGO $ 9.867 $ 9.867 01/01 $ 9.867
"""


@pytest.fixture
def unrelated_document() -> str:
    """Text that is not a bank statement."""
    return """Meeting notes
Attendees: Ana, Pedro, Lucia
Agenda for 12/03: review the quarterly roadmap and hiring plan.
Next meeting scheduled after the holidays.
"""
