"""
Line Filter Tests
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_processor.line_filter import LineFilterEngine
from statement_processor.rules_store import GLOBAL_SCOPE, FilterRule

ALL_SCOPES = ["BancoFalabella", "BancoSantander", "BancoSantanderCuentaCorriente", "BancoChile"]


class TestShouldSkip:
    """Tests for filter rule evaluation."""

    @pytest.mark.parametrize("scope", ALL_SCOPES)
    def test_page_marker_skipped_everywhere(self, line_filter, scope):
        decision = line_filter.should_skip("Página 2 de 4 estado de cuenta", scope)

        assert decision.skip is True
        assert decision.matched_rule.id == "global_1"

    def test_bank_rule_only_in_its_scope(self, line_filter):
        line = "Sus CMR Puntos acumulados: 1.200"
        assert line_filter.should_skip(line, "BancoFalabella")
        assert not line_filter.should_skip(line, "BancoChile")

    def test_transaction_line_kept(self, line_filter):
        decision = line_filter.should_skip("SANTIAGO 23/07/25 PAYU *UBER TRIP $4.693", "BancoSantander")
        assert decision.skip is False
        assert decision.matched_rule is None

    def test_match_records_usage(self, rule_store, line_filter):
        line_filter.should_skip("visite www.bancofalabella.cl", "BancoFalabella")
        assert rule_store.rule_usage("global_2").times_used == 1

    def test_inactive_rule_ignored(self, rule_store, line_filter):
        rule_store.update_filter_rule("global_1", active=False)
        assert not line_filter.should_skip("Página 1", "BancoChile")

    def test_invalid_regex_never_matches(self, rule_store, line_filter):
        rule_store.add_filter_rule(GLOBAL_SCOPE, "regex", "[broken")

        decision = line_filter.should_skip("[broken line of text", "BancoChile")
        assert decision.skip is False

    def test_predicates_run_after_rules(self, rule_store):
        def short_reference(line, scope):
            return scope == "BancoChile" and line.startswith("REF")

        engine = LineFilterEngine(rule_store, predicates=[short_reference])

        decision = engine.should_skip("REF 0001 sin detalle", "BancoChile")
        assert decision.skip is True
        assert decision.matched_rule is None
        assert decision.reason == "short_reference"
        assert not engine.should_skip("REF 0001 sin detalle", "BancoSantander")


class TestRuleMatchTypes:
    """Tests for each filter match type."""

    @pytest.mark.parametrize(
        "match_type,pattern,line,expected",
        [
            ("contains", "cupo total", "CUPO TOTAL $ 18.930.000", True),
            ("starts", "total", "TOTAL OPERACIONES $ 120.000", True),
            ("starts", "total", "SUBTOTAL $ 120.000", False),
            ("ends", "de 3", "Hoja 1 DE 3", True),
            ("exact", "monto", "  MONTO  ", True),
            ("exact", "monto", "MONTO CANCELADO", False),
            ("regex", r"^\d+\s+de\s+\d+$", "2 DE 3", True),
            ("regex", r"^\d+\s+de\s+\d+$", "02/05 Transf 2 de 3", False),
        ],
    )
    def test_match(self, line_filter, match_type, pattern, line, expected):
        rule = FilterRule(id="t1", scope=GLOBAL_SCOPE, match_type=match_type, pattern=pattern)
        assert line_filter.test_rule(rule, line) is expected

    def test_unknown_type_does_not_match(self, line_filter):
        rule = FilterRule(id="t2", scope=GLOBAL_SCOPE, match_type="fuzzy", pattern="x")
        assert line_filter.test_rule(rule, "x") is False
