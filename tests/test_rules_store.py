"""
Rule Store Tests

Tests for loading, administering, exporting and importing the rule document.
"""

import json
import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_processor.exceptions import (
    InvalidCategoryReference,
    InvalidRuleDefinition,
    MalformedRuleDocument,
)
from statement_processor.rules_store import (
    GLOBAL_SCOPE,
    RuleStore,
    compile_rule_pattern,
    default_document,
)

CATEGORIES = {"Compras", "Transporte", "Ingresos", "Otros"}


class TestDefaultDocument:
    """Tests for the built-in rules."""

    def test_default_rules(self, rule_store):
        """Default store holds the page and URL global rules."""
        patterns = [r.pattern for r in rule_store.global_rules()]
        assert patterns == ["página", "www."]
        assert [r.pattern for r in rule_store.bank_rules("BancoFalabella")] == ["CMR Puntos"]

    def test_all_scopes_present(self, rule_store):
        scopes = rule_store.bank_scopes()
        for scope in ["BancoFalabella", "BancoSantander", "BancoSantanderCuentaCorriente", "BancoChile"]:
            assert scope in scopes

    def test_default_settings(self, rule_store):
        settings = rule_store.settings
        assert settings["enableAnalytics"] is True
        assert settings["maxRulesPerBank"] == 50

    def test_config_file_matches_defaults(self, config_dir):
        """The shipped rule document validates and carries the default rules."""
        store = RuleStore.from_config(config_dir)
        default = RuleStore.default()

        assert [r.id for r in store.global_rules()] == [r.id for r in default.global_rules()]
        assert [c.id for c in store.bank_corrections("BancoFalabella")] == [
            c.id for c in default.bank_corrections("BancoFalabella")
        ]


class TestRuleQueries:
    """Tests for rule lookup by scope."""

    def test_rules_for_bank_is_union(self, rule_store):
        """Global rules come first, then the scope's own rules."""
        rules = rule_store.rules_for_bank("BancoFalabella")
        assert [r.id for r in rules] == ["global_1", "global_2", "falabella_1"]

    def test_rules_for_unknown_scope(self, rule_store):
        rules = rule_store.rules_for_bank("BancoInexistente")
        assert [r.id for r in rules] == ["global_1", "global_2"]

    def test_inactive_rules_excluded(self, rule_store):
        rule_store.update_filter_rule("global_2", active=False)
        ids = [r.id for r in rule_store.rules_for_bank("BancoChile")]
        assert "global_2" not in ids
        assert rule_store.stats()["global_rules"] == 1

    def test_find_rule(self, rule_store):
        assert rule_store.find_filter_rule("falabella_1").scope == "BancoFalabella"
        assert rule_store.find_filter_rule("missing") is None
        assert rule_store.find_correction("falabella_desc_3").replacement == "Uber Eats"


class TestFilterRuleAdministration:
    """Tests for adding, updating and deleting filter rules."""

    def test_add_rule_generates_id(self, rule_store):
        rule = rule_store.add_filter_rule("BancoSantander", "contains", "TOTAL OPERACIONES")

        assert re.match(r"^bancosantander_\d+_[a-z0-9]{6}$", rule.id)
        assert rule.description == 'Filtrar "TOTAL OPERACIONES"'
        assert rule in rule_store.bank_rules("BancoSantander")

    def test_add_global_rule(self, rule_store):
        rule = rule_store.add_filter_rule(GLOBAL_SCOPE, "starts", "Hoja")
        assert rule.id.startswith("global_")
        assert rule_store.global_rules()[-1] is rule

    def test_ids_are_unique(self, rule_store):
        ids = {rule_store.add_filter_rule("BancoChile", "contains", f"texto {i}").id for i in range(20)}
        assert len(ids) == 20

    def test_legacy_match_type_accepted(self, rule_store):
        rule = rule_store.add_filter_rule("BancoChile", "filter_line_regex", r"^\d+ de \d+$")
        assert rule.match_type == "regex"

    def test_unknown_match_type_rejected(self, rule_store):
        with pytest.raises(ValueError):
            rule_store.add_filter_rule("BancoChile", "fuzzy", "x")

    def test_empty_pattern_rejected(self, rule_store):
        with pytest.raises(ValueError):
            rule_store.add_filter_rule("BancoChile", "contains", "")

    def test_max_rules_per_bank(self):
        document = default_document()
        document["settings"]["maxRulesPerBank"] = 2
        store = RuleStore(document)

        store.add_filter_rule("BancoChile", "contains", "uno")
        store.add_filter_rule("BancoChile", "contains", "dos")
        with pytest.raises(ValueError):
            store.add_filter_rule("BancoChile", "contains", "tres")

        # Global rules are not limited
        store.add_filter_rule(GLOBAL_SCOPE, "contains", "tres")

    def test_update_rule(self, rule_store):
        assert rule_store.update_filter_rule("global_1", pattern="pagina") is True
        assert rule_store.find_filter_rule("global_1").pattern == "pagina"

    def test_update_missing_rule(self, rule_store):
        assert rule_store.update_filter_rule("missing", active=False) is False

    def test_update_protected_field(self, rule_store):
        with pytest.raises(ValueError):
            rule_store.update_filter_rule("global_1", id="other")

    def test_delete_rule(self, rule_store):
        assert rule_store.delete_filter_rule("falabella_1") is True
        assert rule_store.bank_rules("BancoFalabella") == []
        assert rule_store.delete_filter_rule("falabella_1") is False


class TestCorrectionAdministration:
    """Tests for description correction administration."""

    def test_add_correction(self, rule_store):
        correction = rule_store.add_correction("BancoSantander", "UBER TRIP", "Uber", match_type="word_replace")

        assert re.match(r"^bancosantander_corr_\d+_[a-z0-9]{6}$", correction.id)
        assert rule_store.corrections_for_bank("BancoSantander") == [correction]

    def test_cleanup_needs_no_pattern(self, rule_store):
        correction = rule_store.add_correction(GLOBAL_SCOPE, "", match_type="cleanup")
        assert correction in rule_store.global_corrections()

    def test_unknown_correction_type(self, rule_store):
        with pytest.raises(ValueError):
            rule_store.add_correction(GLOBAL_SCOPE, "x", "y", match_type="translate")

    def test_update_and_delete_correction(self, rule_store):
        assert rule_store.update_correction("falabella_desc_1", active=False) is True
        active = [c.id for c in rule_store.corrections_for_bank("BancoFalabella")]
        assert "falabella_desc_1" not in active

        assert rule_store.delete_correction("falabella_desc_1") is True
        assert rule_store.find_correction("falabella_desc_1") is None


class TestLearnedPatterns:
    """Tests for learned pattern storage."""

    def test_pattern_lowercased(self, rule_store):
        learned = rule_store.add_learned_pattern("  MERCADOPAGO  ", "Compras", CATEGORIES)
        assert learned.pattern == "mercadopago"
        assert rule_store.learned_patterns() == [learned]

    def test_overwrite_keeps_order(self, rule_store):
        rule_store.add_learned_pattern("alpha", "Compras", CATEGORIES)
        rule_store.add_learned_pattern("beta", "Transporte", CATEGORIES)
        rule_store.add_learned_pattern("alpha", "Ingresos", CATEGORIES)

        patterns = rule_store.learned_patterns()
        assert [p.pattern for p in patterns] == ["alpha", "beta"]
        assert patterns[0].category == "Ingresos"

    def test_unknown_category_rejected(self, rule_store):
        with pytest.raises(InvalidCategoryReference):
            rule_store.add_learned_pattern("mercadopago", "Mascotas", CATEGORIES)
        assert rule_store.learned_patterns() == []


class TestUsageAnalytics:
    """Tests for rule usage recording."""

    def test_record_usage(self, rule_store):
        rule_store.record_rule_usage("global_1")
        rule_store.record_rule_usage("global_1")

        usage = rule_store.rule_usage("global_1")
        assert usage.times_used == 2
        assert usage.first_used is not None
        assert rule_store.stats()["total_rules_applied"] == 2

    def test_analytics_disabled(self):
        document = default_document()
        document["settings"]["enableAnalytics"] = False
        store = RuleStore(document)

        store.record_rule_usage("global_1")
        assert store.rule_usage("global_1") is None
        assert store.analytics()["usage"]["total_rules_applied"] == 0


class TestPersistence:
    """Tests for loading and saving rule documents."""

    def test_missing_file_uses_defaults(self, tmp_path):
        store = RuleStore.load(tmp_path / "missing.json")
        assert store.path == tmp_path / "missing.json"
        assert len(store.global_rules()) == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(MalformedRuleDocument):
            RuleStore.load(path)

    def test_mutation_saves_bound_store(self, bound_store):
        rule = bound_store.add_filter_rule("BancoChile", "contains", "sin movimientos")

        saved = json.loads(bound_store.path.read_text(encoding="utf-8"))
        assert saved["bankSpecificRules"]["BancoChile"][0]["id"] == rule.id

        reloaded = RuleStore.load(bound_store.path)
        assert reloaded.find_filter_rule(rule.id).pattern == "sin movimientos"

    def test_mutation_refreshes_updated_at(self, rule_store):
        before = rule_store.metadata["updatedAt"]
        rule_store.add_learned_pattern("copec", "Transporte", CATEGORIES)
        assert rule_store.metadata["updatedAt"] >= before

    def test_legacy_document(self):
        document = {
            "metadata": {"created": "2024-01-01", "lastUpdated": "2024-02-01"},
            "globalRules": [{"id": "g1", "type": "filter_line", "text": "página", "created": "2024-01-01"}],
            "bankSpecificRules": {"BancoChile": [{"id": "c1", "type": "exact_match", "text": "TOTAL"}]},
        }
        store = RuleStore(document)

        assert store.global_rules()[0].match_type == "contains"
        assert store.global_rules()[0].pattern == "página"
        assert store.bank_rules("BancoChile")[0].match_type == "exact"
        assert store.metadata["createdAt"] == "2024-01-01"
        assert store.metadata["updatedAt"] == "2024-02-01"


class TestExportImport:
    """Tests for export and atomic import."""

    def test_export_has_metadata(self, rule_store):
        exported = rule_store.export_document(exported_by="tester")
        assert exported["exportMetadata"]["exportedBy"] == "tester"
        assert "globalRules" in exported
        assert "bankSpecificRules" in exported

    def test_round_trip(self, rule_store):
        rule_store.add_filter_rule("BancoSantander", "regex", r"^TOTAL\s")
        rule_store.add_correction(GLOBAL_SCOPE, "", match_type="cleanup")
        rule_store.update_filter_rule("global_2", active=False)

        restored = RuleStore()
        restored.import_document(rule_store.export_json())

        def snapshot(store):
            rules = store.global_rules() + [r for s in store.bank_scopes() for r in store.bank_rules(s)]
            corrections = store.global_corrections() + [
                c for s in store.bank_scopes() for c in store.bank_corrections(s)
            ]
            return (
                [(r.id, r.match_type, r.pattern, r.active) for r in rules],
                [(c.id, c.match_type, c.pattern, c.replacement, c.active) for c in corrections],
            )

        assert snapshot(restored) == snapshot(rule_store)

    def test_import_missing_sections(self, rule_store):
        before = rule_store.to_document()

        with pytest.raises(MalformedRuleDocument):
            rule_store.import_document({"globalRules": []})

        assert rule_store.to_document() == before

    def test_import_invalid_rule(self, rule_store):
        before = rule_store.to_document()
        payload = {"globalRules": [{"id": "x", "matchType": "fuzzy", "pattern": "a"}], "bankSpecificRules": {}}

        with pytest.raises(MalformedRuleDocument):
            rule_store.import_document(payload)

        assert rule_store.to_document() == before

    def test_import_duplicate_id_in_section(self, rule_store):
        before = rule_store.to_document()
        document = default_document()
        document["globalRules"].append(dict(document["globalRules"][0]))

        with pytest.raises(MalformedRuleDocument) as exc_info:
            rule_store.import_document(document)

        assert "global_1" in str(exc_info.value)
        assert rule_store.to_document() == before
        assert [r.id for r in rule_store.global_rules()] == ["global_1", "global_2"]

    def test_import_duplicate_id_across_sections(self, rule_store):
        before = rule_store.to_document()
        document = default_document()
        document["bankSpecificRules"]["BancoChile"].append(dict(document["globalRules"][1]))
        document["descriptionCorrections"][GLOBAL_SCOPE].append(
            {"id": "falabella_1", "pattern": "a", "replacement": "b"}
        )

        with pytest.raises(MalformedRuleDocument) as exc_info:
            rule_store.import_document(json.dumps(document))

        assert "global_2" in str(exc_info.value)
        assert "falabella_1" in str(exc_info.value)
        assert rule_store.to_document() == before

    def test_load_duplicate_ids(self, tmp_path):
        document = default_document()
        falabella_rules = document["bankSpecificRules"]["BancoFalabella"]
        falabella_rules.append(dict(falabella_rules[0]))

        with pytest.raises(MalformedRuleDocument):
            RuleStore(document)

        path = tmp_path / "rules.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(MalformedRuleDocument):
            RuleStore.load(path)

    def test_import_invalid_json(self, rule_store):
        with pytest.raises(MalformedRuleDocument):
            rule_store.import_document("[not json")

    def test_import_replaces_rules(self, rule_store):
        rule_store.import_document({"globalRules": [], "bankSpecificRules": {"BancoChile": []}})
        assert rule_store.global_rules() == []
        assert rule_store.bank_rules("BancoFalabella") == []


class TestCompileRulePattern:
    """Tests for rule regex compilation."""

    def test_valid_pattern(self):
        assert compile_rule_pattern("r1", r"\d+").search("abc 123")

    def test_invalid_pattern(self):
        with pytest.raises(InvalidRuleDefinition) as exc_info:
            compile_rule_pattern("r1", "[unclosed")
        assert exc_info.value.rule_id == "r1"
