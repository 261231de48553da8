"""Tests for rule catalog loading and compilation.

The catalog is all-or-nothing: every malformed entry must stop the load
with a CatalogConfigurationError carrying a specific error code.
"""

import copy

import pytest

from patient_validation.config.constants import (
    ComplianceCategory,
    HomeboundStatus,
    RuleKind,
    Severity,
)
from patient_validation.validation.rule_catalog import RuleCatalog, load_default_catalog
from patient_validation.utils.error_handler import (
    CatalogConfigurationError,
    ErrorCode,
    ErrorLevel,
)


def _with_rule(data: dict, **rule) -> dict:
    data = copy.deepcopy(data)
    entry = {
        "id": "extra_rule",
        "field": "name_en",
        "kind": "required",
        "category": "IdentityVerification",
        "message": "Missing {field}",
    }
    entry.update(rule)
    data["rules"].append(entry)
    return data


class TestDefaultCatalog:
    """Test suite for the bundled patient_rules.yaml."""

    def test_loads_all_rules_in_declaration_order(self, catalog):
        """Test that the bundled catalog loads and keeps YAML order."""
        ids = [rule.rule_id for rule in catalog.all_rules()]
        assert ids[0] == "name_en_required"
        assert ids.index("emirates_id_required") < ids.index("emirates_id_format")
        assert ids[-1] == "identity_verified"
        assert len(catalog) == len(ids)

    def test_categories(self, catalog):
        """Test declared categories and the optional flag."""
        assert catalog.categories == (
            "IdentityVerification",
            "ContactCompleteness",
            "InsuranceCoverage",
            "HomeboundAssessment",
            "SupplementaryInformation",
        )
        assert catalog.optional_categories == frozenset({"SupplementaryInformation"})
        assert catalog.is_optional_category("SupplementaryInformation")
        assert not catalog.is_optional_category("IdentityVerification")
        assert not catalog.is_optional_category("NoSuchCategory")

    def test_rules_by_category(self, catalog):
        """Test grouping rules by category."""
        contact = catalog.rules_by_category("ContactCompleteness")
        assert [r.rule_id for r in contact] == ["phone_number_required", "phone_number_format"]
        assert catalog.rules_by_category("NoSuchCategory") == ()

    def test_compiled_rule_shapes(self, catalog):
        """Test that kinds get the right compiled parts."""
        fmt = catalog.get_rule("emirates_id_format")
        assert fmt.kind == RuleKind.FORMAT_PATTERN
        assert fmt.pattern is not None
        assert fmt.predicate is None

        conditional = catalog.get_rule("homebound_justification_required")
        assert conditional.kind == RuleKind.CONDITIONALLY_REQUIRED
        assert callable(conditional.predicate)

        cross = catalog.get_rule("insurance_expiry_not_past")
        assert cross.check == "coverage_not_expired"
        assert callable(cross.predicate)

        assert catalog.get_rule("name_ar_required").severity == Severity.WARNING

    def test_categories_match_enum(self, catalog):
        """Test that the bundled catalog declares the known categories."""
        assert set(catalog.categories) == {c.value for c in ComplianceCategory}

    def test_every_homebound_status_is_allowed(self, catalog):
        """Test that the allowed-values pattern covers the DOH statuses."""
        rule = catalog.get_rule("homebound_status_allowed")
        for status in HomeboundStatus:
            assert rule.pattern.fullmatch(status.value)
        assert rule.pattern.fullmatch("housebound") is None

    def test_load_default_catalog_reads_settings_path(self, tmp_path, monkeypatch, minimal_catalog_data):
        """Test that PDV_RULES_PATH overrides the bundled catalog."""
        import yaml

        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump(minimal_catalog_data), encoding="utf-8")
        monkeypatch.setenv("PDV_RULES_PATH", str(path))

        loaded = load_default_catalog()
        assert len(loaded) == 1
        assert loaded.source == str(path)


class TestCatalogErrors:
    """Test suite for catalog misconfiguration."""

    def test_minimal_catalog_loads(self, minimal_catalog_data):
        """Test the fixture document is itself valid."""
        loaded = RuleCatalog.from_dict(minimal_catalog_data)
        assert [r.rule_id for r in loaded] == ["name_en_required"]

    def test_malformed_regex(self, minimal_catalog_data):
        """Test that an uncompilable pattern fails the load."""
        data = _with_rule(minimal_catalog_data, kind="format_pattern", pattern="([a-z")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_INVALID_PATTERN
        assert exc_info.value.level == ErrorLevel.CRITICAL

    def test_unknown_pattern_name(self, minimal_catalog_data):
        """Test that a pattern_name must exist in the shared patterns."""
        data = _with_rule(minimal_catalog_data, kind="format_pattern", pattern_name="passport")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_INVALID_PATTERN

    def test_unknown_check(self, minimal_catalog_data):
        """Test that a cross_field rule must name a registered check."""
        data = _with_rule(minimal_catalog_data, kind="cross_field", check="no_such_check")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_UNKNOWN_PREDICATE

    def test_check_with_bad_params(self, minimal_catalog_data):
        """Test that check parameters are passed to the factory."""
        data = _with_rule(
            minimal_catalog_data,
            kind="cross_field",
            check="date_not_in_future",
            params={"wrong_param": "date_of_birth"},
        )
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_INVALID_RULE

    def test_check_param_unknown_field(self, minimal_catalog_data):
        """Test that field-valued check parameters are checked against the record."""
        data = _with_rule(
            minimal_catalog_data,
            kind="cross_field",
            check="date_not_in_future",
            params={"date_field": "date_of_death"},
        )
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_UNKNOWN_FIELD

    def test_unknown_field(self, minimal_catalog_data):
        """Test that a rule must target a PatientRecord field."""
        data = _with_rule(minimal_catalog_data, field="passport_number")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_UNKNOWN_FIELD

    def test_nested_field_path_allowed(self, minimal_catalog_data):
        """Test that dotted paths are accepted when the root is known."""
        data = _with_rule(minimal_catalog_data, field="address.city", severity="warning")
        loaded = RuleCatalog.from_dict(data)
        assert loaded.get_rule("extra_rule").field == "address.city"

    def test_duplicate_rule_id(self, minimal_catalog_data):
        """Test that rule ids are unique."""
        data = _with_rule(minimal_catalog_data, id="name_en_required")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_DUPLICATE_RULE

    def test_undeclared_category(self, minimal_catalog_data):
        """Test that a rule's category must be declared."""
        data = _with_rule(minimal_catalog_data, category="Billing")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_UNKNOWN_CATEGORY

    def test_reserved_category(self, minimal_catalog_data):
        """Test that EngineInternal cannot be declared by the catalog."""
        data = copy.deepcopy(minimal_catalog_data)
        data["categories"]["EngineInternal"] = {}
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_UNKNOWN_CATEGORY

    def test_bad_message_template(self, minimal_catalog_data):
        """Test that templates may only use {field} and {value}."""
        data = _with_rule(minimal_catalog_data, message="{patient} is missing")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_INVALID_RULE

    def test_unbalanced_message_template(self, minimal_catalog_data):
        """Test that an unbalanced brace is rejected at load time."""
        data = _with_rule(minimal_catalog_data, message="Missing {field")
        with pytest.raises(CatalogConfigurationError):
            RuleCatalog.from_dict(data)

    def test_required_rule_rejects_pattern(self, minimal_catalog_data):
        """Test that extras not meant for a kind are rejected."""
        data = _with_rule(minimal_catalog_data, pattern="^x$")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_INVALID_RULE

    def test_conditional_without_when(self, minimal_catalog_data):
        """Test that conditionally_required rules need a condition."""
        data = _with_rule(minimal_catalog_data, kind="conditionally_required")
        with pytest.raises(CatalogConfigurationError):
            RuleCatalog.from_dict(data)

    def test_conditional_with_two_operators(self, minimal_catalog_data):
        """Test that a condition names exactly one operator."""
        data = _with_rule(
            minimal_catalog_data,
            kind="conditionally_required",
            when={"field": "homebound_status", "equals": "qualified", "in": ["qualified"]},
        )
        with pytest.raises(CatalogConfigurationError):
            RuleCatalog.from_dict(data)

    def test_unknown_rule_key(self, minimal_catalog_data):
        """Test that misspelled rule keys are not silently ignored."""
        data = _with_rule(minimal_catalog_data, sevrity="warning")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        assert exc_info.value.code == ErrorCode.CATALOG_INVALID_RULE

    def test_invalid_kind(self, minimal_catalog_data):
        """Test that the rule kind set is closed."""
        data = _with_rule(minimal_catalog_data, kind="lookup")
        with pytest.raises(CatalogConfigurationError):
            RuleCatalog.from_dict(data)

    def test_missing_file(self, tmp_path):
        """Test loading a path that does not exist."""
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_yaml(tmp_path / "missing.yaml")
        assert exc_info.value.code == ErrorCode.CATALOG_NOT_FOUND

    def test_unparsable_yaml(self, tmp_path):
        """Test that YAML syntax errors surface as parse errors."""
        path = tmp_path / "broken.yaml"
        path.write_text("rules: [unclosed\n", encoding="utf-8")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_yaml(path)
        assert exc_info.value.code == ErrorCode.CATALOG_PARSE_ERROR

    def test_not_a_mapping(self):
        """Test that the document must be a mapping."""
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(["rules"])
        assert exc_info.value.code == ErrorCode.CATALOG_PARSE_ERROR

    def test_error_serialization_omits_traceback(self, minimal_catalog_data):
        """Test that to_dict is safe to return to callers."""
        data = _with_rule(minimal_catalog_data, kind="format_pattern", pattern="([a-z")
        with pytest.raises(CatalogConfigurationError) as exc_info:
            RuleCatalog.from_dict(data)
        payload = exc_info.value.to_dict()
        assert payload["code"] == ErrorCode.CATALOG_INVALID_PATTERN.value
        assert payload["level"] == "critical"
        assert "traceback" not in payload["details"]
        assert payload["details"]["rule_id"] == "extra_rule"
