"""Unit tests for rule table loading and validation.

Malformed tables must fail at load time, never during a calculation.
"""

from decimal import Decimal

import pytest
import yaml
from pydantic import ValidationError

from paywithhold.sdk.taxes import (
    RulesNotFoundError,
    TaxRules,
    get_available_years,
    load_tax_rules,
    load_tax_rules_file,
    resolve_rules_year,
)


class TestBundledTables:

    def test_2024_is_bundled(self):
        assert 2024 in get_available_years()

    def test_load_2024(self, rules):
        assert rules.year == 2024
        assert rules.federal.standard_deduction_by_filing_status["single"] == Decimal("14600")
        assert rules.fica.social_security_wage_cap is None

    def test_no_tax_states_have_empty_schedules(self, rules):
        for code in ("NONE", "AK", "FL", "NH", "NV", "SD", "TN", "TX", "WA", "WY"):
            rule = rules.get_jurisdiction(code)
            assert rule is not None, code
            assert not rule.levies_income_tax

    def test_reciprocity_partners(self, rules):
        assert "PA" in rules.get_jurisdiction("NJ").reciprocity_partners
        assert rules.get_jurisdiction("MD").reciprocity_partners == frozenset({"DC", "PA", "VA", "WV"})

    def test_lookup_is_case_insensitive(self, rules):
        assert rules.get_jurisdiction("ca").code == "CA"

    def test_unknown_code(self, rules):
        assert rules.get_jurisdiction("ZZ") is None

    def test_per_status_deduction(self, rules):
        ca = rules.get_jurisdiction("CA")
        assert ca.deduction_for("mfj") == Decimal("11080")
        assert ca.deduction_for("unknown") == Decimal("5540")


class TestYearResolution:

    def test_newest_by_default(self):
        assert resolve_rules_year() == get_available_years()[0]

    def test_future_year_falls_back(self):
        assert resolve_rules_year(2099) == 2024

    def test_string_year(self):
        assert load_tax_rules("2024").year == 2024

    def test_year_before_any_table_uses_newest(self):
        assert resolve_rules_year(1999) == get_available_years()[0]


class TestMalformedTables:
    """Each of these must be rejected by TaxRules validation."""

    def _brackets(self, rules_data, brackets):
        data = rules_data()
        data["jurisdictions"]["AA"]["brackets"] = brackets
        return data

    def test_valid_base(self, rules_data):
        TaxRules.model_validate(rules_data())

    def test_gap_between_brackets(self, rules_data):
        data = self._brackets(rules_data, [
            {"min": 0, "max": 1000, "rate": 0.01, "cumulative_base": 0},
            {"min": 1500, "max": None, "rate": 0.02, "cumulative_base": 10},
        ])
        with pytest.raises(ValidationError, match="contiguous"):
            TaxRules.model_validate(data)

    def test_wrong_cumulative_base(self, rules_data):
        data = self._brackets(rules_data, [
            {"min": 0, "max": 1000, "rate": 0.01, "cumulative_base": 0},
            {"min": 1000, "max": None, "rate": 0.02, "cumulative_base": 15},
        ])
        with pytest.raises(ValidationError, match="cumulative_base"):
            TaxRules.model_validate(data)

    def test_first_bracket_not_at_zero(self, rules_data):
        data = self._brackets(rules_data, [
            {"min": 100, "max": None, "rate": 0.01, "cumulative_base": 0},
        ])
        with pytest.raises(ValidationError, match="start at 0"):
            TaxRules.model_validate(data)

    def test_top_bracket_must_be_open(self, rules_data):
        data = self._brackets(rules_data, [
            {"min": 0, "max": 1000, "rate": 0.01, "cumulative_base": 0},
        ])
        with pytest.raises(ValidationError, match="open-ended"):
            TaxRules.model_validate(data)

    def test_rate_above_one(self, rules_data):
        data = self._brackets(rules_data, [
            {"min": 0, "max": None, "rate": 1.5, "cumulative_base": 0},
        ])
        with pytest.raises(ValidationError):
            TaxRules.model_validate(data)

    def test_negative_deduction(self, rules_data):
        data = rules_data()
        data["jurisdictions"]["AA"]["standard_deduction"] = -1
        with pytest.raises(ValidationError):
            TaxRules.model_validate(data)

    def test_unknown_field_in_jurisdiction(self, rules_data):
        data = rules_data()
        data["jurisdictions"]["AA"]["flat_rat"] = 0.05
        with pytest.raises(ValidationError):
            TaxRules.model_validate(data)

    def test_bad_jurisdiction_code(self, rules_data):
        data = rules_data()
        data["jurisdictions"]["a1"] = {"name": "bad"}
        with pytest.raises(ValidationError):
            TaxRules.model_validate(data)

    def test_default_status_needs_deduction(self, rules_data):
        data = rules_data(federal={"default_filing_status": "hoh"})
        with pytest.raises(ValidationError, match="default_filing_status"):
            TaxRules.model_validate(data)


class TestLoadFile:

    def test_year_from_file_name(self, tmp_path, rules_data):
        data = rules_data()
        del data["year"]
        path = tmp_path / "2031.yaml"
        path.write_text(yaml.safe_dump(data))

        loaded = load_tax_rules_file(path)
        assert loaded.year == 2031
        assert loaded.codes == ("AA", "TX")

    def test_missing_file(self, tmp_path):
        with pytest.raises(RulesNotFoundError):
            load_tax_rules_file(tmp_path / "nope.yaml")

    def test_malformed_file_fails_on_load(self, tmp_path, rules_data):
        data = rules_data()
        data["fica"]["medicare_rate"] = "lots"
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump(data))

        with pytest.raises(ValidationError):
            load_tax_rules_file(path)
