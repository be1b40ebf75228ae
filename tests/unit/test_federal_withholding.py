"""Unit tests for federal income tax, Social Security and Medicare."""

from decimal import Decimal

import pytest

from paywithhold.sdk.taxes import (
    TaxRules,
    calc_federal_income_tax,
    calc_federal_withholding,
    calc_medicare_withholding,
    calc_ss_withholding,
    get_pay_periods,
    resolve_standard_deduction,
)


class TestFederalIncomeTax:

    def test_below_standard_deduction(self, rules):
        fit = calc_federal_income_tax(2000, "single", 0, rules)
        assert fit["taxable"] == Decimal("0.00")
        assert fit["withheld"] == Decimal("0.00")

    def test_single_100000(self, rules):
        """100000 - 14600 = 85400; 5426 + (85400 - 47150) * 0.22."""
        fit = calc_federal_income_tax(100000, "single", 0, rules)
        assert fit["taxable"] == Decimal("85400.00")
        assert fit["withheld"] == Decimal("13841.00")

    def test_mfj_deduction(self, rules):
        fit = calc_federal_income_tax(100000, "mfj", 0, rules)
        assert fit["standard_deduction"] == Decimal("29200")
        assert fit["taxable"] == Decimal("70800.00")

    def test_allowances(self, rules):
        fit = calc_federal_income_tax(100000, "single", 2, rules)
        assert fit["taxable"] == Decimal("76800.00")

    def test_biweekly_annualizes(self, rules):
        """2000 x 26 = 52000 - 14600 = 37400 -> 4256.00 / 26."""
        fit = calc_federal_income_tax(2000, "single", 0, rules, pay_periods=26)
        assert fit["withheld"] == Decimal("163.69")
        assert fit["taxable"] == Decimal("1438.46")


class TestFilingStatusFallback:

    def test_known_status(self, rules):
        amount, status = resolve_standard_deduction("HOH", rules.federal)
        assert amount == Decimal("21900")
        assert status == "hoh"

    def test_unrecognized_uses_default(self, rules):
        amount, status = resolve_standard_deduction("widowed", rules.federal)
        assert amount == Decimal("14600")
        assert status == "single"

    def test_fallback_is_reported(self, rules):
        fit = calc_federal_income_tax(50000, "qualifying_widow", 0, rules)
        assert fit["filing_status"] == "single"

    def test_default_comes_from_table(self, rules_data):
        rules = TaxRules.model_validate(rules_data(federal={"default_filing_status": "mfj"}))
        amount, status = resolve_standard_deduction("other", rules.federal)
        assert (amount, status) == (Decimal("29200"), "mfj")


class TestSocialSecurity:

    def test_flat_rate_uncapped(self, rules):
        ss = calc_ss_withholding(500000, rules)
        assert ss["withheld"] == Decimal("31000.00")
        assert not ss["capped"]
        assert ss["wage_cap"] is None

    def test_rounding(self, rules):
        assert calc_ss_withholding(Decimal("1234.56"), rules)["withheld"] == Decimal("76.54")

    def test_wage_cap_when_configured(self, rules_data):
        rules = TaxRules.model_validate(rules_data(fica={"social_security_wage_cap": 168600}))
        ss = calc_ss_withholding(200000, rules)
        assert ss["capped"]
        assert ss["taxable"] == Decimal("168600")
        assert ss["withheld"] == Decimal("10453.20")

    def test_wage_cap_prorated_per_period(self, rules_data):
        rules = TaxRules.model_validate(rules_data(fica={"social_security_wage_cap": 120000}))
        ss = calc_ss_withholding(15000, rules, pay_periods=12)
        assert ss["taxable"] == Decimal("10000")
        assert ss["withheld"] == Decimal("620.00")


class TestMedicare:

    def test_base_rate(self, rules):
        m = calc_medicare_withholding(2000, rules)
        assert m["withheld"] == Decimal("29.00")
        assert not m["over_threshold"]

    def test_exactly_at_threshold(self, rules):
        m = calc_medicare_withholding(200000, rules)
        assert m["additional_withheld"] == Decimal("0.00")
        assert m["withheld"] == Decimal("2900.00")

    def test_one_dollar_over_threshold(self, rules):
        m = calc_medicare_withholding(200001, rules)
        assert m["additional_wages"] == Decimal("1")
        assert m["additional_withheld"] == Decimal("0.01")
        assert m["over_threshold"]

    def test_surtax_on_excess(self, rules):
        m = calc_medicare_withholding(250000, rules)
        assert m["base_withheld"] == Decimal("3625.00")
        assert m["additional_withheld"] == Decimal("450.00")
        assert m["withheld"] == Decimal("4075.00")

    def test_threshold_is_annual(self, rules):
        """Monthly 20000 annualizes to 240000: 40000 over, 3333.33 per month."""
        m = calc_medicare_withholding(20000, rules, pay_periods=12)
        assert m["additional_withheld"] == Decimal("30.00")


class TestCalcFederalWithholding:

    def test_components(self, rules):
        fw = calc_federal_withholding(100000, "single", 0, 50, rules)
        assert fw.federal_tax == Decimal("13841.00")
        assert fw.social_security_tax == Decimal("6200.00")
        assert fw.medicare_tax == Decimal("1450.00")
        assert fw.medicare_surtax == Decimal("0.00")
        assert fw.additional_withholding == Decimal("50")
        assert fw.total == Decimal("21491.00")


@pytest.mark.parametrize("frequency,expected", [
    (None, 1),
    ("weekly", 52),
    ("biweekly", 26),
    ("semimonthly", 24),
    ("monthly", 12),
    ("annual", 1),
])
def test_get_pay_periods(frequency, expected):
    assert get_pay_periods(frequency) == expected
