"""Federal income tax, Social Security and Medicare withholding.

Computed once per request on total gross pay; federal tax is never
apportioned by work location. Each component is rounded to cents on its
own, so totals built from them add up exactly.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from ..money import Numeric, ZERO, round2, to_decimal
from .brackets import bracket_tax
from .schemas import FederalTaxRule, TaxRules

logger = logging.getLogger(__name__)

# Pay periods by frequency. None (no frequency given) means the amounts are
# used as-is, i.e. a single period.
PAY_PERIODS = {
    "weekly": 52,
    "biweekly": 26,
    "semimonthly": 24,
    "monthly": 12,
    "annual": 1,
}


def get_pay_periods(frequency: Optional[str]) -> int:
    """Get number of pay periods for a frequency."""
    if not frequency:
        return 1
    return PAY_PERIODS.get(frequency, 1)


def resolve_standard_deduction(filing_status: str, federal: FederalTaxRule) -> Tuple[Decimal, str]:
    """Federal standard deduction for a filing status.

    Unrecognized statuses use the table's default_filing_status.

    Returns:
        Tuple of (deduction, filing status actually used)
    """
    status = (filing_status or "").strip().lower()
    deductions = federal.standard_deduction_by_filing_status
    if status in deductions:
        return deductions[status], status

    fallback = federal.default_filing_status
    logger.warning(f"Unrecognized filing status '{filing_status}'; using '{fallback}' deduction")
    return deductions[fallback], fallback


def calc_federal_income_tax(
    gross_pay: Numeric,
    filing_status: str,
    allowances: int,
    rules: TaxRules,
    pay_periods: int = 1,
) -> Dict[str, Any]:
    """Calculate federal income tax withholding for a period.

    Returns:
        Dict with:
            - taxable: Federal taxable income for the period
            - withheld: Federal income tax
            - standard_deduction: Annual deduction applied
            - filing_status: Filing status the deduction came from
    """
    federal = rules.federal
    periods = Decimal(pay_periods)
    standard_deduction, status_used = resolve_standard_deduction(filing_status, federal)
    allowance_amount = to_decimal(allowances) * federal.allowance_credit_amount

    annual_taxable = max(ZERO, to_decimal(gross_pay) * periods - standard_deduction - allowance_amount)
    withheld = round2(bracket_tax(annual_taxable, federal.brackets) / periods)

    return {
        "taxable": round2(annual_taxable / periods),
        "withheld": withheld,
        "standard_deduction": standard_deduction,
        "filing_status": status_used,
    }


def calc_ss_withholding(
    gross: Numeric,
    rules: TaxRules,
    pay_periods: int = 1,
) -> Dict[str, Any]:
    """Calculate Social Security withholding for a period.

    Flat rate on gross pay. The wage cap only applies when the rule table
    sets social_security_wage_cap; it is prorated per period because no
    year-to-date wages are tracked.

    Returns:
        Dict with:
            - taxable: SS taxable wages for this period
            - withheld: SS tax withheld
            - rate: SS tax rate used
            - capped: Whether the wage cap limited taxable wages
            - wage_cap: Annual wage cap (None if not modeled)
    """
    fica = rules.fica
    gross_amount = to_decimal(gross)
    wage_cap = fica.social_security_wage_cap

    taxable = gross_amount
    if wage_cap is not None:
        taxable = min(gross_amount, wage_cap / Decimal(pay_periods))

    return {
        "taxable": taxable,
        "withheld": round2(taxable * fica.social_security_rate),
        "rate": fica.social_security_rate,
        "capped": taxable < gross_amount,
        "wage_cap": wage_cap,
    }


def calc_medicare_withholding(
    gross: Numeric,
    rules: TaxRules,
    pay_periods: int = 1,
) -> Dict[str, Any]:
    """Calculate Medicare withholding for a period.

    Returns:
        Dict with:
            - taxable: Medicare taxable wages (always equals gross)
            - base_withheld: Base Medicare tax
            - additional_wages: Wages over the surtax threshold this period
            - additional_withheld: Additional Medicare surtax
            - withheld: Total Medicare withheld
            - over_threshold: Whether the surtax applies
            - threshold: Annual surtax threshold
    """
    fica = rules.fica
    gross_amount = to_decimal(gross)
    periods = Decimal(pay_periods)
    threshold = fica.medicare_surtax_threshold

    base_withheld = round2(gross_amount * fica.medicare_rate)

    excess = max(ZERO, gross_amount * periods - threshold)
    additional_wages = excess / periods
    additional_withheld = round2(additional_wages * fica.medicare_surtax_rate)

    return {
        "taxable": gross_amount,
        "base_withheld": base_withheld,
        "additional_wages": additional_wages,
        "additional_withheld": additional_withheld,
        "withheld": base_withheld + additional_withheld,
        "over_threshold": excess > 0,
        "threshold": threshold,
    }


@dataclass(frozen=True)
class FederalWithholding:
    """Federal, Social Security and Medicare amounts for one period."""

    federal_tax: Decimal
    federal_taxable_income: Decimal
    filing_status: str
    social_security_tax: Decimal
    medicare_tax: Decimal
    medicare_surtax: Decimal
    additional_withholding: Decimal

    @property
    def total(self) -> Decimal:
        return self.federal_tax + self.social_security_tax + self.medicare_tax


def calc_federal_withholding(
    gross_pay: Numeric,
    filing_status: str,
    allowances: int,
    additional_withholding: Numeric,
    rules: TaxRules,
    pay_periods: int = 1,
) -> FederalWithholding:
    """Calculate all federal-level withholding for a period.

    additional_withholding is carried through untouched; the engine adds it
    to the state total when aggregating.
    """
    fit = calc_federal_income_tax(gross_pay, filing_status, allowances, rules, pay_periods)
    ss = calc_ss_withholding(gross_pay, rules, pay_periods)
    medicare = calc_medicare_withholding(gross_pay, rules, pay_periods)

    return FederalWithholding(
        federal_tax=fit["withheld"],
        federal_taxable_income=fit["taxable"],
        filing_status=fit["filing_status"],
        social_security_tax=ss["withheld"],
        medicare_tax=medicare["withheld"],
        medicare_surtax=medicare["additional_withheld"],
        additional_withholding=to_decimal(additional_withholding),
    )
