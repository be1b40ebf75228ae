"""State income tax withholding for one work location.

Order of checks:
1. No rule table entry -> zero withholding (logged; see the engine's
   unknown_jurisdiction_policy for the stricter alternative)
2. Reciprocity: the work state waives withholding for residents of its
   partner states, so the residence state withholds instead
3. Otherwise: allocated income less the standard deduction and allowance
   credits, run through the state's brackets

This function does not raise for configuration gaps: one missing state must
not block payroll for the employee's other, correctly configured locations.
"""

import logging
from decimal import Decimal

from ..money import Numeric, ZERO, round2, to_decimal
from ..schemas import StateWithholdingBreakdown
from .brackets import bracket_tax
from .schemas import TaxRules

logger = logging.getLogger(__name__)


def calc_state_withholding(
    allocated_income: Numeric,
    jurisdiction_code: str,
    residence_jurisdiction: str,
    filing_status: str,
    allowances: int,
    rules: TaxRules,
    pay_periods: int = 1,
) -> StateWithholdingBreakdown:
    """Calculate state withholding on the income allocated to one jurisdiction.

    Args:
        allocated_income: Gross pay apportioned to this location
        jurisdiction_code: Work location jurisdiction (e.g. 'NJ')
        residence_jurisdiction: Employee's residence jurisdiction
        filing_status: Selects a per-status standard deduction when the
            jurisdiction defines one
        allowances: Withholding allowances claimed
        rules: Rule table to use
        pay_periods: Periods per year; the deduction and brackets are annual
            amounts, so income is annualized and the tax divided back

    Returns:
        StateWithholdingBreakdown for this location
    """
    code = jurisdiction_code.strip().upper()
    residence = (residence_jurisdiction or "").strip().upper()
    allocated = round2(allocated_income)

    rule = rules.get_jurisdiction(code)
    if rule is None:
        logger.warning(f"No rule table entry for {code}; withholding 0 on {allocated}")
        return StateWithholdingBreakdown(
            jurisdiction_code=code,
            allocated_income=allocated,
            taxable_income=ZERO,
            tax_withheld=ZERO,
            effective_rate=ZERO,
            reciprocity_applied=False,
            rule_configured=False,
        )

    if code != residence and residence in rule.reciprocity_partners:
        logger.debug(f"{code}: reciprocity with {residence}, no withholding")
        return StateWithholdingBreakdown(
            jurisdiction_code=code,
            allocated_income=allocated,
            taxable_income=ZERO,
            tax_withheld=ZERO,
            effective_rate=rule.flat_rate,
            reciprocity_applied=True,
        )

    periods = Decimal(pay_periods)
    allowance_amount = to_decimal(allowances) * rules.federal.allowance_credit_amount
    annual_income = allocated * periods
    annual_taxable = max(ZERO, annual_income - rule.deduction_for(filing_status) - allowance_amount)

    tax_withheld = round2(bracket_tax(annual_taxable, rule.brackets) / periods)
    taxable_income = round2(annual_taxable / periods)

    logger.debug(f"{code}: allocated {allocated}, taxable {taxable_income}, withheld {tax_withheld}")
    return StateWithholdingBreakdown(
        jurisdiction_code=code,
        allocated_income=allocated,
        taxable_income=taxable_income,
        tax_withheld=tax_withheld,
        effective_rate=rule.flat_rate,
        reciprocity_applied=False,
    )
