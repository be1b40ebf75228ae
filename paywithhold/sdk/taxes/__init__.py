"""taxes - Rule tables and withholding calculations.

Scope:
- Jurisdiction rule table (state brackets, deductions, reciprocity) and
  federal/FICA constants, loaded from tax_rules/{year}.yaml
- Progressive bracket evaluation shared by state and federal schedules
- Work location apportionment checks
- Per-location state withholding, federal/SS/Medicare withholding

Constraints:
- Pure calculation - no I/O besides reading rule files
- No audit access - receives data, returns results
- Decimal throughout; see ..money for rounding

Modules:
- schemas: Pydantic rule table models (TaxRules, JurisdictionTaxRule, ...)
- rules: Rule table loading and year resolution
- brackets: Progressive tax evaluator
- apportionment: Percentage validation and income allocation
- state: State withholding for one work location
- withholding: Federal income tax, Social Security, Medicare

Usage:
    from paywithhold.sdk.taxes import load_tax_rules, calc_state_withholding

    rules = load_tax_rules(2024)
    breakdown = calc_state_withholding(3000, "NJ", "PA", "single", 0, rules)
"""

from .schemas import (
    TaxBracket,
    JurisdictionTaxRule,
    FederalTaxRule,
    FicaRules,
    TaxRules,
    check_bracket_schedule,
)

from .rules import (
    RulesNotFoundError,
    get_available_years,
    resolve_rules_year,
    load_tax_rules,
    load_tax_rules_file,
)

from .brackets import (
    find_bracket,
    bracket_tax,
    evaluate_brackets,
)

from .apportionment import (
    PERCENT_TOLERANCE,
    total_percentage,
    validate_apportionment,
    allocate_income,
)

from .state import calc_state_withholding

from .withholding import (
    PAY_PERIODS,
    get_pay_periods,
    resolve_standard_deduction,
    calc_federal_income_tax,
    calc_ss_withholding,
    calc_medicare_withholding,
    calc_federal_withholding,
    FederalWithholding,
)

__all__ = [
    # Rule table
    "TaxBracket",
    "JurisdictionTaxRule",
    "FederalTaxRule",
    "FicaRules",
    "TaxRules",
    "check_bracket_schedule",
    "RulesNotFoundError",
    "get_available_years",
    "resolve_rules_year",
    "load_tax_rules",
    "load_tax_rules_file",
    # Brackets
    "find_bracket",
    "bracket_tax",
    "evaluate_brackets",
    # Apportionment
    "PERCENT_TOLERANCE",
    "total_percentage",
    "validate_apportionment",
    "allocate_income",
    # State
    "calc_state_withholding",
    # Federal
    "PAY_PERIODS",
    "get_pay_periods",
    "resolve_standard_deduction",
    "calc_federal_income_tax",
    "calc_ss_withholding",
    "calc_medicare_withholding",
    "calc_federal_withholding",
    "FederalWithholding",
]
