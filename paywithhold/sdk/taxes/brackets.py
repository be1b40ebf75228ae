"""Progressive bracket evaluation.

Shared by the state and federal calculators. tax = cumulative_base of the
bracket containing the income + (income - bracket.min) * bracket.rate.
Callers clamp taxable income to zero before calling; the evaluator itself
only guarantees it never returns a negative amount.
"""

from decimal import Decimal
from typing import Optional, Sequence

from ..money import Numeric, ZERO, round2, to_decimal
from .schemas import TaxBracket


def find_bracket(taxable_income: Numeric, brackets: Sequence[TaxBracket]) -> Optional[TaxBracket]:
    """Find the bracket containing taxable_income.

    Income past the last bracket's max falls into the last bracket.
    Returns None for an empty schedule.
    """
    if not brackets:
        return None

    income = to_decimal(taxable_income)
    for bracket in brackets:
        if bracket.max is None or income < bracket.max:
            return bracket
    return brackets[-1]


def bracket_tax(taxable_income: Numeric, brackets: Sequence[TaxBracket]) -> Decimal:
    """Unrounded tax owed; used where the caller divides before rounding."""
    bracket = find_bracket(taxable_income, brackets)
    if bracket is None:
        return ZERO

    income = to_decimal(taxable_income)
    tax = bracket.cumulative_base + (income - bracket.min) * bracket.rate
    return max(ZERO, tax)


def evaluate_brackets(taxable_income: Numeric, brackets: Sequence[TaxBracket]) -> Decimal:
    """Tax owed on taxable_income, rounded to cents."""
    return round2(bracket_tax(taxable_income, brackets))
