"""Work location apportionment.

Percentages across a request's work locations must total 100 (to within
0.01). Nothing is normalized: 99% or 101% is rejected, not rescaled.
"""

from decimal import Decimal
from typing import Sequence

from ..errors import ValidationError
from ..money import HUNDRED, ZERO, Numeric, round2, to_decimal
from ..schemas import WorkLocationAllocation

PERCENT_TOLERANCE = Decimal("0.01")


def total_percentage(locations: Sequence[WorkLocationAllocation]) -> Decimal:
    return sum((to_decimal(loc.percentage) for loc in locations), ZERO)


def validate_apportionment(locations: Sequence[WorkLocationAllocation]) -> None:
    """Check work location percentages total 100.

    Raises:
        ValidationError: If |sum - 100| exceeds PERCENT_TOLERANCE
    """
    total = total_percentage(locations)
    if abs(total - HUNDRED) > PERCENT_TOLERANCE:
        raise ValidationError(f"percentages must sum to 100 (got {total})")


def allocate_income(gross_pay: Numeric, percentage: Numeric) -> Decimal:
    """Gross pay attributable to one location, rounded to cents."""
    return round2(to_decimal(gross_pay) * to_decimal(percentage) / HUNDRED)
