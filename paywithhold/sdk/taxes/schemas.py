"""Pydantic schemas for the jurisdiction rule table.

These schemas validate the tax_rules/*.yaml files and provide typed access
to bracket schedules, standard deductions, reciprocity partners and the
FICA constants. Everything is frozen: a loaded table is never mutated by a
calculation.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

from ..money import Money, ZERO

# cumulative_base may carry sub-cent precision; it must agree with the
# schedule to within one cent.
BASE_TOLERANCE = Decimal("0.01")


class TaxBracket(BaseModel):
    """Single progressive bracket covering [min, max)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    min: Money = Field(..., ge=0, description="Lower bound (inclusive)")
    max: Optional[Money] = Field(default=None, description="Upper bound (exclusive), None for the top bracket")
    rate: Money = Field(..., ge=0, le=1, description="Marginal rate as decimal")
    cumulative_base: Money = Field(default=ZERO, ge=0, description="Tax owed at min")

    @model_validator(mode="after")
    def check_bounds(self) -> "TaxBracket":
        if self.max is not None and self.max <= self.min:
            raise ValueError(f"bracket max {self.max} must be greater than min {self.min}")
        return self


def check_bracket_schedule(brackets: Tuple[TaxBracket, ...]) -> Tuple[TaxBracket, ...]:
    """Check a schedule is contiguous from 0 to infinity with consistent bases.

    An empty schedule is valid (no income tax).
    """
    if not brackets:
        return brackets

    first = brackets[0]
    if first.min != 0:
        raise ValueError(f"first bracket must start at 0, not {first.min}")
    if first.cumulative_base != 0:
        raise ValueError("first bracket must have cumulative_base 0")

    for prev, cur in zip(brackets, brackets[1:]):
        if prev.max is None:
            raise ValueError(f"only the top bracket may be open-ended (bracket at {prev.min})")
        if cur.min != prev.max:
            raise ValueError(f"brackets must be contiguous: {prev.max} is followed by {cur.min}")
        expected = prev.cumulative_base + (prev.max - prev.min) * prev.rate
        if abs(cur.cumulative_base - expected) > BASE_TOLERANCE:
            raise ValueError(
                f"cumulative_base at {cur.min} is {cur.cumulative_base}, schedule implies {expected}"
            )

    if brackets[-1].max is not None:
        raise ValueError("top bracket must be open-ended (max: null)")
    return brackets


class JurisdictionTaxRule(BaseModel):
    """Withholding rules for one state (or the synthetic NONE jurisdiction)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str = Field(..., pattern=r"^[A-Z]{2,4}$", description="Jurisdiction code, e.g. 'CA'")
    name: str = Field(default="")
    flat_rate: Money = Field(default=ZERO, ge=0, le=1, description="Published top rate (informational)")
    standard_deduction: Money = Field(default=ZERO, ge=0)
    standard_deduction_by_filing_status: Dict[str, Money] = Field(
        default_factory=dict,
        description="Optional per-filing-status override of standard_deduction",
    )
    brackets: Tuple[TaxBracket, ...] = Field(default=())
    reciprocity_partners: frozenset[str] = Field(
        default=frozenset(),
        description="Residents of these jurisdictions are not withheld on here",
    )
    nexus_threshold: Money = Field(default=ZERO, ge=0, description="Informational; not enforced")

    @field_validator("reciprocity_partners", mode="before")
    @classmethod
    def normalize_partners(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(code).strip().upper() for code in value)
        return value

    @field_validator("standard_deduction_by_filing_status")
    @classmethod
    def check_deductions(cls, value: Dict[str, Decimal]) -> Dict[str, Decimal]:
        for status, amount in value.items():
            if amount < 0:
                raise ValueError(f"standard deduction for {status} must be non-negative")
        return {status.lower(): amount for status, amount in value.items()}

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, value: Tuple[TaxBracket, ...]) -> Tuple[TaxBracket, ...]:
        return check_bracket_schedule(value)

    @property
    def levies_income_tax(self) -> bool:
        return bool(self.brackets)

    def deduction_for(self, filing_status: str) -> Decimal:
        """Standard deduction for a filing status, falling back to the flat amount."""
        return self.standard_deduction_by_filing_status.get(
            (filing_status or "").lower(), self.standard_deduction
        )


class FederalTaxRule(BaseModel):
    """Federal bracket schedule, deductions and the shared allowance unit."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    brackets: Tuple[TaxBracket, ...]
    standard_deduction_by_filing_status: Dict[str, Money]
    default_filing_status: str = Field(default="single")
    allowance_credit_amount: Money = Field(..., ge=0, description="ALLOWANCE_UNIT, per claimed allowance")

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, value: Tuple[TaxBracket, ...]) -> Tuple[TaxBracket, ...]:
        return check_bracket_schedule(value)

    @model_validator(mode="after")
    def check_default_status(self) -> "FederalTaxRule":
        if self.default_filing_status not in self.standard_deduction_by_filing_status:
            raise ValueError(
                f"default_filing_status '{self.default_filing_status}' has no standard deduction"
            )
        return self


class FicaRules(BaseModel):
    """Social Security and Medicare constants."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    social_security_rate: Money = Field(..., ge=0, le=1)
    social_security_wage_cap: Optional[Money] = Field(
        default=None, gt=0, description="Annual SS wage base; None = not modeled"
    )
    medicare_rate: Money = Field(..., ge=0, le=1)
    medicare_surtax_rate: Money = Field(..., ge=0, le=1)
    medicare_surtax_threshold: Money = Field(..., ge=0)


class TaxRules(BaseModel):
    """Complete rule table for a year."""
    model_config = ConfigDict(extra="ignore", frozen=True)  # Allow unknown fields for forward compat

    year: int
    federal: FederalTaxRule
    fica: FicaRules
    jurisdictions: Tuple[JurisdictionTaxRule, ...] = Field(default=())

    _index: Dict[str, JurisdictionTaxRule] = PrivateAttr(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def expand_jurisdiction_mapping(cls, data: Any) -> Any:
        """Accept jurisdictions keyed by code, as written in the YAML files."""
        if isinstance(data, dict) and isinstance(data.get("jurisdictions"), dict):
            data = dict(data)
            data["jurisdictions"] = [
                {"code": code, **(entry or {})}
                for code, entry in data["jurisdictions"].items()
            ]
        return data

    @model_validator(mode="after")
    def check_unique_codes(self) -> "TaxRules":
        seen = set()
        for rule in self.jurisdictions:
            if rule.code in seen:
                raise ValueError(f"duplicate jurisdiction code {rule.code}")
            seen.add(rule.code)
        return self

    def model_post_init(self, __context: Any) -> None:
        self._index = {rule.code: rule for rule in self.jurisdictions}

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(sorted(self._index))

    def get_jurisdiction(self, code: str) -> Optional[JurisdictionTaxRule]:
        """Look up a jurisdiction by code; None if the table has no entry."""
        return self._index.get((code or "").strip().upper())
