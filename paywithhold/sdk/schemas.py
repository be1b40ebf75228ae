"""Pydantic schemas for withholding requests, results and audit records.

Field names are snake_case in Python and camelCase on the wire (JSON
request bodies, responses, audit log lines). All models are frozen and use
extra='forbid' so a misspelled field is a clear error rather than a silently
ignored value.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .money import Money, ZERO, round2

ACTION_TYPE = "multi_state_tax_calculation"

PayFrequency = Literal["weekly", "biweekly", "semimonthly", "monthly", "annual"]


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Input
# =============================================================================


class WorkLocationAllocation(WireModel):
    """Share of the period's pay earned in one jurisdiction."""

    jurisdiction_code: str = Field(..., min_length=1, description="e.g. 'CA'")
    percentage: Money = Field(..., ge=0, le=100, description="Percent of gross pay, 0-100")
    days_worked: Optional[int] = Field(default=None, ge=0, description="Informational")

    @field_validator("jurisdiction_code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class TaxCalculationRequest(WireModel):
    """One employee, one pay period, possibly several work locations."""

    employee_id: str = Field(..., min_length=1)
    gross_pay: Money = Field(..., gt=0)
    pay_period_start: date
    pay_period_end: date
    work_locations: Tuple[WorkLocationAllocation, ...] = Field(..., min_length=1)
    residence_jurisdiction: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("residenceState", "residenceJurisdiction", "residence_jurisdiction"),
        serialization_alias="residenceState",
    )
    filing_status: str = Field(..., min_length=1, description="single, mfj, mfs, hoh")
    allowances: int = Field(default=0, ge=0)
    additional_withholding: Money = Field(default=ZERO, ge=0)
    pay_frequency: Optional[PayFrequency] = Field(
        default=None,
        description="When set, bracket taxes are annualized over this many periods",
    )

    @field_validator("residence_jurisdiction")
    @classmethod
    def normalize_residence(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("filing_status")
    @classmethod
    def normalize_filing_status(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("gross_pay", "additional_withholding")
    @classmethod
    def round_to_cents(cls, value: Decimal, info: ValidationInfo) -> Decimal:
        rounded = round2(value)
        if info.field_name == "gross_pay" and rounded <= 0:
            raise ValueError("grossPay must be at least 0.01")
        return rounded

    @model_validator(mode="after")
    def check_period(self) -> "TaxCalculationRequest":
        if self.pay_period_end < self.pay_period_start:
            raise ValueError("payPeriodEnd must not be before payPeriodStart")
        return self

    @property
    def jurisdiction_codes(self) -> Tuple[str, ...]:
        """Distinct work location codes in request order."""
        return tuple(dict.fromkeys(loc.jurisdiction_code for loc in self.work_locations))


# =============================================================================
# Output
# =============================================================================


class StateWithholdingBreakdown(WireModel):
    """State withholding for one work location."""

    jurisdiction_code: str
    allocated_income: Money
    taxable_income: Money
    tax_withheld: Money
    effective_rate: Money = Field(..., description="Jurisdiction's published top rate")
    reciprocity_applied: bool = False
    rule_configured: bool = Field(default=True, description="False if the rule table has no entry")


class TaxCalculationResult(WireModel):
    """Complete withholding for one request. Immutable once produced.

    total_deductions = federal_tax + total_state_tax_withheld
                       + additional_withholding + social_security_tax
                       + medicare_tax
    net_pay = gross_pay - total_deductions (may be negative)
    """

    employee_id: str
    gross_pay: Money
    total_state_tax_withheld: Money
    state_breakdowns: Tuple[StateWithholdingBreakdown, ...]
    federal_tax: Money
    federal_filing_status: str = Field(..., description="Filing status the federal deduction used")
    social_security_tax: Money
    medicare_tax: Money = Field(..., description="Includes the additional Medicare surtax")
    additional_withholding: Money
    total_deductions: Money
    net_pay: Money
    calculated_at: datetime


class AuditRecord(WireModel):
    """Append-only log entry for one completed calculation."""

    id: str
    employee_id: str
    action_type: Literal["multi_state_tax_calculation"] = ACTION_TYPE
    request: TaxCalculationRequest
    result: TaxCalculationResult
    states_involved: Tuple[str, ...]
    performed_by: Optional[str] = Field(default=None, description="None = system")
    timestamp: datetime
