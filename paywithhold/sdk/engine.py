"""Withholding calculation orchestrator.

Linear pipeline, no retries and no intermediate persisted state:

1. Validate   - required fields, grossPay > 0, at least one work location
2. Apportion  - work location percentages total 100%
3. State      - one StateWithholdingBreakdown per work location
4. Federal    - federal income tax, Social Security, Medicare (once)
5. Aggregate  - total deductions and net pay
6. Persist    - one AuditRecord to the audit sink
7. Return     - the TaxCalculationResult

Steps 1-5 are compute() and touch no I/O. Step 6 is record(). calculate()
runs both. Validation failures never reach record(), so they are not
audited. A failed audit write raises PersistenceError even though the
numbers were computed: without a confirmed audit entry the caller must not
assume tax was withheld.

The rule table and audit sink are passed in at construction; build_engine()
assembles them from settings.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from .audit import AuditSink, JsonlAuditSink, OutboxAuditSink, build_audit_record
from .config import (
    UNKNOWN_JURISDICTION_POLICIES,
    get_audit_log_path,
    get_audit_spool_path,
    get_setting,
    get_unknown_jurisdiction_policy,
)
from .errors import PersistenceError, ValidationError
from .money import ZERO, to_decimal
from .schemas import AuditRecord, TaxCalculationRequest, TaxCalculationResult
from .taxes import (
    TaxRules,
    allocate_income,
    calc_federal_withholding,
    calc_state_withholding,
    get_pay_periods,
    load_tax_rules,
    load_tax_rules_file,
    validate_apportionment,
)

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields"
PERCENTAGES_MESSAGE = "Work location percentages must total 100%"

REQUIRED_FIELDS = (
    "employeeId",
    "grossPay",
    "payPeriodStart",
    "payPeriodEnd",
    "workLocations",
    "filingStatus",
)
RESIDENCE_FIELDS = ("residenceState", "residenceJurisdiction")

RequestInput = Union[TaxCalculationRequest, Mapping[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _field(payload: Mapping[str, Any], name: str) -> Any:
    """Field value by camelCase name, falling back to snake_case."""
    if name in payload:
        return payload[name]
    return payload.get(to_snake(name))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_required(payload: Mapping[str, Any]) -> bool:
    """True if a required field is absent, gross pay is not positive, or
    there are no work locations."""
    if any(_is_blank(_field(payload, name)) for name in REQUIRED_FIELDS):
        return True
    if all(_is_blank(_field(payload, name)) for name in RESIDENCE_FIELDS):
        return True

    locations = _field(payload, "workLocations")
    if not isinstance(locations, (list, tuple)) or not locations:
        return True

    try:
        gross = to_decimal(_field(payload, "grossPay"))
    except (ArithmeticError, TypeError, ValueError):
        return False  # not a number; reported by schema validation
    if not gross.is_finite():
        return False  # NaN/Infinity; reported by schema validation
    return not gross > 0


def _describe_errors(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "request"
    return f"Invalid request: {location}: {first.get('msg', 'invalid value')}"


class WithholdingEngine:
    """Computes multi-state withholding and appends the audit record.

    Stateless between calls: rules are immutable and the only shared
    resource is the audit sink's append, so one engine can serve
    concurrent requests.

    Args:
        rules: Rule table
        audit_sink: Where records go; None skips persistence (dry runs)
        unknown_jurisdiction_policy: 'zero' to withhold nothing for work
            locations missing from the rule table, 'reject' to fail the
            request with a ValidationError
        clock: Timestamp source (UTC)
    """

    def __init__(
        self,
        rules: TaxRules,
        audit_sink: Optional[AuditSink] = None,
        unknown_jurisdiction_policy: str = "zero",
        clock: Callable[[], datetime] = _utcnow,
    ):
        if unknown_jurisdiction_policy not in UNKNOWN_JURISDICTION_POLICIES:
            raise ValueError(f"Unknown jurisdiction policy: {unknown_jurisdiction_policy}")
        self.rules = rules
        self.audit_sink = audit_sink
        self.unknown_jurisdiction_policy = unknown_jurisdiction_policy
        self._clock = clock

    # -- step 1 ---------------------------------------------------------------

    def parse_request(self, payload: RequestInput) -> TaxCalculationRequest:
        """Validate an inbound request.

        Raises:
            ValidationError: "Missing required fields" for absent fields,
                non-positive gross pay or no work locations; "Invalid
                request: ..." for values of the wrong shape
        """
        if isinstance(payload, TaxCalculationRequest):
            return payload
        if not isinstance(payload, Mapping) or _missing_required(payload):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        try:
            return TaxCalculationRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(_describe_errors(e)) from e

    # -- steps 2-5 ------------------------------------------------------------

    def _check_jurisdictions(self, request: TaxCalculationRequest) -> None:
        if self.unknown_jurisdiction_policy != "reject":
            return
        unknown = [code for code in request.jurisdiction_codes if self.rules.get_jurisdiction(code) is None]
        if unknown:
            raise ValidationError(f"Unknown jurisdiction: {', '.join(unknown)}")

    def compute(self, payload: RequestInput) -> TaxCalculationResult:
        """Validate and compute withholding without persisting anything."""
        request = self.parse_request(payload)

        try:
            validate_apportionment(request.work_locations)
        except ValidationError as e:
            raise ValidationError(PERCENTAGES_MESSAGE) from e

        self._check_jurisdictions(request)
        periods = get_pay_periods(request.pay_frequency)

        breakdowns = []
        for location in request.work_locations:
            allocated = allocate_income(request.gross_pay, location.percentage)
            breakdowns.append(
                calc_state_withholding(
                    allocated,
                    location.jurisdiction_code,
                    request.residence_jurisdiction,
                    request.filing_status,
                    request.allowances,
                    self.rules,
                    pay_periods=periods,
                )
            )
        total_state_tax = sum((b.tax_withheld for b in breakdowns), ZERO)

        federal = calc_federal_withholding(
            request.gross_pay,
            request.filing_status,
            request.allowances,
            request.additional_withholding,
            self.rules,
            pay_periods=periods,
        )

        total_tax_withheld = total_state_tax + request.additional_withholding
        total_deductions = (
            federal.federal_tax
            + total_tax_withheld
            + federal.social_security_tax
            + federal.medicare_tax
        )
        # Not clamped: a negative net pay flags a misconfiguration upstream.
        net_pay = request.gross_pay - total_deductions

        return TaxCalculationResult(
            employee_id=request.employee_id,
            gross_pay=request.gross_pay,
            total_state_tax_withheld=total_state_tax,
            state_breakdowns=tuple(breakdowns),
            federal_tax=federal.federal_tax,
            federal_filing_status=federal.filing_status,
            social_security_tax=federal.social_security_tax,
            medicare_tax=federal.medicare_tax,
            additional_withholding=request.additional_withholding,
            total_deductions=total_deductions,
            net_pay=net_pay,
            calculated_at=self._clock(),
        )

    # -- step 6 ---------------------------------------------------------------

    def record(
        self,
        request: TaxCalculationRequest,
        result: TaxCalculationResult,
        performed_by: Optional[str] = None,
    ) -> AuditRecord:
        """Append the audit record for a computed result.

        Raises:
            PersistenceError: If there is no sink or the sink's append fails
        """
        if self.audit_sink is None:
            raise PersistenceError("No audit sink configured", result=result)

        audit_record = build_audit_record(request, result, performed_by, timestamp=self._clock())
        try:
            self.audit_sink.append(audit_record)
        except Exception as e:
            logger.error(f"Audit write failed for employee {request.employee_id}: {e}")
            raise PersistenceError(f"Audit write failed: {e}", result=result) from e
        return audit_record

    # -- full pipeline --------------------------------------------------------

    def calculate(self, payload: RequestInput, performed_by: Optional[str] = None) -> TaxCalculationResult:
        """Validate, compute, persist the audit record and return the result."""
        request = self.parse_request(payload)
        result = self.compute(request)

        if self.audit_sink is not None:
            self.record(request, result, performed_by=performed_by)
        else:
            logger.debug(f"No audit sink; result for {request.employee_id} not persisted")

        logger.info(
            f"Withholding for {request.employee_id}: states={','.join(request.jurisdiction_codes)} "
            f"deductions={result.total_deductions} net={result.net_pay}"
        )
        return result

    def jurisdiction_summary(self) -> List[dict]:
        """Short description of each configured jurisdiction."""
        return [
            {
                "code": rule.code,
                "name": rule.name,
                "levies_income_tax": rule.levies_income_tax,
                "top_rate": float(rule.flat_rate),
                "standard_deduction": float(rule.standard_deduction),
                "reciprocity_partners": sorted(rule.reciprocity_partners),
            }
            for rule in self.rules.jurisdictions
        ]


def build_engine(
    rules_path: Optional[str] = None,
    tax_year: Optional[Union[int, str]] = None,
    audit: bool = True,
) -> WithholdingEngine:
    """Build an engine from settings.json, with optional overrides.

    Args:
        rules_path: Rule table YAML; defaults to the rules_path setting,
            then the bundled table for tax_year
        tax_year: Bundled table year; defaults to the tax_year setting,
            then the newest bundled year
        audit: False builds an engine without an audit sink
    """
    rules_path = rules_path or get_setting("rules_path")
    if rules_path:
        rules = load_tax_rules_file(rules_path)
    else:
        rules = load_tax_rules(tax_year or get_setting("tax_year"))

    sink: Optional[AuditSink] = None
    if audit:
        sink = JsonlAuditSink(get_audit_log_path())
        spool_path = get_audit_spool_path()
        if spool_path is not None:
            sink = OutboxAuditSink(spool_path, sink)

    return WithholdingEngine(
        rules,
        audit_sink=sink,
        unknown_jurisdiction_policy=get_unknown_jurisdiction_policy(),
    )
