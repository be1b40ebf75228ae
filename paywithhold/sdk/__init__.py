"""Pay Withhold SDK - Core multi-state withholding functionality."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    unset_setting,
    validate_setting,
    SettingsError,
    KNOWN_SETTINGS,
    UNKNOWN_JURISDICTION_POLICIES,
    # Paths
    get_data_path,
    get_audit_log_path,
    get_audit_spool_path,
    get_unknown_jurisdiction_policy,
)

from .errors import (
    WithholdingError,
    ValidationError,
    PersistenceError,
)

from .money import (
    Money,
    to_decimal,
    round2,
)

from .schemas import (
    ACTION_TYPE,
    WorkLocationAllocation,
    TaxCalculationRequest,
    StateWithholdingBreakdown,
    TaxCalculationResult,
    AuditRecord,
)

from .taxes import (
    TaxRules,
    RulesNotFoundError,
    load_tax_rules,
    load_tax_rules_file,
    get_available_years,
)

from .audit import (
    AuditSink,
    InMemoryAuditSink,
    JsonlAuditSink,
    OutboxAuditSink,
    build_audit_record,
    iter_states,
)

from .engine import (
    WithholdingEngine,
    build_engine,
    MISSING_FIELDS_MESSAGE,
    PERCENTAGES_MESSAGE,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "unset_setting",
    "validate_setting",
    "SettingsError",
    "KNOWN_SETTINGS",
    "UNKNOWN_JURISDICTION_POLICIES",
    "get_data_path",
    "get_audit_log_path",
    "get_audit_spool_path",
    "get_unknown_jurisdiction_policy",
    # Errors
    "WithholdingError",
    "ValidationError",
    "PersistenceError",
    # Money
    "Money",
    "to_decimal",
    "round2",
    # Schemas
    "ACTION_TYPE",
    "WorkLocationAllocation",
    "TaxCalculationRequest",
    "StateWithholdingBreakdown",
    "TaxCalculationResult",
    "AuditRecord",
    # Rules
    "TaxRules",
    "RulesNotFoundError",
    "load_tax_rules",
    "load_tax_rules_file",
    "get_available_years",
    # Audit
    "AuditSink",
    "InMemoryAuditSink",
    "JsonlAuditSink",
    "OutboxAuditSink",
    "build_audit_record",
    "iter_states",
    # Engine
    "WithholdingEngine",
    "build_engine",
    "MISSING_FIELDS_MESSAGE",
    "PERCENTAGES_MESSAGE",
]
