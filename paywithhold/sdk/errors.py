"""Error taxonomy for withholding calculations.

ValidationError: the caller's request is wrong; fixable by changing it.
PersistenceError: the math finished but the audit write did not. The
computed result is attached so callers can inspect it, but it must not be
treated as confirmed withholding.

Missing jurisdictions are not errors (see state.calc_state_withholding);
missing or malformed rule files fail at load time in taxes.rules.
"""

from typing import Optional


class WithholdingError(Exception):
    """Base class for engine errors."""
    pass


class ValidationError(WithholdingError):
    """Raised when a calculation request is structurally invalid."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PersistenceError(WithholdingError):
    """Raised when the audit record could not be written."""

    def __init__(self, message: str, result: Optional[object] = None):
        self.message = message
        self.result = result
        super().__init__(message)
