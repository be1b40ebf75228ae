"""Pay Withhold - multi-state payroll tax withholding engine."""

__version__ = "0.3.0"
