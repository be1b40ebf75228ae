"""Pay Withhold CLI."""
