"""HTTP API for Pay Withhold."""
