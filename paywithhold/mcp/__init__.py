"""MCP tool server for Pay Withhold."""
