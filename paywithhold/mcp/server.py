"""Pay Withhold MCP Server - FastMCP implementation for withholding tools."""

import json
import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from paywithhold.sdk import (
    PersistenceError,
    ValidationError,
    WithholdingEngine,
    build_engine,
    get_available_years,
)

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("pay-withhold")

_engine: Optional[WithholdingEngine] = None


def get_engine() -> WithholdingEngine:
    """Engine built from settings.json on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


# --- Tools ---

@mcp.tool()
async def calculate_withholding(
    request: dict[str, Any] = Field(description=(
        "Withholding request in the HTTP body shape: employeeId, grossPay, payPeriodStart, "
        "payPeriodEnd, workLocations [{jurisdictionCode, percentage, daysWorked}], "
        "residenceState, filingStatus, allowances, additionalWithholding, optional payFrequency"
    )),
    performed_by: str | None = Field(default=None, description="User recorded on the audit entry"),
) -> dict[str, Any]:
    """Calculate federal, state, Social Security and Medicare withholding for one pay period.

    Every successful calculation is appended to the audit log. Returns the
    per-state breakdown, totals and net pay.
    """
    try:
        result = get_engine().calculate(request, performed_by=performed_by)
        return result.model_dump(mode="json", by_alias=True)

    except ValidationError as e:
        return {"error": e.message}
    except PersistenceError as e:
        logger.error(f"Audit write failed: {e.message}")
        return {"error": e.message, "audit_recorded": False}
    except Exception as e:
        logger.error(f"Error calculating withholding: {e}")
        return {"error": f"Internal error: {e}"}


@mcp.tool()
async def list_jurisdictions() -> dict[str, Any]:
    """List jurisdictions in the active rule table, with top rates and reciprocity partners."""
    try:
        engine = get_engine()
        summary = engine.jurisdiction_summary()
        return {
            "year": engine.rules.year,
            "jurisdictions": summary,
            "count": len(summary),
        }

    except Exception as e:
        logger.error(f"Error listing jurisdictions: {e}")
        return {"error": str(e), "jurisdictions": [], "count": 0}


# --- Resources ---

@mcp.resource("paywithhold://rules/years")
async def list_years_resource() -> str:
    """List bundled rule table years."""
    try:
        return json.dumps({"years": get_available_years()}, indent=2)
    except Exception as e:
        return json.dumps({"error": str(e)})


# --- Server Entry Point ---

def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
