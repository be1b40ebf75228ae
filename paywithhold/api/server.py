"""HTTP surface for the withholding engine.

POST /calculate-multi-state-tax
    200 -> TaxCalculationResult (camelCase) plus calculationDate
    400 -> {"error": "<validation message>"}
    500 -> {"error": "Internal server error", "message": "<detail>"}
OPTIONS on the same path answers CORS preflight for the browser admin UI;
every response carries the permissive CORS headers.

Run with `pay-withhold serve` or `uvicorn paywithhold.api.server:app`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from paywithhold import __version__
from paywithhold.sdk import ValidationError, WithholdingEngine, build_engine

logger = logging.getLogger(__name__)

CALCULATE_PATH = "/calculate-multi-state-tax"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, content-info, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def create_app(engine: Optional[WithholdingEngine] = None) -> FastAPI:
    """Create the FastAPI app.

    Args:
        engine: Engine to serve; built from settings on first use if None
    """
    app = FastAPI(title="Pay Withhold", version=__version__)
    app.state.engine = engine

    def get_engine() -> WithholdingEngine:
        if app.state.engine is None:
            app.state.engine = build_engine()
        return app.state.engine

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response

    @app.options(CALCULATE_PATH)
    def calculate_preflight() -> Response:
        return Response(status_code=200)

    @app.post(CALCULATE_PATH)
    async def calculate(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            return _error(400, "Invalid JSON body")

        try:
            engine = get_engine()
            result = await run_in_threadpool(engine.calculate, payload)
        except ValidationError as e:
            logger.info(f"Rejected withholding request: {e.message}")
            return _error(400, e.message)
        except Exception as e:
            logger.exception("Withholding calculation failed")
            return _error(500, "Internal server error", str(e))

        body = result.model_dump(mode="json", by_alias=True)
        body["calculationDate"] = body["calculatedAt"]
        return JSONResponse(status_code=200, content=body)

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True, "rules_year": get_engine().rules.year}

    @app.get("/jurisdictions")
    def jurisdictions() -> Dict[str, Any]:
        engine = get_engine()
        return {"year": engine.rules.year, "jurisdictions": engine.jurisdiction_summary()}

    return app


app = create_app()
