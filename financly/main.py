"""
main.py — Financly FastAPI application.

Run locally:
    uvicorn financly.main:app --reload --port 8000

Every error leaves the API in the same envelope:
    {"error": {"code": ..., "message": ..., "details": [{field, issue}, ...]}}
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from financly.agents.input_agent.schemas import ErrorBody, ErrorDetail, ErrorResponse
from financly.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tables are validated at import; this only checks the configured default year exists.
    from financly.agents.evaluator_agent.regime_table import REGIME_TABLES, get_regime_table

    get_regime_table(settings.assessment_year)
    logger.info(
        "Financly v%s ready: assessment years=%s (default %s)",
        settings.app_version,
        ", ".join(REGIME_TABLES),
        settings.assessment_year,
    )
    yield
    logger.info("Financly stopped")


app = FastAPI(
    title="Financly API",
    version=settings.app_version,
    description="Old vs New regime income-tax comparison with deduction recommendations.",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(
    status_code: int,
    code: str,
    message: str,
    details: Optional[list[ErrorDetail]] = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema violations (wrong type, negative amount, unknown field), all of them at once."""
    details = [
        ErrorDetail(
            field=".".join(str(part) for part in err["loc"] if part != "body") or None,
            issue=err["msg"],
        )
        for err in exc.errors()
    ]
    return _error(422, "VALIDATION_ERROR", "Request validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _error(exc.status_code, code, str(exc.detail))


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """A ValueError that escaped a route is still a caller data problem."""
    return _error(422, "VALIDATION_ERROR", str(exc))


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=True)
    if not settings.debug:
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")
    return _error(
        500,
        "INTERNAL_ERROR",
        "An unexpected error occurred (debug details included)",
        [ErrorDetail(issue=f"{type(exc).__name__}: {exc}")],
    )


@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    return {
        "status": "ok",
        "version": settings.app_version,
        "assessment_year": settings.assessment_year,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Routers last, so the handlers above are registered first
from financly.agents.input_agent.routes import router as input_agent_router  # noqa: E402
from financly.agents.evaluator_agent.routes import router as evaluator_agent_router  # noqa: E402

app.include_router(input_agent_router)
app.include_router(evaluator_agent_router)
