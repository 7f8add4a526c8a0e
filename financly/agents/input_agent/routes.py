"""
InputAgent HTTP routes — POST /api/form

Converts the raw text of the calculator form into typed IncomeRecord /
DeductionRecord JSON, ready for POST /api/calculate. Deductions above their
ceiling come back clamped, the same way the form masks them.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from financly.agents.input_agent.schemas import ErrorBody, ErrorDetail, ErrorResponse
from financly.agents.input_agent.validator import parse_calculation_form

router = APIRouter(prefix="/api", tags=["input_agent"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_validation_error_response(violations_json: str) -> JSONResponse:
    """
    Parse the JSON-encoded violations list raised by the validator and
    return the standard 422 error envelope.
    """
    try:
        violations: list[dict] = json.loads(violations_json)
    except (json.JSONDecodeError, ValueError):
        violations = [{"field": None, "issue": violations_json}]
    details = [ErrorDetail(field=v.get("field"), issue=v["issue"]) for v in violations]
    body = ErrorResponse(
        error=ErrorBody(
            code="VALIDATION_ERROR",
            message="Input validation failed",
            details=details,
        )
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/form")
async def parse_form(form: dict[str, Optional[str]]) -> JSONResponse:
    """
    Parse free-text form values.

    Returns:
      200: {"income": IncomeRecord, "deductions": DeductionRecord}
      422: every unparseable or out-of-range field in one envelope
    """
    try:
        income, deductions = parse_calculation_form(form)
    except ValueError as exc:
        return make_validation_error_response(str(exc))

    logger.info("Form parsed fields=%d", len(form))
    return JSONResponse(
        status_code=200,
        content={
            "income": income.model_dump(mode="json", exclude={"total_income"}),
            "deductions": deductions.model_dump(mode="json"),
            "total_income": income.total_income,
        },
    )
