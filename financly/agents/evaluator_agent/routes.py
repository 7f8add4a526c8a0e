"""
EvaluatorAgent HTTP routes — POST /api/calculate,
                              POST /api/recommendations/apply,
                              GET  /api/regimes

Thin adapter over the pure engine: validate → compute → serialise.
No state is kept between requests; every call builds a fresh breakdown.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from financly.agents.evaluator_agent.optimizer import (
    apply_recommendation, generate_recommendations,
)
from financly.agents.evaluator_agent.regime_table import (
    CESS_RATE, DEDUCTION_CEILINGS, get_regime_table,
)
from financly.agents.evaluator_agent.tax_engine import compare_regimes
from financly.agents.input_agent.schemas import (
    ApplyRecommendationRequest,
    CalculationRequest,
    DeductionRecord,
    IncomeRecord,
)
from financly.agents.input_agent.routes import make_validation_error_response
from financly.agents.input_agent.validator import validate_business_rules

router = APIRouter(prefix="/api", tags=["evaluator_agent"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _calculation_payload(
    income: IncomeRecord,
    deductions: DeductionRecord,
    assessment_year: Optional[str],
) -> dict:
    total_income = income.total_income
    breakdown = compare_regimes(total_income, deductions, assessment_year)
    recommendations = generate_recommendations(
        total_income, deductions, assessment_year=assessment_year,
    )
    logger.info(
        "Tax calculated year=%s recommended=%s tie=%s recommendations=%d",
        breakdown.assessment_year,
        breakdown.recommended_regime.value if breakdown.recommended_regime else None,
        breakdown.is_tie,
        len(recommendations),
    )
    return {
        "total_income": total_income,
        "breakdown": breakdown.model_dump(mode="json"),
        "recommendations": [r.model_dump(mode="json") for r in recommendations],
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/calculate")
async def calculate_tax(request_body: CalculationRequest) -> JSONResponse:
    """
    Compare every regime for the submitted income and deductions.

    Returns the TaxBreakdown (ties explicit) plus savings recommendations.
    """
    try:
        validate_business_rules(request_body)
    except ValueError as exc:
        return make_validation_error_response(str(exc))

    payload = _calculation_payload(
        request_body.income, request_body.deductions, request_body.assessment_year,
    )
    return JSONResponse(status_code=200, content=payload)


@router.post("/recommendations/apply")
async def apply_recommendation_route(request_body: ApplyRecommendationRequest) -> JSONResponse:
    """
    Raise the recommendation's target deduction by its step (up to the
    ceiling) and recalculate with the updated deductions.
    """
    try:
        validate_business_rules(request_body)
    except ValueError as exc:
        return make_validation_error_response(str(exc))

    updated = apply_recommendation(request_body.deductions, request_body.recommendation_type)
    logger.info("Applied recommendation type=%s", request_body.recommendation_type.value)

    payload = _calculation_payload(request_body.income, updated, request_body.assessment_year)
    payload["deductions"] = updated.model_dump(mode="json")
    return JSONResponse(status_code=200, content=payload)


@router.get("/regimes")
async def list_regimes(assessment_year: Optional[str] = None) -> JSONResponse:
    """Return the configured regime definitions and deduction ceilings for a year."""
    try:
        table = get_regime_table(assessment_year)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=exc.args[0])

    return JSONResponse(
        status_code=200,
        content={
            "regimes": [definition.model_dump(mode="json") for definition in table.values()],
            "deduction_ceilings": dict(DEDUCTION_CEILINGS),
            "cess_rate": CESS_RATE,
        },
    )
