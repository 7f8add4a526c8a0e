"""
schemas.py — InputAgent Pydantic v2 data contracts.

Defines:
  - IncomeRecord          (annual income components — the engine sees only their sum)
  - DeductionRecord       (seven named deduction fields)
  - CalculationRequest, ApplyRecommendationRequest  (HTTP request bodies)
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

All monetary fields are annual amounts in INR (whole rupees are the smallest unit).
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from financly.agents.evaluator_agent.schemas import RecommendationType


# ---------------------------------------------------------------------------
# IncomeRecord
# ---------------------------------------------------------------------------

class IncomeRecord(BaseModel):
    """
    Annual income, split into additive components.

    Capital gains may be negative (losses) and are folded into ordinary slab
    income. This is an approximation: statute taxes them at special rates.
    The engine floors the aggregate at zero, individual components are not.
    """
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    basic_salary: float = Field(default=0, ge=0, description="Annual basic salary.")
    variable_salary: float = Field(default=0, ge=0, description="Bonus / variable pay.")
    other_income: float = Field(default=0, ge=0, description="Interest, freelance, etc.")
    house_property_income: float = Field(default=0, ge=0, description="Rental income, net.")
    long_term_capital_gains: float = Field(default=0, description="Negative for a loss.")
    short_term_capital_gains: float = Field(default=0, description="Negative for a loss.")

    @computed_field
    @property
    def total_income(self) -> float:
        return (
            self.basic_salary
            + self.variable_salary
            + self.other_income
            + self.house_property_income
            + self.long_term_capital_gains
            + self.short_term_capital_gains
        )


# ---------------------------------------------------------------------------
# DeductionRecord
# ---------------------------------------------------------------------------

class DeductionRecord(BaseModel):
    """
    Deductions claimed for the year.

    Values reaching the engine are assumed to be within their ceilings already
    (the validator clamps or rejects); the engine never re-clamps.

    standard_deduction=None means "the regime's statutory amount". An explicit
    value, including 0, overrides it in every regime.
    """
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    section_80c: float = Field(default=0, ge=0, description="PPF, ELSS, LIC, ... Ceiling ₹1,50,000.")
    section_80d: float = Field(default=0, ge=0, description="Health insurance premium. Ceiling ₹25,000.")
    hra_exemption: float = Field(default=0, ge=0, description="HRA exemption. Ceiling ₹50,000.")
    lta: float = Field(default=0, ge=0, description="Leave travel exemption. Ceiling ₹50,000.")
    nps: float = Field(default=0, ge=0, description="Section 80CCD(1B) NPS. Ceiling ₹50,000.")
    standard_deduction: Optional[float] = Field(default=None, ge=0)
    other_deductions: float = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# HTTP request bodies
# ---------------------------------------------------------------------------

class CalculationRequest(BaseModel):
    """Body of POST /api/calculate."""
    model_config = ConfigDict(extra="forbid")

    income: IncomeRecord
    deductions: DeductionRecord = Field(default_factory=DeductionRecord)
    assessment_year: Optional[str] = None   # settings.assessment_year when omitted


class ApplyRecommendationRequest(CalculationRequest):
    """Body of POST /api/recommendations/apply."""

    recommendation_type: RecommendationType


# ---------------------------------------------------------------------------
# Error response models — used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "deductions.section_80c"
    issue: str                     # Human-readable description of the problem


class ErrorBody(BaseModel):
    """Error envelope body."""
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str                                   # High-level error description
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all Financly endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "IncomeRecord",
    "DeductionRecord",
    "CalculationRequest",
    "ApplyRecommendationRequest",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
