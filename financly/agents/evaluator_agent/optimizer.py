"""
Financly Optimizer
Advisory suggestions for unused deduction headroom. Pure functions. No I/O.

The saving estimate is a heuristic: headroom × a flat assumed marginal rate
(settings.assumed_marginal_rate, 30% by default), not the taxpayer's actual
bracket. Every recommendation is reproducible from the deduction record.
"""
from __future__ import annotations

from typing import NamedTuple, Optional, Union

from financly.agents.evaluator_agent.regime_table import DEDUCTION_CEILINGS, get_regime_table
from financly.agents.evaluator_agent.schemas import Recommendation, RecommendationType
from financly.agents.input_agent.schemas import DeductionRecord
from financly.config import settings


class _Headroom(NamedTuple):
    field: str
    step: float         # Increment used by apply_recommendation()
    template: str       # Formatted with headroom= and ceiling=


# Declaration order is the output order of generate_recommendations().
_CATALOGUE: dict[RecommendationType, _Headroom] = {
    RecommendationType.section_80c: _Headroom(
        "section_80c", 50_000,
        "You can invest up to ₹{headroom:,.0f} more in Section 80C instruments "
        "(PPF, ELSS, LIC) to use the ₹{ceiling:,.0f} limit fully",
    ),
    RecommendationType.section_80d: _Headroom(
        "section_80d", 5_000,
        "Consider a health insurance premium deduction under Section 80D "
        "(₹{headroom:,.0f} of the ₹{ceiling:,.0f} limit unused)",
    ),
    RecommendationType.hra: _Headroom(
        "hra_exemption", 15_000,
        "Consider optimizing HRA exemption by providing rent receipts "
        "(₹{headroom:,.0f} of headroom)",
    ),
    RecommendationType.lta: _Headroom(
        "lta", 10_000,
        "Claim leave travel exemption with travel bills "
        "(₹{headroom:,.0f} of the ₹{ceiling:,.0f} limit unused)",
    ),
    RecommendationType.nps: _Headroom(
        "nps", 10_000,
        "Additional NPS contribution of up to ₹{headroom:,.0f} under "
        "Section 80CCD(1B) can save tax",
    ),
}


# Above this income the 80C suggestion also points at ELSS funds
HIGH_INCOME_THRESHOLD = 1_500_000
_ELSS_HINT = " ELSS mutual funds give the 80C deduction with equity growth."
_HRA_UNCLAIMED = "Claim HRA exemption if you rent your accommodation (up to ₹{ceiling:,.0f})"


def generate_recommendations(
    total_income: float,
    deductions: DeductionRecord,
    assumed_marginal_rate: Optional[float] = None,
    assessment_year: Optional[str] = None,
) -> list[Recommendation]:
    """
    One recommendation per ceiling-bearing deduction that is below its ceiling.

    potential_savings = (ceiling - current) × assumed_marginal_rate, from the
    deduction record alone. total_income only shapes the wording: above
    HIGH_INCOME_THRESHOLD the 80C suggestion adds an ELSS hint.
    """
    rate = settings.assumed_marginal_rate if assumed_marginal_rate is None else assumed_marginal_rate
    itemized = [
        regime for regime, definition in get_regime_table(assessment_year).items()
        if definition.allows_itemized_deductions
    ]

    recommendations: list[Recommendation] = []
    for rec_type, entry in _CATALOGUE.items():
        ceiling = DEDUCTION_CEILINGS[entry.field]
        current = getattr(deductions, entry.field)
        headroom = ceiling - current
        if headroom <= 0:
            continue
        if rec_type == RecommendationType.hra and current == 0:
            description = _HRA_UNCLAIMED.format(ceiling=ceiling)
        else:
            description = entry.template.format(headroom=headroom, ceiling=ceiling)
        if rec_type == RecommendationType.section_80c and total_income > HIGH_INCOME_THRESHOLD:
            description += _ELSS_HINT
        recommendations.append(Recommendation(
            type=rec_type,
            description=description,
            potential_savings=round(headroom * rate, 2),
            applicable_regimes=itemized,
            target_field=entry.field,
            headroom=headroom,
            step=entry.step,
        ))
    return recommendations


def apply_recommendation(
    deductions: DeductionRecord,
    recommendation: Union[Recommendation, RecommendationType, str],
) -> DeductionRecord:
    """
    Return a NEW deduction record with the targeted field raised by the
    recommendation's step, clamped at the field's ceiling.
    """
    if isinstance(recommendation, Recommendation):
        rec_type = recommendation.type
    else:
        rec_type = RecommendationType(recommendation)
    entry = _CATALOGUE[rec_type]
    ceiling = DEDUCTION_CEILINGS[entry.field]
    current = getattr(deductions, entry.field)
    if current >= ceiling:
        return deductions
    return deductions.model_copy(update={entry.field: min(ceiling, current + entry.step)})
