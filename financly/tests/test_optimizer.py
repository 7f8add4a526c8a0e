"""
Optimizer tests — savings recommendations and the apply action.

Savings are headroom × assumed marginal rate (30% default), so every expected
value below is (ceiling - current) × 0.30 unless the test overrides the rate.
"""
from __future__ import annotations

import pytest

from financly.agents.evaluator_agent.optimizer import (
    apply_recommendation,
    generate_recommendations,
)
from financly.agents.evaluator_agent.schemas import RecommendationType, TaxRegime
from financly.agents.input_agent.schemas import DeductionRecord


FULLY_USED = DeductionRecord(
    section_80c=150_000, section_80d=25_000, hra_exemption=50_000, lta=50_000, nps=50_000,
)


def test_empty_deductions_recommend_every_capped_field() -> None:
    recs = generate_recommendations(1_000_000, DeductionRecord())

    assert [r.type for r in recs] == [
        RecommendationType.section_80c,
        RecommendationType.section_80d,
        RecommendationType.hra,
        RecommendationType.lta,
        RecommendationType.nps,
    ]
    assert [r.potential_savings for r in recs] == [45_000, 7_500, 15_000, 15_000, 15_000]
    assert [r.headroom for r in recs] == [150_000, 25_000, 50_000, 50_000, 50_000]


def test_fully_used_deductions_recommend_nothing() -> None:
    assert generate_recommendations(1_000_000, FULLY_USED) == []


def test_uncapped_fields_never_recommended() -> None:
    deductions = FULLY_USED.model_copy(update={"standard_deduction": 0, "other_deductions": 0})
    assert generate_recommendations(1_000_000, deductions) == []


def test_partial_80c_headroom() -> None:
    deductions = FULLY_USED.model_copy(update={"section_80c": 100_000})
    recs = generate_recommendations(1_000_000, deductions)

    assert len(recs) == 1
    rec = recs[0]
    assert rec.type == RecommendationType.section_80c
    assert rec.target_field == "section_80c"
    assert rec.headroom == 50_000
    assert rec.potential_savings == pytest.approx(15_000)
    assert "₹50,000" in rec.description


def test_custom_marginal_rate() -> None:
    deductions = FULLY_USED.model_copy(update={"nps": 0})
    recs = generate_recommendations(1_000_000, deductions, assumed_marginal_rate=0.2)
    assert recs[0].potential_savings == pytest.approx(10_000)


def test_recommendations_apply_to_itemized_regimes_only() -> None:
    for rec in generate_recommendations(1_000_000, DeductionRecord()):
        assert rec.applicable_regimes == (TaxRegime.old,)


def test_savings_depend_only_on_deductions() -> None:
    deductions = DeductionRecord(section_80c=40_000, hra_exemption=12_000)
    low = generate_recommendations(0, deductions)
    high = generate_recommendations(5_000_000, deductions)
    assert [(r.type, r.potential_savings, r.headroom) for r in low] == [
        (r.type, r.potential_savings, r.headroom) for r in high
    ]
    assert generate_recommendations(800_000, deductions) == generate_recommendations(800_000, deductions)


def test_high_income_80c_suggestion_mentions_elss() -> None:
    at_threshold = generate_recommendations(1_500_000, DeductionRecord())[0]
    above = generate_recommendations(1_500_001, DeductionRecord())[0]

    assert "ELSS mutual funds" not in at_threshold.description
    assert "ELSS mutual funds" in above.description
    assert above.potential_savings == at_threshold.potential_savings


def test_unclaimed_hra_prompts_for_claim() -> None:
    unclaimed = generate_recommendations(800_000, DeductionRecord())
    partial = generate_recommendations(800_000, DeductionRecord(hra_exemption=20_000))

    hra_unclaimed = next(r for r in unclaimed if r.type == RecommendationType.hra)
    hra_partial = next(r for r in partial if r.type == RecommendationType.hra)
    assert hra_unclaimed.description.startswith("Claim HRA exemption")
    assert "₹30,000 of headroom" in hra_partial.description


# ---------------------------------------------------------------------------
# apply_recommendation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "rec_type, field, start, expected",
    [
        (RecommendationType.section_80c, "section_80c", 0, 50_000),
        (RecommendationType.section_80c, "section_80c", 120_000, 150_000),   # clamped at ceiling
        (RecommendationType.section_80d, "section_80d", 0, 5_000),
        (RecommendationType.nps, "nps", 45_000, 50_000),
        (RecommendationType.hra, "hra_exemption", 0, 15_000),
        (RecommendationType.lta, "lta", 0, 10_000),
    ],
)
def test_apply_recommendation_steps_toward_ceiling(
    rec_type: RecommendationType, field: str, start: float, expected: float,
) -> None:
    deductions = DeductionRecord(**{field: start})
    updated = apply_recommendation(deductions, rec_type)

    assert getattr(updated, field) == expected
    assert getattr(deductions, field) == start   # original untouched


def test_apply_recommendation_accepts_recommendation_object() -> None:
    deductions = DeductionRecord()
    rec = generate_recommendations(800_000, deductions)[0]
    updated = apply_recommendation(deductions, rec)
    assert updated.section_80c == rec.step == 50_000


def test_apply_recommendation_at_ceiling_is_noop() -> None:
    updated = apply_recommendation(FULLY_USED, "section_80c")
    assert updated == FULLY_USED


def test_repeated_apply_reaches_ceiling_and_clears_recommendation() -> None:
    deductions = DeductionRecord()
    for _ in range(3):
        deductions = apply_recommendation(deductions, RecommendationType.section_80c)
    assert deductions.section_80c == 150_000
    types = [r.type for r in generate_recommendations(800_000, deductions)]
    assert RecommendationType.section_80c not in types
