"""
Financly Tax Engine
Pure Python, deterministic. Same input → same output. No I/O, no shared state.

compute_tax()     — one regime: deductions → slab tax → rebate → 4% cess
compare_regimes() — every regime of the year's table, explicit tie handling

Slab boundaries, standard deductions and rebate rules are NOT defined here;
they come from regime_table.py so a new assessment year needs no engine change.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional, Sequence, Union

from financly.agents.evaluator_agent.regime_table import (
    CESS_RATE, get_regime, get_regime_table,
)
from financly.agents.evaluator_agent.schemas import (
    RebateRule, RegimeDefinition, RegimeRank, Slab, TaxBreakdown, TaxDetail, TaxRegime,
)
from financly.agents.input_agent.schemas import DeductionRecord
from financly.config import settings


# ===========================================================================
# INTERNAL HELPERS (pure functions — no side effects, no I/O)
# ===========================================================================

def _round_half_away(value: float, places: str = "1") -> float:
    """
    Round half away from zero (Python's round() is banker's rounding).
    places="1" → whole rupees, places="0.01" → two decimals.
    Non-finite values pass through unchanged.
    """
    if not math.isfinite(value):
        return value
    # Enough digits for any finite float (max ~1.8e308) plus two decimals
    with localcontext() as ctx:
        ctx.prec = 400
        return float(Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


def _calculate_slab_tax(taxable_income: float, slabs: Sequence[Slab]) -> float:
    """
    Apply progressive slab tax: every slab whose lower bound is below
    taxable_income taxes the part of the income inside [lower, upper).
    """
    tax = 0.0
    for slab in slabs:
        if taxable_income <= slab.lower:
            break
        ceiling = taxable_income if slab.upper is None else min(taxable_income, slab.upper)
        tax += (ceiling - slab.lower) * slab.rate
    return tax


def _apply_rebate(taxable_income: float, tax: float, rebate: Optional[RebateRule]) -> float:
    """
    Rebate applies when taxable_income <= ceiling (ceiling inclusive).
    Net tax = tax - min(tax, max_rebate), never negative.
    """
    if rebate is None or taxable_income > rebate.income_ceiling:
        return tax
    return max(0.0, tax - min(tax, rebate.max_rebate))


def _sum_deductions(deductions: DeductionRecord, standard_deduction: float) -> float:
    return (
        deductions.section_80c
        + deductions.section_80d
        + deductions.hra_exemption
        + deductions.lta
        + deductions.nps
        + deductions.other_deductions
        + standard_deduction
    )


def _compute_with_definition(
    total_income: float,
    deductions: DeductionRecord,
    definition: RegimeDefinition,
) -> TaxDetail:
    # Step 1: Deductions — an explicit record value overrides the statutory amount
    standard_deduction = (
        definition.standard_deduction
        if deductions.standard_deduction is None
        else deductions.standard_deduction
    )
    if definition.allows_itemized_deductions:
        total_deductions: Optional[float] = _sum_deductions(deductions, standard_deduction)
        applied = total_deductions
    else:
        total_deductions = None
        applied = standard_deduction

    # Step 2: Taxable income (never negative — no refunds)
    taxable_income = max(0.0, total_income - applied)

    # Step 3: Slab tax
    slab_tax = _calculate_slab_tax(taxable_income, definition.slabs)

    # Step 4: Rebate
    tax_after_rebate = _apply_rebate(taxable_income, slab_tax, definition.rebate)

    # Step 5: Cess on post-rebate tax, final figure in whole rupees
    total_tax = _round_half_away(tax_after_rebate * (1 + CESS_RATE))

    # Step 6: Effective rate against GROSS income; defined as 0 for non-positive income
    if total_income > 0:
        effective_rate = _round_half_away(total_tax * 100 / total_income, "0.01")
    else:
        effective_rate = 0.0

    return TaxDetail(
        regime=definition.regime,
        gross_income=total_income,
        standard_deduction=standard_deduction,
        taxable_income=taxable_income,
        tax_before_cess=round(tax_after_rebate, 2),
        rebate=round(slab_tax - tax_after_rebate, 2),
        cess=round(tax_after_rebate * CESS_RATE, 2),
        total_tax=total_tax,
        effective_tax_rate=effective_rate,
        in_hand_monthly=_round_half_away((max(0.0, total_income) - total_tax) / 12),
        total_deductions=total_deductions,
    )


# ===========================================================================
# COMPUTE TAX — public API (one regime)
# ===========================================================================

def compute_tax(
    total_income: float,
    deductions: DeductionRecord,
    regime: Union[TaxRegime, str],
    assessment_year: Optional[str] = None,
) -> TaxDetail:
    """
    Tax payable under one regime.

    Itemized regimes subtract every deduction field (standard deduction
    included); the others subtract only the standard deduction. A negative
    total income is not an error: it yields zero tax and a 0.0 effective rate.

    Raises:
        KeyError: If assessment_year has no configured regime table.
        ValueError: If regime is not a known regime identifier.
    """
    definition = get_regime(TaxRegime(regime), assessment_year)
    return _compute_with_definition(total_income, deductions, definition)


# ===========================================================================
# COMPARE REGIMES — public API
# ===========================================================================

def _rank(details: dict[TaxRegime, TaxDetail], selectable: list[TaxRegime]) -> list[RegimeRank]:
    """Dense rank by total tax; equal tax → equal rank, table order within a rank."""
    ordered = sorted(selectable, key=lambda r: details[r].total_tax)
    ranking: list[RegimeRank] = []
    rank = 0
    previous_tax: Optional[float] = None
    for regime in ordered:
        tax = details[regime].total_tax
        if tax != previous_tax:
            rank += 1
            previous_tax = tax
        ranking.append(RegimeRank(rank=rank, regime=regime, total_tax=tax))
    return ranking


def compare_regimes(
    total_income: float,
    deductions: DeductionRecord,
    assessment_year: Optional[str] = None,
) -> TaxBreakdown:
    """
    Compute every regime of the year's table and recommend the cheapest.

    Aliased regimes (same ruleset, another name) appear in `details` but are
    not separate choices. A regime is recommended only when it is strictly
    cheapest; on a tie recommended_regime is None and tied_regimes lists the
    equivalent regimes.
    """
    year = assessment_year or settings.assessment_year
    table = get_regime_table(year)

    # Step 1: One computation per supported regime
    details = {
        regime: _compute_with_definition(total_income, deductions, definition)
        for regime, definition in table.items()
    }
    selectable = [r for r, d in table.items() if d.alias_of is None]

    # Step 2: Rank and detect ties
    ranking = _rank(details, selectable)
    cheapest = [entry for entry in ranking if entry.rank == 1]
    costliest = ranking[-1]
    savings = costliest.total_tax - cheapest[0].total_tax

    if len(cheapest) > 1:
        recommended = None
        tied = [entry.regime for entry in cheapest]
    else:
        recommended = cheapest[0].regime
        tied = []

    # Step 3: Rationale
    if recommended is None:
        names = " and ".join(table[r].label for r in tied)
        rationale = (
            f"{names} result in the same tax (₹{cheapest[0].total_tax:,.0f}). "
            "Neither regime is cheaper for this income and these deductions."
        )
    elif costliest.regime == recommended:
        # Only one selectable regime configured
        rationale = (
            f"{table[recommended].label} tax: ₹{details[recommended].total_tax:,.0f}. "
            "No other regime is available for comparison."
        )
    else:
        winner, loser = table[recommended], table[costliest.regime]
        rationale = (
            f"{winner.label} saves ₹{savings:,.0f} over the {loser.label}. "
            f"{winner.label} tax: ₹{details[recommended].total_tax:,.0f} vs "
            f"{loser.label} tax: ₹{costliest.total_tax:,.0f}."
        )
        old_detail = details.get(TaxRegime.old)
        if old_detail is not None and old_detail.total_deductions is not None:
            if recommended == TaxRegime.old:
                rationale += f" Itemized deductions of ₹{old_detail.total_deductions:,.0f} drive the difference."
            elif costliest.regime == TaxRegime.old:
                rationale += (
                    f" Your Old Regime deductions (₹{old_detail.total_deductions:,.0f}) "
                    "are insufficient to overcome the lower New Regime slab rates."
                )

    return TaxBreakdown(
        assessment_year=year,
        details=details,
        ranking=ranking,
        recommended_regime=recommended,
        tied_regimes=tied,
        savings_amount=savings,
        rationale=rationale,
    )
