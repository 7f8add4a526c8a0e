"""
schemas.py — EvaluatorAgent Pydantic v2 data contracts.

Defines:
  - TaxRegime           (closed set of regime identifiers)
  - Slab, RebateRule    (building blocks of a regime's rules)
  - RegimeDefinition    (one regime's slab ladder + standard deduction + rebate)
  - TaxDetail           (full tax computation for one regime)
  - RegimeRank          (one entry of the comparator's ranking)
  - TaxBreakdown        (all regimes compared — main EvaluatorAgent output)
  - RecommendationType, Recommendation

Every model is frozen: a recalculation always builds new values, nothing is
patched in place.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaxRegime(str, Enum):
    old = "old"
    new = "new"
    revised = "revised"


class RecommendationType(str, Enum):
    section_80c = "section_80c"
    section_80d = "section_80d"
    hra = "hra"
    lta = "lta"
    nps = "nps"


# ---------------------------------------------------------------------------
# Regime rules
# ---------------------------------------------------------------------------

class Slab(BaseModel):
    """
    One bracket of a slab ladder: income in [lower, upper) is taxed at `rate`.
    upper=None means the bracket is unbounded.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    lower: float = Field(..., ge=0)
    upper: Optional[float] = None
    rate: float = Field(..., ge=0, le=1)


class RebateRule(BaseModel):
    """Section 87A style rebate: tax is reduced by up to max_rebate when taxable income <= income_ceiling."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    income_ceiling: float = Field(..., ge=0)
    max_rebate: float = Field(..., ge=0)


class RegimeDefinition(BaseModel):
    """
    Static rules for one regime in one assessment year.

    The slab ladder must partition [0, inf): the first slab starts at 0, every
    slab starts where the previous one ends, and only the last slab is
    unbounded. A malformed ladder fails at construction, i.e. when the regime
    table module is imported.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    regime: TaxRegime
    label: str
    slabs: Tuple[Slab, ...] = Field(..., min_length=1)
    standard_deduction: float = Field(..., ge=0)
    allows_itemized_deductions: bool = False
    rebate: Optional[RebateRule] = None
    # Same ruleset published under another name. Reported, never chosen separately.
    alias_of: Optional[TaxRegime] = None

    @model_validator(mode="after")
    def check_slabs_partition_income(self) -> "RegimeDefinition":
        if self.slabs[0].lower != 0:
            raise ValueError(
                f"{self.regime.value}: first slab must start at 0, got {self.slabs[0].lower:,.0f}"
            )
        for prev, curr in zip(self.slabs, self.slabs[1:]):
            if prev.upper is None:
                raise ValueError(
                    f"{self.regime.value}: only the last slab may be unbounded"
                )
            if curr.lower != prev.upper:
                raise ValueError(
                    f"{self.regime.value}: slab starting at {curr.lower:,.0f} does not "
                    f"continue the slab ending at {prev.upper:,.0f} (gap or overlap)"
                )
        for slab in self.slabs:
            if slab.upper is not None and slab.upper <= slab.lower:
                raise ValueError(
                    f"{self.regime.value}: slab [{slab.lower:,.0f}, {slab.upper:,.0f}) is empty or descending"
                )
        if self.slabs[-1].upper is not None:
            raise ValueError(
                f"{self.regime.value}: last slab must be unbounded (upper=None)"
            )
        if self.alias_of == self.regime:
            raise ValueError(f"{self.regime.value}: a regime cannot be an alias of itself")
        return self


# ---------------------------------------------------------------------------
# TaxDetail — full tax calculation for one regime
# ---------------------------------------------------------------------------

class TaxDetail(BaseModel):
    """
    Complete tax computation result for a single regime.

    Computation sequence:
      1. total_deductions = every deduction field (itemized regimes) or the
         standard deduction only
      2. taxable_income = max(0, gross_income - deductions)
      3. slab tax = progressive bracket calculation
      4. rebate → tax_before_cess
      5. total_tax = round(tax_before_cess × 1.04), whole rupees
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    regime: TaxRegime
    gross_income: float
    standard_deduction: float            # Amount actually applied
    taxable_income: float = Field(..., ge=0)
    tax_before_cess: float = Field(..., ge=0)   # After rebate, before 4% cess
    rebate: float = Field(..., ge=0)
    cess: float = Field(..., ge=0)
    total_tax: float = Field(..., ge=0)  # Whole rupees, cess inclusive
    effective_tax_rate: float            # Percent of gross income, 2 dp; 0.0 when gross <= 0
    in_hand_monthly: float
    total_deductions: Optional[float] = None    # Itemized regimes only


class RegimeRank(BaseModel):
    """One row of the comparator ranking. Regimes with equal tax share a rank."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rank: int = Field(..., ge=1)
    regime: TaxRegime
    total_tax: float


# ---------------------------------------------------------------------------
# TaxBreakdown — regime comparison output (public API of the comparator)
# ---------------------------------------------------------------------------

class TaxBreakdown(BaseModel):
    """
    Output of compare_regimes().

    recommended_regime is set only when one regime is strictly cheapest.
    On a tie it is None and tied_regimes lists every regime sharing the
    minimum, so the caller can say the regimes are equivalent.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    assessment_year: str
    # Frozen stops reassignment only; treat the dict as read-only.
    details: Dict[TaxRegime, TaxDetail]
    ranking: Tuple[RegimeRank, ...]
    recommended_regime: Optional[TaxRegime] = None
    tied_regimes: Tuple[TaxRegime, ...] = ()
    savings_amount: float                # Highest minus lowest selectable tax
    rationale: str

    @computed_field
    @property
    def is_tie(self) -> bool:
        return len(self.tied_regimes) > 1


# ---------------------------------------------------------------------------
# Recommendation
# ---------------------------------------------------------------------------

class Recommendation(BaseModel):
    """
    Advisory suggestion for unused deduction headroom.

    potential_savings is a flat-rate estimate, not an exact recomputation.
    target_field and step tell the caller how an "apply" action moves the
    deduction record.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: RecommendationType
    description: str
    potential_savings: float = Field(..., ge=0)
    applicable_regimes: Tuple[TaxRegime, ...]
    target_field: str
    headroom: float = Field(..., ge=0)
    step: float = Field(..., gt=0)


__all__ = [
    "TaxRegime",
    "RecommendationType",
    "Slab",
    "RebateRule",
    "RegimeDefinition",
    "TaxDetail",
    "RegimeRank",
    "TaxBreakdown",
    "Recommendation",
]
