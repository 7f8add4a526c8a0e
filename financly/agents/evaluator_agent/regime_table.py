"""
Financly Regime Table — static tax-law configuration.
Pure data, no behaviour beyond lookup. Changes only when tax law changes.

Tables are keyed by assessment year so a future year can be added here
without touching the tax engine:
  2025-26 (default): old 2.5L/5L/10L ladder; new 3L/6L/9L/12L/15L ladder,
                     ₹7L rebate ceiling. `revised` is the same ruleset as `new`.
  2026-27          : new regime moves to the Budget 2025 4L/8L/.../24L ladder,
                     ₹75K standard deduction, ₹12L rebate ceiling.

Every RegimeDefinition validates its slab ladder on construction, so a
malformed table fails at import — never mid-calculation.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Optional

from financly.agents.evaluator_agent.schemas import (
    RebateRule, RegimeDefinition, Slab, TaxRegime,
)
from financly.config import settings

logger = logging.getLogger(__name__)

CESS_RATE = 0.04

# ===========================================================================
# DEDUCTION CEILINGS — same in every year covered here
# standard_deduction and other_deductions have no ceiling.
# ===========================================================================

CAP_80C  = 150_000
CAP_80D  = 25_000
CAP_HRA  = 50_000
CAP_LTA  = 50_000
CAP_NPS  = 50_000    # Section 80CCD(1B)

DEDUCTION_CEILINGS: Mapping[str, float] = MappingProxyType({
    "section_80c":   CAP_80C,
    "section_80d":   CAP_80D,
    "hra_exemption": CAP_HRA,
    "lta":           CAP_LTA,
    "nps":           CAP_NPS,
})

# ===========================================================================
# SLAB LADDERS
# ===========================================================================

OLD_REGIME_SLABS = [
    Slab(lower=0,         upper=250_000,   rate=0.00),   # 0–2.5L
    Slab(lower=250_000,   upper=500_000,   rate=0.05),   # 2.5–5L
    Slab(lower=500_000,   upper=1_000_000, rate=0.20),   # 5–10L
    Slab(lower=1_000_000, upper=None,      rate=0.30),   # >10L
]

NEW_REGIME_SLABS_2025_26 = [
    Slab(lower=0,         upper=300_000,   rate=0.00),   # 0–3L
    Slab(lower=300_000,   upper=600_000,   rate=0.05),   # 3–6L
    Slab(lower=600_000,   upper=900_000,   rate=0.10),   # 6–9L
    Slab(lower=900_000,   upper=1_200_000, rate=0.15),   # 9–12L
    Slab(lower=1_200_000, upper=1_500_000, rate=0.20),   # 12–15L
    Slab(lower=1_500_000, upper=None,      rate=0.30),   # >15L
]

NEW_REGIME_SLABS_2026_27 = [
    Slab(lower=0,         upper=400_000,   rate=0.00),   # 0–4L
    Slab(lower=400_000,   upper=800_000,   rate=0.05),   # 4–8L
    Slab(lower=800_000,   upper=1_200_000, rate=0.10),   # 8–12L
    Slab(lower=1_200_000, upper=1_600_000, rate=0.15),   # 12–16L
    Slab(lower=1_600_000, upper=2_000_000, rate=0.20),   # 16–20L
    Slab(lower=2_000_000, upper=2_400_000, rate=0.25),   # 20–24L
    Slab(lower=2_400_000, upper=None,      rate=0.30),   # >24L
]

# ===========================================================================
# REGIME DEFINITIONS
# ===========================================================================

OLD_REGIME = RegimeDefinition(
    regime=TaxRegime.old,
    label="Old Regime",
    slabs=OLD_REGIME_SLABS,
    standard_deduction=50_000,
    allows_itemized_deductions=True,
    rebate=RebateRule(income_ceiling=500_000, max_rebate=12_500),
)


def _new_style_regimes(
    slabs: list[Slab], standard_deduction: float, rebate: RebateRule,
) -> dict[TaxRegime, RegimeDefinition]:
    """`new` and `revised` share one ruleset; `revised` is published as an alias."""
    return {
        TaxRegime.new: RegimeDefinition(
            regime=TaxRegime.new,
            label="New Regime",
            slabs=slabs,
            standard_deduction=standard_deduction,
            rebate=rebate,
        ),
        TaxRegime.revised: RegimeDefinition(
            regime=TaxRegime.revised,
            label="Revised New Regime",
            slabs=slabs,
            standard_deduction=standard_deduction,
            rebate=rebate,
            alias_of=TaxRegime.new,
        ),
    }


REGIME_TABLES: Mapping[str, Mapping[TaxRegime, RegimeDefinition]] = MappingProxyType({
    "2025-26": MappingProxyType({
        TaxRegime.old: OLD_REGIME,
        **_new_style_regimes(
            NEW_REGIME_SLABS_2025_26,
            standard_deduction=50_000,
            rebate=RebateRule(income_ceiling=700_000, max_rebate=25_000),
        ),
    }),
    "2026-27": MappingProxyType({
        TaxRegime.old: OLD_REGIME,
        **_new_style_regimes(
            NEW_REGIME_SLABS_2026_27,
            standard_deduction=75_000,
            rebate=RebateRule(income_ceiling=1_200_000, max_rebate=60_000),
        ),
    }),
})

logger.debug("Regime tables loaded for assessment years: %s", ", ".join(REGIME_TABLES))


def get_regime_table(
    assessment_year: Optional[str] = None,
) -> Mapping[TaxRegime, RegimeDefinition]:
    """
    Return the regime definitions for an assessment year (settings default if omitted).

    Raises:
        KeyError: If no table is configured for the year.
    """
    year = assessment_year or settings.assessment_year
    try:
        return REGIME_TABLES[year]
    except KeyError:
        raise KeyError(
            f"No regime table for assessment year '{year}'. "
            f"Configured years: {', '.join(REGIME_TABLES)}"
        ) from None


def get_regime(
    regime: TaxRegime, assessment_year: Optional[str] = None,
) -> RegimeDefinition:
    """Return one regime's definition for an assessment year."""
    return get_regime_table(assessment_year)[TaxRegime(regime)]
