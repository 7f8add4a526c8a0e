"""
InputAgent parse/validate boundary.

The only place where caller input becomes typed IncomeRecord / DeductionRecord
values. The tax engine never sees strings, never clamps, never validates.

Two entry points:
  - parse_calculation_form()   free-text form values (what a UI text box holds).
                               Deductions above their ceiling are clamped, the
                               way the form masks input while the user types.
  - validate_business_rules()  typed JSON requests, after Pydantic structural
                               validation. Deductions above their ceiling are
                               rejected, not clamped.

Both collect every violation in a single pass and raise ValueError with a
JSON-encoded list of {field, issue} dicts, so the route (or main.py exception
handler) can build the standard error envelope.
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Mapping, Optional

from financly.agents.evaluator_agent.regime_table import DEDUCTION_CEILINGS, REGIME_TABLES
from financly.agents.input_agent.schemas import (
    CalculationRequest, DeductionRecord, IncomeRecord,
)

logger = logging.getLogger(__name__)

_UNSIGNED_AMOUNT = re.compile(r"\d*\.?\d*")
_SIGNED_AMOUNT = re.compile(r"-?\d*\.?\d*")
_TOTAL_TOO_LARGE = "Total income is too large to compute"

INCOME_FIELDS = (
    "basic_salary",
    "variable_salary",
    "other_income",
    "house_property_income",
    "long_term_capital_gains",
    "short_term_capital_gains",
)
# Capital gains may be losses
SIGNED_INCOME_FIELDS = frozenset({"long_term_capital_gains", "short_term_capital_gains"})

DEDUCTION_FIELDS = (
    "section_80c",
    "section_80d",
    "hra_exemption",
    "lta",
    "nps",
    "standard_deduction",
    "other_deductions",
)


def parse_amount(text: Optional[str], allow_negative: bool = False) -> float:
    """
    Convert one form value to a number.

    Empty / missing → 0. Surrounding whitespace, a leading ₹ and thousands
    separators ("1,50,000") are ignored.

    Raises:
        ValueError: If the text is not a plain decimal amount, or overflows a float.
    """
    if text is None:
        return 0.0
    cleaned = text.strip().lstrip("₹").replace(",", "").strip()
    if cleaned == "":
        return 0.0
    pattern = _SIGNED_AMOUNT if allow_negative else _UNSIGNED_AMOUNT
    if not pattern.fullmatch(cleaned) or not any(ch.isdigit() for ch in cleaned):
        raise ValueError(f"'{text}' is not a valid amount")
    amount = float(cleaned)
    if not math.isfinite(amount):
        raise ValueError(f"'{text}' is too large to be a valid amount")
    return amount


def _violation(field: str, issue: str) -> dict[str, Any]:
    return {"field": field, "issue": issue}


def _raise_if_any(violations: list[dict[str, Any]], source: str) -> None:
    if violations:
        # Count only — never log income figures
        logger.info("%s validation failed: %d violation(s)", source, len(violations))
        raise ValueError(json.dumps(violations))


def parse_calculation_form(
    form: Mapping[str, Optional[str]],
) -> tuple[IncomeRecord, DeductionRecord]:
    """
    Parse free-text form values into typed records.

    Income fields must be non-negative except capital gains. Basic salary
    must be positive. Deductions above their ceiling are clamped to it.
    A blank standard_deduction means "use the regime's statutory amount".

    Raises:
        ValueError: JSON-encoded list of {field, issue} dicts.
    """
    violations: list[dict[str, Any]] = []

    for key in form:
        if key not in INCOME_FIELDS and key not in DEDUCTION_FIELDS:
            violations.append(_violation(key, "Unknown field"))

    income: dict[str, float] = {}
    for field in INCOME_FIELDS:
        try:
            income[field] = parse_amount(form.get(field), allow_negative=field in SIGNED_INCOME_FIELDS)
        except ValueError as exc:
            violations.append(_violation(field, str(exc)))

    if "basic_salary" in income and income["basic_salary"] <= 0:
        violations.append(_violation("basic_salary", "Valid basic salary required"))
    if len(income) == len(INCOME_FIELDS) and not math.isfinite(sum(income.values())):
        violations.append(_violation("income", _TOTAL_TOO_LARGE))

    deductions: dict[str, Optional[float]] = {}
    for field in DEDUCTION_FIELDS:
        raw = form.get(field)
        if field == "standard_deduction" and (raw is None or raw.strip() == ""):
            deductions[field] = None
            continue
        try:
            value = parse_amount(raw)
        except ValueError as exc:
            violations.append(_violation(field, str(exc)))
            continue
        ceiling = DEDUCTION_CEILINGS.get(field)
        deductions[field] = value if ceiling is None else min(value, ceiling)

    _raise_if_any(violations, "Form")
    return IncomeRecord(**income), DeductionRecord(**deductions)


def validate_business_rules(request: CalculationRequest) -> None:
    """
    Validate a structurally-valid request against business rules.

    Rules:
      1. income.basic_salary > 0
      2. every ceiling-bearing deduction <= its ceiling
      3. assessment_year, when given, has a configured regime table
      4. total income is a finite number

    Raises:
        ValueError: JSON-encoded list of {field, issue} dicts.
    """
    violations: list[dict[str, Any]] = []

    # ---- 1. Basic salary -----------------------------------------------------
    if request.income.basic_salary <= 0:
        violations.append(_violation("income.basic_salary", "Valid basic salary required"))

    # ---- 2. Deduction ceilings ----------------------------------------------
    for field, ceiling in DEDUCTION_CEILINGS.items():
        value = getattr(request.deductions, field)
        if value > ceiling:
            violations.append(_violation(
                f"deductions.{field}",
                f"Value ₹{value:,.0f} exceeds the maximum of ₹{ceiling:,.0f}.",
            ))

    # ---- 3. Assessment year ---------------------------------------------------
    if request.assessment_year is not None and request.assessment_year not in REGIME_TABLES:
        violations.append(_violation(
            "assessment_year",
            f"Unsupported assessment year '{request.assessment_year}'. "
            f"Supported: {', '.join(REGIME_TABLES)}.",
        ))

    # ---- 4. Total income ------------------------------------------------------
    if not math.isfinite(request.income.total_income):
        violations.append(_violation("income", _TOTAL_TOO_LARGE))

    _raise_if_any(violations, "Business-rule")

