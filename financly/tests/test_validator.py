"""
Input boundary tests — free-text form parsing and business-rule validation.

Violations come back as a JSON-encoded list of {field, issue} dicts inside
the ValueError message; helpers below decode them.
"""
from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from financly.agents.input_agent.schemas import (
    CalculationRequest, DeductionRecord, IncomeRecord,
)
from financly.agents.input_agent.validator import (
    parse_amount,
    parse_calculation_form,
    validate_business_rules,
)


def _violated_fields(exc_info: pytest.ExceptionInfo) -> list[str]:
    return [v["field"] for v in json.loads(str(exc_info.value))]


# ===========================================================================
# parse_amount
# ===========================================================================

@pytest.mark.parametrize(
    "text, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("   ", 0.0),
        ("800000", 800_000.0),
        ("1,50,000", 150_000.0),
        ("₹ 25,000", 25_000.0),
        ("12.5", 12.5),
        (".5", 0.5),
    ],
)
def test_parse_amount_accepts(text, expected: float) -> None:
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["abc", "12a", "-500", "1.2.3", ".", "1e5"])
def test_parse_amount_rejects(text: str) -> None:
    with pytest.raises(ValueError, match="not a valid amount"):
        parse_amount(text)


def test_parse_amount_signed() -> None:
    assert parse_amount("-75,000", allow_negative=True) == -75_000.0
    with pytest.raises(ValueError):
        parse_amount("-", allow_negative=True)


def test_parse_amount_rejects_overflow() -> None:
    with pytest.raises(ValueError, match="too large"):
        parse_amount("1" + "0" * 400)
    assert parse_amount("1" + "0" * 30) == 1e30


# ===========================================================================
# parse_calculation_form
# ===========================================================================

def test_form_parses_into_typed_records() -> None:
    income, deductions = parse_calculation_form({
        "basic_salary": "9,00,000",
        "variable_salary": "50000",
        "long_term_capital_gains": "-1,00,000",
        "section_80c": "100000",
        "nps": "",
    })

    assert income == IncomeRecord(
        basic_salary=900_000, variable_salary=50_000, long_term_capital_gains=-100_000,
    )
    assert income.total_income == 850_000
    assert deductions == DeductionRecord(section_80c=100_000)


def test_form_clamps_deductions_to_ceiling() -> None:
    _, deductions = parse_calculation_form({
        "basic_salary": "800000",
        "section_80c": "200000",
        "section_80d": "30000",
        "other_deductions": "999999",
    })
    assert deductions.section_80c == 150_000
    assert deductions.section_80d == 25_000
    assert deductions.other_deductions == 999_999   # no ceiling


def test_form_blank_standard_deduction_means_regime_default() -> None:
    _, blank = parse_calculation_form({"basic_salary": "800000", "standard_deduction": " "})
    _, zero = parse_calculation_form({"basic_salary": "800000", "standard_deduction": "0"})
    assert blank.standard_deduction is None
    assert zero.standard_deduction == 0


def test_form_requires_basic_salary() -> None:
    with pytest.raises(ValueError) as exc_info:
        parse_calculation_form({"other_income": "10000"})
    assert _violated_fields(exc_info) == ["basic_salary"]


def test_form_reports_all_violations_at_once() -> None:
    with pytest.raises(ValueError) as exc_info:
        parse_calculation_form({
            "basic_salary": "lots",
            "other_income": "-5",
            "section_80d": "1O000",
            "bonus": "10",
        })
    assert _violated_fields(exc_info) == ["bonus", "basic_salary", "other_income", "section_80d"]


def test_form_rejects_overflowing_values() -> None:
    with pytest.raises(ValueError) as exc_info:
        parse_calculation_form({"basic_salary": "1" + "0" * 400, "lta": "9" * 400})
    assert _violated_fields(exc_info) == ["basic_salary", "lta"]


def test_form_rejects_total_income_overflow() -> None:
    huge = "1" + "0" * 308
    with pytest.raises(ValueError) as exc_info:
        parse_calculation_form({"basic_salary": huge, "other_income": huge})
    assert _violated_fields(exc_info) == ["income"]


# ===========================================================================
# validate_business_rules
# ===========================================================================

def test_valid_request_passes() -> None:
    request = CalculationRequest(
        income=IncomeRecord(basic_salary=800_000),
        deductions=DeductionRecord(section_80c=150_000, nps=50_000),
        assessment_year="2026-27",
    )
    assert validate_business_rules(request) is None


def test_over_ceiling_deductions_rejected_not_clamped() -> None:
    request = CalculationRequest(
        income=IncomeRecord(basic_salary=800_000),
        deductions=DeductionRecord(section_80c=200_000, lta=60_000),
    )
    with pytest.raises(ValueError) as exc_info:
        validate_business_rules(request)
    assert _violated_fields(exc_info) == ["deductions.section_80c", "deductions.lta"]


def test_zero_basic_salary_and_unknown_year_reported_together() -> None:
    request = CalculationRequest(
        income=IncomeRecord(other_income=100_000),
        assessment_year="1999-00",
    )
    with pytest.raises(ValueError) as exc_info:
        validate_business_rules(request)
    assert _violated_fields(exc_info) == ["income.basic_salary", "assessment_year"]


def test_records_reject_non_finite_amounts() -> None:
    with pytest.raises(ValidationError):
        IncomeRecord(basic_salary=float("inf"))
    with pytest.raises(ValidationError):
        IncomeRecord(basic_salary=800_000, long_term_capital_gains=float("nan"))
    with pytest.raises(ValidationError):
        DeductionRecord(section_80c=float("inf"))


def test_total_income_overflow_rejected() -> None:
    request = CalculationRequest(
        income=IncomeRecord(basic_salary=1e308, variable_salary=1e308),
    )
    with pytest.raises(ValueError) as exc_info:
        validate_business_rules(request)
    assert _violated_fields(exc_info) == ["income"]
