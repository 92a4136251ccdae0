"""
Monthly TDS projector and financial-year helper tests.
"""
from __future__ import annotations

import datetime

import pytest

from payroll.calculators.errors import InvalidInputError
from payroll.calculators.schemas import DeductionInputs, TaxRegime
from payroll.calculators.tds import (
    calculate_monthly_tds,
    financial_year_bounds,
    get_financial_year,
    get_financial_year_month,
    project_annual_tax,
)


# ---------------------------------------------------------------------------
# Financial year helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "as_of, expected",
    [
        (datetime.date(2024, 6, 15), "2024-25"),
        (datetime.date(2025, 2, 1), "2024-25"),
        (datetime.date(2024, 4, 1), "2024-25"),
        (datetime.date(2024, 3, 31), "2023-24"),
        (datetime.date(2008, 5, 1), "2008-09"),
        (datetime.date(2099, 4, 1), "2099-00"),
    ],
)
def test_get_financial_year(as_of: datetime.date, expected: str) -> None:
    assert get_financial_year(as_of) == expected


@pytest.mark.parametrize(
    "month, expected",
    [(4, 1), (5, 2), (12, 9), (1, 10), (3, 12)],
)
def test_get_financial_year_month(month: int, expected: int) -> None:
    assert get_financial_year_month(datetime.date(2024, month, 10)) == expected


def test_financial_year_bounds() -> None:
    assert financial_year_bounds("2024-25") == (datetime.date(2024, 4, 1), datetime.date(2025, 3, 31))


@pytest.mark.parametrize("bad", ["2024-26", "2024", "24-25", ""])
def test_financial_year_bounds_rejects_malformed(bad: str) -> None:
    with pytest.raises(InvalidInputError):
        financial_year_bounds(bad)


# ---------------------------------------------------------------------------
# Monthly TDS
# ---------------------------------------------------------------------------

def test_first_month_tds_is_annual_over_twelve() -> None:
    # 100000/month → 1200000, NEW total 75400, /12 = 6283.33 → 6283
    assert calculate_monthly_tds(100_000, TaxRegime.new, month_number=1) == 6_283


def test_last_month_takes_the_remainder() -> None:
    assert calculate_monthly_tds(100_000, TaxRegime.new, month_number=12, previous_tds=6_283 * 11) == 6_287


def test_cumulative_tds_equals_annual_liability() -> None:
    annual = project_annual_tax(100_000, TaxRegime.new).total_tax
    withheld = 0.0
    for month_number in range(1, 13):
        withheld += calculate_monthly_tds(
            100_000, TaxRegime.new, month_number=month_number, previous_tds=withheld
        )
    assert withheld == annual == 75_400


def test_over_withholding_never_negative() -> None:
    assert calculate_monthly_tds(100_000, TaxRegime.new, month_number=6, previous_tds=500_000) == 0


def test_income_under_rebate_has_no_tds() -> None:
    # 50000/month → 600000, taxable 550000 → rebated to 0
    assert calculate_monthly_tds(50_000, TaxRegime.new, month_number=1) == 0


def test_old_regime_annualises_monthly_hra_exemption() -> None:
    deductions = DeductionInputs(section_80c=150_000)
    projection = project_annual_tax(
        100_000, TaxRegime.old, month_number=1, hra_exemption=20_000, deductions=deductions
    )
    assert projection.hra_exemption == 240_000
    # taxable = 1200000 − 50000 − 240000 − 150000 = 760000
    assert projection.taxable_income == 760_000


@pytest.mark.parametrize("bad_month", [0, 13, -1, True, 1.5])
def test_invalid_month_number_raises(bad_month) -> None:
    with pytest.raises(InvalidInputError):
        calculate_monthly_tds(100_000, TaxRegime.new, month_number=bad_month)


def test_invalid_month_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        calculate_monthly_tds(100_000, TaxRegime.new, month_number=13)
