"""
Monthly TDS projector and financial-year helpers.

India's financial year runs April 1 – March 31 and is written "YYYY-YY".
Month numbers handed to the projector are FINANCIAL-YEAR relative:
April = 1 … March = 12.

Nothing here reads the system clock. Callers pass the as-of date explicitly.
"""
from __future__ import annotations

import datetime
import logging
import re
from typing import Optional

from payroll.calculators.errors import InvalidInputError
from payroll.calculators.rounding import round_rupee
from payroll.calculators.schemas import DeductionInputs, TaxCalculationResult, TaxRegime
from payroll.calculators.tax_engine import calculate_tax

logger = logging.getLogger(__name__)

FY_START_MONTH = 4
MONTHS_IN_YEAR = 12

_FY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


# ===========================================================================
# FINANCIAL YEAR HELPERS
# ===========================================================================

def get_financial_year(as_of: datetime.date) -> str:
    """
    Financial year containing as_of, e.g. 2024-06-15 → "2024-25",
    2025-02-01 → "2024-25". The suffix is always two digits ("2008-09").
    """
    start_year = as_of.year if as_of.month >= FY_START_MONTH else as_of.year - 1
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def get_financial_year_month(as_of: datetime.date) -> int:
    """April = 1, May = 2, … December = 9, January = 10, … March = 12."""
    if as_of.month >= FY_START_MONTH:
        return as_of.month - 3
    return as_of.month + 9


def financial_year_bounds(financial_year: str) -> tuple[datetime.date, datetime.date]:
    """(April 1, March 31) of a "YYYY-YY" financial year."""
    match = _FY_PATTERN.match(financial_year or "")
    if match is None:
        raise InvalidInputError(f"financial_year must look like '2024-25', got {financial_year!r}")
    start_year = int(match.group(1))
    if int(match.group(2)) != (start_year + 1) % 100:
        raise InvalidInputError(
            f"financial_year {financial_year!r} does not span two consecutive years"
        )
    return datetime.date(start_year, 4, 1), datetime.date(start_year + 1, 3, 31)


def _validate_month_number(month_number: int) -> None:
    if isinstance(month_number, bool) or not isinstance(month_number, int):
        raise InvalidInputError(f"month_number must be an integer 1-12, got {month_number!r}")
    if not 1 <= month_number <= MONTHS_IN_YEAR:
        raise InvalidInputError(f"month_number must be between 1 and 12, got {month_number}")


# ===========================================================================
# PROJECTION
# ===========================================================================

def project_annual_tax(
    monthly_gross: float,
    regime: TaxRegime = TaxRegime.new,
    month_number: int = 1,
    hra_exemption: float = 0.0,
    deductions: Optional[DeductionInputs] = None,
) -> TaxCalculationResult:
    """
    Annual tax on the income projected from one month's gross.

    projected = gross × remaining months + gross × elapsed months.
    With a constant gross this is gross × 12.
    hra_exemption is MONTHLY and annualised here (old regime only).
    """
    _validate_month_number(month_number)
    remaining_months = MONTHS_IN_YEAR - month_number + 1
    projected_annual_income = (
        monthly_gross * remaining_months + monthly_gross * (month_number - 1)
    )
    return calculate_tax(
        projected_annual_income,
        regime=regime,
        hra_exemption=hra_exemption * MONTHS_IN_YEAR,
        deductions=deductions,
    )


def calculate_monthly_tds(
    monthly_gross: float,
    regime: TaxRegime = TaxRegime.new,
    month_number: int = 1,
    previous_tds: float = 0.0,
    hra_exemption: float = 0.0,
    deductions: Optional[DeductionInputs] = None,
) -> float:
    """
    TDS to withhold this month.

    The annual liability on the projected income, less TDS already withheld this
    financial year, is spread evenly over the months left (current month included).
    By month 12 cumulative TDS equals the annual liability.
    Over-withholding never produces a negative deduction.

    Raises:
        InvalidInputError: month_number outside 1-12.
    """
    tax_result = project_annual_tax(
        monthly_gross,
        regime=regime,
        month_number=month_number,
        hra_exemption=hra_exemption,
        deductions=deductions,
    )
    remaining_months = MONTHS_IN_YEAR - month_number + 1
    remaining_tax = max(0.0, tax_result.total_tax - previous_tds)
    monthly_tds = round_rupee(remaining_tax / remaining_months)

    logger.debug(
        "Monthly TDS regime=%s month_number=%d remaining_months=%d",
        TaxRegime(regime).value, month_number, remaining_months,
    )
    return monthly_tds
