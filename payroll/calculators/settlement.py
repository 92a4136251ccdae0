"""
Gratuity & Full-and-Final Settlement calculator.
Pure functions. No I/O. store.create_settlement() persists exactly what
preview_settlement() returns.

Conventions:
  - Daily salary = monthly gross / 30, whatever the month length.
  - Pending salary covers day 1 → last working day of the settlement month.
  - Gratuity counts COMPLETED years only and is rounded to the rupee.
  - Every other settlement amount is rounded to the paisa.
  - gross_settlement / net_settlement are never clamped: negative means the
    employee owes the company.
"""
from __future__ import annotations

import datetime
import logging
from typing import Callable, Union

from dateutil.relativedelta import relativedelta

from payroll.calculators.errors import InvalidDateError
from payroll.calculators.rounding import round_paise, round_rupee
from payroll.calculators.schemas import GratuityResult, SettlementInput, SettlementResult
from payroll.calculators.tds import get_financial_year

logger = logging.getLogger(__name__)

# ===========================================================================
# CONSTANTS
# ===========================================================================

DAYS_PER_MONTH_DIVISOR = 30
DAYS_PER_YEAR          = 365.25

GRATUITY_MIN_YEARS     = 5
GRATUITY_DAYS_FACTOR   = 15          # 15 days' wages per completed year
GRATUITY_MONTH_DAYS    = 26          # ... out of a 26-working-day month
GRATUITY_CAP           = 2_000_000   # Payment of Gratuity Act ceiling

SETTLEMENT_TDS_THRESHOLD = 50_000
SETTLEMENT_TDS_RATE      = 0.10

DateLike = Union[datetime.date, str]
SettlementTDSRule = Callable[[float], float]


# ===========================================================================
# DATE HELPERS
# ===========================================================================

def _as_date(value: DateLike, field: str) -> datetime.date:
    """Accept a date or an ISO "YYYY-MM-DD" string; anything else is an InvalidDateError."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateError(field, f"'{value}' is not a valid YYYY-MM-DD date") from None
    raise InvalidDateError(field, f"expected a date, got {type(value).__name__}")


def _service_years(joining: datetime.date, leaving: datetime.date) -> tuple[int, float]:
    """
    (completed years, years as a decimal).

    Completed years are calendar anniversaries, so 2019-01-01 → 2024-01-01 is
    exactly 5 years. The decimal part is days past the last anniversary / 365.25.
    """
    completed = relativedelta(leaving, joining).years
    last_anniversary = joining + relativedelta(years=completed)
    fraction = (leaving - last_anniversary).days / DAYS_PER_YEAR
    return completed, completed + fraction


# ===========================================================================
# GRATUITY
# ===========================================================================

def calculate_gratuity_details(
    basic_salary: float,
    date_of_joining: DateLike,
    date_of_leaving: DateLike,
) -> GratuityResult:
    """
    Gratuity under the Payment of Gratuity Act, 1972.

    Gratuity = basic × completed years × 15 / 26, capped at ₹20,00,000.
    Payable only after 5 years of service.

    Raises:
        InvalidDateError: malformed date, or leaving before joining.
    """
    joining = _as_date(date_of_joining, "date_of_joining")
    leaving = _as_date(date_of_leaving, "date_of_leaving")
    if leaving < joining:
        raise InvalidDateError("date_of_leaving", "is earlier than date_of_joining")

    completed_years, years_of_service = _service_years(joining, leaving)

    if completed_years < GRATUITY_MIN_YEARS:
        return GratuityResult(
            eligible=False,
            years_of_service=round(years_of_service, 2),
            completed_years=completed_years,
            gratuity_amount=0.0,
        )

    gratuity = basic_salary * completed_years * GRATUITY_DAYS_FACTOR / GRATUITY_MONTH_DAYS
    return GratuityResult(
        eligible=True,
        years_of_service=round(years_of_service, 2),
        completed_years=completed_years,
        gratuity_amount=round_rupee(min(gratuity, GRATUITY_CAP)),
    )


def calculate_gratuity(
    basic_salary: float,
    date_of_joining: DateLike,
    date_of_leaving: DateLike,
) -> float:
    """Gratuity amount only. See calculate_gratuity_details()."""
    return calculate_gratuity_details(basic_salary, date_of_joining, date_of_leaving).gratuity_amount


# ===========================================================================
# SETTLEMENT COMPONENTS
# ===========================================================================

def calculate_daily_salary(gross_monthly_salary: float) -> float:
    """Fixed 30-day divisor, not the calendar length of the month."""
    return gross_monthly_salary / DAYS_PER_MONTH_DIVISOR


def calculate_pending_salary(
    daily_salary: float,
    last_working_day: DateLike,
) -> tuple[int, float]:
    """
    (days, amount) for the final partial month.

    Days = day-of-month of the last working day, i.e. the month is assumed to
    have been worked from the 1st.
    """
    last_day = _as_date(last_working_day, "last_working_day")
    pending_days = last_day.day
    return pending_days, round_paise(daily_salary * pending_days)


def calculate_leave_encashment(daily_salary: float, earned_leave_balance: float) -> float:
    return round_paise(daily_salary * earned_leave_balance)


def calculate_notice_period_recovery(
    daily_salary: float,
    notice_period_days: float,
    notice_period_served: float,
) -> tuple[float, float]:
    """(shortfall days, recovery amount). Serving more than the notice recovers nothing."""
    shortfall = max(0.0, notice_period_days - notice_period_served)
    return shortfall, round_paise(daily_salary * shortfall)


def flat_settlement_tds(gross_settlement: float) -> float:
    """Simplified settlement TDS: 10% when gross settlement exceeds ₹50,000, else 0."""
    return make_flat_settlement_tds()(gross_settlement)


def make_flat_settlement_tds(
    threshold: float = SETTLEMENT_TDS_THRESHOLD,
    rate: float = SETTLEMENT_TDS_RATE,
) -> SettlementTDSRule:
    """Build a flat-rate TDS rule. Used to plug configured values into preview_settlement()."""
    def rule(gross_settlement: float) -> float:
        if gross_settlement > threshold:
            return round_paise(gross_settlement * rate)
        return 0.0
    return rule


# ===========================================================================
# FULL & FINAL SETTLEMENT — public API
# ===========================================================================

def preview_settlement(
    settlement: SettlementInput,
    tds_rule: SettlementTDSRule = flat_settlement_tds,
) -> SettlementResult:
    """
    Compute a full & final settlement without persisting it.

    Dues:       pending salary + leave encashment + bonus + incentive + gratuity + other dues
    Recoveries: advance + loan + notice-period shortfall + asset + other recoveries
    gross = dues - recoveries (may be negative); tax = tds_rule(gross); net = gross - tax.

    gratuity_amount on the input overrides the computed gratuity whenever it is
    not None; 0 is a valid override.

    Raises:
        InvalidDateError: leaving date or last working day before the joining date.
    """
    joining = settlement.date_of_joining
    leaving = settlement.date_of_leaving
    last_working_day = settlement.last_working_day

    if leaving < joining:
        raise InvalidDateError("date_of_leaving", "is earlier than date_of_joining")
    if last_working_day < joining:
        raise InvalidDateError("last_working_day", "is earlier than date_of_joining")

    daily_salary = calculate_daily_salary(settlement.gross_salary)

    # 1. Pending salary
    pending_days, pending_amount = calculate_pending_salary(daily_salary, last_working_day)

    # 2. Leave encashment
    leave_encashment = calculate_leave_encashment(daily_salary, settlement.earned_leave_balance)

    # 3. Gratuity (override wins, including an explicit 0)
    gratuity_details = calculate_gratuity_details(settlement.basic_salary, joining, leaving)
    if settlement.gratuity_amount is not None:
        gratuity = settlement.gratuity_amount
    else:
        gratuity = gratuity_details.gratuity_amount

    # 4. Notice period recovery
    shortfall, notice_recovery = calculate_notice_period_recovery(
        daily_salary,
        settlement.notice_period_days,
        settlement.notice_period_served,
    )

    total_dues = round_paise(
        pending_amount
        + leave_encashment
        + settlement.bonus_amount
        + settlement.incentive_amount
        + gratuity
        + settlement.other_dues
    )
    total_recoveries = round_paise(
        settlement.advance_recovery
        + settlement.loan_recovery
        + notice_recovery
        + settlement.asset_recovery
        + settlement.other_recoveries
    )

    gross_settlement = round_paise(total_dues - total_recoveries)
    tax_deduction = tds_rule(gross_settlement)
    net_settlement = round_paise(gross_settlement - tax_deduction)

    logger.debug(
        "Settlement computed employee_id=%s gratuity_eligible=%s shortfall_days=%s",
        settlement.employee_id, gratuity_details.eligible, shortfall,
    )

    return SettlementResult(
        employee_id=settlement.employee_id,
        employee_name=settlement.employee_name,
        date_of_joining=joining,
        date_of_leaving=leaving,
        last_working_day=last_working_day,
        relieving_date=settlement.relieving_date,
        settlement_month=last_working_day.month,
        settlement_year=last_working_day.year,
        financial_year=get_financial_year(last_working_day),
        years_of_service=gratuity_details.years_of_service,
        notice_period_days=settlement.notice_period_days,
        notice_period_served=settlement.notice_period_served,
        notice_period_shortfall=shortfall,
        pending_salary_days=pending_days,
        pending_salary_amount=pending_amount,
        earned_leave_days=settlement.earned_leave_balance,
        earned_leave_encashment=leave_encashment,
        bonus_amount=settlement.bonus_amount,
        incentive_amount=settlement.incentive_amount,
        gratuity_amount=gratuity,
        other_dues=settlement.other_dues,
        total_dues=total_dues,
        advance_recovery=settlement.advance_recovery,
        loan_recovery=settlement.loan_recovery,
        notice_period_recovery=notice_recovery,
        asset_recovery=settlement.asset_recovery,
        other_recoveries=settlement.other_recoveries,
        total_recoveries=total_recoveries,
        gross_settlement=gross_settlement,
        tax_deduction=tax_deduction,
        net_settlement=net_settlement,
        assets_returned=settlement.assets_returned,
        reason_for_leaving=settlement.reason_for_leaving,
        remarks=settlement.remarks,
    )
