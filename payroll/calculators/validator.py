"""
Payroll request business-rule validator.

Runs on HTTP request bodies AFTER Pydantic structural validation has passed and
BEFORE the calculators. The calculators themselves accept any number; these
rules keep obviously wrong payroll data out of the stored records.

Collects all violations in a single pass and raises ValueError with a
JSON-encoded list of {field, issue} dicts so the route can build the standard
error envelope.

Salary slip rules:
  1. earnings, deductions and YTD figures are non-negative
  2. lop_days <= working_days
  3. paid_days  <= working_days

Settlement rules:
  1. amounts and day counts are non-negative
  2. basic_salary <= gross_salary
  3. last_working_day <= date_of_leaving
  4. relieving_date >= last_working_day (when given)
"""
from __future__ import annotations

import json
import logging
from typing import Any

from payroll.calculators.schemas import SalarySlipInput, SettlementInput

logger = logging.getLogger(__name__)

_SLIP_NON_NEGATIVE = (
    "basic_salary",
    "hra",
    "special_allowance",
    "transport_allowance",
    "medical_allowance",
    "other_allowances",
    "bonus",
    "overtime",
    "lop_days",
    "hra_exemption",
    "loan_repayment",
    "other_deductions",
    "ytd_gross_before",
    "ytd_tds_before",
)

_SETTLEMENT_NON_NEGATIVE = (
    "basic_salary",
    "gross_salary",
    "notice_period_days",
    "notice_period_served",
    "earned_leave_balance",
    "bonus_amount",
    "incentive_amount",
    "other_dues",
    "advance_recovery",
    "loan_recovery",
    "asset_recovery",
    "other_recoveries",
)


def _check_non_negative(obj: Any, fields: tuple[str, ...]) -> list[dict[str, Any]]:
    violations = []
    for name in fields:
        value = getattr(obj, name)
        if value < 0:
            violations.append({"field": name, "issue": f"Must not be negative, got {value:,.2f}."})
    return violations


def _raise_if_any(violations: list[dict[str, Any]], kind: str, employee_id: str) -> None:
    if violations:
        # Log only the employee id and count, no salary values
        logger.info(
            "%s validation failed: %d violation(s) employee_id=%s",
            kind, len(violations), employee_id,
        )
        raise ValueError(json.dumps(violations))


def validate_salary_slip_request(inp: SalarySlipInput) -> None:
    """
    Raises:
        ValueError: JSON list of {"field", "issue"} dicts.
    """
    violations = _check_non_negative(inp, _SLIP_NON_NEGATIVE)

    if inp.lop_days > inp.working_days:
        violations.append({
            "field": "lop_days",
            "issue": f"LOP days ({inp.lop_days:g}) exceed working days ({inp.working_days:g}).",
        })
    if inp.paid_days is not None and inp.paid_days > inp.working_days:
        violations.append({
            "field": "paid_days",
            "issue": f"Paid days ({inp.paid_days:g}) exceed working days ({inp.working_days:g}).",
        })
    if inp.paid_days is not None and inp.paid_days < 0:
        violations.append({"field": "paid_days", "issue": "Must not be negative."})

    _raise_if_any(violations, "Salary slip", inp.employee_id)


def validate_settlement_request(inp: SettlementInput) -> None:
    """
    Raises:
        ValueError: JSON list of {"field", "issue"} dicts.
    """
    violations = _check_non_negative(inp, _SETTLEMENT_NON_NEGATIVE)

    if inp.gratuity_amount is not None and inp.gratuity_amount < 0:
        violations.append({"field": "gratuity_amount", "issue": "Override must not be negative."})

    if inp.basic_salary > inp.gross_salary:
        violations.append({
            "field": "basic_salary",
            "issue": (
                f"Basic salary ₹{inp.basic_salary:,.0f} exceeds gross salary "
                f"₹{inp.gross_salary:,.0f}."
            ),
        })

    if inp.last_working_day > inp.date_of_leaving:
        violations.append({
            "field": "last_working_day",
            "issue": "Last working day is after the date of leaving.",
        })

    if inp.relieving_date is not None and inp.relieving_date < inp.last_working_day:
        violations.append({
            "field": "relieving_date",
            "issue": "Relieving date is before the last working day.",
        })

    _raise_if_any(violations, "Settlement", inp.employee_id)
