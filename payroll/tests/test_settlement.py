"""
Gratuity and full & final settlement tests.

Expected figures for the demo employees are worked in demo_employees.py.
"""
from __future__ import annotations

import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from payroll import store
from payroll.calculators.errors import InvalidDateError
from payroll.calculators.schemas import SettlementInput, SettlementStatus
from payroll.calculators.settlement import (
    calculate_gratuity,
    calculate_gratuity_details,
    flat_settlement_tds,
    make_flat_settlement_tds,
    preview_settlement,
)
from payroll.tests.demo_employees import DEMO_SETTLEMENTS


def _settlement(**overrides) -> SettlementInput:
    data = dict(
        employee_id="EMP900",
        basic_salary=0,
        gross_salary=0,
        date_of_joining="2023-01-01",
        date_of_leaving="2024-01-10",
        last_working_day="2024-01-10",
    )
    data.update(overrides)
    return SettlementInput(**data)


# ===========================================================================
# Gratuity
# ===========================================================================

def test_gratuity_six_completed_years() -> None:
    # 40000 × 6 × 15 / 26 = 138461.54 → 138462
    assert calculate_gratuity(40_000, datetime.date(2018, 1, 1), datetime.date(2024, 1, 1)) == 138_462


def test_gratuity_exactly_five_years_is_eligible() -> None:
    details = calculate_gratuity_details(40_000, "2019-01-01", "2024-01-01")
    assert details.eligible is True
    assert details.completed_years == 5
    assert details.gratuity_amount == 115_385      # 40000 × 5 × 15/26 = 115384.62


def test_gratuity_four_years_eleven_months_is_zero() -> None:
    details = calculate_gratuity_details(40_000, "2019-01-01", "2023-12-01")
    assert details.eligible is False
    assert details.completed_years == 4
    assert details.gratuity_amount == 0


def test_gratuity_only_counts_completed_years() -> None:
    # 6 years 6 months → still 6 completed years
    details = calculate_gratuity_details(40_000, "2018-01-01", "2024-07-01")
    assert details.completed_years == 6
    assert details.years_of_service == pytest.approx(6.5, abs=0.01)
    assert details.gratuity_amount == 138_462


def test_gratuity_capped_at_20_lakh() -> None:
    assert calculate_gratuity(1_000_000, "2000-01-01", "2024-01-01") == 2_000_000


def test_gratuity_leaving_before_joining_raises() -> None:
    with pytest.raises(InvalidDateError) as exc_info:
        calculate_gratuity(40_000, "2024-01-01", "2023-01-01")
    assert exc_info.value.field == "date_of_leaving"


@pytest.mark.parametrize("bad", ["2024-13-01", "01/01/2024", "not a date"])
def test_gratuity_malformed_date_raises(bad: str) -> None:
    with pytest.raises(InvalidDateError):
        calculate_gratuity(40_000, bad, "2024-01-01")


# ===========================================================================
# Settlement TDS rule
# ===========================================================================

def test_flat_settlement_tds_threshold() -> None:
    assert flat_settlement_tds(50_000) == 0
    assert flat_settlement_tds(50_001) == pytest.approx(5_000.1)
    assert flat_settlement_tds(-20_000) == 0


def test_configured_settlement_tds_rule() -> None:
    rule = make_flat_settlement_tds(threshold=10_000, rate=0.2)
    assert rule(10_000) == 0
    assert rule(20_000) == 4_000


# ===========================================================================
# Full & final settlement
# ===========================================================================

@pytest.mark.parametrize("name", ["kavya", "arjun"])
def test_demo_settlements(name: str) -> None:
    data = DEMO_SETTLEMENTS[name]
    result = preview_settlement(SettlementInput(**data["settlement"]))

    for field_name, expected in data["expected"].items():
        actual = getattr(result, field_name)
        if isinstance(expected, str):
            assert actual == expected, f"{name}.{field_name}"
        else:
            assert actual == pytest.approx(expected, abs=0.01), (
                f"{name}.{field_name}: expected {expected}, got {actual}"
            )
    assert result.status is SettlementStatus.draft
    assert result.settlement_id is None


def test_recoveries_exceeding_dues_give_negative_settlement() -> None:
    result = preview_settlement(_settlement(bonus_amount=100_000, loan_recovery=120_000))
    assert result.total_dues == 100_000
    assert result.total_recoveries == 120_000
    assert result.gross_settlement == -20_000
    assert result.tax_deduction == 0
    assert result.net_settlement == -20_000


def test_gratuity_override_zero_is_honoured() -> None:
    data = dict(DEMO_SETTLEMENTS["arjun"]["settlement"], gratuity_amount=0)
    result = preview_settlement(SettlementInput(**data))
    assert result.gratuity_amount == 0
    assert result.total_dues == 93_000


def test_gratuity_override_value_is_honoured() -> None:
    data = dict(DEMO_SETTLEMENTS["kavya"]["settlement"], gratuity_amount=12_345)
    result = preview_settlement(SettlementInput(**data))
    assert result.gratuity_amount == 12_345


def test_served_more_than_notice_recovers_nothing() -> None:
    result = preview_settlement(_settlement(gross_salary=30_000, notice_period_days=30, notice_period_served=45))
    assert result.notice_period_shortfall == 0
    assert result.notice_period_recovery == 0


def test_custom_tds_rule_is_used() -> None:
    data = DEMO_SETTLEMENTS["arjun"]["settlement"]
    result = preview_settlement(SettlementInput(**data), tds_rule=lambda gross: 0.0)
    assert result.tax_deduction == 0
    assert result.net_settlement == result.gross_settlement


def test_settlement_leaving_before_joining_raises() -> None:
    with pytest.raises(InvalidDateError):
        preview_settlement(_settlement(date_of_leaving="2022-06-01", last_working_day="2022-06-01"))


def test_settlement_last_working_day_before_joining_raises() -> None:
    with pytest.raises(InvalidDateError) as exc_info:
        preview_settlement(_settlement(last_working_day="2022-12-31"))
    assert exc_info.value.field == "last_working_day"


# ===========================================================================
# Preview / create symmetry
# ===========================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["kavya", "arjun"])
async def test_create_settlement_matches_preview(name: str) -> None:
    settlement = SettlementInput(**DEMO_SETTLEMENTS[name]["settlement"])
    db = MagicMock()
    db.add = MagicMock()
    db.flush = AsyncMock()

    preview = preview_settlement(settlement)
    created = await store.create_settlement(db, settlement)

    assert created.settlement_id
    assert created.model_dump(exclude={"settlement_id"}) == preview.model_dump(exclude={"settlement_id"})

    db.add.assert_called_once()
    orm = db.add.call_args[0][0]
    assert orm.id == created.settlement_id
    assert orm.status == "draft"
    assert orm.gross_settlement == preview.gross_settlement
    assert orm.tax_deduction == preview.tax_deduction
    db.flush.assert_awaited_once()
