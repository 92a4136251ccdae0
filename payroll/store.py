"""
store.py — Data access facade for the payroll engine.

All routes use these functions; no route touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - flush(), never commit(): the get_db() dependency owns the transaction
  - Logs only employee / settlement ids and statuses, never salary figures
  - Returns domain Pydantic objects (not ORM instances) so callers are persistence-agnostic
"""
import datetime
import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll.calculators.schemas import (
    SalarySlipResult,
    SettlementInput,
    SettlementPaymentRequest,
    SettlementResult,
    SettlementStatus,
    TDSReportEntry,
    TDSSource,
)
from payroll.calculators.settlement import (
    SettlementTDSRule,
    flat_settlement_tds,
    preview_settlement,
)
from payroll.calculators.tds import get_financial_year_month
from payroll.models.salary_slip import SalarySlipORM
from payroll.models.settlement import SettlementORM

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Salary slip operations
# ---------------------------------------------------------------------------

async def get_salary_slip(
    db: AsyncSession,
    employee_id: str,
    salary_year: int,
    salary_month: int,
) -> Optional[SalarySlipResult]:
    """Stored slip for one employee and calendar month, or None."""
    result = await db.execute(
        select(SalarySlipORM).where(
            SalarySlipORM.employee_id == employee_id,
            SalarySlipORM.salary_year == salary_year,
            SalarySlipORM.salary_month == salary_month,
        )
    )
    orm = result.scalar_one_or_none()
    if orm is None:
        return None
    return SalarySlipResult.model_validate(orm.slip_data)


async def save_salary_slip(db: AsyncSession, slip: SalarySlipResult) -> str:
    """
    Persist a computed salary slip. Returns the new slip id.
    One slip per employee per month (unique constraint): callers check
    get_salary_slip() first.
    """
    slip_id = str(uuid.uuid4())
    orm = SalarySlipORM(
        id=slip_id,
        employee_id=slip.employee_id,
        employee_name=slip.employee_name or "",
        salary_month=slip.salary_month,
        salary_year=slip.salary_year,
        financial_year=slip.financial_year,
        gross_salary=slip.gross_salary,
        tds=slip.tds,
        slip_data=slip.model_dump(mode="json"),
    )
    db.add(orm)
    await db.flush()
    logger.info(
        "Saved salary slip slip_id=%s employee_id=%s period=%d-%02d",
        slip_id, slip.employee_id, slip.salary_year, slip.salary_month,
    )
    return slip_id


async def get_ytd_totals(
    db: AsyncSession,
    employee_id: str,
    financial_year: str,
    before_fy_month: int,
) -> tuple[float, float]:
    """
    (gross, TDS) summed over the employee's stored slips in financial_year whose
    financial-year month is earlier than before_fy_month (April = 1).
    """
    result = await db.execute(
        select(
            SalarySlipORM.salary_year,
            SalarySlipORM.salary_month,
            SalarySlipORM.gross_salary,
            SalarySlipORM.tds,
        ).where(
            SalarySlipORM.employee_id == employee_id,
            SalarySlipORM.financial_year == financial_year,
        )
    )
    ytd_gross = 0.0
    ytd_tds = 0.0
    for year, month, gross, tds in result.all():
        if get_financial_year_month(datetime.date(year, month, 1)) < before_fy_month:
            ytd_gross += gross
            ytd_tds += tds
    return ytd_gross, ytd_tds


# ---------------------------------------------------------------------------
# Settlement operations
# ---------------------------------------------------------------------------

async def create_settlement(
    db: AsyncSession,
    settlement: SettlementInput,
    tds_rule: SettlementTDSRule = flat_settlement_tds,
) -> SettlementResult:
    """
    Compute and persist a draft settlement.

    Runs exactly the same computation as preview_settlement(), so every computed
    field of the returned result equals the preview for the same input.
    """
    computed = preview_settlement(settlement, tds_rule=tds_rule)
    settlement_id = str(uuid.uuid4())
    result = computed.model_copy(update={"settlement_id": settlement_id})

    orm = SettlementORM(
        id=settlement_id,
        employee_id=result.employee_id,
        employee_name=result.employee_name or "",
        status=SettlementStatus.draft.value,
        settlement_month=result.settlement_month,
        settlement_year=result.settlement_year,
        last_working_day=result.last_working_day,
        gross_settlement=result.gross_settlement,
        tax_deduction=result.tax_deduction,
        settlement_data=result.model_dump(mode="json"),
    )
    db.add(orm)
    await db.flush()
    logger.info(
        "Created settlement settlement_id=%s employee_id=%s status=draft",
        settlement_id, result.employee_id,
    )
    return result


async def _get_settlement_orm(db: AsyncSession, settlement_id: str) -> Optional[SettlementORM]:
    result = await db.execute(
        select(SettlementORM).where(SettlementORM.id == settlement_id)
    )
    return result.scalar_one_or_none()


def _to_result(orm: SettlementORM) -> SettlementResult:
    data = dict(orm.settlement_data)
    data["settlement_id"] = orm.id
    data["status"] = orm.status
    return SettlementResult.model_validate(data)


async def get_settlement(
    db: AsyncSession,
    settlement_id: str,
) -> Optional[SettlementResult]:
    """Returns None if no settlement found (caller raises 404)."""
    orm = await _get_settlement_orm(db, settlement_id)
    if orm is None:
        return None
    return _to_result(orm)


async def _transition(
    db: AsyncSession,
    settlement_id: str,
    expected: SettlementStatus,
    target: SettlementStatus,
    **fields,
) -> Optional[SettlementResult]:
    orm = await _get_settlement_orm(db, settlement_id)
    if orm is None:
        return None
    if orm.status != expected.value:
        raise ValueError(
            f"Settlement '{settlement_id}' is '{orm.status}'; "
            f"only '{expected.value}' settlements can become '{target.value}'"
        )
    orm.status = target.value
    for name, value in fields.items():
        setattr(orm, name, value)
    # JSON blob is replaced, not mutated, so the change is tracked
    orm.settlement_data = {**orm.settlement_data, "status": target.value}
    await db.flush()
    logger.info(
        "Settlement status changed settlement_id=%s %s -> %s",
        settlement_id, expected.value, target.value,
    )
    return _to_result(orm)


async def approve_settlement(
    db: AsyncSession,
    settlement_id: str,
    approved_by: Optional[str] = None,
) -> Optional[SettlementResult]:
    """
    draft → approved.

    Returns None for an unknown id.
    Raises:
        ValueError: settlement is not a draft.
    """
    return await _transition(
        db,
        settlement_id,
        SettlementStatus.draft,
        SettlementStatus.approved,
        approved_by=approved_by,
        approved_at=datetime.datetime.now(datetime.timezone.utc),
    )


async def mark_settlement_paid(
    db: AsyncSession,
    settlement_id: str,
    payment: SettlementPaymentRequest,
) -> Optional[SettlementResult]:
    """
    approved → paid, recording how and when the money went out.

    Returns None for an unknown id.
    Raises:
        ValueError: settlement is not approved.
    """
    return await _transition(
        db,
        settlement_id,
        SettlementStatus.approved,
        SettlementStatus.paid,
        payment_mode=payment.payment_mode,
        payment_reference=payment.payment_reference,
        payment_date=payment.payment_date,
    )


# ---------------------------------------------------------------------------
# TDS report source rows
# ---------------------------------------------------------------------------

async def list_tds_entries(
    db: AsyncSession,
    employee_id: Optional[str] = None,
) -> list[TDSReportEntry]:
    """
    Every stored deduction with TDS > 0: salary slips (dated the 1st of their
    month) and settlements of any status (dated the last working day).
    """
    slip_query = select(SalarySlipORM).where(SalarySlipORM.tds > 0)
    settlement_query = select(SettlementORM).where(SettlementORM.tax_deduction > 0)
    if employee_id:
        slip_query = slip_query.where(SalarySlipORM.employee_id == employee_id)
        settlement_query = settlement_query.where(SettlementORM.employee_id == employee_id)

    entries: list[TDSReportEntry] = []

    slips = await db.execute(slip_query)
    for slip in slips.scalars().all():
        entries.append(
            TDSReportEntry(
                employee_id=slip.employee_id,
                employee_name=slip.employee_name or "",
                source_type=TDSSource.salary_slip,
                source_id=str(slip.id),
                month=slip.salary_month,
                year=slip.salary_year,
                date=datetime.date(slip.salary_year, slip.salary_month, 1),
                gross_amount=slip.gross_salary,
                tds_amount=slip.tds,
            )
        )

    settlements = await db.execute(settlement_query)
    for row in settlements.scalars().all():
        entries.append(
            TDSReportEntry(
                employee_id=row.employee_id,
                employee_name=row.employee_name or "",
                source_type=TDSSource.settlement,
                source_id=str(row.id),
                month=row.settlement_month,
                year=row.settlement_year,
                date=row.last_working_day,
                gross_amount=row.gross_settlement,
                tds_amount=row.tax_deduction,
                remarks="Full & final settlement",
            )
        )

    logger.info("Listed TDS entries count=%d employee_id=%s", len(entries), employee_id)
    return entries
