"""
Payroll HTTP routes — tax, TDS, statutory deductions, salary slips,
                      full & final settlements and the TDS report.

Stateless calculators:
  POST /api/tax/calculate          POST /api/tax/compare
  POST /api/tax/hra-exemption      POST /api/tds/monthly
  POST /api/statutory              POST /api/salary-slips/preview
  POST /api/settlements/preview

Persisted:
  POST /api/salary-slips
  POST /api/settlements            GET  /api/settlements/{settlement_id}
  POST /api/settlements/{settlement_id}/approve
  POST /api/settlements/{settlement_id}/pay
  GET  /api/tds-report

Engine errors (InvalidDateError, InvalidInputError) propagate to the global
ValueError handlers in main.py; business-rule violations are answered here.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from payroll import store
from payroll.calculators.salary_slip import calculate_salary_slip
from payroll.calculators.schemas import (
    ErrorBody,
    ErrorDetail,
    ErrorResponse,
    HRAExemptionInputs,
    MonthlyTDSRequest,
    SalarySlipInput,
    SettlementInput,
    SettlementPaymentRequest,
    StatutoryRequest,
    TaxCalculationRequest,
)
from payroll.calculators.settlement import make_flat_settlement_tds, preview_settlement
from payroll.calculators.statutory import (
    calculate_esic_contributions,
    calculate_pf_contributions,
    calculate_professional_tax,
    calculate_provident_fund,
    professional_tax_slabs_for_state,
)
from payroll.calculators.tax_engine import calculate_hra_exemption, calculate_tax, compare_regimes
from payroll.calculators.tds import calculate_monthly_tds, get_financial_year
from payroll.calculators.tds_report import build_tds_report, month_range_filter, summarize_tds_report
from payroll.calculators.validator import validate_salary_slip_request, validate_settlement_request
from payroll.config import settings
from payroll.database import get_db

router = APIRouter(prefix="/api", tags=["payroll"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_validation_error_response(violations_json: str) -> JSONResponse:
    """Parse JSON-encoded violations and return standard 422 error envelope."""
    try:
        violations: list[dict] = json.loads(violations_json)
    except (json.JSONDecodeError, ValueError):
        violations = [{"field": None, "issue": violations_json}]
    details = [ErrorDetail(field=v.get("field"), issue=v["issue"]) for v in violations]
    body = ErrorResponse(
        error=ErrorBody(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details=details,
        )
    )
    return JSONResponse(status_code=422, content=body.model_dump())


def _configured_pt_slabs():
    return professional_tax_slabs_for_state(settings.professional_tax_state)


def _configured_settlement_tds():
    return make_flat_settlement_tds(
        threshold=settings.settlement_tds_threshold,
        rate=settings.settlement_tds_rate,
    )


def _with_configured_working_days(body: SalarySlipInput) -> SalarySlipInput:
    """Apply settings.default_working_days when the request does not state working_days."""
    if "working_days" in body.model_fields_set:
        return body
    return body.model_copy(update={"working_days": settings.default_working_days})


# ---------------------------------------------------------------------------
# Tax & TDS calculators
# ---------------------------------------------------------------------------

@router.post("/tax/calculate")
async def tax_calculate(body: TaxCalculationRequest) -> JSONResponse:
    result = calculate_tax(
        body.annual_gross_income,
        regime=body.regime,
        hra_exemption=body.hra_exemption,
        deductions=body.deductions,
    )
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/tax/compare")
async def tax_compare(body: TaxCalculationRequest) -> JSONResponse:
    """Both regimes side by side. body.regime is ignored."""
    comparison = compare_regimes(
        body.annual_gross_income,
        hra_exemption=body.hra_exemption,
        deductions=body.deductions,
    )
    logger.info(
        "Regime comparison recommended=%s",
        comparison.recommended_regime.value,
    )
    return JSONResponse(status_code=200, content=comparison.model_dump(mode="json"))


@router.post("/tax/hra-exemption")
async def hra_exemption(body: HRAExemptionInputs) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={"hra_exemption": calculate_hra_exemption(body)},
    )


@router.post("/tds/monthly")
async def monthly_tds(body: MonthlyTDSRequest) -> JSONResponse:
    tds = calculate_monthly_tds(
        body.monthly_gross,
        regime=body.regime,
        month_number=body.month_number,
        previous_tds=body.previous_tds,
        hra_exemption=body.hra_exemption,
        deductions=body.deductions,
    )
    return JSONResponse(
        status_code=200,
        content={
            "monthly_tds": tds,
            "financial_year": get_financial_year(body.as_of) if body.as_of else None,
        },
    )


@router.post("/statutory")
async def statutory(body: StatutoryRequest) -> JSONResponse:
    """PF, ESIC and professional tax for one month. state falls back to settings."""
    state = body.state or settings.professional_tax_state
    slabs = professional_tax_slabs_for_state(state)
    pf = calculate_pf_contributions(body.basic_salary)
    esic = calculate_esic_contributions(body.gross_salary)
    return JSONResponse(
        status_code=200,
        content={
            "provident_fund": calculate_provident_fund(body.basic_salary),
            "esic": esic.employee_esic,
            "professional_tax": calculate_professional_tax(body.gross_salary, slabs),
            "state": state,
            "pf_contributions": pf.model_dump(),
            "esic_contributions": esic.model_dump(),
        },
    )


# ---------------------------------------------------------------------------
# Salary slips
# ---------------------------------------------------------------------------

@router.post("/salary-slips/preview")
async def salary_slip_preview(body: SalarySlipInput) -> JSONResponse:
    """Compute a slip from the YTD figures in the body. Nothing is stored."""
    body = _with_configured_working_days(body)
    try:
        validate_salary_slip_request(body)
    except ValueError as exc:
        return _make_validation_error_response(str(exc))

    slip = calculate_salary_slip(body, professional_tax_slabs=_configured_pt_slabs())
    return JSONResponse(status_code=200, content=slip.model_dump(mode="json"))


@router.post("/salary-slips")
async def create_salary_slip(
    body: SalarySlipInput,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Compute and store a slip. YTD gross and TDS are read from the employee's
    earlier stored slips of the same financial year; any YTD values in the
    body are replaced.
    """
    body = _with_configured_working_days(body)
    try:
        validate_salary_slip_request(body)
    except ValueError as exc:
        return _make_validation_error_response(str(exc))

    existing = await store.get_salary_slip(db, body.employee_id, body.salary_year, body.salary_month)
    if existing is not None:
        raise HTTPException(
            status_code=409,
            detail=(
                f"Salary slip for employee '{body.employee_id}' "
                f"{body.salary_year}-{body.salary_month:02d} already exists"
            ),
        )

    # First pass only to learn the slip's financial year and FY month
    draft = calculate_salary_slip(body, professional_tax_slabs=_configured_pt_slabs())
    ytd_gross, ytd_tds = await store.get_ytd_totals(
        db, body.employee_id, draft.financial_year, draft.financial_year_month
    )
    slip_input = body.model_copy(update={"ytd_gross_before": ytd_gross, "ytd_tds_before": ytd_tds})
    slip = calculate_salary_slip(slip_input, professional_tax_slabs=_configured_pt_slabs())

    slip_id = await store.save_salary_slip(db, slip)
    logger.info("Salary slip created slip_id=%s employee_id=%s", slip_id, body.employee_id)
    return JSONResponse(status_code=201, content={"slip_id": slip_id, **slip.model_dump(mode="json")})


# ---------------------------------------------------------------------------
# Full & final settlements
# ---------------------------------------------------------------------------

@router.post("/settlements/preview")
async def settlement_preview(body: SettlementInput) -> JSONResponse:
    try:
        validate_settlement_request(body)
    except ValueError as exc:
        return _make_validation_error_response(str(exc))

    result = preview_settlement(body, tds_rule=_configured_settlement_tds())
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/settlements")
async def create_settlement(
    body: SettlementInput,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    try:
        validate_settlement_request(body)
    except ValueError as exc:
        return _make_validation_error_response(str(exc))

    result = await store.create_settlement(db, body, tds_rule=_configured_settlement_tds())
    return JSONResponse(status_code=201, content=result.model_dump(mode="json"))


@router.get("/settlements/{settlement_id}")
async def get_settlement(
    settlement_id: str,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await store.get_settlement(db, settlement_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Settlement '{settlement_id}' not found")
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/settlements/{settlement_id}/approve")
async def approve_settlement(
    settlement_id: str,
    approved_by: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    try:
        result = await store.approve_settlement(db, settlement_id, approved_by=approved_by)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if result is None:
        raise HTTPException(status_code=404, detail=f"Settlement '{settlement_id}' not found")
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.post("/settlements/{settlement_id}/pay")
async def pay_settlement(
    settlement_id: str,
    body: SettlementPaymentRequest,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    try:
        result = await store.mark_settlement_paid(db, settlement_id, body)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if result is None:
        raise HTTPException(status_code=404, detail=f"Settlement '{settlement_id}' not found")
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# GET /api/tds-report
# ---------------------------------------------------------------------------

@router.get("/tds-report")
async def tds_report(
    start: Optional[str] = Query(default=None, description="YYYY-MM, inclusive"),
    end: Optional[str] = Query(default=None, description="YYYY-MM, inclusive"),
    employee_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Per-employee TDS summaries from stored salary slips and settlements."""
    in_range = month_range_filter(start, end)
    entries = await store.list_tds_entries(db, employee_id=employee_id)
    summaries = build_tds_report(e for e in entries if in_range(e))
    totals = summarize_tds_report(summaries)
    return JSONResponse(
        status_code=200,
        content={
            "summaries": [s.model_dump(mode="json") for s in summaries],
            "totals": totals.model_dump(mode="json"),
        },
    )
