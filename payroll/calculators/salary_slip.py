"""
salary_slip.py — Monthly salary slip calculator.

Prorates the monthly salary structure for loss-of-pay days, applies statutory
deductions (PF, professional tax, ESIC) and the monthly TDS projection, and
reports the employer-side contributions and year-to-date figures.

Pure function. YTD figures for earlier months are supplied by the caller
(store.get_ytd_totals() for the persisted path).
"""
from __future__ import annotations

import datetime
import logging

from payroll.calculators.errors import InvalidInputError
from payroll.calculators.rounding import round_rupee
from payroll.calculators.schemas import SalarySlipInput, SalarySlipResult
from payroll.calculators.statutory import (
    MAHARASHTRA_PT_SLABS,
    ProfessionalTaxSlabs,
    calculate_esic_contributions,
    calculate_pf_contributions,
    calculate_professional_tax,
    calculate_provident_fund,
)
from payroll.calculators.tds import (
    MONTHS_IN_YEAR,
    calculate_monthly_tds,
    get_financial_year,
    get_financial_year_month,
    project_annual_tax,
)

logger = logging.getLogger(__name__)


def _proration_multiplier(inp: SalarySlipInput) -> tuple[float, float]:
    """(paid_days, paid_days / working_days)."""
    if not inp.working_days > 0:
        raise InvalidInputError(f"working_days must be positive, got {inp.working_days}")
    paid_days = inp.paid_days if inp.paid_days is not None else inp.working_days - inp.lop_days
    return paid_days, paid_days / inp.working_days


def calculate_salary_slip(
    inp: SalarySlipInput,
    professional_tax_slabs: ProfessionalTaxSlabs = MAHARASHTRA_PT_SLABS,
) -> SalarySlipResult:
    """
    Compute one month's salary slip.

    Earnings:   basic, HRA and allowances × paid_days / working_days; bonus and
                overtime are added unprorated.
    Deductions: employee PF on prorated basic (no ceiling), professional tax and
                ESIC on gross, TDS from the projector for the slip's FY month
                with ytd_tds_before as tax already withheld, loan repayment, other.
    Employer:   PF (net of EPS) and EPS capped at ₹15,000 basic, ESIC 3.25%.

    Raises:
        InvalidInputError: working_days <= 0.
    """
    paid_days, multiplier = _proration_multiplier(inp)

    slip_date = datetime.date(inp.salary_year, inp.salary_month, 1)
    financial_year = get_financial_year(slip_date)
    fy_month = get_financial_year_month(slip_date)

    # 1. Earnings
    basic = round_rupee(inp.basic_salary * multiplier)
    hra = round_rupee(inp.hra * multiplier)
    special = round_rupee(inp.special_allowance * multiplier)
    transport = round_rupee(inp.transport_allowance * multiplier)
    medical = round_rupee(inp.medical_allowance * multiplier)
    other_allowances = round_rupee(inp.other_allowances * multiplier)
    bonus = round_rupee(inp.bonus)
    overtime = round_rupee(inp.overtime)

    gross = basic + hra + special + transport + medical + other_allowances + bonus + overtime

    # 2. Statutory deductions
    provident_fund = calculate_provident_fund(basic)
    professional_tax = calculate_professional_tax(gross, professional_tax_slabs)
    esic = calculate_esic_contributions(gross)

    # 3. TDS
    tds = calculate_monthly_tds(
        gross,
        regime=inp.tax_regime,
        month_number=fy_month,
        previous_tds=inp.ytd_tds_before,
        hra_exemption=inp.hra_exemption,
        deductions=inp.deductions,
    )
    tax_projection = project_annual_tax(
        gross,
        regime=inp.tax_regime,
        month_number=fy_month,
        hra_exemption=inp.hra_exemption,
        deductions=inp.deductions,
    )

    loan_repayment = round_rupee(inp.loan_repayment)
    other_deductions = round_rupee(inp.other_deductions)
    total_deductions = (
        provident_fund + professional_tax + esic.employee_esic + tds
        + loan_repayment + other_deductions
    )
    net_salary = gross - total_deductions

    # 4. Employer side
    pf = calculate_pf_contributions(basic)
    ctc = gross + pf.employer_pf + pf.eps + esic.employer_esic

    # 5. Year to date
    ytd_gross = round_rupee(inp.ytd_gross_before + gross)
    ytd_tds = round_rupee(inp.ytd_tds_before + tds)
    projected_annual_income = round_rupee(ytd_gross + gross * (MONTHS_IN_YEAR - fy_month))

    logger.debug(
        "Salary slip computed employee_id=%s period=%d-%02d fy_month=%d",
        inp.employee_id, inp.salary_year, inp.salary_month, fy_month,
    )

    return SalarySlipResult(
        employee_id=inp.employee_id,
        employee_name=inp.employee_name,
        salary_month=inp.salary_month,
        salary_year=inp.salary_year,
        financial_year=financial_year,
        financial_year_month=fy_month,
        basic_salary=basic,
        hra=hra,
        special_allowance=special,
        transport_allowance=transport,
        medical_allowance=medical,
        other_allowances=other_allowances,
        bonus=bonus,
        overtime=overtime,
        gross_salary=gross,
        provident_fund=provident_fund,
        professional_tax=professional_tax,
        esic=esic.employee_esic,
        tds=tds,
        loan_repayment=loan_repayment,
        other_deductions=other_deductions,
        total_deductions=total_deductions,
        net_salary=net_salary,
        employer_pf=pf.employer_pf,
        eps=pf.eps,
        employer_esic=esic.employer_esic,
        ctc=ctc,
        ytd_gross=ytd_gross,
        ytd_tds=ytd_tds,
        projected_annual_income=projected_annual_income,
        annual_tax_liability=tax_projection.total_tax,
        working_days=inp.working_days,
        paid_days=paid_days,
        lop_days=inp.lop_days,
        tax_regime=inp.tax_regime,
        tax_projection=tax_projection,
    )
