"""
schemas.py — Payroll calculator Pydantic v2 data contracts (FY 2024-25).

Defines:
  - TaxRegime, SettlementStatus, TDSSource enums
  - DeductionInputs, HRAExemptionInputs      (tax calculator inputs)
  - TaxCalculationResult, RegimeComparison    (tax calculator outputs)
  - PFContribution, ESICContribution          (statutory breakdowns)
  - SalarySlipInput, SalarySlipResult         (monthly slip)
  - SettlementInput, GratuityResult, SettlementResult  (full & final)
  - TDSReportEntry, TDSReportSummary, TDSReportTotals  (TDS reporting)
  - HTTP request bodies and the error envelope

Every engine model is frozen: a value is built once per calculation and never mutated.
All monetary fields are in INR. Salary fields are MONTHLY unless the name says annual.
"""
from __future__ import annotations

import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaxRegime(str, Enum):
    old = "old"
    new = "new"


class SettlementStatus(str, Enum):
    draft = "draft"
    approved = "approved"
    paid = "paid"


class TDSSource(str, Enum):
    salary_slip = "salary_slip"
    settlement = "settlement"


# ---------------------------------------------------------------------------
# Tax calculator inputs
# ---------------------------------------------------------------------------

class DeductionInputs(BaseModel):
    """
    Old-regime Chapter VI-A style deductions, annual, RAW (before caps).

    Every field defaults to 0 so "not supplied" and "zero" are the same value.
    Caps are applied by the tax engine, not here: 80C 1.5L, 80D 25K,
    80CCD(1B) 50K, home loan interest 2L, other uncapped.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    section_80c: float = 0            # PPF, ELSS, LIC ...
    section_80d: float = 0            # Medical insurance
    section_80ccd_1b: float = 0       # Additional NPS
    home_loan_interest: float = 0     # Section 24(b), old regime only
    other_deductions: float = 0


class HRAExemptionInputs(BaseModel):
    """Inputs for the Section 10(13A) exemption. Amounts must share a period (monthly or annual)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    hra: float
    basic_salary: float
    rent_paid: float
    is_metro_city: bool = False      # Mumbai, Delhi, Kolkata, Chennai


# ---------------------------------------------------------------------------
# Tax calculator outputs
# ---------------------------------------------------------------------------

class TaxCalculationResult(BaseModel):
    """
    Annual tax computation for one regime.

    Computation sequence:
      1. total_deductions = standard + hra + capped deductions (old) / standard only (new)
      2. taxable_income = max(0, gross_income - total_deductions)
      3. tax_on_income = rounded slab tax, minus 87A rebate when eligible
      4. surcharge on tax_on_income, keyed on taxable_income
      5. health_and_education_cess = 4% of (tax_on_income + surcharge)
      6. total_tax = tax_on_income + surcharge + cess; monthly_tds = total_tax / 12
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    gross_income: float
    standard_deduction: float
    hra_exemption: float
    section_80c_deduction: float
    section_80d_deduction: float
    other_deductions: float          # 80CCD(1B) + home loan interest + other (old regime)
    total_deductions: float
    taxable_income: float
    tax_on_income: float             # After 87A rebate
    surcharge: float
    health_and_education_cess: float
    total_tax: float
    monthly_tds: float               # Flat annual / 12 estimate
    regime: TaxRegime


class RegimeComparison(BaseModel):
    """Both regimes side by side. Ties recommend the new regime."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    old_regime: TaxCalculationResult
    new_regime: TaxCalculationResult
    recommended_regime: TaxRegime
    savings: float                   # abs(old.total_tax - new.total_tax)


# ---------------------------------------------------------------------------
# Statutory contribution breakdowns
# ---------------------------------------------------------------------------

class PFContribution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    basic_for_pf: float              # Basic capped at the PF wage ceiling
    basic_for_eps: float             # Basic capped at the EPS wage ceiling
    employee_pf: float
    eps: float
    employer_pf: float               # Employer share net of EPS
    total_pf: float


class ESICContribution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    applicable: bool
    gross_for_esic: float
    employee_esic: float
    employer_esic: float
    total_esic: float


# ---------------------------------------------------------------------------
# Salary slip
# ---------------------------------------------------------------------------

class SalarySlipInput(BaseModel):
    """
    One month of pay for one employee.

    Earnings are the full-month structure; the calculator prorates them by
    paid_days / working_days. bonus and overtime are paid as-is.
    ytd_gross_before / ytd_tds_before cover earlier months of the SAME financial year.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_id: str
    employee_name: Optional[str] = None
    salary_month: int = Field(..., ge=1, le=12, description="Calendar month, 1 = January.")
    salary_year: int

    basic_salary: float = 0
    hra: float = 0
    special_allowance: float = 0
    transport_allowance: float = 0
    medical_allowance: float = 0
    other_allowances: float = 0
    bonus: float = 0
    overtime: float = 0

    working_days: float = 26
    paid_days: Optional[float] = None    # Defaults to working_days - lop_days
    lop_days: float = 0

    tax_regime: TaxRegime = TaxRegime.new
    hra_exemption: float = 0             # Monthly; annualised by the TDS projector
    deductions: DeductionInputs = Field(default_factory=DeductionInputs)

    loan_repayment: float = 0
    other_deductions: float = 0

    ytd_gross_before: float = 0
    ytd_tds_before: float = 0


class SalarySlipResult(BaseModel):
    """Computed slip. Every money field is rounded to the rupee."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_id: str
    employee_name: Optional[str] = None
    salary_month: int
    salary_year: int
    financial_year: str
    financial_year_month: int

    basic_salary: float
    hra: float
    special_allowance: float
    transport_allowance: float
    medical_allowance: float
    other_allowances: float
    bonus: float
    overtime: float
    gross_salary: float

    provident_fund: float
    professional_tax: float
    esic: float
    tds: float
    loan_repayment: float
    other_deductions: float
    total_deductions: float
    net_salary: float

    employer_pf: float
    eps: float
    employer_esic: float
    ctc: float

    ytd_gross: float
    ytd_tds: float
    projected_annual_income: float
    annual_tax_liability: float

    working_days: float
    paid_days: float
    lop_days: float
    tax_regime: TaxRegime
    tax_projection: TaxCalculationResult


# ---------------------------------------------------------------------------
# Full & final settlement
# ---------------------------------------------------------------------------

class SettlementInput(BaseModel):
    """
    Everything needed to settle a departing employee.

    gross_salary and basic_salary are MONTHLY. earned_leave_balance is supplied by
    the caller for the financial year of last_working_day.
    gratuity_amount: None means "compute it"; any number, including 0, is an override.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_id: str
    employee_name: Optional[str] = None

    basic_salary: float
    gross_salary: float

    date_of_joining: datetime.date
    date_of_leaving: datetime.date
    last_working_day: datetime.date
    relieving_date: Optional[datetime.date] = None

    notice_period_days: float = 0
    notice_period_served: float = 0
    earned_leave_balance: float = 0

    bonus_amount: float = 0
    incentive_amount: float = 0
    gratuity_amount: Optional[float] = None
    other_dues: float = 0

    advance_recovery: float = 0
    loan_recovery: float = 0
    asset_recovery: float = 0
    other_recoveries: float = 0

    assets_returned: bool = False
    reason_for_leaving: Optional[str] = None
    remarks: Optional[str] = None


class GratuityResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    eligible: bool
    years_of_service: float          # Completed years + fraction of the running year
    completed_years: int
    gratuity_amount: float


class SettlementResult(BaseModel):
    """
    Computed full & final settlement.

    gross_settlement and net_settlement may be NEGATIVE: the employee owes the company.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    settlement_id: Optional[str] = None      # Set by the store after persisting
    employee_id: str
    employee_name: Optional[str] = None

    date_of_joining: datetime.date
    date_of_leaving: datetime.date
    last_working_day: datetime.date
    relieving_date: Optional[datetime.date] = None
    settlement_month: int
    settlement_year: int
    financial_year: str
    years_of_service: float

    notice_period_days: float
    notice_period_served: float
    notice_period_shortfall: float

    # Dues
    pending_salary_days: int
    pending_salary_amount: float
    earned_leave_days: float
    earned_leave_encashment: float
    bonus_amount: float
    incentive_amount: float
    gratuity_amount: float
    other_dues: float
    total_dues: float

    # Recoveries
    advance_recovery: float
    loan_recovery: float
    notice_period_recovery: float
    asset_recovery: float
    other_recoveries: float
    total_recoveries: float

    gross_settlement: float
    tax_deduction: float
    net_settlement: float

    status: SettlementStatus = SettlementStatus.draft
    assets_returned: bool = False
    reason_for_leaving: Optional[str] = None
    remarks: Optional[str] = None


# ---------------------------------------------------------------------------
# TDS reporting
# ---------------------------------------------------------------------------

class TDSReportEntry(BaseModel):
    """One persisted TDS deduction, from a salary slip or a settlement."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_id: str
    employee_name: str = ""
    source_type: TDSSource
    source_id: str
    month: int
    year: int
    date: datetime.date
    gross_amount: float
    tds_amount: float
    remarks: Optional[str] = None


class TDSReportSummary(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_id: str
    employee_name: str
    total_gross: float
    total_tds: float
    entry_count: int
    entries: List[TDSReportEntry]


class TDSReportTotals(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    total_employees: int
    total_entries: int
    total_gross: float
    total_tds: float


# ---------------------------------------------------------------------------
# HTTP request bodies
# ---------------------------------------------------------------------------

class TaxCalculationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    annual_gross_income: float
    regime: TaxRegime = TaxRegime.new
    hra_exemption: float = 0
    deductions: DeductionInputs = Field(default_factory=DeductionInputs)


class MonthlyTDSRequest(BaseModel):
    """month_number is financial-year relative (April = 1). as_of only labels the FY."""
    model_config = ConfigDict(extra="forbid")

    monthly_gross: float
    regime: TaxRegime = TaxRegime.new
    month_number: int = 1
    previous_tds: float = 0
    hra_exemption: float = 0
    deductions: DeductionInputs = Field(default_factory=DeductionInputs)
    as_of: Optional[datetime.date] = None


class StatutoryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    basic_salary: float
    gross_salary: float
    state: Optional[str] = None      # Falls back to settings.professional_tax_state


class SettlementPaymentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payment_mode: str
    payment_reference: str
    payment_date: datetime.date


# ---------------------------------------------------------------------------
# Error response models — used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None
    issue: str


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "TaxRegime",
    "SettlementStatus",
    "TDSSource",
    "DeductionInputs",
    "HRAExemptionInputs",
    "TaxCalculationResult",
    "RegimeComparison",
    "PFContribution",
    "ESICContribution",
    "SalarySlipInput",
    "SalarySlipResult",
    "SettlementInput",
    "GratuityResult",
    "SettlementResult",
    "TDSReportEntry",
    "TDSReportSummary",
    "TDSReportTotals",
    "TaxCalculationRequest",
    "MonthlyTDSRequest",
    "StatutoryRequest",
    "SettlementPaymentRequest",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
