"""
calculators — pure payroll computations. No I/O, no clock.

Re-exports the public API so callers can write
    from payroll.calculators import compare_regimes, preview_settlement
"""
from payroll.calculators.errors import InvalidDateError, InvalidInputError, PayrollInputError
from payroll.calculators.salary_slip import calculate_salary_slip
from payroll.calculators.settlement import (
    calculate_gratuity,
    calculate_gratuity_details,
    flat_settlement_tds,
    make_flat_settlement_tds,
    preview_settlement,
)
from payroll.calculators.statutory import (
    calculate_esic,
    calculate_esic_contributions,
    calculate_pf_contributions,
    calculate_professional_tax,
    calculate_provident_fund,
    professional_tax_slabs_for_state,
)
from payroll.calculators.tax_engine import (
    calculate_hra_exemption,
    calculate_tax,
    calculate_tax_new_regime,
    calculate_tax_old_regime,
    compare_regimes,
)
from payroll.calculators.tds import (
    calculate_monthly_tds,
    financial_year_bounds,
    get_financial_year,
    get_financial_year_month,
    project_annual_tax,
)
from payroll.calculators.tds_report import build_tds_report, month_range_filter, summarize_tds_report

__all__ = [
    "PayrollInputError",
    "InvalidInputError",
    "InvalidDateError",
    "calculate_tax_old_regime",
    "calculate_tax_new_regime",
    "calculate_tax",
    "compare_regimes",
    "calculate_hra_exemption",
    "calculate_provident_fund",
    "calculate_esic",
    "calculate_professional_tax",
    "professional_tax_slabs_for_state",
    "calculate_pf_contributions",
    "calculate_esic_contributions",
    "calculate_monthly_tds",
    "project_annual_tax",
    "get_financial_year",
    "get_financial_year_month",
    "financial_year_bounds",
    "calculate_gratuity",
    "calculate_gratuity_details",
    "flat_settlement_tds",
    "make_flat_settlement_tds",
    "preview_settlement",
    "calculate_salary_slip",
    "build_tds_report",
    "summarize_tds_report",
    "month_range_filter",
]
