"""
Statutory deductions — Provident Fund, ESIC, Professional Tax.
Pure functions. No I/O.

Professional tax is a STATE levy. The slab table is a parameter, never a
hard-coded branch: PROFESSIONAL_TAX_SLABS holds the tables we know, and callers
may pass any other table of the same shape. The default is Maharashtra.
"""
from __future__ import annotations

from typing import Optional, Sequence

from payroll.calculators.rounding import round_rupee
from payroll.calculators.schemas import ESICContribution, PFContribution

# ===========================================================================
# PROVIDENT FUND
# ===========================================================================

EMPLOYEE_PF_RATE   = 0.12
EMPLOYER_PF_RATE   = 0.12            # Split into EPS + employer PF
EPS_RATE           = 0.0833
PF_WAGE_CEILING    = 15_000          # Monthly basic
EPS_WAGE_CEILING   = 15_000

# ===========================================================================
# ESIC
# ===========================================================================

ESIC_WAGE_CEILING  = 21_000          # Monthly gross; above this NO contribution at all
EMPLOYEE_ESIC_RATE = 0.0075
EMPLOYER_ESIC_RATE = 0.0325

# ===========================================================================
# PROFESSIONAL TAX — list[tuple[monthly gross ceiling, monthly PT]]
# ===========================================================================

ProfessionalTaxSlabs = Sequence[tuple[float, float]]

MAHARASHTRA_PT_SLABS: list[tuple[float, float]] = [
    (7_500,        0),
    (10_000,       175),
    (float("inf"), 200),
]

KARNATAKA_PT_SLABS: list[tuple[float, float]] = [
    (15_000,       0),
    (float("inf"), 200),
]

WEST_BENGAL_PT_SLABS: list[tuple[float, float]] = [
    (8_500,        0),
    (15_000,       90),
    (25_000,       150),
    (40_000,       180),
    (float("inf"), 200),
]

PROFESSIONAL_TAX_SLABS: dict[str, list[tuple[float, float]]] = {
    "Maharashtra": MAHARASHTRA_PT_SLABS,
    "Karnataka": KARNATAKA_PT_SLABS,
    "West Bengal": WEST_BENGAL_PT_SLABS,
}


def calculate_provident_fund(basic_salary: float) -> float:
    """Employee PF: 12% of basic, no wage ceiling."""
    return round_rupee(basic_salary * EMPLOYEE_PF_RATE)


def calculate_esic(gross_salary: float) -> float:
    """
    Employee ESIC: 0.75% of monthly gross when gross <= ₹21,000.
    Above the ceiling the contribution is 0, not a partial amount.
    """
    if gross_salary > ESIC_WAGE_CEILING:
        return 0.0
    return round_rupee(gross_salary * EMPLOYEE_ESIC_RATE)


def professional_tax_slabs_for_state(state: Optional[str]) -> list[tuple[float, float]]:
    """Slab table for a state name (case-insensitive). Unknown states levy no PT."""
    if not state:
        return []
    wanted = state.strip().lower()
    for name, slabs in PROFESSIONAL_TAX_SLABS.items():
        if name.lower() == wanted:
            return slabs
    return []


def calculate_professional_tax(
    monthly_gross: float,
    slabs: ProfessionalTaxSlabs = MAHARASHTRA_PT_SLABS,
) -> float:
    """
    Monthly professional tax from a slab table.
    Default (Maharashtra): 0 up to ₹7,500, ₹175 up to ₹10,000, ₹200 above.
    An empty table means the state levies no PT.
    """
    for ceiling, amount in slabs:
        if monthly_gross <= ceiling:
            return float(amount)
    return 0.0


def calculate_pf_contributions(
    basic_salary: float,
    pf_wage_ceiling: float = PF_WAGE_CEILING,
    eps_wage_ceiling: float = EPS_WAGE_CEILING,
) -> PFContribution:
    """
    Employee and employer PF as per EPFO rules.

    Employee PF: 12% of basic capped at the PF wage ceiling.
    EPS:         8.33% of basic capped at the EPS wage ceiling.
    Employer PF: (12% - 8.33%) of basic capped at the PF wage ceiling.
    """
    basic_for_pf = min(basic_salary, pf_wage_ceiling)
    basic_for_eps = min(basic_salary, eps_wage_ceiling)

    employee_pf = round_rupee(basic_for_pf * EMPLOYEE_PF_RATE)
    eps = round_rupee(basic_for_eps * EPS_RATE)
    employer_pf = round_rupee(basic_for_pf * (EMPLOYER_PF_RATE - EPS_RATE))

    return PFContribution(
        basic_for_pf=basic_for_pf,
        basic_for_eps=basic_for_eps,
        employee_pf=employee_pf,
        eps=eps,
        employer_pf=employer_pf,
        total_pf=employee_pf + eps + employer_pf,
    )


def calculate_esic_contributions(gross_salary: float) -> ESICContribution:
    """Employee 0.75% + employer 3.25% of gross, both 0 above the ₹21,000 ceiling."""
    if gross_salary > ESIC_WAGE_CEILING:
        return ESICContribution(
            applicable=False,
            gross_for_esic=0.0,
            employee_esic=0.0,
            employer_esic=0.0,
            total_esic=0.0,
        )
    employee_esic = calculate_esic(gross_salary)
    employer_esic = round_rupee(gross_salary * EMPLOYER_ESIC_RATE)
    return ESICContribution(
        applicable=True,
        gross_for_esic=gross_salary,
        employee_esic=employee_esic,
        employer_esic=employer_esic,
        total_esic=employee_esic + employer_esic,
    )
