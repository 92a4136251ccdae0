"""
Payroll Tax Engine — FY 2024-25 (AY 2025-26 slabs as notified before Budget 2025)
Pure Python, deterministic. Same input → same output. No I/O, no clock.

Rounding: half-up to the rupee (see rounding.py) at exactly four points:
slab-tax sum, surcharge, cess and the final total. monthly_tds is total / 12,
rounded the same way. Reference figures in the test suite depend on this.

Only FY 2024-25 slabs are modelled. New regime breakpoints are the
3L/7L/10L/12L/15L table with a ₹50K standard deduction and a ₹7L 87A ceiling.
"""
from __future__ import annotations

from typing import Optional

from payroll.calculators.rounding import round_rupee
from payroll.calculators.schemas import (
    DeductionInputs,
    HRAExemptionInputs,
    RegimeComparison,
    TaxCalculationResult,
    TaxRegime,
)

# ===========================================================================
# FINANCIAL YEAR CONSTANT
# ===========================================================================

FINANCIAL_YEAR = "2024-25"

# ===========================================================================
# SLAB TABLES — list[tuple[lower, upper, rate]]
# ===========================================================================

OLD_REGIME_SLABS: list[tuple[float, float, float]] = [
    (0,         250_000,      0.00),   # 0–2.5L: 0%
    (250_000,   500_000,      0.05),   # 2.5–5L: 5%
    (500_000,   1_000_000,    0.20),   # 5–10L: 20%
    (1_000_000, float("inf"), 0.30),   # >10L: 30%
]

NEW_REGIME_SLABS: list[tuple[float, float, float]] = [
    (0,         300_000,      0.00),   # 0–3L: 0%
    (300_000,   700_000,      0.05),   # 3–7L: 5%
    (700_000,   1_000_000,    0.10),   # 7–10L: 10%
    (1_000_000, 1_200_000,    0.15),   # 10–12L: 15%
    (1_200_000, 1_500_000,    0.20),   # 12–15L: 20%
    (1_500_000, float("inf"), 0.30),   # >15L: 30%
]

# ===========================================================================
# DEDUCTION CAP CONSTANTS
# ===========================================================================

STANDARD_DEDUCTION = 50_000          # Both regimes in FY 2024-25

CAP_80C          = 150_000
CAP_80D          = 25_000
CAP_80CCD1B      = 50_000
CAP_HOME_LOAN    = 200_000           # Section 24(b), old regime only

# ===========================================================================
# 87A REBATE PARAMETERS
# ===========================================================================

OLD_87A_TAXABLE_CEILING = 500_000
OLD_87A_REBATE          = 12_500

NEW_87A_TAXABLE_CEILING = 700_000
NEW_87A_REBATE          = 25_000

# ===========================================================================
# SURCHARGE & CESS
# ===========================================================================

# (taxable income ceiling, rate): first band whose ceiling is not exceeded wins
SURCHARGE_BANDS: list[tuple[float, float]] = [
    (5_000_000,    0.00),
    (10_000_000,   0.10),
    (20_000_000,   0.15),
    (50_000_000,   0.25),
    (float("inf"), 0.37),
]

CESS_RATE = 0.04

# HRA Rule 2A percentages of basic
HRA_METRO_PCT     = 0.50
HRA_NON_METRO_PCT = 0.40
HRA_RENT_EXCESS_PCT = 0.10


# ===========================================================================
# INTERNAL HELPERS (pure, no I/O)
# ===========================================================================

def _calculate_slab_tax(
    taxable_income: float,
    slabs: list[tuple[float, float, float]],
) -> float:
    """
    Progressive slab tax. Walks slabs in ascending order, stops once
    taxable_income <= the slab's lower bound. The sum is rounded once.
    """
    tax = 0.0
    for lower, upper, rate in slabs:
        if taxable_income <= lower:
            break
        in_slab = min(taxable_income, upper) - lower
        if in_slab > 0:
            tax += in_slab * rate
    return round_rupee(tax)


def _apply_87a(taxable_income: float, tax: float, ceiling: float, rebate: float) -> float:
    """Flat rebate, floored at 0, only when taxable_income <= ceiling."""
    if taxable_income <= ceiling:
        return max(0.0, tax - rebate)
    return tax


def _calculate_surcharge(taxable_income: float, tax: float) -> float:
    for ceiling, rate in SURCHARGE_BANDS:
        if taxable_income <= ceiling:
            return round_rupee(tax * rate)
    # Only reached for nan taxable income
    return 0.0


def _calculate_cess(tax_plus_surcharge: float) -> float:
    """Health & Education Cess: 4% of (tax + surcharge)."""
    return round_rupee(tax_plus_surcharge * CESS_RATE)


def _finalise(
    *,
    regime: TaxRegime,
    gross_income: float,
    taxable_income: float,
    tax_on_income: float,
    hra_exemption: float,
    section_80c: float,
    section_80d: float,
    other: float,
    total_deductions: float,
) -> TaxCalculationResult:
    """Surcharge → cess → total, shared by both regimes."""
    surcharge = _calculate_surcharge(taxable_income, tax_on_income)
    cess = _calculate_cess(tax_on_income + surcharge)
    total_tax = round_rupee(tax_on_income + surcharge + cess)

    return TaxCalculationResult(
        gross_income=gross_income,
        standard_deduction=float(STANDARD_DEDUCTION),
        hra_exemption=hra_exemption,
        section_80c_deduction=section_80c,
        section_80d_deduction=section_80d,
        other_deductions=other,
        total_deductions=total_deductions,
        taxable_income=taxable_income,
        tax_on_income=tax_on_income,
        surcharge=surcharge,
        health_and_education_cess=cess,
        total_tax=total_tax,
        monthly_tds=round_rupee(total_tax / 12),
        regime=regime,
    )


# ===========================================================================
# HRA EXEMPTION
# ===========================================================================

def calculate_hra_exemption(inputs: HRAExemptionInputs) -> float:
    """
    HRA exemption under Section 10(13A), Rule 2A. Old regime only.
    Returns 0 when no HRA is received or no rent is paid.

    Minimum of:
      1. HRA received
      2. 50% of basic (metro) or 40% (non-metro)
      3. Rent paid - 10% of basic
    clipped at 0.
    """
    if inputs.rent_paid == 0 or inputs.hra == 0:
        return 0.0
    metro_pct = HRA_METRO_PCT if inputs.is_metro_city else HRA_NON_METRO_PCT
    component_1 = inputs.hra
    component_2 = inputs.basic_salary * metro_pct
    component_3 = inputs.rent_paid - inputs.basic_salary * HRA_RENT_EXCESS_PCT
    return max(0.0, min(component_1, component_2, component_3))


# ===========================================================================
# OLD REGIME CALCULATOR
# ===========================================================================

def calculate_tax_old_regime(
    annual_gross_income: float,
    hra_exemption: float = 0.0,
    deductions: Optional[DeductionInputs] = None,
) -> TaxCalculationResult:
    """
    Old regime annual tax.

    Deductions: standard ₹50K, pre-computed HRA exemption, 80C (1.5L),
    80D (25K), 80CCD(1B) (50K), home loan interest (2L), other (uncapped).
    87A: flat ₹12,500 rebate if taxable <= ₹5L.
    """
    deductions = deductions or DeductionInputs()

    # Step 1: each deduction capped on its own
    ded_80c      = min(deductions.section_80c, CAP_80C)
    ded_80d      = min(deductions.section_80d, CAP_80D)
    ded_80ccd1b  = min(deductions.section_80ccd_1b, CAP_80CCD1B)
    ded_24b      = min(deductions.home_loan_interest, CAP_HOME_LOAN)
    ded_other    = deductions.other_deductions

    total_deductions = (
        STANDARD_DEDUCTION + hra_exemption + ded_80c + ded_80d
        + ded_80ccd1b + ded_24b + ded_other
    )

    # Step 2: taxable income (never negative)
    taxable_income = max(0.0, annual_gross_income - total_deductions)

    # Step 3: slab tax, then 87A before surcharge/cess
    slab_tax = _calculate_slab_tax(taxable_income, OLD_REGIME_SLABS)
    tax_on_income = _apply_87a(taxable_income, slab_tax, OLD_87A_TAXABLE_CEILING, OLD_87A_REBATE)

    return _finalise(
        regime=TaxRegime.old,
        gross_income=annual_gross_income,
        taxable_income=taxable_income,
        tax_on_income=tax_on_income,
        hra_exemption=hra_exemption,
        section_80c=ded_80c,
        section_80d=ded_80d,
        other=ded_80ccd1b + ded_24b + ded_other,
        total_deductions=total_deductions,
    )


# ===========================================================================
# NEW REGIME CALCULATOR
# ===========================================================================

def calculate_tax_new_regime(annual_gross_income: float) -> TaxCalculationResult:
    """
    New regime annual tax (Section 115BAC, FY 2024-25).

    Standard deduction only; HRA and Chapter VI-A deductions are not honoured.
    87A: flat ₹25,000 rebate if taxable <= ₹7L.
    """
    total_deductions = float(STANDARD_DEDUCTION)
    taxable_income = max(0.0, annual_gross_income - total_deductions)

    slab_tax = _calculate_slab_tax(taxable_income, NEW_REGIME_SLABS)
    tax_on_income = _apply_87a(taxable_income, slab_tax, NEW_87A_TAXABLE_CEILING, NEW_87A_REBATE)

    return _finalise(
        regime=TaxRegime.new,
        gross_income=annual_gross_income,
        taxable_income=taxable_income,
        tax_on_income=tax_on_income,
        hra_exemption=0.0,
        section_80c=0.0,
        section_80d=0.0,
        other=0.0,
        total_deductions=total_deductions,
    )


def calculate_tax(
    annual_gross_income: float,
    regime: TaxRegime = TaxRegime.new,
    hra_exemption: float = 0.0,
    deductions: Optional[DeductionInputs] = None,
) -> TaxCalculationResult:
    """Dispatch on regime. New regime silently ignores hra_exemption and deductions."""
    if TaxRegime(regime) is TaxRegime.old:
        return calculate_tax_old_regime(annual_gross_income, hra_exemption, deductions)
    return calculate_tax_new_regime(annual_gross_income)


# ===========================================================================
# COMPARE REGIMES — public API
# ===========================================================================

def compare_regimes(
    annual_gross_income: float,
    hra_exemption: float = 0.0,
    deductions: Optional[DeductionInputs] = None,
) -> RegimeComparison:
    """
    Compute both regimes and recommend the cheaper one.
    Ties go to the new regime.
    """
    old = calculate_tax_old_regime(annual_gross_income, hra_exemption, deductions)
    new = calculate_tax_new_regime(annual_gross_income)

    recommended = TaxRegime.old if old.total_tax < new.total_tax else TaxRegime.new

    return RegimeComparison(
        old_regime=old,
        new_regime=new,
        recommended_regime=recommended,
        savings=abs(old.total_tax - new.total_tax),
    )
