"""
UK income tax, National Insurance and student loan calculations.

Band arithmetic is done unrounded; money leaving this module through the
result types is rounded half-up to the penny. Negative income is treated as
zero rather than as an error.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from config import DEFAULTS
from money import round_pence
from tax_models import TaxBands, NIBands
from tax_uk import UK_BANDS, UK_NI_BANDS, STUDENT_LOAN_PLANS

logger = logging.getLogger(__name__)


@dataclass
class BandSlice:
    band: str
    rate: float
    taxable_amount: float
    tax: float


@dataclass
class IncomeTaxResult:
    tax: float
    taxable_income: float
    personal_allowance: float
    effective_rate: float
    bands_applied: List[BandSlice] = field(default_factory=list)


@dataclass
class NIResult:
    ni: float
    breakdown: List[BandSlice] = field(default_factory=list)


@dataclass
class TakeHomeResult:
    gross: float
    adjusted_gross: float
    income_tax: float
    ni: float
    student_loan: float
    pension_deduction: float
    take_home: float
    monthly_take_home: float


@dataclass
class TaxCurvePoint:
    income: float
    marginal_rate: float
    effective_rate: float


def _clamp_income(gross: float) -> float:
    if gross < 0:
        logger.debug("negative income %r clamped to 0", gross)
        return 0.0
    return float(gross)


def _slices(gross: float, bands: TaxBands):
    """Yield (band, amount) slices of taxable income (gross less the tapered allowance)."""
    taxable = max(0.0, gross - bands.allowance_for(gross))
    lower = 0.0
    for b in bands.bands:
        amount = max(0.0, min(taxable, b.upper) - lower)
        yield b, amount
        lower = b.upper
        if lower >= taxable:
            break


def income_tax_due(gross: float, bands: TaxBands = UK_BANDS) -> float:
    """Unrounded income tax; the building block for gross-up solvers."""
    gross = max(0.0, gross)
    if gross <= 0:
        return 0.0
    return sum(amount * b.rate for b, amount in _slices(gross, bands))


def calculate_income_tax(gross_income: float, bands: TaxBands = UK_BANDS) -> IncomeTaxResult:
    gross = _clamp_income(gross_income)
    allowance = bands.allowance_for(gross)
    taxable = max(0.0, gross - allowance)

    applied = [BandSlice("Personal Allowance", 0.0, round_pence(min(gross, allowance)), 0.0)]
    total = 0.0
    if taxable > 0:
        for b, amount in _slices(gross, bands):
            if amount <= 0:
                continue
            tax = amount * b.rate
            total += tax
            applied.append(BandSlice(b.name, b.rate, round_pence(amount), round_pence(tax)))

    return IncomeTaxResult(
        tax=round_pence(total),
        taxable_income=round_pence(taxable),
        personal_allowance=round_pence(allowance),
        effective_rate=round(total / gross, 4) if gross > 0 else 0.0,
        bands_applied=applied,
    )


def ni_due(gross: float, ni_bands: NIBands = UK_NI_BANDS) -> float:
    gross = max(0.0, gross)
    total, lower = 0.0, 0.0
    for b in ni_bands.bands:
        total += max(0.0, min(gross, b.upper) - lower) * b.rate
        lower = b.upper
        if lower >= gross:
            break
    return total


def calculate_ni(gross_income: float, ni_bands: NIBands = UK_NI_BANDS) -> NIResult:
    gross = _clamp_income(gross_income)
    breakdown = []
    total, lower = 0.0, 0.0
    for b in ni_bands.bands:
        earnings = max(0.0, min(gross, b.upper) - lower)
        lower = b.upper
        if earnings <= 0 and b.rate > 0:
            continue
        ni = earnings * b.rate
        total += ni
        breakdown.append(BandSlice(b.name, b.rate, round_pence(earnings), round_pence(ni)))
    return NIResult(ni=round_pence(total), breakdown=breakdown)


def total_deductions(gross: float, bands: TaxBands = UK_BANDS,
                     ni_bands: NIBands = UK_NI_BANDS) -> float:
    return income_tax_due(gross, bands) + ni_due(gross, ni_bands)


def marginal_rate_curve(max_income: float = DEFAULTS["tax_curve_max_income"],
                        step: float = DEFAULTS["tax_curve_step"],
                        bands: TaxBands = UK_BANDS,
                        ni_bands: NIBands = UK_NI_BANDS) -> List[TaxCurvePoint]:
    """Numerical marginal and effective deduction rates (tax + NI) from 0 to max_income.

    marginal(x) = (deductions(x + step) - deductions(x)) / step, both ends from
    the same calculator, so the taper shows up as the 60% (plus NI) spike.
    """
    if step <= 0:
        raise ValueError("step must be positive")
    points = []
    n = int(max_income // step)
    for i in range(n + 1):
        income = i * step
        here = total_deductions(income, bands, ni_bands)
        nxt = total_deductions(income + step, bands, ni_bands)
        points.append(TaxCurvePoint(
            income=income,
            marginal_rate=(nxt - here) / step,
            effective_rate=here / income if income > 0 else 0.0,
        ))
    return points


def calculate_student_loan(gross_income: float, plan: str) -> float:
    cfg = STUDENT_LOAN_PLANS.get(plan)
    if cfg is None:
        return 0.0
    return round_pence(max(0.0, gross_income - cfg["threshold"]) * cfg["rate"])


def _gross_for_tax(income) -> float:
    if income.pension_contribution_method in ("salary_sacrifice", "net_pay"):
        return income.gross_salary - income.employee_pension_contribution
    return income.gross_salary


def _gross_for_ni(income) -> float:
    if income.pension_contribution_method == "salary_sacrifice":
        return income.gross_salary - income.employee_pension_contribution
    return income.gross_salary


def calculate_take_home(income, student_loan_plan: Optional[str] = None,
                        bands: TaxBands = UK_BANDS,
                        ni_bands: NIBands = UK_NI_BANDS) -> TakeHomeResult:
    """Take-home pay for a ``models.PersonIncome``.

    salary_sacrifice: pension comes off before tax and NI.
    net_pay: pension comes off before tax but not NI.
    relief_at_source: paid from net pay; basic band extended by the gross contribution.
    """
    method = income.pension_contribution_method
    contribution = income.employee_pension_contribution
    tax_bands = bands
    if method == "relief_at_source" and contribution > 0:
        tax_bands = bands.with_extended_first_band(contribution / 0.8)

    adjusted = _gross_for_tax(income)
    tax = calculate_income_tax(adjusted, tax_bands).tax
    ni = calculate_ni(_gross_for_ni(income), ni_bands).ni

    loan = 0.0
    if student_loan_plan:
        loan_base = (income.gross_salary - contribution
                     if method == "salary_sacrifice" else income.gross_salary)
        loan = calculate_student_loan(loan_base, student_loan_plan)

    take_home = income.gross_salary - contribution - tax - ni - loan
    return TakeHomeResult(
        gross=income.gross_salary,
        adjusted_gross=adjusted,
        income_tax=tax,
        ni=ni,
        student_loan=loan,
        pension_deduction=contribution,
        take_home=round_pence(take_home),
        monthly_take_home=round_pence(take_home / 12),
    )


def estimate_pension_withdrawal_tax(gross_withdrawal: float, other_income: float = 0.0,
                                    bands: TaxBands = UK_BANDS,
                                    tax_free_fraction: float = DEFAULTS["pension_tax_free_fraction"]) -> float:
    """Income tax attributable to a pension withdrawal on top of other taxable income.

    The tax-free fraction (PCLS) is spread across every withdrawal; the rest is
    taxed at the marginal rates left after ``other_income``. Unrounded.
    """
    if gross_withdrawal <= 0:
        return 0.0
    taxable = gross_withdrawal * (1 - tax_free_fraction)
    other = max(0.0, other_income)
    return income_tax_due(other + taxable, bands) - income_tax_due(other, bands)
