"""
Deterministic growth projections and retirement planning arithmetic.

Compounding is monthly at rate/12 with contributions landing at the end of
each month (ordinary annuity). Reported money is rounded to the penny; the
running balance is carried unrounded.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Sequence

from dateutil.relativedelta import relativedelta

from config import DEFAULTS
from models import pro_rata_state_pension
from money import round_pence, clamp_non_negative
from tax_uk import (
    PENSION_ANNUAL_ALLOWANCE,
    PENSION_MINIMUM_TAPERED_ALLOWANCE,
    PENSION_TAPER_ADJUSTED_INCOME,
    PENSION_TAPER_RATE,
    PENSION_TAPER_THRESHOLD_INCOME,
)

logger = logging.getLogger(__name__)


@dataclass
class ProjectionPoint:
    year: int
    value: float


@dataclass
class ScenarioProjection:
    rate: float
    points: List[ProjectionPoint] = field(default_factory=list)

    @property
    def final_value(self) -> float:
        return self.points[-1].value


@dataclass
class SalaryPoint:
    year: int
    salary: float


@dataclass
class RetirementCountdown:
    years: int
    months: int


@dataclass
class PensionBridge:
    bridge_pot_required: float
    shortfall: float
    sufficient: bool


def _non_negative(name: str, value: float) -> float:
    if value < 0:
        logger.debug("%s %r clamped to 0", name, value)
    return clamp_non_negative(value)


def get_mid_scenario_rate(scenario_rates: Sequence[float],
                          fallback: float = DEFAULTS["mid_rate_fallback"]) -> float:
    if not scenario_rates:
        return fallback
    return scenario_rates[len(scenario_rates) // 2]


def _year_end_values(current_pot: float, monthly_contribution: float, rate: float, years: int):
    values = [current_pot]
    value = current_pot
    monthly_rate = rate / 12.0
    for _ in range(years):
        for _ in range(12):
            value = value * (1 + monthly_rate) + monthly_contribution
        values.append(max(0.0, value))
    return values


def project_compound_growth(current_pot: float, monthly_contribution: float,
                            rate: float, years: int) -> ScenarioProjection:
    pot = _non_negative("current pot", current_pot)
    contrib = _non_negative("monthly contribution", monthly_contribution)
    values = _year_end_values(pot, contrib, rate, max(0, int(years)))
    return ScenarioProjection(
        rate=rate,
        points=[ProjectionPoint(year=y, value=round_pence(v)) for y, v in enumerate(values)],
    )


def project_scenarios(current_pot: float, monthly_contribution: float,
                      rates: Sequence[float], years: int) -> List[ScenarioProjection]:
    """One projection per rate; year 0 is the starting pot."""
    return [project_compound_growth(current_pot, monthly_contribution, r, years) for r in rates]


def project_final_value(current_pot: float, annual_contribution: float,
                        rate: float, years: int) -> float:
    """Value after ``years`` with the annual contribution spread monthly (unrounded)."""
    if years <= 0:
        return current_pot
    pot = _non_negative("current pot", current_pot)
    contrib = _non_negative("annual contribution", annual_contribution) / 12.0
    return _year_end_values(pot, contrib, rate, int(years))[-1]


def project_scenarios_with_growth(current_pot: float, annual_contribution: float,
                                  contribution_growth: float, rates: Sequence[float],
                                  years: int) -> List[ScenarioProjection]:
    """Annual compounding with a contribution paid at each year end that grows year on year."""
    pot = _non_negative("current pot", current_pot)
    contrib0 = _non_negative("annual contribution", annual_contribution)
    out = []
    for rate in rates:
        value, contrib = pot, contrib0
        points = [ProjectionPoint(0, round_pence(value))]
        for year in range(1, max(0, int(years)) + 1):
            value = max(0.0, value * (1 + rate) + contrib)
            points.append(ProjectionPoint(year, round_pence(value)))
            contrib *= 1 + contribution_growth
        out.append(ScenarioProjection(rate=rate, points=points))
    return out


def calculate_required_pot(target_annual_income: float, withdrawal_rate: float) -> float:
    """Pot needed to fund the income at the safe withdrawal rate."""
    if withdrawal_rate <= 0:
        raise ValueError(f"withdrawal rate must be positive, got {withdrawal_rate!r}")
    return round_pence(_non_negative("target income", target_annual_income) / withdrawal_rate)


def calculate_adjusted_required_pot(target_annual_income: float, withdrawal_rate: float,
                                    include_state_pension: bool,
                                    state_pension_annual: float) -> float:
    income = target_annual_income
    if include_state_pension:
        income = max(0.0, target_annual_income - state_pension_annual)
    return calculate_required_pot(income, withdrawal_rate)


def calculate_swr(pot: float, withdrawal_rate: float) -> float:
    return round_pence(_non_negative("pot", pot) * withdrawal_rate)


def calculate_retirement_countdown(current_pot: float, annual_contribution: float,
                                   target_pot: float, rate: float) -> RetirementCountdown:
    """Months until the pot reaches the target, capped at 100 years."""
    if current_pot >= target_pot:
        return RetirementCountdown(0, 0)
    monthly_contrib = annual_contribution / 12.0
    monthly_rate = rate / 12.0
    value, months = current_pot, 0
    while value < target_pot and months < 100 * 12:
        value = value * (1 + monthly_rate) + monthly_contrib
        months += 1
    return RetirementCountdown(years=months // 12, months=months % 12)


def calculate_coast_fire(current_pot: float, target_pot: float, target_age: int,
                         current_age: int, rate: float) -> bool:
    years = target_age - current_age
    if years <= 0:
        return current_pot >= target_pot
    return current_pot * (1 + rate) ** years >= target_pot


def calculate_required_savings(target_pot: float, current_pot: float,
                               years: int, rate: float) -> float:
    """Monthly saving needed to hit the target (inverse of the FV-of-annuity formula)."""
    if years <= 0:
        return round_pence(max(0.0, target_pot - current_pot))
    monthly_rate = rate / 12.0
    months = years * 12
    remaining = target_pot - current_pot * (1 + monthly_rate) ** months
    if remaining <= 0:
        return 0.0
    if abs(monthly_rate) < 1e-10:
        return round_pence(remaining / months)
    factor = ((1 + monthly_rate) ** months - 1) / monthly_rate
    return round_pence(remaining / factor)


def calculate_pension_bridge(retirement_age: int, pension_access_age: int,
                             annual_spend: float, accessible_wealth: float) -> PensionBridge:
    """Can non-pension wealth cover spending between retirement and pension access?"""
    years = max(0, pension_access_age - retirement_age)
    required = years * annual_spend
    return PensionBridge(
        bridge_pot_required=round_pence(required),
        shortfall=round_pence(max(0.0, required - accessible_wealth)),
        sufficient=accessible_wealth >= required,
    )


def calculate_pro_rata_state_pension(qualifying_years: float) -> float:
    return pro_rata_state_pension(qualifying_years)


def calculate_age(date_of_birth: date, as_of: date) -> int:
    """Whole calendar years between date_of_birth and as_of (never negative)."""
    return max(0, relativedelta(as_of, date_of_birth).years)



def project_salary_trajectory(current_salary: float, growth_rate: float,
                              years: int) -> List[SalaryPoint]:
    """Salary at the start of each year, growing at a flat annual rate."""
    out = []
    salary = _non_negative("salary", current_salary)
    for year in range(max(0, int(years)) + 1):
        out.append(SalaryPoint(year=year, salary=round_pence(salary)))
        salary *= 1 + growth_rate
    return out


def calculate_tapered_annual_allowance(threshold_income: float, adjusted_income: float) -> float:
    """Pension annual allowance after the high-earner taper.

    Tapering applies only when threshold income exceeds £200k and adjusted
    income exceeds £260k; £1 is lost per £2 of adjusted income over £260k,
    down to a £10k floor.
    """
    if threshold_income <= PENSION_TAPER_THRESHOLD_INCOME:
        return PENSION_ANNUAL_ALLOWANCE
    if adjusted_income <= PENSION_TAPER_ADJUSTED_INCOME:
        return PENSION_ANNUAL_ALLOWANCE
    reduction = math.floor((adjusted_income - PENSION_TAPER_ADJUSTED_INCOME) * PENSION_TAPER_RATE)
    return max(PENSION_ANNUAL_ALLOWANCE - reduction, PENSION_MINIMUM_TAPERED_ALLOWANCE)


def calculate_tax_efficiency_score(isa_contributions: float, pension_contributions: float,
                                   gia_contributions: float) -> float:
    """Share of new saving going into tax-advantaged wrappers (0..1)."""
    total = isa_contributions + pension_contributions + gia_contributions
    if total <= 0:
        return 0.0
    return (isa_contributions + pension_contributions) / total


def project_deferred_bonus_value(amount: float, grant_date: date, vesting_date: date,
                                 estimated_annual_return: float) -> float:
    """Value of a deferred bonus tranche at vesting, compounding over fractional years."""
    years_to_vest = (vesting_date - grant_date).days / 365.25
    if years_to_vest <= 0:
        return amount
    return round_pence(amount * (1 + estimated_annual_return) ** years_to_vest)
