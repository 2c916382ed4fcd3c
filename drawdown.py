"""
Retirement pot drawdown.

Each year the household needs its spend net of tax and net of any state
pension. Withdrawals come out first and the remainder then grows (the more
conservative ordering). A pot that cannot cover the year is emptied and
stays empty.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from config import DEFAULTS
from money import rate_label, round_pence
from tax_models import TaxBands
from tax_uk import UK_BANDS, CGT_ANNUAL_EXEMPT_AMOUNT, CGT_BASIC_RATE, CGT_HIGHER_RATE
from taxes import estimate_pension_withdrawal_tax

logger = logging.getLogger(__name__)

WRAPPERS = ("pension", "isa", "gia", "cash")


@dataclass
class DrawdownYear:
    age: int
    opening_balance: float
    state_pension: float
    gross_withdrawal: float
    tax_paid: float
    net_withdrawal: float
    closing_balance: float
    depleted: bool = False


@dataclass
class DrawdownScenario:
    rate: float
    years: List[DrawdownYear] = field(default_factory=list)

    @property
    def label(self) -> str:
        return rate_label(self.rate)

    @property
    def depletion_age(self) -> Optional[int]:
        for y in self.years:
            if y.depleted:
                return y.age
        return None

    @property
    def final_balance(self) -> float:
        return self.years[-1].closing_balance if self.years else 0.0


def _net_of_pension_tax(gross: float, other_income: float, bands: TaxBands) -> float:
    return gross - estimate_pension_withdrawal_tax(gross, other_income, bands)


def calculate_gross_pension_withdrawal(target_net: float, other_income: float = 0.0,
                                       bands: TaxBands = UK_BANDS,
                                       tolerance: float = DEFAULTS["gross_up_tolerance"]) -> float:
    """Gross pension withdrawal whose after-tax proceeds meet ``target_net``.

    Net proceeds are monotone in the gross withdrawal, so bisect. The upper
    bracket is doubled until it covers the target; the result never
    under-delivers and is within ``tolerance`` of the exact gross.
    """
    if target_net <= 0:
        return 0.0
    lo, hi = target_net, target_net * 2
    for _ in range(64):
        if _net_of_pension_tax(hi, other_income, bands) >= target_net:
            break
        lo, hi = hi, hi * 2
    for _ in range(200):
        if hi - lo <= tolerance:
            break
        mid = (lo + hi) / 2.0
        if _net_of_pension_tax(mid, other_income, bands) < target_net:
            lo = mid
        else:
            hi = mid
    return hi


def _simulate_pot(starting_pot: float, annual_spend: float, retirement_age: int, end_age: int,
                  rate: float, state_pension_age: int, state_pension_annual: float,
                  tax_aware: bool, bands: TaxBands) -> DrawdownScenario:
    pot = max(0.0, starting_pot)
    scenario = DrawdownScenario(rate=rate)
    depleted = False
    for age in range(retirement_age, end_age + 1):
        opening = pot
        state_pension = state_pension_annual if age >= state_pension_age else 0.0
        need = max(0.0, annual_spend - state_pension)

        if tax_aware and need > 0:
            gross = calculate_gross_pension_withdrawal(need, state_pension, bands)
        else:
            gross = need

        if not depleted and gross > opening:
            depleted = True
            logger.debug("pot at %.0f%% depleted at age %d", rate * 100, age)
        gross = min(gross, opening)
        tax = estimate_pension_withdrawal_tax(gross, state_pension, bands) if tax_aware else 0.0
        pot = max(0.0, (opening - gross) * (1 + rate))

        scenario.years.append(DrawdownYear(
            age=age,
            opening_balance=round_pence(opening),
            state_pension=round_pence(state_pension),
            gross_withdrawal=round_pence(gross),
            tax_paid=round_pence(tax),
            net_withdrawal=round_pence(gross - tax),
            closing_balance=round_pence(pot),
            depleted=depleted,
        ))
        if depleted:
            pot = 0.0
    return scenario


def build_drawdown_data(starting_pot: float, annual_spend: float, retirement_age: int,
                        end_age: int, rates: Sequence[float], state_pension_age: int,
                        state_pension_annual: float, tax_aware: bool = True,
                        bands: TaxBands = UK_BANDS) -> List[DrawdownScenario]:
    """Year-by-year pot depletion, one scenario per growth rate."""
    return [
        _simulate_pot(starting_pot, annual_spend, retirement_age, end_age, r,
                      state_pension_age, state_pension_annual, tax_aware, bands)
        for r in rates
    ]


# ---------- Multi-wrapper drawdown plan ----------

@dataclass
class PlanYear:
    age: int
    drawn: Dict[str, float]
    remaining: Dict[str, float]
    state_pension: float
    tax_paid: float
    net_income: float


@dataclass
class DrawdownPlan:
    years: List[PlanYear]
    total_tax_paid: float
    total_net_income: float
    exhaustion_age: Optional[int]


def _gia_withdrawal(amount: float, other_income: float, bands: TaxBands):
    """(net, tax) for a GIA sale; a fixed share of the proceeds is treated as gain."""
    if amount <= 0:
        return 0.0, 0.0
    gain = amount * DEFAULTS["gia_gain_fraction"]
    taxable_gain = max(0.0, gain - CGT_ANNUAL_EXEMPT_AMOUNT)
    if taxable_gain <= 0:
        return amount, 0.0
    taxable_income = max(0.0, other_income - bands.allowance_for(other_income))
    rate = CGT_HIGHER_RATE if taxable_income > bands.bands[0].upper else CGT_BASIC_RATE
    tax = taxable_gain * rate
    return amount - tax, tax


def _pension_withdrawal(gross: float, other_income: float, bands: TaxBands):
    tax = estimate_pension_withdrawal_tax(gross, other_income, bands)
    return gross - tax, tax


def generate_drawdown_plan(pots: Dict[str, float], annual_need: float,
                           state_pension_annual: float, state_pension_age: int,
                           start_age: int, end_age: int = DEFAULTS["end_age"],
                           growth_rate: float = DEFAULTS["drawdown_growth"],
                           strategy: str = "tax_optimal",
                           bands: TaxBands = UK_BANDS) -> DrawdownPlan:
    """Drawdown across wrappers.

    tax_optimal: GIA first (uses the CGT allowance), then ISA, then cash, then
    pension grossed up for income tax. proportional: every wrapper drawn in
    proportion to its balance. Cash does not grow.
    """
    if strategy not in ("tax_optimal", "proportional"):
        raise ValueError(f"unknown drawdown strategy {strategy!r}")
    bal = {w: max(0.0, pots.get(w, 0.0)) for w in WRAPPERS}
    years = []
    total_tax = total_net = 0.0
    exhaustion_age = None

    for age in range(start_age, end_age + 1):
        state_pension = state_pension_annual if age >= state_pension_age else 0.0
        need = max(0.0, annual_need - state_pension)
        drawn = dict.fromkeys(WRAPPERS, 0.0)
        tax = 0.0

        if strategy == "tax_optimal":
            remaining = need
            if remaining > 0 and bal["gia"] > 0:
                drawn["gia"] = min(remaining, bal["gia"])
                net, t = _gia_withdrawal(drawn["gia"], state_pension, bands)
                remaining = max(0.0, remaining - net)
                tax += t
            for w in ("isa", "cash"):
                if remaining > 0 and bal[w] > 0:
                    drawn[w] = min(remaining, bal[w])
                    remaining -= drawn[w]
            if remaining > 0 and bal["pension"] > 0:
                gross = calculate_gross_pension_withdrawal(remaining, state_pension, bands)
                drawn["pension"] = min(gross, bal["pension"])
                _, t = _pension_withdrawal(drawn["pension"], state_pension, bands)
                tax += t
        else:
            available = sum(bal.values())
            if available > 0 and need > 0:
                ratio = min(1.0, need / available)
                for w in WRAPPERS:
                    drawn[w] = bal[w] * ratio
                tax += _pension_withdrawal(drawn["pension"], state_pension, bands)[1]
                tax += _gia_withdrawal(drawn["gia"], state_pension, bands)[1]

        for w in WRAPPERS:
            bal[w] = max(0.0, bal[w] - drawn[w])
        if exhaustion_age is None and need > 0 and sum(bal.values()) <= 0:
            exhaustion_age = age
        for w in ("pension", "isa", "gia"):
            bal[w] *= 1 + growth_rate

        net_income = sum(drawn.values()) + state_pension - tax
        total_tax += tax
        total_net += net_income
        years.append(PlanYear(
            age=age,
            drawn={w: round_pence(v) for w, v in drawn.items()},
            remaining={w: round_pence(v) for w, v in bal.items()},
            state_pension=round_pence(state_pension),
            tax_paid=round_pence(tax),
            net_income=round_pence(net_income),
        ))

    return DrawdownPlan(
        years=years,
        total_tax_paid=round_pence(total_tax),
        total_net_income=round_pence(total_net),
        exhaustion_age=exhaustion_age,
    )


def compare_drawdown_strategies(pots: Dict[str, float], annual_need: float,
                                state_pension_annual: float, state_pension_age: int,
                                start_age: int, end_age: int = DEFAULTS["end_age"],
                                growth_rate: float = DEFAULTS["drawdown_growth"]) -> Dict[str, float]:
    optimal = generate_drawdown_plan(pots, annual_need, state_pension_annual, state_pension_age,
                                     start_age, end_age, growth_rate, "tax_optimal")
    proportional = generate_drawdown_plan(pots, annual_need, state_pension_annual,
                                          state_pension_age, start_age, end_age, growth_rate,
                                          "proportional")
    return {
        "optimal_tax_paid": optimal.total_tax_paid,
        "proportional_tax_paid": proportional.total_tax_paid,
        "tax_saving": round_pence(proportional.total_tax_paid - optimal.total_tax_paid),
    }
