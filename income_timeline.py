"""
Multi-person retirement income timeline.

Per year, in order: state pensions are paid in full once each person reaches
state pension age; the remaining need is drawn from DC pensions (pro rata to
pot size, once accessible); anything still uncovered comes from ISA/savings
(pro rata, once accessible). Pots are drawn first and then grown. Whatever
remains uncovered is reported as a separate shortfall.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from money import round_pence


@dataclass
class PersonRetirementInput:
    name: str
    pension_access_age: int
    state_pension_age: int
    pension_pot: float
    accessible_wealth: float
    state_pension_annual: float
    savings_access_age: int = 0


@dataclass
class YearRow:
    age: int
    state_pension: Dict[str, float] = field(default_factory=dict)
    pension: Dict[str, float] = field(default_factory=dict)
    savings: Dict[str, float] = field(default_factory=dict)
    shortfall: float = 0.0

    @property
    def state_pension_total(self) -> float:
        return sum(self.state_pension.values())

    @property
    def pension_total(self) -> float:
        return sum(self.pension.values())

    @property
    def savings_total(self) -> float:
        return sum(self.savings.values())

    @property
    def total_income(self) -> float:
        return self.state_pension_total + self.pension_total + self.savings_total


@dataclass
class ReferenceAge:
    age: int
    label: str


def _draw_pro_rata(balances: Dict[str, float], eligible: List[str], need: float,
                   growth_rate: float) -> Dict[str, float]:
    """Draw ``need`` across eligible balances in proportion to size; grow every balance after."""
    available = sum(balances[n] for n in eligible)
    drawn = dict.fromkeys(balances, 0.0)
    if need > 0 and available > 0:
        for n in eligible:
            share = balances[n] / available * need
            drawn[n] = min(share, balances[n])
            balances[n] -= drawn[n]
    for n in balances:
        if balances[n] > 0:
            balances[n] *= 1 + growth_rate
    return drawn


def build_income_timeline(persons: List[PersonRetirementInput], target_annual_income: float,
                          retirement_age: int, end_age: int,
                          growth_rate: float) -> List[YearRow]:
    pensions = {p.name: max(0.0, p.pension_pot) for p in persons}
    savings = {p.name: max(0.0, p.accessible_wealth) for p in persons}
    rows = []

    for age in range(retirement_age, end_age + 1):
        row = YearRow(age=age)
        total = 0.0

        for p in persons:
            amount = p.state_pension_annual if age >= p.state_pension_age else 0.0
            row.state_pension[p.name] = amount
            total += amount

        eligible = [p.name for p in persons if age >= p.pension_access_age and pensions[p.name] > 0]
        drawn = _draw_pro_rata(pensions, eligible, max(0.0, target_annual_income - total), growth_rate)
        row.pension = drawn
        total += sum(drawn.values())

        eligible = [p.name for p in persons if age >= p.savings_access_age and savings[p.name] > 0]
        drawn = _draw_pro_rata(savings, eligible, max(0.0, target_annual_income - total), growth_rate)
        row.savings = drawn
        total += sum(drawn.values())

        row.shortfall = max(0.0, target_annual_income - total)
        for stream in (row.state_pension, row.pension, row.savings):
            for name in stream:
                stream[name] = round_pence(stream[name])
        row.shortfall = round_pence(row.shortfall)
        rows.append(row)

    return rows


def reference_ages(persons: List[PersonRetirementInput], retirement_age: int,
                   end_age: int) -> List[ReferenceAge]:
    """Pension-access and state-pension ages inside the plotted range, one per age."""
    seen = set()
    out = []
    for p in persons:
        for age, label in ((p.pension_access_age, f"{p.name} Pension Access ({p.pension_access_age})"),
                           (p.state_pension_age, f"{p.name} State Pension ({p.state_pension_age})")):
            if retirement_age <= age <= end_age and age not in seen:
                seen.add(age)
                out.append(ReferenceAge(age=age, label=label))
    return out


def retirement_inputs_from_household(household) -> List[PersonRetirementInput]:
    """Per-person timeline inputs at today's balances; every non-pension account counts as accessible."""
    return [
        PersonRetirementInput(
            name=p.name,
            pension_access_age=p.pension_access_age,
            state_pension_age=p.state_pension_age,
            pension_pot=household.wrapper_total("pension", p.id),
            accessible_wealth=sum(a.current_value for a in household.accounts
                                  if a.person_id == p.id and a.tax_wrapper != "pension"),
            state_pension_annual=p.state_pension_entitlement,
        )
        for p in household.persons
    ]
