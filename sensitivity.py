"""
One-at-a-time sensitivity: nudge a single input by its class delta, rerun the
same deterministic path used for the baseline, record perturbed - base.

Deltas: rate +1 percentage point, age +1 year, amount +10%. A parameter may
carry its own delta instead, which is added as-is.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from config import DEFAULTS
from drawdown import build_drawdown_data
from projections import (
    calculate_adjusted_required_pot,
    calculate_age,
    get_mid_scenario_rate,
    project_final_value,
)

logger = logging.getLogger(__name__)

UNITS = {"rate": "%", "age": "years", "amount": "£"}


@dataclass(frozen=True)
class SensitivityParameter:
    key: str
    label: str
    kind: str  # "rate" | "age" | "amount"
    delta: Optional[float] = None

    def __post_init__(self):
        if self.kind not in UNITS:
            raise ValueError(f"unknown input class {self.kind!r}")

    def perturb(self, value: float, deltas: Mapping[str, float] = DEFAULTS["sensitivity_deltas"]) -> float:
        if self.delta is not None:
            return value + self.delta
        if self.kind == "amount":
            return value * (1 + deltas["amount"])
        return value + deltas[self.kind]


@dataclass
class SensitivityInput:
    key: str
    label: str
    unit: str
    current_value: float
    impact: float


@dataclass
class SensitivityResult:
    metric_label: str
    baseline_value: float
    inputs: List[SensitivityInput] = field(default_factory=list)


def analyze(base_inputs: Mapping[str, float], target_metric_fn: Callable[[Dict[str, float]], float],
            parameters: Sequence[SensitivityParameter], metric_label: str = "") -> SensitivityResult:
    """Perturb each parameter in turn; results ordered by |impact|, ties in declaration order."""
    base = dict(base_inputs)
    baseline = target_metric_fn(dict(base))
    results = []
    for param in parameters:
        inputs = dict(base)
        inputs[param.key] = param.perturb(base[param.key])
        impact = target_metric_fn(inputs) - baseline
        current = base[param.key] * 100 if param.kind == "rate" else base[param.key]
        results.append(SensitivityInput(param.key, param.label, UNITS[param.kind], current, impact))
    results.sort(key=lambda r: abs(r.impact), reverse=True)  # stable
    logger.debug("sensitivity %r: baseline %.2f, top mover %s", metric_label, baseline,
                 results[0].key if results else None)
    return SensitivityResult(metric_label=metric_label, baseline_value=baseline, inputs=results)


HOUSEHOLD_PARAMETERS = {
    p.key: p for p in (
        SensitivityParameter("current_pot", "Current pot value", "amount"),
        SensitivityParameter("annual_contribution", "Annual contributions", "amount"),
        SensitivityParameter("growth_rate", "Investment return rate", "rate"),
        SensitivityParameter("retirement_age", "Retirement age", "age"),
        SensitivityParameter("salary", "Salary", "amount"),
        # a tighter withdrawal rate needs a bigger pot
        SensitivityParameter("withdrawal_rate", "Withdrawal rate", "rate", delta=-0.005),
        SensitivityParameter("target_income", "Target retirement income", "amount", delta=5_000),
    )
}


def _pot_at_retirement(inputs: Dict[str, float]) -> float:
    years = max(0, int(inputs["retirement_age"] - inputs["current_age"]))
    # pension contributions follow salary
    contribution = (inputs["annual_contribution"]
                    + (inputs["salary"] - inputs["base_salary"]) * inputs["pension_ratio"])
    return project_final_value(inputs["current_pot"], contribution, inputs["growth_rate"], years)


def _required_pot(inputs: Dict[str, float]) -> float:
    if inputs["withdrawal_rate"] <= 0:
        return 0.0
    return calculate_adjusted_required_pot(inputs["target_income"], inputs["withdrawal_rate"],
                                           inputs["include_state_pension"], inputs["state_pension"])


def _funding_surplus(inputs: Dict[str, float]) -> float:
    return _pot_at_retirement(inputs) - _required_pot(inputs)


def calculate_sensitivity(household, as_of: date) -> SensitivityResult:
    """What moves the projected pot at retirement for the household's primary person.

    Pot-side inputs report their change in the projected pot. Withdrawal rate
    and target income report the change in the required pot, negated, so a
    negative impact always means a worse position. Inputs that cannot move the
    metric (an empty pot, no contributions, no salary, already retired) are
    left out.
    """
    label = "Projected Pot at Retirement"
    person = household.primary_person()
    if person is None:
        return SensitivityResult(metric_label=label, baseline_value=0.0)

    retirement = household.retirement
    income = next((i for i in household.income if i.person_id == person.id), None)
    salary = income.gross_salary if income is not None else 0.0
    pension_ratio = 0.0
    if salary > 0:
        pension_ratio = (income.employee_pension_contribution
                         + income.employer_pension_contribution) / salary

    base = {
        "current_pot": household.investable_total(),
        "annual_contribution": household.annual_contributions_total(),
        "growth_rate": get_mid_scenario_rate(retirement.scenario_rates),
        "retirement_age": person.effective_retirement_age,
        "current_age": calculate_age(person.date_of_birth, as_of),
        "salary": salary,
        "base_salary": salary,
        "pension_ratio": pension_ratio,
        "withdrawal_rate": retirement.withdrawal_rate,
        "target_income": retirement.target_annual_income,
        "include_state_pension": retirement.include_state_pension,
        "state_pension": household.state_pension_total(),
    }

    skip = set()
    if base["current_pot"] <= 0:
        skip.add("current_pot")
    if base["annual_contribution"] <= 0:
        skip.add("annual_contribution")
    if base["retirement_age"] - base["current_age"] <= 0:
        skip.add("retirement_age")
    if salary <= 0:
        skip.add("salary")
    if HOUSEHOLD_PARAMETERS["withdrawal_rate"].perturb(base["withdrawal_rate"]) <= 0:
        skip.add("withdrawal_rate")
    if base["withdrawal_rate"] <= 0:
        skip.add("target_income")
    parameters = [p for k, p in HOUSEHOLD_PARAMETERS.items() if k not in skip]

    result = analyze(base, _funding_surplus, parameters, label)
    return replace(result, baseline_value=_pot_at_retirement(base))


DRAWDOWN_PARAMETERS = (
    SensitivityParameter("starting_pot", "Pot at retirement", "amount"),
    SensitivityParameter("annual_spend", "Annual spending", "amount"),
    SensitivityParameter("growth_rate", "Growth rate in retirement", "rate"),
    SensitivityParameter("retirement_age", "Retirement age", "age"),
    SensitivityParameter("state_pension_age", "State pension age", "age"),
    SensitivityParameter("state_pension_annual", "State pension", "amount"),
)


def _pot_at_end_age(inputs: Dict[str, float]) -> float:
    (scenario,) = build_drawdown_data(
        inputs["starting_pot"], inputs["annual_spend"], int(inputs["retirement_age"]),
        int(inputs["end_age"]), [inputs["growth_rate"]], int(inputs["state_pension_age"]),
        inputs["state_pension_annual"], tax_aware=bool(inputs["tax_aware"]),
    )
    return scenario.final_balance


def calculate_drawdown_sensitivity(starting_pot: float, annual_spend: float, retirement_age: int,
                                   end_age: int, growth_rate: float, state_pension_age: int,
                                   state_pension_annual: float,
                                   tax_aware: bool = True) -> SensitivityResult:
    """What moves the pot left at end age."""
    base = {
        "starting_pot": starting_pot,
        "annual_spend": annual_spend,
        "growth_rate": growth_rate,
        "retirement_age": retirement_age,
        "end_age": end_age,
        "state_pension_age": state_pension_age,
        "state_pension_annual": state_pension_annual,
        "tax_aware": tax_aware,
    }
    return analyze(base, _pot_at_end_age, DRAWDOWN_PARAMETERS, "Pot Remaining at End Age")
