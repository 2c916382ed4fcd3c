"""
Household record as handed over by the storage/migration layer.

The record is already validated and in its current shape; the engine reads it
and never writes to it (see ``scenarios.apply_overrides`` for what-if copies).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from money import round_pence
from tax_uk import (
    FULL_NEW_STATE_PENSION_ANNUAL,
    STATE_PENSION_MINIMUM_YEARS,
    STATE_PENSION_QUALIFYING_YEARS,
)

ACCOUNT_WRAPPERS = {
    "workplace_pension": "pension",
    "sipp": "pension",
    "stocks_and_shares_isa": "isa",
    "cash_isa": "isa",
    "lifetime_isa": "isa",
    "gia": "gia",
    "cash_savings": "cash",
    "premium_bonds": "premium_bonds",
}

CONTRIBUTION_PERIODS = {"monthly": 12, "annually": 1}


def pro_rata_state_pension(qualifying_years: float) -> float:
    """New state pension scaled by NI qualifying years (nothing below the minimum)."""
    if qualifying_years < STATE_PENSION_MINIMUM_YEARS:
        return 0.0
    share = min(1.0, qualifying_years / STATE_PENSION_QUALIFYING_YEARS)
    return round_pence(share * FULL_NEW_STATE_PENSION_ANNUAL)


@dataclass
class Person:
    id: str
    name: str
    date_of_birth: date
    planned_retirement_age: int
    pension_access_age: int
    state_pension_age: int
    relationship: str = "self"
    retirement_age_override: Optional[int] = None
    state_pension_annual: Optional[float] = None
    ni_qualifying_years: int = 0

    @property
    def effective_retirement_age(self) -> int:
        if self.retirement_age_override is not None:
            return self.retirement_age_override
        return self.planned_retirement_age

    @property
    def state_pension_entitlement(self) -> float:
        if self.state_pension_annual is not None:
            return self.state_pension_annual
        return pro_rata_state_pension(self.ni_qualifying_years)


@dataclass
class Holding:
    fund_id: str
    units: float
    purchase_price: float
    current_price: float

    @property
    def value(self) -> float:
        return self.units * self.current_price


@dataclass
class Account:
    id: str
    person_id: str
    type: str
    current_value: float
    name: str = ""
    provider: str = ""
    holdings: List[Holding] = field(default_factory=list)

    @property
    def tax_wrapper(self) -> str:
        return ACCOUNT_WRAPPERS[self.type]


@dataclass
class Contribution:
    id: str
    person_id: str
    target: str
    amount: float
    frequency: str = "monthly"
    label: str = ""

    @property
    def annual_amount(self) -> float:
        return self.amount * CONTRIBUTION_PERIODS[self.frequency]


@dataclass
class PersonIncome:
    person_id: str
    gross_salary: float
    employer_pension_contribution: float = 0.0
    employee_pension_contribution: float = 0.0
    pension_contribution_method: str = "salary_sacrifice"


@dataclass
class CommittedOutgoing:
    id: str
    category: str
    amount: float
    frequency: str = "monthly"
    label: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    person_id: Optional[str] = None


@dataclass
class RetirementConfig:
    target_annual_income: float
    withdrawal_rate: float
    include_state_pension: bool = True
    scenario_rates: List[float] = field(default_factory=lambda: [0.05, 0.07, 0.09])


@dataclass
class Household:
    persons: List[Person]
    retirement: RetirementConfig
    accounts: List[Account] = field(default_factory=list)
    contributions: List[Contribution] = field(default_factory=list)
    income: List[PersonIncome] = field(default_factory=list)
    committed_outgoings: List[CommittedOutgoing] = field(default_factory=list)

    def primary_person(self) -> Optional[Person]:
        for p in self.persons:
            if p.relationship == "self":
                return p
        return self.persons[0] if self.persons else None

    def investable_total(self) -> float:
        return sum(a.current_value for a in self.accounts)

    def wrapper_total(self, wrapper: str, person_id: Optional[str] = None) -> float:
        return sum(
            a.current_value for a in self.accounts
            if a.tax_wrapper == wrapper and (person_id is None or a.person_id == person_id)
        )

    def annual_contributions_total(self) -> float:
        """Discretionary contributions plus employee and employer pension contributions."""
        discretionary = sum(c.annual_amount for c in self.contributions)
        employment = sum(
            i.employee_pension_contribution + i.employer_pension_contribution
            for i in self.income
        )
        return discretionary + employment

    def state_pension_total(self) -> float:
        return sum(p.state_pension_entitlement for p in self.persons)
