from datetime import date

import pytest

from models import (
    Account,
    CommittedOutgoing,
    Contribution,
    Household,
    Person,
    PersonIncome,
    RetirementConfig,
)

AS_OF = date(2025, 1, 1)


def make_person(**overrides):
    fields = dict(
        id="p1",
        name="Alice",
        date_of_birth=date(1980, 1, 15),
        planned_retirement_age=60,
        pension_access_age=57,
        state_pension_age=67,
        relationship="self",
        ni_qualifying_years=30,
    )
    fields.update(overrides)
    return Person(**fields)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def household():
    return Household(
        persons=[
            make_person(),
            make_person(id="p2", name="Bob", relationship="spouse",
                        date_of_birth=date(1982, 6, 1), state_pension_annual=11_502.40),
        ],
        accounts=[
            Account(id="a1", person_id="p1", type="sipp", name="SIPP", current_value=500_000),
            Account(id="a2", person_id="p1", type="stocks_and_shares_isa", name="ISA",
                    current_value=100_000),
            Account(id="a3", person_id="p2", type="workplace_pension", name="Workplace",
                    current_value=150_000),
            Account(id="a4", person_id="p2", type="cash_savings", name="Cash", current_value=20_000),
        ],
        contributions=[
            Contribution(id="c1", person_id="p1", target="isa", amount=1_000, frequency="monthly"),
        ],
        income=[
            PersonIncome(person_id="p1", gross_salary=100_000,
                         employer_pension_contribution=10_000,
                         employee_pension_contribution=5_000),
        ],
        committed_outgoings=[
            CommittedOutgoing(id="o1", category="mortgage", amount=1_500, frequency="monthly",
                              label="Mortgage"),
        ],
        retirement=RetirementConfig(target_annual_income=40_000, withdrawal_rate=0.04,
                                    scenario_rates=[0.05, 0.07, 0.09]),
    )
