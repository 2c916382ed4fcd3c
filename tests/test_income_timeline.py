import pytest

from income_timeline import (
    PersonRetirementInput,
    build_income_timeline,
    reference_ages,
    retirement_inputs_from_household,
)
from models import Account


@pytest.fixture
def alice():
    return PersonRetirementInput(
        name="Alice",
        pension_access_age=57,
        state_pension_age=67,
        pension_pot=500_000,
        accessible_wealth=200_000,
        state_pension_annual=11_502,
    )


def by_age(rows):
    return {r.age: r for r in rows}


def test_one_row_per_age(alice):
    rows = build_income_timeline([alice], 40_000, 55, 95, 0.05)
    assert len(rows) == 41
    assert rows[0].age == 55
    assert rows[-1].age == 95


def test_state_pension_from_state_pension_age(alice):
    rows = by_age(build_income_timeline([alice], 40_000, 55, 70, 0.05))
    assert rows[66].state_pension["Alice"] == 0
    assert rows[67].state_pension["Alice"] == 11_502


def test_pension_from_access_age(alice):
    rows = by_age(build_income_timeline([alice], 40_000, 55, 70, 0.05))
    assert rows[56].pension["Alice"] == 0
    assert rows[57].pension["Alice"] == 40_000
    assert rows[67].pension["Alice"] == 40_000 - 11_502


def test_savings_bridge_before_access(alice):
    rows = by_age(build_income_timeline([alice], 40_000, 55, 70, 0.05))
    assert rows[55].savings["Alice"] == 40_000
    assert rows[55].shortfall == 0
    assert rows[57].savings["Alice"] == 0


def test_shortfall_is_separate(alice):
    alice.pension_pot = 10_000
    alice.accessible_wealth = 5_000
    rows = build_income_timeline([alice], 40_000, 55, 95, 0.05)
    assert rows[0].savings_total == 5_000
    assert rows[0].shortfall == 35_000
    assert any(r.shortfall > 0 for r in rows)
    for r in rows:
        assert r.total_income + r.shortfall == pytest.approx(40_000, abs=0.02)


def test_pro_rata_split_across_persons(alice):
    alice.pension_pot = 300_000
    bob = PersonRetirementInput(name="Bob", pension_access_age=57, state_pension_age=67,
                                pension_pot=100_000, accessible_wealth=50_000,
                                state_pension_annual=11_502)
    first = build_income_timeline([alice, bob], 40_000, 57, 58, 0.05)[0]
    assert first.pension["Alice"] == 30_000
    assert first.pension["Bob"] == 10_000
    assert first.pension_total == 40_000


def test_pots_grow_after_draw(alice):
    alice.accessible_wealth = 0
    alice.pension_pot = 100_000
    rows = build_income_timeline([alice], 60_000, 57, 58, 0.10)
    # 100k - 60k = 40k, grown 10% to 44k, all of it drawn next year
    assert rows[1].pension["Alice"] == pytest.approx(44_000)
    assert rows[1].shortfall == pytest.approx(16_000)


def test_savings_access_age(alice):
    alice.savings_access_age = 56
    rows = by_age(build_income_timeline([alice], 40_000, 55, 57, 0.05))
    assert rows[55].savings["Alice"] == 0
    assert rows[55].shortfall == 40_000
    assert rows[56].savings["Alice"] == 40_000


def test_reference_ages_dedup_and_range(alice):
    bob = PersonRetirementInput(name="Bob", pension_access_age=57, state_pension_age=68,
                                pension_pot=0, accessible_wealth=0, state_pension_annual=0)
    refs = reference_ages([alice, bob], 55, 95)
    assert [r.age for r in refs] == [57, 67, 68]
    assert refs[0].label == "Alice Pension Access (57)"
    assert refs[2].label == "Bob State Pension (68)"
    assert [r.age for r in reference_ages([alice, bob], 60, 67)] == [67]


def test_inputs_from_household(household):
    inputs = {p.name: p for p in retirement_inputs_from_household(household)}
    assert inputs["Alice"].pension_pot == 500_000
    assert inputs["Alice"].accessible_wealth == 100_000
    assert inputs["Alice"].state_pension_annual == pytest.approx(9_859.20)
    assert inputs["Bob"].pension_pot == 150_000
    assert inputs["Bob"].accessible_wealth == 20_000
    assert inputs["Bob"].state_pension_annual == 11_502.40


def test_premium_bonds_count_as_accessible(household):
    household.accounts.append(
        Account(id="a5", person_id="p1", type="premium_bonds", current_value=50_000))
    inputs = {p.name: p for p in retirement_inputs_from_household(household)}
    assert inputs["Alice"].accessible_wealth == 150_000
    assert inputs["Alice"].pension_pot == 500_000
