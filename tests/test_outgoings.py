from datetime import date

import pytest

from models import CommittedOutgoing
from outgoings import annualise_outgoing, project_committed_outgoings, total_for_year


@pytest.mark.parametrize("frequency, expected", [
    ("monthly", 12_000),
    ("termly", 3_000),
    ("annually", 1_000),
])
def test_annualise(frequency, expected):
    assert annualise_outgoing(1_000, frequency) == expected


def test_unknown_frequency():
    with pytest.raises(KeyError):
        annualise_outgoing(1_000, "fortnightly")


def test_open_ended_outgoing(household):
    df = project_committed_outgoings(household.committed_outgoings, 2025, 3)
    assert list(df.columns) == ["year", "id", "category", "label", "annual"]
    assert list(df["year"]) == [2025, 2026, 2027, 2028]
    assert (df["annual"] == 18_000).all()


def test_start_and_end_dates_pro_rated():
    fees = CommittedOutgoing(id="o2", category="school_fees", amount=6_000, frequency="termly",
                             label="School", start_date=date(2025, 9, 1), end_date=date(2027, 7, 31))
    df = project_committed_outgoings([fees], 2025, 3)
    assert total_for_year(df, 2025) == pytest.approx(18_000 * 4 / 12)
    assert total_for_year(df, 2026) == pytest.approx(18_000)
    assert total_for_year(df, 2027) == pytest.approx(18_000 * 7 / 12)
    assert total_for_year(df, 2028) == 0


def test_totals_across_outgoings(household):
    extra = CommittedOutgoing(id="o3", category="other", amount=500, frequency="annually")
    df = project_committed_outgoings(household.committed_outgoings + [extra], 2025, 1)
    assert total_for_year(df, 2025) == pytest.approx(18_500)


def test_no_outgoings():
    df = project_committed_outgoings([], 2025, 5)
    assert df.empty
    assert total_for_year(df, 2025) == 0
