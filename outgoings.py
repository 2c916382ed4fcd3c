from datetime import date
from typing import List

import numpy as np
import pandas as pd

from models import CommittedOutgoing

OUTGOING_PERIODS = {"monthly": 12, "termly": 3, "annually": 1}


def annualise_outgoing(amount: float, frequency: str) -> float:
    return amount * OUTGOING_PERIODS[frequency]


def _active_fraction(o: CommittedOutgoing, year: int) -> float:
    """Share of calendar ``year`` the outgoing is live, counted in whole months."""
    start = o.start_date or date(year, 1, 1)
    end = o.end_date or date(year, 12, 31)
    first = max(start, date(year, 1, 1))
    last = min(end, date(year, 12, 31))
    if last < first:
        return 0.0
    months = (last.year - first.year) * 12 + last.month - first.month + 1
    return months / 12.0


def project_committed_outgoings(outgoings: List[CommittedOutgoing], start_year: int,
                                years: int) -> pd.DataFrame:
    """
    Returns a DataFrame with the annual cost of each committed outgoing for
    calendar years start_year .. start_year + years, pro-rated by active months.
    """
    idx = np.arange(start_year, start_year + years + 1)
    rows = []
    for o in outgoings:
        annual = annualise_outgoing(o.amount, o.frequency)
        fractions = np.array([_active_fraction(o, int(y)) for y in idx])
        rows.append(pd.DataFrame({
            "year": idx,
            "id": o.id,
            "category": o.category,
            "label": o.label,
            "annual": annual * fractions,
        }))
    if not rows:
        return pd.DataFrame(columns=["year", "id", "category", "label", "annual"])
    return pd.concat(rows, ignore_index=True)


def total_for_year(df: pd.DataFrame, year: int) -> float:
    return float(df.loc[df["year"] == year, "annual"].sum())
