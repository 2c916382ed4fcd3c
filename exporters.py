# exporters.py
# Tabular views of engine results for charting and table widgets.
from typing import List

import pandas as pd

from drawdown import DrawdownScenario
from income_timeline import YearRow
from money import rate_label
from projections import ScenarioProjection
from sensitivity import SensitivityResult
from simulation import MonteCarloResult
from taxes import TaxCurvePoint


def projections_to_frame(projections: List[ScenarioProjection]) -> pd.DataFrame:
    """Wide frame: one row per year, one column per rate label ("7%")."""
    df = pd.DataFrame({"year": [p.year for p in projections[0].points]}) if projections else pd.DataFrame()
    for proj in projections:
        df[rate_label(proj.rate)] = [p.value for p in proj.points]
    return df


def monte_carlo_to_frame(result: MonteCarloResult) -> pd.DataFrame:
    rows = []
    for y in result.timeline:
        row = {"year": y.year, "mean": y.mean}
        row.update({f"p{q:g}": v for q, v in y.percentiles.items()})
        rows.append(row)
    return pd.DataFrame(rows)


def drawdown_to_frame(scenarios: List[DrawdownScenario]) -> pd.DataFrame:
    """Long frame: one row per (rate, age)."""
    return pd.DataFrame([
        {"rate": s.rate, "label": s.label, **vars(y)}
        for s in scenarios for y in s.years
    ])


def timeline_to_frame(rows: List[YearRow]) -> pd.DataFrame:
    """One column per stream ("Alice State Pension", "Alice Pension", "Alice ISA/Savings"), plus Shortfall."""
    out = []
    for r in rows:
        row = {"age": r.age}
        row.update({f"{n} State Pension": v for n, v in r.state_pension.items()})
        row.update({f"{n} Pension": v for n, v in r.pension.items()})
        row.update({f"{n} ISA/Savings": v for n, v in r.savings.items()})
        row["Shortfall"] = r.shortfall
        out.append(row)
    return pd.DataFrame(out)


def sensitivity_to_frame(result: SensitivityResult) -> pd.DataFrame:
    return pd.DataFrame([vars(i) for i in result.inputs],
                        columns=["key", "label", "unit", "current_value", "impact"])


def tax_curve_to_frame(points: List[TaxCurvePoint]) -> pd.DataFrame:
    df = pd.DataFrame([vars(p) for p in points], columns=["income", "marginal_rate", "effective_rate"])
    df["marginal_pct"] = (df["marginal_rate"] * 100).round(2)
    df["effective_pct"] = (df["effective_rate"] * 100).round(2)
    return df
