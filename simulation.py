import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from config import DEFAULTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonteCarloConfig:
    current_value: float
    annual_contribution: float
    expected_return: float   # arithmetic mean annual return, e.g. 0.05
    volatility: float        # annual standard deviation, e.g. 0.15
    years: int
    runs: int = DEFAULTS["mc_runs"]
    percentiles: Tuple[float, ...] = DEFAULTS["mc_percentiles"]
    seed: int = DEFAULTS["mc_seed"]

    def __post_init__(self):
        if self.years < 0:
            raise ValueError("years must be >= 0")
        if self.runs < 1:
            raise ValueError("runs must be >= 1")
        if any(not 0 <= p <= 100 for p in self.percentiles):
            raise ValueError("percentiles must lie in [0, 100]")
        if self.expected_return <= -1:
            raise ValueError("expected return must be greater than -100%")
        # normalise so equal configs compare and hash equal
        object.__setattr__(self, "percentiles", tuple(sorted(self.percentiles)))


@dataclass
class YearResult:
    year: int
    mean: float
    percentiles: Dict[float, float] = field(default_factory=dict)


@dataclass
class MonteCarloResult:
    timeline: List[YearResult]
    config: MonteCarloConfig

    def band(self, low: float, high: float) -> List[float]:
        return [y.percentiles[high] - y.percentiles[low] for y in self.timeline]


def _log_params(expected_return: float, volatility: float):
    # E[growth] = 1 + mu  =>  log mu = ln(1 + mu) - sigma^2 / 2
    sigma = max(abs(volatility), DEFAULTS["min_volatility"])
    mu = np.log1p(expected_return) - 0.5 * sigma ** 2
    return mu, sigma


def simulate_paths(cfg: MonteCarloConfig, years: Optional[int] = None) -> np.ndarray:
    """Year-end portfolio values, shape (runs, years + 1); column 0 is the start value.

    All normal draws come from one ``default_rng(seed)`` matrix, so the output
    is a pure function of the config and path ``i`` is the same whichever
    horizon is asked for.
    """
    horizon = cfg.years if years is None else years
    mu, sigma = _log_params(cfg.expected_return, cfg.volatility)
    rng = np.random.default_rng(cfg.seed)
    z = rng.standard_normal(size=(cfg.runs, cfg.years))[:, :horizon]
    growth = np.exp(mu + sigma * z)

    paths = np.empty((cfg.runs, horizon + 1))
    paths[:, 0] = max(0.0, cfg.current_value)
    for t in range(1, horizon + 1):
        paths[:, t] = np.maximum(0.0, paths[:, t - 1] * growth[:, t - 1] + cfg.annual_contribution)
    return paths


def run_monte_carlo_simulation(cfg: MonteCarloConfig) -> MonteCarloResult:
    paths = simulate_paths(cfg)
    qs = list(cfg.percentiles)

    # (len(qs), years + 1); linear interpolation between order statistics
    pct = np.percentile(paths, qs, axis=0) if qs else np.empty((0, cfg.years + 1))
    # guard against float noise in the interpolation breaking rank order
    pct = np.maximum.accumulate(pct, axis=0)
    means = paths.mean(axis=0)

    start = float(paths[0, 0])
    timeline = [YearResult(
        year=0,
        mean=start,
        percentiles={q: start for q in qs},
    )]
    for year in range(1, cfg.years + 1):
        timeline.append(YearResult(
            year=year,
            mean=float(means[year]),
            percentiles={q: float(pct[i, year]) for i, q in enumerate(qs)},
        ))

    logger.debug("monte carlo: %d runs x %d years, final median %.2f",
                 cfg.runs, cfg.years, float(np.median(paths[:, -1])))
    return MonteCarloResult(timeline=timeline, config=cfg)


def compute_success_probability(cfg: MonteCarloConfig, target: float,
                                at_year: Optional[int] = None) -> float:
    """Fraction of simulated paths whose value at ``at_year`` (default: final year) is >= target."""
    year = cfg.years if at_year is None else at_year
    if not 0 <= year <= cfg.years:
        raise ValueError(f"at_year must lie in [0, {cfg.years}], got {year!r}")
    values = simulate_paths(cfg, years=year)[:, year]
    return float(np.count_nonzero(values >= target)) / cfg.runs
