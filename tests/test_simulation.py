import pytest

from simulation import (
    MonteCarloConfig,
    compute_success_probability,
    run_monte_carlo_simulation,
    simulate_paths,
)


@pytest.fixture
def cfg():
    return MonteCarloConfig(
        current_value=500_000,
        annual_contribution=30_000,
        expected_return=0.05,
        volatility=0.15,
        years=30,
        runs=500,
    )


def test_timeline_length_and_year_zero(cfg):
    result = run_monte_carlo_simulation(cfg)
    assert len(result.timeline) == 31
    first = result.timeline[0]
    assert first.year == 0
    assert first.mean == 500_000
    assert all(v == 500_000 for v in first.percentiles.values())
    assert sorted(first.percentiles) == [10, 25, 50, 75, 90]


def test_median_grows(cfg):
    timeline = run_monte_carlo_simulation(cfg).timeline
    p50 = [y.percentiles[50] for y in timeline]
    assert p50[30] > p50[20] > p50[10] > 500_000


def test_percentiles_ordered(cfg):
    for year in run_monte_carlo_simulation(cfg).timeline[1:]:
        values = [year.percentiles[q] for q in (10, 25, 50, 75, 90)]
        assert values == sorted(values)


def test_deterministic(cfg):
    a = run_monte_carlo_simulation(cfg)
    b = run_monte_carlo_simulation(cfg)
    for ya, yb in zip(a.timeline, b.timeline):
        assert ya.mean == yb.mean
        assert ya.percentiles == yb.percentiles


def test_seed_changes_paths(cfg):
    other = MonteCarloConfig(**{**vars(cfg), "seed": 7})
    assert run_monte_carlo_simulation(other).timeline[10].mean != \
        run_monte_carlo_simulation(cfg).timeline[10].mean


def test_volatility_widens_band():
    calm = MonteCarloConfig(100_000, 5_000, 0.05, 0.10, 20, runs=500)
    wild = MonteCarloConfig(100_000, 5_000, 0.05, 0.25, 20, runs=500)
    calm_band = run_monte_carlo_simulation(calm).band(10, 90)[10]
    wild_band = run_monte_carlo_simulation(wild).band(10, 90)[10]
    assert wild_band > calm_band


def test_negative_return_never_below_zero():
    cfg = MonteCarloConfig(10_000, -2_000, -0.05, 0.30, 25, runs=300)
    for year in run_monte_carlo_simulation(cfg).timeline:
        assert year.percentiles[10] >= 0
    assert (simulate_paths(cfg) >= 0).all()


def test_zero_volatility_is_deterministic_compounding():
    cfg = MonteCarloConfig(500_000, 30_000, 0.05, 0.0, 10, runs=50)
    expected = 500_000 * 1.05 ** 10 + 30_000 * (1.05 ** 10 - 1) / 0.05
    final = run_monte_carlo_simulation(cfg).timeline[10]
    assert final.percentiles[50] == pytest.approx(expected, rel=1e-5)
    assert final.percentiles[90] - final.percentiles[10] < expected * 1e-4


def test_success_probability_monotone(cfg):
    targets = [0, 1, 500_000, 1_000_000, 2_000_000, 4_000_000, 1e12]
    probs = [compute_success_probability(cfg, t) for t in targets]
    assert all(0 <= p <= 1 for p in probs)
    assert probs == sorted(probs, reverse=True)
    assert probs[1] > 0.95
    assert probs[-1] < 0.05


def test_success_probability_at_median(cfg):
    median = run_monte_carlo_simulation(cfg).timeline[10].percentiles[50]
    assert compute_success_probability(cfg, median, at_year=10) == pytest.approx(0.5)


def test_success_probability_year_zero(cfg):
    assert compute_success_probability(cfg, 500_000, at_year=0) == 1.0
    assert compute_success_probability(cfg, 500_001, at_year=0) == 0.0


@pytest.mark.parametrize("at_year", [-1, 31])
def test_success_probability_rejects_out_of_range_year(cfg, at_year):
    with pytest.raises(ValueError):
        compute_success_probability(cfg, 1_000_000, at_year=at_year)


@pytest.mark.parametrize("overrides", [
    {"years": -1},
    {"runs": 0},
    {"percentiles": (10, 101)},
    {"expected_return": -1.0},
])
def test_invalid_config(overrides):
    fields = dict(current_value=1_000, annual_contribution=0, expected_return=0.05,
                  volatility=0.1, years=5)
    fields.update(overrides)
    with pytest.raises(ValueError):
        MonteCarloConfig(**fields)


def test_percentiles_are_sorted():
    cfg = MonteCarloConfig(1_000, 0, 0.05, 0.1, 5, percentiles=(90, 10, 50))
    assert cfg.percentiles == (10, 50, 90)


def test_zero_years():
    cfg = MonteCarloConfig(1_000, 100, 0.05, 0.1, 0, runs=10)
    result = run_monte_carlo_simulation(cfg)
    assert len(result.timeline) == 1
    assert result.timeline[0].percentiles[50] == 1_000
