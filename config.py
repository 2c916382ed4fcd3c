APP_NAME = "FutureProof: Household Projection Engine"

# Documented defaults. Components take these as explicit keyword defaults only;
# nothing here is read at call time behind the caller's back.
DEFAULTS = {
    # Deterministic projections
    "scenario_rates": [0.05, 0.07, 0.09],
    "mid_rate_fallback": 0.07,
    "end_age": 95,

    # Monte Carlo
    "mc_runs": 1000,
    "mc_percentiles": (10, 25, 50, 75, 90),
    "mc_seed": 42,
    "min_volatility": 1e-6,           # floor before the log-return transform

    # Drawdown
    "drawdown_growth": 0.04,
    "pension_tax_free_fraction": 0.25,  # PCLS, spread across withdrawals
    "gross_up_tolerance": 0.01,         # one penny
    "gia_gain_fraction": 0.5,           # share of a GIA withdrawal treated as gain

    # Sensitivity deltas by input class
    "sensitivity_deltas": {
        "rate": 0.01,     # +1 percentage point
        "age": 1,         # +1 year
        "amount": 0.10,   # +10%
    },

    # Scenario deltas below this are reported as unchanged
    "scenario_epsilon": 0.5,

    # Tax curve sampling
    "tax_curve_max_income": 200_000,
    "tax_curve_step": 1_000,
}
