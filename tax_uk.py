import math

from tax_models import Band, TaxBands, NIBands

# 2024/25 baseline (UK)
TAX_YEAR = "2024/25"

BASE_PERSONAL_ALLOWANCE = 12_570
BASE_BASIC_RATE_LIMIT = 50_270     # gross, with a full allowance
BASE_HIGHER_RATE_LIMIT = 125_140
BASIC_RATE_BAND = 37_700           # taxable income
BASE_PA_TAPER_START = 100_000
PA_TAPER_RATE = 0.5               # £1 of allowance lost per £2 over the start

BASIC_RATE = 0.20
HIGHER_RATE = 0.40
ADDITIONAL_RATE = 0.45

# Class 1 employee NI
NI_PRIMARY_THRESHOLD = 12_570
NI_UPPER_EARNINGS_LIMIT = 50_270
NI_MAIN_RATE = 0.08
NI_RATE_ABOVE_UEL = 0.02

# Pension annual allowance and its taper for high earners
PENSION_ANNUAL_ALLOWANCE = 60_000
PENSION_TAPER_THRESHOLD_INCOME = 200_000
PENSION_TAPER_ADJUSTED_INCOME = 260_000
PENSION_TAPER_RATE = 0.5
PENSION_MINIMUM_TAPERED_ALLOWANCE = 10_000

STUDENT_LOAN_PLANS = {
    "plan1": {"threshold": 24_990, "rate": 0.09},
    "plan2": {"threshold": 27_295, "rate": 0.09},
    "plan4": {"threshold": 31_395, "rate": 0.09},
    "plan5": {"threshold": 25_000, "rate": 0.09},
    "postgrad": {"threshold": 21_000, "rate": 0.06},
}

CGT_ANNUAL_EXEMPT_AMOUNT = 3_000
CGT_BASIC_RATE = 0.18
CGT_HIGHER_RATE = 0.24

FULL_NEW_STATE_PENSION_ANNUAL = 11_502.40
STATE_PENSION_QUALIFYING_YEARS = 35
STATE_PENSION_MINIMUM_YEARS = 10


def uk_income_tax_bands(factor: float = 1.0) -> TaxBands:
    """UK income tax bands, thresholds scaled by ``factor`` (e.g. CPI indexation)."""
    return TaxBands(
        personal_allowance=BASE_PERSONAL_ALLOWANCE * factor,
        taper_start=BASE_PA_TAPER_START * factor,
        taper_rate=PA_TAPER_RATE,
        bands=[
            Band(upper=BASIC_RATE_BAND * factor, rate=BASIC_RATE, name="Basic Rate"),
            Band(upper=BASE_HIGHER_RATE_LIMIT * factor, rate=HIGHER_RATE, name="Higher Rate"),
            Band(upper=math.inf, rate=ADDITIONAL_RATE, name="Additional Rate"),
        ],
    )


def uk_ni_bands(factor: float = 1.0) -> NIBands:
    return NIBands(
        bands=[
            Band(upper=NI_PRIMARY_THRESHOLD * factor, rate=0.0, name="Below Primary Threshold"),
            Band(upper=NI_UPPER_EARNINGS_LIMIT * factor, rate=NI_MAIN_RATE,
                 name="Primary Threshold to Upper Earnings Limit"),
            Band(upper=math.inf, rate=NI_RATE_ABOVE_UEL, name="Above Upper Earnings Limit"),
        ]
    )


UK_BANDS = uk_income_tax_bands()
UK_NI_BANDS = uk_ni_bands()
