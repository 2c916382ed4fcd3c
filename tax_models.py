from dataclasses import dataclass, field
from typing import List
import math


class InvalidTaxBands(ValueError):
    """Raised when a band table is malformed (thresholds not increasing, bad rates)."""


# ---------- Data structures ----------
@dataclass(frozen=True)
class Band:
    upper: float  # upper limit in taxable (or NI-able) income; math.inf for top
    rate: float   # marginal rate, e.g. 0.20
    name: str = ""


def _check_bands(bands: List[Band]) -> None:
    if not bands:
        raise InvalidTaxBands("at least one band is required")
    last = -math.inf
    for b in bands:
        if not 0.0 <= b.rate <= 1.0:
            raise InvalidTaxBands(f"band rate {b.rate!r} outside [0, 1]")
        if b.upper <= last:
            raise InvalidTaxBands(
                f"band thresholds must be strictly increasing ({b.upper!r} after {last!r})"
            )
        last = b.upper


@dataclass(frozen=True)
class TaxBands:
    """Income tax table: allowance with UK-style taper, then marginal bands.

    Bands slice taxable income, i.e. gross less the (tapered) allowance, so a
    shrinking allowance drags income into higher bands: the 60% trap.
    """
    personal_allowance: float
    bands: List[Band] = field(default_factory=list)
    taper_start: float = math.inf
    taper_rate: float = 0.5  # £1 allowance lost per £2 => 0.5

    def __post_init__(self):
        if self.personal_allowance < 0:
            raise InvalidTaxBands("personal allowance cannot be negative")
        if self.taper_rate <= 0:
            raise InvalidTaxBands("taper rate must be positive")
        _check_bands(self.bands)
        if self.taper_end < self.taper_start:
            raise InvalidTaxBands("taper end must not precede taper start")

    @property
    def taper_end(self) -> float:
        """Gross income at which the allowance reaches zero."""
        return self.taper_start + self.personal_allowance / self.taper_rate

    def allowance_for(self, gross: float) -> float:
        if gross <= self.taper_start:
            return self.personal_allowance
        reduction = math.floor((gross - self.taper_start) * self.taper_rate)
        return max(0.0, self.personal_allowance - reduction)

    def indexed(self, factor: float) -> "TaxBands":
        """Scale thresholds by factor (approximate bracket indexation with CPI)."""
        def idx(x): return (x if math.isinf(x) else x * factor)
        return TaxBands(
            personal_allowance=self.personal_allowance * factor,
            bands=[Band(upper=idx(b.upper), rate=b.rate, name=b.name) for b in self.bands],
            taper_start=idx(self.taper_start),
            taper_rate=self.taper_rate,
        )

    def with_extended_first_band(self, amount: float) -> "TaxBands":
        """Push the first band's upper limit out by ``amount`` (relief-at-source pensions)."""
        if amount <= 0:
            return self
        first, rest = self.bands[0], self.bands[1:]
        upper = first.upper + amount
        if rest:
            upper = min(upper, math.nextafter(rest[0].upper, -math.inf))
        return TaxBands(
            personal_allowance=self.personal_allowance,
            bands=[Band(upper=upper, rate=first.rate, name=first.name)] + list(rest),
            taper_start=self.taper_start,
            taper_rate=self.taper_rate,
        )


@dataclass(frozen=True)
class NIBands:
    """National Insurance table: marginal bands starting from zero earnings."""
    bands: List[Band] = field(default_factory=list)

    def __post_init__(self):
        _check_bands(self.bands)
