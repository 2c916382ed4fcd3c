import math
from decimal import Decimal, ROUND_HALF_UP, localcontext

_PENNY = Decimal("0.01")
# enough digits for any finite float (max ~1.8e308) plus pence
_PRECISION = 330


def round_pence(amount: float) -> float:
    """Round half-up to the nearest penny.

    Goes through the shortest decimal repr so 2.675 rounds to 2.68 rather than
    inheriting the binary float's 2.67499... expansion. Non-finite values pass
    through unchanged.
    """
    amount = float(amount)
    if not math.isfinite(amount):
        return amount
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return float(Decimal(repr(amount)).quantize(_PENNY, rounding=ROUND_HALF_UP))


def clamp_non_negative(amount: float) -> float:
    return amount if amount > 0 else 0.0


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}£{abs(round_pence(amount)):,.2f}"


def format_currency_compact(amount: float) -> str:
    a = abs(amount)
    sign = "-" if amount < 0 else ""
    if a >= 1_000_000_000:
        return f"{sign}£{a / 1_000_000_000:.1f}bn"
    if a >= 1_000_000:
        return f"{sign}£{a / 1_000_000:.1f}m"
    if a >= 1_000:
        return f"{sign}£{a / 1_000:.1f}k"
    return format_currency(amount)


def format_percent(decimal_rate: float) -> str:
    return f"{decimal_rate * 100:.2f}%"


def rate_label(rate: float) -> str:
    """Column/legend label for a growth rate: 0.07 -> "7%", 0.055 -> "5.5%"."""
    return f"{rate * 100:g}%"
