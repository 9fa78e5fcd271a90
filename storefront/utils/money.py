# storefront/utils/money.py

from decimal import Decimal, ROUND_HALF_UP

Money = Decimal
CENT = Decimal("0.01")

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)

def percent_of(total, pct) -> Money:
    # unrounded; callers round once after any capping
    return D(total) * D(pct) / Decimal(100)

def to_float(x) -> float | None:
    return None if x is None else float(D(x))
