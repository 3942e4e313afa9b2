# seek/pricing.py
from decimal import Decimal, ROUND_HALF_UP

# Stripe charges these in whole units (no cents)
ZERO_DECIMAL_CURRENCIES = {
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
}


def _as_decimal(value) -> Decimal:
    # str() first: Decimal(19.99) would carry the float's binary error along
    return value if isinstance(value, Decimal) else Decimal(str(value))


def to_minor_units(price, currency: str) -> int:
    """Stripe ``unit_amount`` for a decimal price, e.g. 19.99 USD -> 1999."""
    amount = _as_decimal(price)
    if currency.lower() not in ZERO_DECIMAL_CURRENCIES:
        amount = amount * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int, currency: str) -> Decimal:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount)
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))
