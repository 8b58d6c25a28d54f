"""Currency display for amounts kept in UZS."""

from decimal import ROUND_HALF_UP, Decimal

# UZS per unit; fixed display rates, not used for bookkeeping
EXCHANGE_RATES: dict[str, Decimal] = {
    "UZS": Decimal(1),
    "USD": Decimal(12500),
    "EUR": Decimal(13500),
}

SYMBOLS = {"UZS": "UZS", "USD": "$", "EUR": "€"}


def convert(amount: Decimal, currency: str = "UZS") -> Decimal:
    """Convert a UZS amount to the given currency."""
    rate = EXCHANGE_RATES.get(currency, Decimal(1))
    return amount / rate


def format_currency(amount: Decimal, currency: str = "UZS") -> str:
    """Format a UZS amount for display: ``"100 000 UZS"``, ``"$8.00"``, ``"€7.41"``."""
    if currency not in ("USD", "EUR"):
        whole = int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))
        return f"{whole:,} UZS".replace(",", " ")
    converted = convert(amount, currency).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{SYMBOLS[currency]}{converted:,.2f}"
