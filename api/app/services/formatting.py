from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "HUF": "Ft"}

# Currencies whose symbol follows the amount
_SUFFIX_SYMBOL = {"HUF"}


def format_currency(value, currency: str = "USD", decimals: int = 2) -> str:
    """Format an amount for display, e.g. $1,234.56, -€12.00, 1,500 Ft."""
    currency = (currency or "USD").upper()
    amount = Decimal(str(value or 0))
    quant = Decimal(1).scaleb(-decimals) if decimals > 0 else Decimal(1)
    amount = amount.quantize(quant, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,.{max(decimals, 0)}f}"
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol is None:
        return f"{sign}{digits} {currency}"
    if currency in _SUFFIX_SYMBOL:
        return f"{sign}{digits} {symbol}"
    return f"{sign}{symbol}{digits}"
