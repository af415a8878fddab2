"""Display formatting for amounts"""

# Currencies whose minor unit is the major unit
ZERO_DECIMAL_CURRENCIES = frozenset({"KRW", "JPY"})
CURRENCY_SYMBOLS = {"KRW": "₩", "USD": "$", "EUR": "€", "JPY": "¥"}


def format_currency(amount: int | None, currency: str = "KRW", signed: bool = False) -> str:
    """
    Format a minor-unit amount, e.g. 1250000 KRW -> "₩1,250,000", 12345 USD -> "$123.45".

    With signed=True positive amounts get an explicit "+".
    """
    if amount is None:
        return "-"
    currency = (currency or "KRW").upper()
    symbol = CURRENCY_SYMBOLS.get(currency, "")
    magnitude = abs(amount)
    if currency in ZERO_DECIMAL_CURRENCIES:
        body = f"{magnitude:,}"
    else:
        body = f"{magnitude // 100:,}.{magnitude % 100:02d}"
    text = f"{symbol}{body}" if symbol else f"{body} {currency}"

    if amount < 0:
        return f"-{text}"
    if signed and amount > 0:
        return f"+{text}"
    return text
