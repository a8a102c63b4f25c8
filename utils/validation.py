from decimal import Decimal, InvalidOperation

# largest values an Integer (int4) and a Numeric(10, 2) column can hold
MAX_DB_INT = 2 ** 31 - 1
MAX_PRICE = Decimal("99999999.99")


def positive_int(value, max_value: int = MAX_DB_INT):
    """int(value) if it is a positive whole number no larger than max_value, else None. Booleans are rejected."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if 0 < number <= max_value else None


def parse_price(value):
    """Positive money amount rounded to cents that fits Numeric(10, 2), or None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        price = Decimal(str(value).strip())
        if not price.is_finite() or price <= 0:
            return None
        price = price.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None
    return price if price <= MAX_PRICE else None


def clean_text(value, max_len: int):
    if not isinstance(value, str):
        return None
    return value.strip()[:max_len] or None
