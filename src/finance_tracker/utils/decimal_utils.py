"""Decimal utilities for money handling.

All monetary values are kept as Decimal to avoid floating-point drift when
many small amounts are accumulated.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# Currency prefixes accepted (and stripped) on imported amounts
CURRENCY_PREFIXES = ("Rp", "$", "€", "£", "¥", "₹")

# Plain number with optional thousands separators: 1234, 1,234.50, 50000.5
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(,\d{3})*|\d*)(\.\d+)?$")

# Intl.NumberFormat shows at most three fraction digits by default
DISPLAY_FRACTION_DIGITS = 3


def parse_amount(raw_amount: str) -> Decimal:
    """Parse an amount string into a non-negative Decimal.

    Accepts plain numbers ("50000", "12.5"), a leading currency prefix
    ("Rp 50000", "$12.50") and comma thousands separators ("1,250.00").

    Args:
        raw_amount: The raw amount string.

    Returns:
        Parsed amount.

    Raises:
        ValueError: If the value is empty, not a number, not finite, or negative.
    """
    if raw_amount is None:
        raise ValueError("Empty amount string")

    amount_str = str(raw_amount).strip()
    for prefix in CURRENCY_PREFIXES:
        if amount_str.startswith(prefix):
            amount_str = amount_str[len(prefix):].strip()
            break

    if not amount_str:
        raise ValueError("Empty amount string")

    if not _NUMBER_PATTERN.match(amount_str) or not any(c.isdigit() for c in amount_str):
        raise ValueError(f"Cannot parse amount '{raw_amount}'")

    try:
        amount = Decimal(amount_str.replace(",", ""))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{raw_amount}': {e}") from e

    if amount < 0:
        raise ValueError(f"Amount must not be negative: '{raw_amount}'")

    return amount


def to_decimal(value: object) -> Decimal:
    """Convert a value to a finite, non-negative Decimal amount.

    Raises:
        ValueError: If the value is not a usable amount.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, str):
        return parse_amount(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        amount = Decimal(str(value))
    else:
        raise ValueError(f"Cannot use {value!r} as an amount")

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {value!r}")
    return amount


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    """Round half away from zero to the given number of decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def format_plain(amount: Decimal) -> str:
    """Format an amount without exponent, grouping or trailing zeros.

    Examples: 50000 -> "50000", 12.50 -> "12.5", 0 -> "0".
    """
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def format_number(
    amount: Decimal,
    thousands_separator: str = ".",
    decimal_separator: str = ",",
) -> str:
    """Format a number the way a localized number formatter does.

    Groups the integer part by thousands and keeps up to three fraction
    digits with trailing zeros dropped.

    Args:
        amount: Value to format.
        thousands_separator: Separator placed between digit groups.
        decimal_separator: Separator between integer and fraction parts.

    Returns:
        Formatted string like "1.250.000" or "12,5".
    """
    rounded = round_half_up(amount, DISPLAY_FRACTION_DIGITS)
    sign = "-" if rounded < 0 else ""
    text = format(abs(rounded), "f")
    integer_part, _, fraction_part = text.partition(".")
    fraction_part = fraction_part.rstrip("0")

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    result = thousands_separator.join(groups)
    if fraction_part:
        result = f"{result}{decimal_separator}{fraction_part}"
    if sign and result.strip("0.,") == "":
        sign = ""
    return sign + result


def format_short(
    amount: Decimal,
    thousands_separator: str = ".",
    decimal_separator: str = ",",
) -> str:
    """Abbreviate large amounts: 1.5M, 250K, else the full figure."""
    if amount >= 1_000_000:
        return f"{round_half_up(amount / Decimal(1_000_000), 1)}M"
    if amount >= 1_000:
        return f"{round_half_up(amount / Decimal(1_000), 0)}K"
    return format_number(amount, thousands_separator, decimal_separator)
