"""
Shorthand monetary notation

Brokers type prices the way they say them: "900K", "1.2M", "2Cr",
"1,250,000". Everything stored or compared goes through here first so the
database only ever sees plain decimal strings.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

MULTIPLIERS = {
    "k": Decimal("1000"),
    "m": Decimal("1000000"),
    "cr": Decimal("10000000"),
}

_AMOUNT_RE = re.compile(r"^([+-]?\d*\.?\d+)(k|m|cr)?$", re.IGNORECASE)
_SEPARATORS_RE = re.compile(r"[,_\s]")


def parse_amount(text) -> Optional[Decimal]:
    """
    Parse a price/area value into a Decimal.

    Accepts plain numbers, thousands separators and one K/M/Cr suffix
    (case-insensitive). Returns None when the text is not an amount.
    """
    if text is None:
        return None
    if isinstance(text, Decimal):
        return text
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return Decimal(str(text))

    cleaned = _SEPARATORS_RE.sub("", str(text))
    if not cleaned:
        return None

    match = _AMOUNT_RE.match(cleaned)
    if not match:
        return None

    number, suffix = match.groups()
    try:
        value = Decimal(number)
    except InvalidOperation:
        return None

    if suffix:
        value = value * MULTIPLIERS[suffix.lower()]
    return value


def decimal_to_str(value: Decimal) -> str:
    """Render a Decimal without exponent or trailing fractional zeros."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def normalize_amount(text) -> str:
    """
    Normalize shorthand input to a plain decimal string.

        normalize_amount("900K")  -> "900000"
        normalize_amount("1.2M")  -> "1200000"
        normalize_amount("2Cr")   -> "20000000"

    Raises:
        ValueError: if the input is not an amount
    """
    value = parse_amount(text)
    if value is None:
        raise ValueError(f"'{text}' is not a valid amount")
    return decimal_to_str(value)


def normalize_budget(text: Optional[str]) -> Optional[str]:
    """
    Normalize a free-text budget such as "900K - 1.2M".

    Each side of a range is normalized on its own; anything that is not an
    amount is kept as typed.
    """
    if text is None:
        return None

    parts = [part.strip() for part in str(text).split("-")]
    # A leading "-" is a sign, not a range separator
    if len(parts) > 1 and parts[0] == "":
        return _normalize_budget_part(str(text).strip())
    return " - ".join(_normalize_budget_part(part) for part in parts)


def _normalize_budget_part(part: str) -> str:
    value = parse_amount(part)
    if value is None:
        return part
    return decimal_to_str(value)


def check_precision(text, precision: int, scale: int = 2) -> None:
    """
    Make sure an amount fits a NUMERIC(precision, scale) column once rounded
    to `scale` places.

    Raises:
        ValueError: if it does not, or is not an amount at all
    """
    value = parse_amount(text)
    if value is None:
        raise ValueError(f"'{text}' is not a valid amount")

    limit = Decimal(10) ** (precision - scale)
    value = abs(value)
    if value >= limit or value.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP) >= limit:
        raise ValueError(f"must be less than {decimal_to_str(limit)} in magnitude")
