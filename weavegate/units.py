"""
Winston / AR unit conversion.

1 AR = 10^12 Winston. Amounts travel as strings and are converted with
integer arithmetic only, so values past 2^53 stay exact.
"""

import re
from decimal import Decimal, InvalidOperation

from weavegate.errors import ConversionError


WINSTON_PER_AR = 10 ** 12
AR_DECIMALS = 12

_WINSTON_RE = re.compile(r"[0-9]+")
_AR_RE = re.compile(r"([0-9]*)(?:\.([0-9]*))?")


def _parse_winston(winston) -> int:
    if isinstance(winston, bool):
        raise ConversionError(f"Invalid winston amount: {winston!r}")
    if isinstance(winston, int):
        if winston < 0:
            raise ConversionError(f"Winston amount must be non-negative, got {winston}")
        return winston
    if isinstance(winston, str) and _WINSTON_RE.fullmatch(winston.strip()):
        return int(winston.strip())
    raise ConversionError(
        f"Invalid winston amount {winston!r}: must be a non-negative integer string"
    )


def _ar_text(ar) -> str:
    """Normalise an AR amount to plain positional decimal text."""
    if isinstance(ar, bool):
        raise ConversionError(f"Invalid AR amount: {ar!r}")
    if isinstance(ar, str):
        return ar.strip()
    if isinstance(ar, (int, float, Decimal)):
        try:
            value = Decimal(str(ar))
        except InvalidOperation as e:
            raise ConversionError(f"Invalid AR amount: {ar!r}") from e
        if not value.is_finite():
            raise ConversionError(f"AR amount must be finite, got {ar!r}")
        if value < 0:
            raise ConversionError(f"AR amount must be non-negative, got {ar!r}")
        return format(value, "f")
    raise ConversionError(f"Invalid AR amount: {ar!r}")


def winston_to_ar(winston: str | int) -> str:
    """
    Convert Winston to AR with exactly 12 fractional digits.

    Args:
        winston: Non-negative integer, as a digit string or int.

    Returns:
        Decimal string, e.g. "1000000000000" -> "1.000000000000".

    Raises:
        ConversionError: On non-numeric or negative input.
    """
    whole, fraction = divmod(_parse_winston(winston), WINSTON_PER_AR)
    return f"{whole}.{fraction:0{AR_DECIMALS}d}"


def ar_to_winston(ar: str | int | Decimal) -> str:
    """
    Convert AR to Winston, flooring anything past 12 fractional digits.

    Args:
        ar: Non-negative decimal amount, e.g. "0.5".

    Returns:
        Integer Winston amount as a digit string, e.g. "500000000000".

    Raises:
        ConversionError: On non-numeric or negative input.
    """
    text = _ar_text(ar)
    match = _AR_RE.fullmatch(text)
    if not text or text == "." or not match:
        raise ConversionError(
            f"Invalid AR amount {ar!r}: must be a non-negative decimal number"
        )

    whole = match.group(1) or "0"
    fraction = (match.group(2) or "")[:AR_DECIMALS].ljust(AR_DECIMALS, "0")
    return str(int(whole) * WINSTON_PER_AR + int(fraction))
