"""
Fixed-point helpers between human decimal strings and on-chain smallest units.

On-chain amounts are always ints (wei-like). Human strings are produced only
at formatting boundaries.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, getcontext

getcontext().prec = 78  # enough for uint256

NATIVE_DECIMALS = 18


def to_decimal(value) -> Decimal:
    """
    Parse a str/int/float into Decimal. Floats go through str() so that
    60.0 becomes Decimal("60.0") instead of its binary expansion.
    Raises ValueError on garbage, NaN or infinity.
    """
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"not a decimal number: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return d


def parse_units(value, decimals: int = NATIVE_DECIMALS) -> int:
    """
    "1.5", 18 -> 1500000000000000000

    Digits beyond `decimals` are truncated.
    """
    d = to_decimal(value)
    scaled = (d * (Decimal(10) ** int(decimals))).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def format_units(value: int, decimals: int = NATIVE_DECIMALS) -> str:
    """
    600000000000000000, 18 -> "0.6"
    1000000, 6 -> "1"
    """
    value = int(value)
    negative = value < 0
    digits = str(abs(value)).rjust(int(decimals) + 1, "0") if decimals else str(abs(value))
    if decimals:
        whole, frac = digits[:-int(decimals)], digits[-int(decimals):].rstrip("0")
        out = f"{whole}.{frac}" if frac else whole
    else:
        out = digits
    return f"-{out}" if negative else out
