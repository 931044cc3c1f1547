from decimal import Decimal, InvalidOperation
from typing import Union

from farm.errors import InvalidAmount

Number = Union[int, str, Decimal]


def parse_units(value: Number, decimals: int = 18) -> int:
    """
    Convert a human amount ("100", "0.5", 100) into the smallest token unit.
    """
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise InvalidAmount(f"not a number: {value!r}") from e

    if not d.is_finite():
        raise InvalidAmount(f"not a finite amount: {value!r}")
    if d < 0:
        raise InvalidAmount(f"negative amount: {value!r}")

    scaled = d.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(f"{value!r} has more than {decimals} decimals")
    return int(scaled)


def format_units(amount: int, decimals: int = 18) -> str:
    if amount < 0:
        raise InvalidAmount(f"negative amount: {amount!r}")
    whole, frac = divmod(int(amount), 10 ** decimals)
    if not frac:
        return str(whole)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}"


def parse_ether(value: Number) -> int:
    return parse_units(value, 18)


def format_ether(amount: int) -> str:
    return format_units(amount, 18)
