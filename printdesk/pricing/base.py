"""
Shared pieces for the resolvers: the breakdown line type and the
input-parsing helpers every resolver uses on free-form specifications.
"""

import math
from dataclasses import asdict, dataclass

from .errors import InvalidQuantity

MATERIAL = "material"
SERVICE = "service"


@dataclass(frozen=True)
class BreakdownLine:
    kind: str
    name: str
    unit: str
    quantity: float
    rate: float
    total: float

    def to_dict(self) -> dict:
        return asdict(self)


def make_line(kind: str, name: str, unit: str, quantity: float, rate: float) -> BreakdownLine:
    """Build a BreakdownLine. Total is rounded to currency precision."""
    total = quantity * rate
    if not math.isfinite(total):
        raise InvalidQuantity(quantity, f"{name} total is out of range")
    return BreakdownLine(
        kind=kind,
        name=name,
        unit=unit,
        quantity=quantity,
        rate=rate,
        total=round(total, 2),
    )


def money(value: float) -> float:
    return round(value, 2)


def apply_waste(quantity: float, waste_ratio: float) -> int:
    """Apply waste ratio to a quantity. Always round UP to the next whole unit."""
    # round first so float noise (12.000000001) doesn't cost an extra unit
    with_waste = round(quantity * (1 + waste_ratio), 9)
    if not math.isfinite(with_waste):
        raise InvalidQuantity(quantity, "waste allowance is out of range")
    return math.ceil(with_waste)


def parse_number(value, default=None):
    """Parse a numeric value from user input. Handles strings like '150', '150g'."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else default
    try:
        parsed = float(str(value).strip().rstrip("g").strip())
    except (ValueError, TypeError):
        return default
    return parsed if math.isfinite(parsed) else default


def parse_int(value, default=None):
    """Parse an integer from user input."""
    number = parse_number(value)
    if number is None:
        return default
    return int(number)
