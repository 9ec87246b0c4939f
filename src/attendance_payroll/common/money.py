from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable


def round2(value: float) -> float:
    """Round a money/hours figure to 2 decimal places (half-up)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def sum2(values: Iterable[float]) -> float:
    return round2(sum(values))
