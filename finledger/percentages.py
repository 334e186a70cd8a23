"""
Percentage Arithmetic

All percentages the engine reports go through these two functions so the
rounding is identical everywhere: computed in Decimal, rounded half-up,
then handed out as float.

Division by a zero (or negative) denominator is never an error; each
function documents the value it substitutes.
"""

from decimal import ROUND_HALF_UP, Decimal


def _round(value: Decimal, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(value.quantize(quantum, rounding=ROUND_HALF_UP))


def percentage_of(part: Decimal, whole: Decimal, places: int = 4) -> float:
    """
    part as a percentage of whole.

    Returns 0 when whole is zero or negative.

    The ratio is scaled by 100 before rounding, so 1 of 3 is 33.3333.

    Example: percentage_of(Decimal("320.50"), Decimal("800.00")) -> 40.0625
    """
    if whole <= 0:
        return 0.0
    return _round(part * 100 / whole, places)


def percentage_change(current: Decimal, baseline: Decimal, places: int = 4) -> float:
    """
    Relative change from baseline to current, in percent.

    A zero baseline yields 100 when current moved away from zero and 0
    when both are zero. A negative baseline is divided as is.
    """
    if baseline == 0:
        return 100.0 if current != 0 else 0.0
    return _round((current - baseline) * 100 / baseline, places)
