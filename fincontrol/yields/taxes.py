"""Regressive withholding tables for fixed-income yield.

Both tables are keyed by calendar days (dias corridos) since the deposit and
return percentages applied to the yield, never to the principal.
"""

from decimal import Decimal

# IOF on yield for redemptions within 30 days, indexed by day - 1 (days 1..30)
IOF_TABLE: tuple[Decimal, ...] = tuple(
    Decimal(p)
    for p in (
        96, 93, 90, 86, 83, 80, 76, 73, 70, 66,
        63, 60, 56, 53, 50, 46, 43, 40, 36, 33,
        30, 26, 23, 20, 16, 13, 10, 6, 3, 0,
    )
)

# Income tax brackets: (max calendar days, percent); above the last bound -> IR_FLOOR
IR_BRACKETS: tuple[tuple[int, Decimal], ...] = (
    (180, Decimal("22.5")),
    (360, Decimal("20")),
    (720, Decimal("17.5")),
)
IR_FLOOR = Decimal("15")

_IOF_MAX = IOF_TABLE[0]
_ZERO = Decimal("0")


def iof_percent(calendar_days: int) -> Decimal:
    """IOF rate (%) for a holding period of ``calendar_days``."""
    if calendar_days >= 30:
        return _ZERO
    if calendar_days < 1:
        return _IOF_MAX
    return IOF_TABLE[calendar_days - 1]


def ir_percent(calendar_days: int) -> Decimal:
    """Income tax rate (%) for a holding period of ``calendar_days``."""
    for max_days, percent in IR_BRACKETS:
        if calendar_days <= max_days:
            return percent
    return IR_FLOOR
