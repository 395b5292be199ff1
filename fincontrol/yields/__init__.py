"""Fixed-income yield and withholding tax calculation."""

from fincontrol.yields.calculator import (
    DailyAccrual,
    DepositYield,
    YieldResult,
    compute_deposit_yield,
    compute_yield,
    daily_rate,
)
from fincontrol.yields.taxes import IOF_TABLE, IR_BRACKETS, iof_percent, ir_percent

__all__ = [
    "DailyAccrual",
    "DepositYield",
    "IOF_TABLE",
    "IR_BRACKETS",
    "YieldResult",
    "compute_deposit_yield",
    "compute_yield",
    "daily_rate",
    "iof_percent",
    "ir_percent",
]
