"""Fixed-income yield calculation over a benchmark rate series.

Each deposit compounds independently over the business days of the series
between its date and today. Results are then aggregated per position:
withdrawals are subtracted by amount (no lot tracking) and IOF/IR are applied
to the aggregate gross yield using the *largest* holding period among the
deposits, which understates the tax of younger deposits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, localcontext
from typing import Iterable

from fincontrol.logging import get_logger
from fincontrol.models.enums import Indexer
from fincontrol.models.investment import Operation
from fincontrol.rates.series import RateSeries
from fincontrol.yields.taxes import iof_percent, ir_percent

logger = get_logger(__name__)

# Wide enough that ~1500 daily multiplications do not accumulate rounding error
PRECISION = 34

BUSINESS_DAYS_PER_YEAR = Decimal(252)
IPCA_BENCHMARK_FACTOR = Decimal("0.9")

_HUNDRED = Decimal(100)
_ZERO = Decimal(0)


@dataclass
class DailyAccrual:
    """One compounding step (rate in % per day)."""

    date: date
    rate: Decimal
    accumulated: Decimal


@dataclass
class DepositYield:
    """Yield of a single deposit."""

    deposit_date: date
    principal: Decimal
    gross_value: Decimal
    gross_yield: Decimal
    calendar_days: int
    business_days: int
    daily_rates: list[DailyAccrual] = field(default_factory=list)


@dataclass
class YieldResult:
    """Aggregate yield of a fixed-income position."""

    principal: Decimal
    total_withdrawals: Decimal
    gross_value: Decimal
    gross_yield: Decimal
    gross_yield_percent: Decimal
    iof_percent: Decimal
    iof_amount: Decimal
    ir_percent: Decimal
    ir_amount: Decimal
    net_yield: Decimal
    net_value: Decimal
    net_yield_percent: Decimal
    calendar_days: int
    business_days: int
    deposits: list[DepositYield] = field(default_factory=list)

    @property
    def effective_principal(self) -> Decimal:
        return self.principal - self.total_withdrawals


def daily_rate(indexer: Indexer, contracted_rate: Decimal, benchmark_rate: Decimal) -> Decimal:
    """Growth rate (fraction) of one business day.

    Parameters
    ----------
    indexer : Indexer
        CDI: ``contracted_rate`` percent of the benchmark.
        SELIC: benchmark plus ``contracted_rate`` % a.a. spread.
        IPCA: 90% of the benchmark as a proxy plus ``contracted_rate`` % a.a.
        PREFIXADO: ``contracted_rate`` % a.a., benchmark ignored.
    contracted_rate : Decimal
        Contracted rate in percent.
    benchmark_rate : Decimal
        Benchmark rate of the day in percent.
    """
    spread = contracted_rate / BUSINESS_DAYS_PER_YEAR / _HUNDRED
    if indexer == Indexer.CDI:
        return (contracted_rate / _HUNDRED) * (benchmark_rate / _HUNDRED)
    if indexer == Indexer.SELIC:
        return benchmark_rate / _HUNDRED + spread
    if indexer == Indexer.IPCA:
        return IPCA_BENCHMARK_FACTOR * benchmark_rate / _HUNDRED + spread
    if indexer == Indexer.PREFIXADO:
        return spread
    raise ValueError(f"Indexer {indexer} has no daily rate")


def compute_deposit_yield(
    principal: Decimal,
    deposit_date: date,
    contracted_rate: Decimal,
    indexer: Indexer,
    series: RateSeries,
    today: date | None = None,
) -> DepositYield | None:
    """Compound one deposit over the series from its date to ``today``.

    Future-dated and same-day deposits have not accrued and return the
    principal unchanged. Days outside the series range do not compound.
    Returns None when ``principal`` is not positive.
    """
    if principal <= 0:
        return None

    today = today or date.today()
    calendar_days = (today - deposit_date).days

    if calendar_days <= 0:
        return DepositYield(
            deposit_date=deposit_date,
            principal=principal,
            gross_value=principal,
            gross_yield=_ZERO,
            calendar_days=0,
            business_days=0,
        )

    accrued = series.entries_between(deposit_date, today)
    accumulated = principal
    daily_rates = []

    with localcontext() as ctx:
        ctx.prec = PRECISION
        for entry in accrued:
            rate = daily_rate(indexer, contracted_rate, entry.rate)
            accumulated = accumulated * (1 + rate)
            daily_rates.append(DailyAccrual(date=entry.date, rate=rate * _HUNDRED, accumulated=accumulated))
        gross_yield = accumulated - principal

    return DepositYield(
        deposit_date=deposit_date,
        principal=principal,
        gross_value=accumulated,
        gross_yield=gross_yield,
        calendar_days=calendar_days,
        business_days=len(accrued),
        daily_rates=daily_rates,
    )


def compute_yield(
    deposits: Iterable[Operation],
    withdrawals: Iterable[Operation],
    contracted_rate: Decimal,
    indexer: Indexer,
    series: RateSeries,
    today: date | None = None,
) -> YieldResult | None:
    """Aggregate yield and taxes of a fixed-income position.

    Deposit and withdrawal amounts are read from ``Operation.price``.
    Deposits with a non-positive amount count toward the principal but do
    not accrue.

    Returns
    -------
    YieldResult | None
        None when the indexer is NA or no deposit has a positive amount.
    """
    deposits = list(deposits)
    if indexer == Indexer.NA or not deposits:
        return None

    today = today or date.today()
    computed = [
        compute_deposit_yield(op.price, op.date, contracted_rate, indexer, series, today)
        for op in deposits
    ]
    per_deposit = [d for d in computed if d is not None]
    if not per_deposit:
        return None

    with localcontext() as ctx:
        ctx.prec = PRECISION

        principal = sum((op.price for op in deposits), _ZERO)
        gross_value = sum((d.gross_value for d in per_deposit), _ZERO)
        gross_yield = sum((d.gross_yield for d in per_deposit), _ZERO)
        total_withdrawals = sum((op.price for op in withdrawals), _ZERO)

        oldest = max(per_deposit, key=lambda d: d.calendar_days)
        calendar_days = oldest.calendar_days

        iof_pct = iof_percent(calendar_days)
        iof_amount = gross_yield * iof_pct / _HUNDRED
        yield_after_iof = gross_yield - iof_amount

        ir_pct = ir_percent(calendar_days)
        ir_amount = yield_after_iof * ir_pct / _HUNDRED

        net_yield = gross_yield - iof_amount - ir_amount
        effective_principal = principal - total_withdrawals
        net_value = effective_principal + net_yield

        if effective_principal > 0:
            gross_yield_percent = gross_yield / effective_principal * _HUNDRED
            net_yield_percent = net_yield / effective_principal * _HUNDRED
        else:
            gross_yield_percent = net_yield_percent = _ZERO

        result = YieldResult(
            principal=principal,
            total_withdrawals=total_withdrawals,
            gross_value=gross_value - total_withdrawals,
            gross_yield=gross_yield,
            gross_yield_percent=gross_yield_percent,
            iof_percent=iof_pct,
            iof_amount=iof_amount,
            ir_percent=ir_pct,
            ir_amount=ir_amount,
            net_yield=net_yield,
            net_value=net_value,
            net_yield_percent=net_yield_percent,
            calendar_days=calendar_days,
            business_days=oldest.business_days,
            deposits=per_deposit,
        )

    if series.synthetic:
        logger.debug("Yield computed over a synthetic rate series")
    return result
