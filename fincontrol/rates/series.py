"""Day-indexed benchmark rate series."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator


@dataclass(frozen=True)
class RateEntry:
    """Benchmark rate of one business day (daily percentage)."""

    date: date
    rate: Decimal


@dataclass(frozen=True)
class RateSeries:
    """Ordered, sparse series of business-day rates.

    Days missing from the series (weekends, holidays) are not business days.
    ``synthetic`` marks a fallback series built from a fixed estimated rate.
    """

    entries: tuple[RateEntry, ...] = ()
    synthetic: bool = False
    _dates: tuple[date, ...] = field(init=False, repr=False, compare=False)
    _by_date: dict[date, Decimal] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.entries, key=lambda e: e.date))
        object.__setattr__(self, "entries", ordered)
        object.__setattr__(self, "_dates", tuple(e.date for e in ordered))
        object.__setattr__(self, "_by_date", {e.date: e.rate for e in ordered})

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[date, Decimal]], synthetic: bool = False) -> RateSeries:
        return cls(tuple(RateEntry(d, Decimal(r)) for d, r in pairs), synthetic=synthetic)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[RateEntry]:
        return iter(self.entries)

    @property
    def start_date(self) -> date | None:
        return self._dates[0] if self._dates else None

    @property
    def end_date(self) -> date | None:
        return self._dates[-1] if self._dates else None

    def rate_on(self, day: date) -> Decimal | None:
        """Rate of ``day``, or None when it is not a business day in the series."""
        return self._by_date.get(day)

    def is_business_day(self, day: date) -> bool:
        return day in self._by_date

    def entries_between(self, start: date, end: date) -> tuple[RateEntry, ...]:
        """Entries with ``start <= date <= end``."""
        lo = bisect.bisect_left(self._dates, start)
        hi = bisect.bisect_right(self._dates, end)
        return self.entries[lo:hi]

    def covers(self, start: date) -> bool:
        """Whether the series reaches back to ``start``."""
        return self.start_date is not None and self.start_date <= start


def synthetic_series(start: date, end: date, daily_rate: Decimal) -> RateSeries:
    """One entry per weekday in ``[start, end]`` at a fixed daily rate."""
    entries = []
    current = start
    while current <= end:
        if current.weekday() < 5:
            entries.append(RateEntry(current, daily_rate))
        current += timedelta(days=1)
    return RateSeries(tuple(entries), synthetic=True)
