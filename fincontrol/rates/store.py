"""Cached benchmark rate history with a synthetic fallback."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Protocol

from fincontrol.config import RateSourceConfig
from fincontrol.exceptions import RateSourceError
from fincontrol.logging import get_logger
from fincontrol.rates.series import RateEntry, RateSeries, synthetic_series

logger = get_logger(__name__)


class RateSource(Protocol):
    def fetch_range(self, start: date, end: date) -> list[RateEntry]: ...


@dataclass(frozen=True)
class _CacheEntry:
    series: RateSeries
    days: int
    fetched_at: float


class RateHistoryStore:
    """Explicit cache around a rate source.

    One cache entry is kept. It is reused while younger than ``ttl_seconds``
    and at least as long as the requested window; a longer request refetches.
    Misses are serialized so concurrent callers share one source call.

    When the source fails, a synthetic weekday series at
    ``fallback_daily_rate`` is returned instead of raising. Fallback series
    are not cached, so the next call tries the source again.

    Parameters
    ----------
    source : RateSource
        Object with ``fetch_range(start, end)``.
    ttl_seconds : float
        Cache time-to-live.
    fallback_daily_rate : Decimal
        Estimated daily rate (%) of the synthetic series.
    clock : Callable[[], float]
        Monotonic clock used for the TTL.
    today : Callable[[], date]
        Current date provider.
    """

    def __init__(
        self,
        source: RateSource,
        ttl_seconds: float = 3600.0,
        fallback_daily_rate: Decimal = Decimal("0.055"),
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.fallback_daily_rate = fallback_daily_rate
        self._clock = clock
        self._today = today
        self._cache: _CacheEntry | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, source: RateSource, config: RateSourceConfig) -> RateHistoryStore:
        return cls(
            source,
            ttl_seconds=config.cache_ttl_seconds,
            fallback_daily_rate=config.fallback_daily_rate,
        )

    @property
    def cached(self) -> RateSeries | None:
        """Cached series when still fresh."""
        return self._lookup(0)

    def fetch(self, days: int = 365) -> RateSeries:
        """Series covering ``[today - days, today]``."""
        hit = self._lookup(days)
        if hit is not None:
            logger.debug("Rate history cache hit (%d days)", days)
            return hit

        with self._lock:
            # Another caller may have refreshed the cache while we waited
            hit = self._lookup(days)
            if hit is not None:
                return hit

            end = self._today()
            start = end - timedelta(days=days)
            try:
                entries = self.source.fetch_range(start, end)
            except RateSourceError as e:
                logger.warning(
                    "Rate source unavailable (%s); using synthetic series at %s%% per business day",
                    e,
                    self.fallback_daily_rate,
                )
                return synthetic_series(start, end, self.fallback_daily_rate)

            series = RateSeries(tuple(entries))
            self._cache = _CacheEntry(series=series, days=days, fetched_at=self._clock())
            return series

    def invalidate(self) -> None:
        """Drop the cached series."""
        with self._lock:
            self._cache = None

    def _lookup(self, days: int) -> RateSeries | None:
        entry = self._cache
        if entry is None or entry.days < days:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return entry.series
