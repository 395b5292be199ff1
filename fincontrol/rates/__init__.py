"""Benchmark rate history: series, BCB source and cached store."""

from fincontrol.rates.series import RateEntry, RateSeries, synthetic_series
from fincontrol.rates.source import BCBRateSource, parse_payload
from fincontrol.rates.store import RateHistoryStore

__all__ = [
    "BCBRateSource",
    "RateEntry",
    "RateHistoryStore",
    "RateSeries",
    "parse_payload",
    "synthetic_series",
]
