"""Central Bank of Brazil (BCB) SGS rate source."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import httpx

from fincontrol.config import RateSourceConfig
from fincontrol.exceptions import RateSourceError
from fincontrol.logging import get_logger
from fincontrol.rates.series import RateEntry

logger = get_logger(__name__)

BCB_DATE_FORMAT = "%d/%m/%Y"


class BCBRateSource:
    """Fetch a daily rate series from the BCB SGS API.

    The API answers ``[{"data": "02/01/2024", "valor": "0.043739"}, ...]`` with
    one item per business day in the requested range.

    Parameters
    ----------
    config : RateSourceConfig | None
        Series URL, code and timeout.
    client : httpx.Client | None
        HTTP client to reuse. A client with the configured timeout is created
        when omitted.
    """

    def __init__(
        self,
        config: RateSourceConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or RateSourceConfig()
        self._client = client or httpx.Client(timeout=self.config.timeout_seconds)

    def fetch_range(self, start: date, end: date) -> list[RateEntry]:
        """Fetch entries between ``start`` and ``end`` inclusive.

        Raises
        ------
        RateSourceError
            On transport errors, timeouts, HTTP errors or unusable payloads.
        """
        params = {
            "formato": "json",
            "dataInicial": start.strftime(BCB_DATE_FORMAT),
            "dataFinal": end.strftime(BCB_DATE_FORMAT),
        }
        url = self.config.series_url
        logger.debug("Fetching rate series %s from %s to %s", self.config.series_code, start, end)

        try:
            response = self._client.get(url, params=params, headers={"Accept": "application/json"})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise RateSourceError(f"Rate source returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RateSourceError(f"Rate source unreachable: {e}") from e
        except ValueError as e:
            raise RateSourceError(f"Rate source returned invalid JSON: {e}") from e

        entries = parse_payload(payload)
        logger.info(
            "Loaded %d business days of series %s (%s to %s)",
            len(entries),
            self.config.series_code,
            entries[0].date,
            entries[-1].date,
        )
        return entries

    def close(self) -> None:
        self._client.close()


def parse_payload(payload: object) -> list[RateEntry]:
    """Convert a BCB JSON payload into rate entries."""
    if not isinstance(payload, list) or not payload:
        raise RateSourceError(f"Unexpected rate payload: {payload!r:.200}")

    entries = []
    for item in payload:
        try:
            day = datetime.strptime(item["data"], BCB_DATE_FORMAT).date()
            rate = Decimal(str(item["valor"]))
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise RateSourceError(f"Malformed rate entry: {item!r}") from e
        entries.append(RateEntry(day, rate))
    return entries
