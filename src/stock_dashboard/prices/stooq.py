"""Stooq daily CSV provider — the secondary price tier.

Stooq serves full daily history as CSV at ``/q/d/l/?s=<symbol>.us&i=d``
with a fixed ``Date,Open,High,Low,Close,Volume`` header. The whole history
comes back on every call; the adapter keeps only the trailing window.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import date
from typing import Any

import httpx

from stock_dashboard.core.config import ProvidersConfig
from stock_dashboard.core.exceptions import BadFormatError, EmptyResultError, ProviderError
from stock_dashboard.core.models import FetchResult, PriceBar, Tier, range_to_days

logger = logging.getLogger(__name__)

EXPECTED_HEADER = ["date", "open", "high", "low", "close", "volume"]


def _to_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        v = float(value)
    except ValueError:
        return None
    return None if math.isnan(v) else v


def _to_volume(value: str | None) -> int | None:
    v = _to_float(value)
    if v is None or v < 0:
        return None
    return int(v)


class StooqCsvAdapter:
    """Transforms Stooq CSV text into PriceBar records.

    Parameters
    ----------
    days : int | None
        Keep only the trailing ``days`` rows. None keeps everything.
    """

    def __init__(self, days: int | None = None) -> None:
        self._days = days

    def adapt(self, raw_data: Any, symbol: str) -> list[PriceBar]:
        """Parse CSV text into PriceBars.

        Raises
        ------
        BadFormatError
            If the header is not exactly Date,Open,High,Low,Close,Volume.
        """
        reader = csv.reader(io.StringIO(str(raw_data).strip()))
        header = next(reader, None)
        if header is None or [h.strip().lower() for h in header] != EXPECTED_HEADER:
            raise BadFormatError(
                f"Unexpected Stooq CSV for {symbol}",
                context={
                    "provider": "stooq",
                    "symbol": symbol,
                    "header": ",".join(header or [])[:200],
                },
            )

        bars: list[PriceBar] = []
        for row in reader:
            if len(row) < len(EXPECTED_HEADER):
                continue
            close = _to_float(row[4])
            if close is None:
                continue
            try:
                bar_date = date.fromisoformat(row[0].strip())
            except ValueError:
                logger.warning("Skipping Stooq row with unparseable date: %s", row[0])
                continue
            bars.append(
                PriceBar(
                    date=bar_date,
                    open=_to_float(row[1]),
                    high=_to_float(row[2]),
                    low=_to_float(row[3]),
                    close=close,
                    volume=_to_volume(row[5]),
                )
            )

        if self._days is not None:
            bars = bars[-self._days :]
        return bars


class StooqCsvSource:
    """Fetches daily history from Stooq's CSV download endpoint.

    The ``interval`` argument is accepted for signature parity with the
    primary source and ignored; Stooq is always daily here.
    """

    name = "stooq"
    tier = Tier.SECONDARY

    def __init__(self, config: ProvidersConfig | None = None) -> None:
        self._config = config or ProvidersConfig()

    def _stooq_symbol(self, symbol: str) -> str:
        return f"{symbol.lower()}{self._config.stooq_suffix}"

    async def _fetch_csv(self, symbol: str) -> str:
        url = f"{self._config.stooq_base_url}/q/d/l/"
        params = {"s": self._stooq_symbol(symbol), "i": "d"}
        context = {"provider": self.name, "symbol": symbol}

        try:
            async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                resp = await client.get(
                    url,
                    params=params,
                    headers={"User-Agent": self._config.user_agent},
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Stooq fetch failed: {e.response.status_code}",
                context={**context, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(
                f"Stooq request failed for {symbol}: {e}", context=context
            ) from e
        return resp.text

    async def fetch(
        self, symbol: str, range_: str = "6mo", interval: str = "1d"
    ) -> FetchResult:
        text = await self._fetch_csv(symbol)
        bars = StooqCsvAdapter(days=range_to_days(range_)).adapt(text, symbol)
        if not bars:
            raise EmptyResultError(
                f"Stooq returned no data for {symbol}",
                context={"provider": self.name, "symbol": symbol},
            )

        logger.debug("Stooq returned %d bars for %s (%s)", len(bars), symbol, range_)
        return FetchResult(source=self.tier, data=bars)
