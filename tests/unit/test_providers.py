"""Unit tests for the Yahoo chart and Stooq CSV providers."""

from __future__ import annotations

from datetime import date

import httpx
import pytest
import respx

from stock_dashboard.core.config import ProvidersConfig
from stock_dashboard.core.exceptions import BadFormatError, EmptyResultError, ProviderError
from stock_dashboard.core.models import Tier
from stock_dashboard.prices.provider import HistoricalSource, PriceAdapter
from stock_dashboard.prices.stooq import StooqCsvAdapter, StooqCsvSource
from stock_dashboard.prices.yahoo import YahooChartAdapter, YahooChartSource

YAHOO = "https://yahoo.test"
STOOQ = "https://stooq.test"

# 14:30 UTC on 2024-01-15 .. 2024-01-19
TIMESTAMPS = [1705329000, 1705415400, 1705501800, 1705588200, 1705674600]

SAMPLE_CHART_RESULT = {
    "meta": {"symbol": "AAPL", "currency": "USD"},
    "timestamp": TIMESTAMPS,
    "indicators": {
        "quote": [
            {
                "open": [185.09, 182.16, 186.09, 185.60, 184.55],
                "high": [185.60, 186.10, 188.00, 186.50, 185.40],
                "low": [182.00, 181.90, 185.00, 183.50, 183.00],
                "close": [183.63, 185.92, 187.44, 184.40, 183.96],
                "volume": [40477800, 49128400, 39631600, 42355900, 45113100],
            }
        ]
    },
}

SAMPLE_CSV = """Date,Open,High,Low,Close,Volume
2024-01-15,185.09,185.6,182.0,183.63,40477800
2024-01-16,182.16,186.1,181.9,185.92,49128400
2024-01-17,186.09,188.0,185.0,187.44,39631600
2024-01-18,185.6,186.5,183.5,184.4,42355900
2024-01-19,184.55,185.4,183.0,183.96,45113100
"""


@pytest.fixture
def providers_config() -> ProvidersConfig:
    return ProvidersConfig(yahoo_base_url=YAHOO, stooq_base_url=STOOQ, timeout=2.0)


def _chart(result: dict | None = None, error: dict | None = None) -> dict:
    return {"chart": {"result": [result] if result is not None else None, "error": error}}


class TestProtocols:
    def test_adapters_satisfy_protocol(self):
        assert isinstance(YahooChartAdapter(), PriceAdapter)
        assert isinstance(StooqCsvAdapter(), PriceAdapter)

    def test_sources_satisfy_protocol(self, providers_config):
        assert isinstance(YahooChartSource(providers_config), HistoricalSource)
        assert isinstance(StooqCsvSource(providers_config), HistoricalSource)

    def test_tiers(self, providers_config):
        assert YahooChartSource(providers_config).tier == Tier.PRIMARY
        assert StooqCsvSource(providers_config).tier == Tier.SECONDARY


# --- Yahoo ---


class TestYahooChartAdapter:
    def test_maps_parallel_arrays(self):
        bars = YahooChartAdapter().adapt(SAMPLE_CHART_RESULT, "AAPL")
        assert len(bars) == 5
        first = bars[0]
        assert first.date == date(2024, 1, 15)
        assert (first.open, first.high, first.low, first.close) == (185.09, 185.60, 182.00, 183.63)
        assert first.volume == 40477800
        assert bars[-1].date == date(2024, 1, 19)

    def test_drops_null_close_only(self):
        raw = {
            "timestamp": TIMESTAMPS[:3],
            "indicators": {
                "quote": [
                    {
                        "open": [None, 1.0, 2.0],
                        "high": [None, 1.5, 2.5],
                        "low": [None, 0.5, 1.5],
                        "close": [10.0, None, 12.0],
                        "volume": [None, 100, 200],
                    }
                ]
            },
        }
        bars = YahooChartAdapter().adapt(raw, "AAPL")
        assert [b.close for b in bars] == [10.0, 12.0]
        assert bars[0].open is None
        assert bars[0].volume is None

    def test_missing_timestamps(self):
        assert YahooChartAdapter().adapt({}, "AAPL") == []

    def test_short_arrays_tolerated(self):
        raw = {"timestamp": TIMESTAMPS[:2], "indicators": {"quote": [{"close": [5.0]}]}}
        bars = YahooChartAdapter().adapt(raw, "AAPL")
        assert len(bars) == 1
        assert bars[0].high is None

    def test_same_day_keeps_last(self):
        raw = {
            "timestamp": [1705329000, 1705332600],
            "indicators": {"quote": [{"close": [1.0, 2.0]}]},
        }
        bars = YahooChartAdapter().adapt(raw, "AAPL")
        assert [b.close for b in bars] == [2.0]


class TestYahooChartSource:
    @respx.mock
    async def test_fetch_success(self, providers_config):
        route = respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(
            return_value=httpx.Response(200, json=_chart(SAMPLE_CHART_RESULT))
        )
        result = await YahooChartSource(providers_config).fetch("AAPL", "1mo", "1d")

        assert result.source == Tier.PRIMARY
        assert len(result.data) == 5
        params = route.calls.last.request.url.params
        assert params["interval"] == "1d"
        assert int(params["period2"]) - int(params["period1"]) == 31 * 86400

    @respx.mock
    async def test_window_uses_range_table(self, providers_config):
        route = respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(
            return_value=httpx.Response(200, json=_chart(SAMPLE_CHART_RESULT))
        )
        await YahooChartSource(providers_config).fetch("AAPL", "weird")
        params = route.calls.last.request.url.params
        assert int(params["period2"]) - int(params["period1"]) == 186 * 86400

    @respx.mock
    async def test_all_null_closes_is_empty_result(self, providers_config):
        result = {"timestamp": TIMESTAMPS[:1], "indicators": {"quote": [{"close": [None]}]}}
        respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(
            return_value=httpx.Response(200, json=_chart(result))
        )
        with pytest.raises(EmptyResultError):
            await YahooChartSource(providers_config).fetch("AAPL")

    @respx.mock
    async def test_no_results_is_empty_result(self, providers_config):
        respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(
            return_value=httpx.Response(200, json={"chart": {"result": [], "error": None}})
        )
        with pytest.raises(EmptyResultError):
            await YahooChartSource(providers_config).fetch("AAPL")

    @respx.mock
    async def test_chart_error_payload(self, providers_config):
        respx.get(f"{YAHOO}/v8/finance/chart/NOPE").mock(
            return_value=httpx.Response(
                200, json=_chart(error={"code": "Not Found", "description": "No data found"})
            )
        )
        with pytest.raises(ProviderError, match="Not Found"):
            await YahooChartSource(providers_config).fetch("NOPE")

    @respx.mock
    async def test_http_error(self, providers_config):
        respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(return_value=httpx.Response(429))
        with pytest.raises(ProviderError) as exc_info:
            await YahooChartSource(providers_config).fetch("AAPL")
        assert exc_info.value.context["status_code"] == 429

    @respx.mock
    async def test_transport_error(self, providers_config):
        respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(
            side_effect=httpx.ConnectTimeout("timed out")
        )
        with pytest.raises(ProviderError, match="request failed"):
            await YahooChartSource(providers_config).fetch("AAPL")

    @respx.mock
    async def test_invalid_json(self, providers_config):
        respx.get(f"{YAHOO}/v8/finance/chart/AAPL").mock(
            return_value=httpx.Response(200, text="<html>oops</html>")
        )
        with pytest.raises(ProviderError, match="invalid JSON"):
            await YahooChartSource(providers_config).fetch("AAPL")


# --- Stooq ---


class TestStooqCsvAdapter:
    def test_parses_rows(self):
        bars = StooqCsvAdapter().adapt(SAMPLE_CSV, "AAPL")
        assert len(bars) == 5
        assert bars[0].date == date(2024, 1, 15)
        assert bars[0].close == 183.63
        assert bars[0].volume == 40477800

    def test_trailing_window(self):
        bars = StooqCsvAdapter(days=2).adapt(SAMPLE_CSV, "AAPL")
        assert [b.date for b in bars] == [date(2024, 1, 18), date(2024, 1, 19)]

    def test_header_case_insensitive(self):
        csv_text = "date,open,high,low,close,volume\n2024-01-15,1,2,0.5,1.5,10\n"
        assert len(StooqCsvAdapter().adapt(csv_text, "AAPL")) == 1

    @pytest.mark.parametrize(
        "text",
        [
            "No data",
            "",
            "Date,Open,High,Low,Close\n2024-01-15,1,2,0.5,1.5\n",
            "Date,Close,Open,High,Low,Volume\n",
        ],
    )
    def test_bad_header(self, text):
        with pytest.raises(BadFormatError):
            StooqCsvAdapter().adapt(text, "AAPL")

    def test_non_numeric_close_dropped(self):
        csv_text = (
            "Date,Open,High,Low,Close,Volume\n"
            "2024-01-15,1,2,0.5,n/a,10\n"
            "2024-01-16,1,2,0.5,,10\n"
            "2024-01-17,1,2,0.5,1.75,10\n"
        )
        bars = StooqCsvAdapter().adapt(csv_text, "AAPL")
        assert [b.close for b in bars] == [1.75]

    def test_non_numeric_other_columns_become_null(self):
        csv_text = "Date,Open,High,Low,Close,Volume\n2024-01-15,x,,0.5,1.5,\n"
        bar = StooqCsvAdapter().adapt(csv_text, "AAPL")[0]
        assert bar.open is None
        assert bar.high is None
        assert bar.low == 0.5
        assert bar.volume is None

    def test_bad_date_skipped(self):
        csv_text = "Date,Open,High,Low,Close,Volume\nyesterday,1,2,0.5,1.5,10\n"
        assert StooqCsvAdapter().adapt(csv_text, "AAPL") == []


class TestStooqCsvSource:
    @respx.mock
    async def test_fetch_lowercases_symbol(self, providers_config):
        route = respx.get(f"{STOOQ}/q/d/l/").mock(
            return_value=httpx.Response(200, text=SAMPLE_CSV)
        )
        result = await StooqCsvSource(providers_config).fetch("AAPL", "1mo")

        assert result.source == Tier.SECONDARY
        assert len(result.data) == 5
        params = route.calls.last.request.url.params
        assert params["s"] == "aapl.us"
        assert params["i"] == "d"

    @respx.mock
    async def test_fetch_keeps_range_window(self, providers_config):
        rows = "\n".join(f"2023-{m:02d}-{d:02d},1,2,0.5,{d}.0,10" for m in range(1, 13) for d in range(1, 29))
        respx.get(f"{STOOQ}/q/d/l/").mock(
            return_value=httpx.Response(200, text="Date,Open,High,Low,Close,Volume\n" + rows)
        )
        result = await StooqCsvSource(providers_config).fetch("AAPL", "1mo")
        assert len(result.data) == 31
        assert result.data[-1].date == date(2023, 12, 28)

    @respx.mock
    async def test_header_only_is_empty_result(self, providers_config):
        respx.get(f"{STOOQ}/q/d/l/").mock(
            return_value=httpx.Response(200, text="Date,Open,High,Low,Close,Volume\n")
        )
        with pytest.raises(EmptyResultError):
            await StooqCsvSource(providers_config).fetch("AAPL")

    @respx.mock
    async def test_http_error(self, providers_config):
        respx.get(f"{STOOQ}/q/d/l/").mock(return_value=httpx.Response(503))
        with pytest.raises(ProviderError, match="503"):
            await StooqCsvSource(providers_config).fetch("AAPL")
