"""Shared pytest fixtures for stock-dashboard."""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path

import pytest

from stock_dashboard.core.config import SamplesConfig
from stock_dashboard.core.exceptions import ProviderError
from stock_dashboard.core.models import FetchResult, PriceBar, Tier
from stock_dashboard.dashboard.service import DashboardService
from stock_dashboard.prices.fetcher import HistoricalFetcher
from stock_dashboard.prices.samples import SampleStore
from stock_dashboard.prices.store import PriceCache


def make_bars(closes, start: date = date(2024, 1, 2), volume: int = 1_000_000) -> list[PriceBar]:
    """Consecutive daily bars with the given closes."""
    return [
        PriceBar(
            date=start + timedelta(days=i),
            open=c - 1.0,
            high=c + 2.0,
            low=c - 2.0,
            close=c,
            volume=volume + i,
        )
        for i, c in enumerate(closes)
    ]


def write_sample(directory: Path, symbol: str, bars: list[PriceBar]) -> Path:
    path = directory / f"{symbol}_sample.json"
    path.write_text(json.dumps([b.model_dump(mode="json") for b in bars]))
    return path


class FakeSource:
    """In-memory HistoricalSource that records its calls."""

    def __init__(self, name: str, tier: Tier, bars=None, error: Exception | None = None):
        self.name = name
        self.tier = tier
        self._bars = list(bars or [])
        self._error = error
        self.calls: list[tuple[str, str, str]] = []

    async def fetch(self, symbol: str, range_: str = "6mo", interval: str = "1d") -> FetchResult:
        self.calls.append((symbol, range_, interval))
        if self._error is not None:
            raise self._error
        return FetchResult(source=self.tier, data=self._bars)


def failing_source(name: str, tier: Tier) -> FakeSource:
    return FakeSource(name, tier, error=ProviderError(f"{name} is down"))


@pytest.fixture
def sample_dir(tmp_path: Path) -> Path:
    """Sample directory with a 10-bar AAPL default dataset."""
    d = tmp_path / "samples"
    d.mkdir()
    write_sample(d, "AAPL", make_bars([100.0 + i for i in range(10)]))
    return d


@pytest.fixture
def samples(sample_dir: Path) -> SampleStore:
    return SampleStore(SamplesConfig(sample_dir=str(sample_dir)))


@pytest.fixture
async def cache():
    """An initialized in-memory PriceCache."""
    c = PriceCache(":memory:")
    await c.initialize()
    yield c
    await c.close()


@pytest.fixture
def make_service(cache: PriceCache, samples: SampleStore):
    """Factory: DashboardService over the given primary/secondary fakes."""

    def _make(primary: FakeSource, secondary: FakeSource, sample_store: SampleStore | None = None):
        fetcher = HistoricalFetcher([primary, secondary])
        return DashboardService(fetcher, cache, sample_store or samples)

    return _make


@pytest.fixture
def bars():
    """Factory fixture: ``bars([closes], start=...)`` → list[PriceBar]."""
    return make_bars


@pytest.fixture
def source():
    """Factory fixture: ``source(name, tier, bars=..., error=...)`` → FakeSource."""
    return FakeSource


@pytest.fixture
def down():
    """Factory fixture: ``down(name, tier)`` → a FakeSource that raises."""
    return failing_source


@pytest.fixture
def sample_writer():
    """Factory fixture: ``sample_writer(dir, symbol, bars)`` → Path."""
    return write_sample
