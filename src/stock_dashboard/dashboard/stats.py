"""Derived price statistics: 52-week aggregates and the rolling prediction."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

import numpy as np

from stock_dashboard.core.models import PriceBar, PriceStats


def compute_52w_stats(bars: Sequence[PriceBar]) -> PriceStats:
    """Max high, min low and rounded mean volume over ``bars``.

    Null values are ignored; a field with no values left is None.
    """
    highs = [b.high for b in bars if b.high is not None]
    lows = [b.low for b in bars if b.low is not None]
    volumes = [b.volume for b in bars if b.volume is not None]

    return PriceStats(
        high52=float(max(highs)) if highs else None,
        low52=float(min(lows)) if lows else None,
        avg_vol=int(np.floor(np.mean(volumes) + 0.5)) if volumes else None,
    )


def closes_of(bars: Sequence[PriceBar]) -> list[float]:
    """Non-null closes in series order."""
    return [b.close for b in bars if b.close is not None]


def rolling_prediction(closes: Sequence[float], lookback: int) -> tuple[float, float]:
    """Mean and population std of the trailing ``lookback`` closes.

    Both are rounded half-up to 2 decimals. Raises ValueError when fewer than
    ``lookback`` closes are available.
    """
    if lookback < 1:
        raise ValueError(f"lookback must be >= 1, got {lookback}")
    if len(closes) < lookback:
        raise ValueError(f"need {lookback} closes, got {len(closes)}")

    window = np.asarray(closes[-lookback:], dtype=float)
    mean = float(window.mean())
    std = float(window.std(ddof=0))
    return _round2(mean), _round2(std)


def _round2(x: float) -> float:
    """Two-decimal rounding with ties away from zero, on the exact binary value."""
    return float(Decimal(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
