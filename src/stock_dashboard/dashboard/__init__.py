"""Dashboard request handlers and derived statistics."""

from stock_dashboard.dashboard.service import DashboardService, normalize_symbol
from stock_dashboard.dashboard.stats import closes_of, compute_52w_stats, rolling_prediction

__all__ = [
    "DashboardService",
    "normalize_symbol",
    "compute_52w_stats",
    "closes_of",
    "rolling_prediction",
]
