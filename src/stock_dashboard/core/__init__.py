"""stock_dashboard.core — Foundation types, config, and exceptions."""

from stock_dashboard.core.config import (
    APIConfig,
    DashboardConfig,
    ProvidersConfig,
    SamplesConfig,
    StorageConfig,
    load_config,
)
from stock_dashboard.core.exceptions import (
    BadFormatError,
    ConfigError,
    EmptyResultError,
    InsufficientDataError,
    NoLiveDataError,
    PredictionError,
    ProviderError,
    StockDashboardError,
    StorageError,
    StoreUninitializedError,
)
from stock_dashboard.core.models import (
    DEFAULT_RANGE_DAYS,
    RANGE_DAYS,
    Company,
    FetchResult,
    Prediction,
    PriceBar,
    PriceRange,
    PriceSeries,
    PriceStats,
    Tier,
    range_to_days,
)

__all__ = [
    # Enums and tables
    "PriceRange",
    "Tier",
    "RANGE_DAYS",
    "DEFAULT_RANGE_DAYS",
    "range_to_days",
    # Models
    "PriceBar",
    "Company",
    "FetchResult",
    "PriceStats",
    "PriceSeries",
    "Prediction",
    # Config
    "DashboardConfig",
    "ProvidersConfig",
    "StorageConfig",
    "SamplesConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "StockDashboardError",
    "ConfigError",
    "ProviderError",
    "EmptyResultError",
    "BadFormatError",
    "NoLiveDataError",
    "StorageError",
    "StoreUninitializedError",
    "InsufficientDataError",
    "PredictionError",
]
