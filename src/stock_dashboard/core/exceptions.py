"""Custom exception hierarchy for stock-dashboard."""

from typing import Any


class StockDashboardError(Exception):
    """Base exception for all stock-dashboard errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(StockDashboardError):
    """Invalid or missing configuration.

    Raised by load_config() during startup, and by the sample store when
    even the default sample dataset is missing. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value
    """


class ProviderError(StockDashboardError):
    """An upstream price provider failed.

    Policy: log and escalate to the next tier. Never surfaced to clients.

    Context keys:
        provider: str — "yahoo" or "stooq"
        symbol: str — the symbol being fetched
        status_code: int | None — HTTP status code if applicable
    """


class EmptyResultError(ProviderError):
    """Provider answered but produced zero usable rows."""


class BadFormatError(ProviderError):
    """Provider answered with an unexpected schema.

    Context keys:
        header: str — the header line that was received (CSV sources)
    """


class NoLiveDataError(StockDashboardError):
    """Every live provider was exhausted for a symbol.

    Policy: fall back to the cache, then to the sample store.

    Context keys:
        symbol: str
        attempts: dict[str, str] — provider name → failure reason
    """


class StorageError(StockDashboardError):
    """Price cache operation failed.

    Policy: raise immediately. Disk write failures propagate to the caller.

    Context keys:
        operation: str — "initialize", "upsert", "persist", etc.
        path: str — the database file involved
    """


class StoreUninitializedError(StorageError):
    """The price cache was used before initialize() completed.

    Programmer error. Never recovered from.
    """


class InsufficientDataError(StockDashboardError):
    """Fewer closes than the requested lookback across every tier.

    Reported to HTTP clients as 400.

    Context keys:
        symbol: str
        lookback: int
        available: int — the longest close list any tier produced
    """


class PredictionError(StockDashboardError):
    """Prediction failed even after retrying against the sample store.

    Reported to HTTP clients as 500.
    """
