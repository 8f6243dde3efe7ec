"""Tests for stock_dashboard.core.exceptions."""

import pytest

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


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [
            ConfigError,
            ProviderError,
            NoLiveDataError,
            StorageError,
            InsufficientDataError,
            PredictionError,
        ],
    )
    def test_direct_subclasses(self, exc_type):
        assert issubclass(exc_type, StockDashboardError)

    def test_provider_failures(self):
        assert issubclass(EmptyResultError, ProviderError)
        assert issubclass(BadFormatError, ProviderError)

    def test_uninitialized_is_storage_error(self):
        assert issubclass(StoreUninitializedError, StorageError)

    def test_no_live_data_is_not_a_provider_error(self):
        assert not issubclass(NoLiveDataError, ProviderError)


class TestExceptionContext:
    def test_context_preserved(self):
        exc = NoLiveDataError(
            "nothing",
            context={"symbol": "AAPL", "attempts": {"yahoo": "down", "stooq": "down"}},
        )
        assert exc.context["symbol"] == "AAPL"
        assert exc.context["attempts"]["stooq"] == "down"

    def test_default_context_is_empty_dict(self):
        assert StockDashboardError("test error").context == {}

    def test_str_returns_message(self):
        assert str(ConfigError("invalid field")) == "invalid field"

    def test_can_be_caught_as_parent(self):
        with pytest.raises(ProviderError):
            raise BadFormatError("bad csv", context={"header": "x,y"})
