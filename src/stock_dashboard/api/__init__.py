"""REST API for the stock dashboard (FastAPI)."""

from stock_dashboard.api.app import create_app

__all__ = ["create_app"]
