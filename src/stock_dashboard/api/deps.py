"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from stock_dashboard.core.config import DashboardConfig
from stock_dashboard.dashboard.service import DashboardService
from stock_dashboard.prices.store import PriceCache


@dataclass
class AppState:
    """Shared application state, attached to app.state during lifespan."""

    config: DashboardConfig
    cache: PriceCache
    service: DashboardService


def get_app_state(request: Request) -> AppState:
    """Dependency: retrieve AppState from the request."""
    return request.app.state.app_state


def get_config(request: Request) -> DashboardConfig:
    """Dependency: retrieve config."""
    return request.app.state.app_state.config


def get_service(request: Request) -> DashboardService:
    """Dependency: retrieve the request handlers."""
    return request.app.state.app_state.service
