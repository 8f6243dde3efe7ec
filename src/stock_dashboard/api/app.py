"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from stock_dashboard.api.deps import AppState
from stock_dashboard.api.routes import health_router, router
from stock_dashboard.core.config import DashboardConfig, load_config
from stock_dashboard.core.exceptions import StockDashboardError
from stock_dashboard.dashboard.service import DashboardService
from stock_dashboard.prices.fetcher import create_fetcher
from stock_dashboard.prices.samples import SampleStore
from stock_dashboard.prices.store import create_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle.

    The cache is loaded before the first request is accepted; a broken
    snapshot aborts startup instead of failing the first query.
    """
    config: DashboardConfig = app.state.config
    cache = await create_cache(config.storage)
    samples = SampleStore(config.samples)
    if not samples.has_sample(samples.default_symbol):
        logger.warning(
            "Default sample %s missing; the sample tier will be empty",
            samples.sample_path(samples.default_symbol),
        )

    service = DashboardService(create_fetcher(config.providers), cache, samples)
    app.state.app_state = AppState(config=config, cache=cache, service=service)

    yield

    await cache.close()


def create_app(config: DashboardConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    import stock_dashboard

    if config is None:
        config = load_config()

    app = FastAPI(
        title="Stock Dashboard API",
        description="Historical prices and a naive close prediction",
        version=stock_dashboard.__version__,
        lifespan=lifespan,
    )

    # Stash config so lifespan can retrieve it
    app.state.config = config

    cors_origin = config.api.cors_origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cors_origin] if cors_origin else ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(router, prefix="/api")

    @app.exception_handler(StockDashboardError)
    async def dashboard_exception_handler(request: Request, exc: StockDashboardError):
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    if config.api.client_dist:
        _mount_client(app, Path(config.api.client_dist))

    return app


def _mount_client(app: FastAPI, dist: Path) -> None:
    """Serve the built client for every non-API path, with SPA fallback."""
    root = dist.resolve()
    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def client(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_relative_to(root) and candidate.is_file():
            return FileResponse(candidate)
        if index.is_file():
            return FileResponse(index)
        raise HTTPException(status_code=404, detail="Client build not found")
