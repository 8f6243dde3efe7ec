"""Click-based CLI for stock-dashboard.

Thin wrapper around library modules. Zero business logic: every operation
delegates to the dashboard service or the API factory.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

import click
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from stock_dashboard.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


async def _create_service_async(config):
    """Build the dashboard service and its initialized cache from config."""
    from stock_dashboard.dashboard import DashboardService
    from stock_dashboard.prices import SampleStore, create_cache, create_fetcher

    cache = await create_cache(config.storage)
    service = DashboardService(
        create_fetcher(config.providers), cache, SampleStore(config.samples)
    )
    return service, cache


def _fmt(value, spec: str = ",.2f") -> str:
    return "-" if value is None else format(value, spec)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="STOCK_DASHBOARD_CONFIG",
    default=None,
    help="Path to stock-dashboard.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(package_name="stock-dashboard")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Stock Dashboard: historical prices and a naive close prediction."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# companies
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def companies(ctx: click.Context) -> None:
    """List the seeded companies."""
    config = _load_config(ctx)

    async def _run():
        service, cache = await _create_service_async(config)
        try:
            return await service.list_companies()
        finally:
            await cache.close()

    rows = _run_async(_run())
    table = Table(title="Companies")
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    for company in rows:
        table.add_row(company.symbol, company.name)
    Console().print(table)


# ---------------------------------------------------------------------------
# prices
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbol")
@click.option(
    "--range",
    "range_",
    type=click.Choice(["1mo", "3mo", "6mo", "1y"]),
    default="6mo",
    help="History window.",
)
@click.option("--interval", default="1d", help="Bar interval for the primary provider.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print raw JSON.")
@click.pass_context
def prices(ctx: click.Context, symbol: str, range_: str, interval: str, as_json: bool) -> None:
    """Fetch price history for SYMBOL (live, else cache, else sample)."""
    config = _load_config(ctx)

    async def _run():
        service, cache = await _create_service_async(config)
        try:
            return await service.get_price_series(symbol, range_, interval)
        finally:
            await cache.close()

    series = _run_async(_run())

    if as_json:
        from stock_dashboard.api.schemas import PriceSeriesResponse

        payload = PriceSeriesResponse.from_series(series).model_dump(mode="json")
        click.echo(json.dumps(payload, indent=2))
        return

    if not series.data:
        console.print(f"[yellow]No price data available for {series.symbol}.[/yellow]")
        return

    first, last = series.data[0], series.data[-1]
    table = Table(title=f"{series.symbol} ({series.range}, source: {series.source})")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Bars", str(len(series.data)))
    table.add_row("From", first.date.isoformat())
    table.add_row("To", last.date.isoformat())
    table.add_row("Last close", _fmt(last.close))
    if series.stats is not None:
        table.add_row("52w high", _fmt(series.stats.high52))
        table.add_row("52w low", _fmt(series.stats.low52))
        table.add_row("Avg volume", _fmt(series.stats.avg_vol, ",d"))
    Console().print(table)


# ---------------------------------------------------------------------------
# predict
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbol")
@click.option(
    "--lookback",
    "-l",
    type=click.IntRange(min=1),
    default=5,
    help="Number of recent closes to average.",
)
@click.pass_context
def predict(ctx: click.Context, symbol: str, lookback: int) -> None:
    """Predict the next close for SYMBOL from its recent closes."""
    from stock_dashboard.core.exceptions import InsufficientDataError, PredictionError

    config = _load_config(ctx)

    async def _run():
        service, cache = await _create_service_async(config)
        try:
            return await service.predict(symbol, lookback)
        finally:
            await cache.close()

    try:
        prediction = _run_async(_run())
    except InsufficientDataError:
        console.print(f"[red]Not enough data to predict {symbol.upper()}.[/red]")
        raise SystemExit(1)
    except PredictionError:
        console.print(f"[red]Prediction failed for {symbol.upper()}.[/red]")
        raise SystemExit(1)

    click.echo(
        f"{prediction.symbol}: predicted close {prediction.predicted_close:.2f} "
        f"± {prediction.std:.2f} (lookback {prediction.lookback})"
    )


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", type=str, default=None, help="Bind address (default: config).")
@click.option("--port", "-p", type=int, default=None, help="Port number (default: config).")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the REST API server."""
    import uvicorn

    config = _load_config(ctx)
    if ctx.obj.get("config_path"):
        # The app factory re-reads config in the server process
        os.environ["STOCK_DASHBOARD_CONFIG"] = ctx.obj["config_path"]
    host = host or config.api.host
    port = port or config.api.port

    console.print(f"Starting stock-dashboard API on [bold]{host}:{port}[/bold]")
    console.print(f"API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "stock_dashboard.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
