"""stockalert CLI."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys

import click
from pydantic import ValidationError

from stockalert.config_loader import AppConfig, load_config_with_overrides
from stockalert.constants import LOG_FORMAT, Direction, LogLevel
from stockalert.data.quote_fetcher import QuoteFetcher, fetch_quote
from stockalert.exceptions import StockAlertError
from stockalert.scheduler.alert_loop import AlertConfig, AlertState, start_alert
from stockalert.scheduler.observers import AlertNotification, AlertObserver, ConsoleObserver

logger = logging.getLogger(__name__)

POSITIVE = click.FloatRange(min=0, min_open=True)


def setup_logging(level: LogLevel) -> None:
    logging.basicConfig(level=level.value, format=LOG_FORMAT)


def _load(ctx: click.Context, **overrides) -> AppConfig:
    """Load config from the group options plus per-command overrides."""
    try:
        config = load_config_with_overrides(
            ctx.obj["config_path"], log_level=ctx.obj["log_level"], **overrides
        )
    except (FileNotFoundError, ValidationError) as e:
        raise click.ClickException(str(e)) from e
    setup_logging(config.environment.log_level)
    return config


def _non_empty(value: str) -> str:
    value = value.strip()
    if not value:
        raise click.BadParameter("Symbol cannot be empty. Please try again.")
    return value


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to configuration file (default: config/config.yaml if present)",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in LogLevel], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx, config_path, log_level):
    """Stock price alert command line interface."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level


async def run_watch(
    alert_config: AlertConfig,
    observer: AlertObserver,
    fetcher: QuoteFetcher | None = None,
) -> tuple[AlertState, AlertNotification | None]:
    """Run one alert, cancelling it cleanly on SIGINT/SIGTERM."""
    fetch = fetcher.fetch if fetcher is not None else None
    handle = start_alert(alert_config, fetch=fetch, observer=observer)

    loop = asyncio.get_running_loop()
    signals = (signal.SIGINT, signal.SIGTERM) if sys.platform != "win32" else ()
    for sig in signals:
        loop.add_signal_handler(sig, handle.cancel)

    try:
        notification = await handle.wait()
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)

    return handle.state, notification


@cli.command()
@click.option("--symbol", help="Stock symbol, e.g. aapl.us")
@click.option("--target", type=POSITIVE, help="Target price")
@click.option(
    "--direction",
    type=click.Choice([d.value for d in Direction], case_sensitive=False),
    help="Alert when the price goes above or below the target",
)
@click.option("--interval", type=POSITIVE, help="Polling interval in seconds")
@click.pass_context
def watch(ctx, symbol, target, direction, interval):
    """Watch a symbol and alert once when it crosses the target price."""
    config = _load(ctx)

    click.echo("📈 Stock Price Alert System\n")
    click.echo("This tool will monitor a stock price and alert you when it crosses a threshold.\n")

    if symbol is None:
        symbol = click.prompt("Enter stock symbol (e.g., aapl.us)", value_proc=_non_empty)
    if target is None:
        target = click.prompt("Enter target price", type=POSITIVE)
    if direction is None:
        direction = click.prompt(
            "Enter direction",
            type=click.Choice([d.value for d in Direction], case_sensitive=False),
            default=config.alert.direction.value,
        )
    if interval is None:
        interval = click.prompt(
            "Enter polling interval in seconds",
            type=POSITIVE,
            default=config.alert.interval_seconds,
        )

    try:
        alert_config = AlertConfig.from_seconds(symbol.strip(), target, direction.lower(), interval)
    except StockAlertError as e:
        raise click.ClickException(str(e)) from e

    click.echo("\n" + "=" * 50)
    click.echo("Alert Started!")
    click.echo("=" * 50)
    click.echo(f"Symbol: {alert_config.symbol}")
    click.echo(f"Target: ${alert_config.target_price:.2f}")
    click.echo(f"Direction: {alert_config.direction.value}")
    click.echo(f"Polling interval: {interval:g} seconds")
    click.echo("\nPress Ctrl-C to quit")
    click.echo("=" * 50 + "\n")

    async def _main():
        async with QuoteFetcher(config.upstream) as fetcher:
            return await run_watch(alert_config, ConsoleObserver(interval), fetcher)

    try:
        state, _ = asyncio.run(_main())
    except KeyboardInterrupt:
        state = AlertState.CANCELLED

    if state is AlertState.CANCELLED:
        click.echo("\n👋 Quitting...")


@cli.command()
@click.argument("symbol")
@click.option("--json", "as_json", is_flag=True, help="Print the quote as JSON")
@click.pass_context
def quote(ctx, symbol, as_json):
    """Fetch and print the latest quote for SYMBOL."""
    config = _load(ctx)

    try:
        result = asyncio.run(fetch_quote(symbol, config.upstream))
    except StockAlertError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(result.to_dict()))
    else:
        click.echo(f"[{result.date} {result.time}] {result.symbol}: ${result.close:.2f}")


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="Port (overrides config)")
@click.pass_context
def serve(ctx, host, port):
    """Run the quote relay server and web UI."""
    from stockalert.server.relay import run_server

    config = _load(ctx, host=host, port=port)
    click.echo(f"Server running on http://{config.server.host}:{config.server.port}")
    click.echo(f"Serving static files from {config.server.static_dir}/ directory")
    click.echo("API endpoint: GET /api/quote?symbol=<SYMBOL>")
    run_server(config)


if __name__ == "__main__":
    cli()

# Alias for __main__.py
main = cli
