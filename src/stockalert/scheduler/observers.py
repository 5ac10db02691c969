"""Observers - where the alert loop reports what it sees.

The loop never prints. Hosts (CLI, tests, server) pass an observer and decide
how status updates, errors and the final alert are rendered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import click

from stockalert.constants import Direction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusUpdate:
    """Price seen on one successful poll cycle."""

    symbol: str
    price: float
    date: str
    time: str
    cycle: int


@dataclass(frozen=True)
class AlertNotification:
    """Emitted once when the target price is crossed."""

    symbol: str
    price: float
    target: float
    direction: Direction
    date: str
    time: str

    @property
    def message(self) -> str:
        return (
            f"{self.symbol} price (${self.price:.2f}) has crossed "
            f"{self.direction.value} target (${self.target:.2f})!"
        )


class AlertObserver:
    """Receives alert loop events. Override the hooks you need."""

    def on_status(self, update: StatusUpdate) -> None:
        pass

    def on_error(self, symbol: str, error: Exception) -> None:
        pass

    def on_alert(self, notification: AlertNotification) -> None:
        pass


class LoggingObserver(AlertObserver):
    """Routes every event to the module logger."""

    def on_status(self, update: StatusUpdate) -> None:
        logger.info(f"[{update.date} {update.time}] {update.symbol}: ${update.price:.2f}")

    def on_error(self, symbol: str, error: Exception) -> None:
        logger.warning(f"Error fetching quote for {symbol}: {error}")

    def on_alert(self, notification: AlertNotification) -> None:
        logger.info(f"ALERT: {notification.message}")


class ConsoleObserver(AlertObserver):
    """Terminal output for the interactive CLI."""

    def __init__(self, interval_seconds: float | None = None):
        self.interval_seconds = interval_seconds

    def on_status(self, update: StatusUpdate) -> None:
        click.echo(f"[{update.date} {update.time}] {update.symbol}: ${update.price:.2f}")

    def on_error(self, symbol: str, error: Exception) -> None:
        click.echo(f"Error fetching quote for {symbol}: {error}", err=True)
        if self.interval_seconds is not None:
            click.echo(f"Retrying in {self.interval_seconds:g}s...", err=True)

    def on_alert(self, notification: AlertNotification) -> None:
        click.echo()
        click.secho(f"🚨 ALERT: {notification.message}", fg="red", bold=True)
        click.echo(f"Alert triggered at {notification.date} {notification.time}")
