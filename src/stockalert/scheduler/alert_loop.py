"""Alert Loop - poll a quote until it crosses the target price.

State machine:
    POLLING --(quote, not crossed)--> POLLING (after one interval)
    POLLING --(quote, crossed)------> TRIGGERED (terminal, one notification)
    POLLING --(fetch/parse error)---> POLLING (after one interval, error reported)
    any     --(cancel)--------------> CANCELLED (terminal, no notification)

There is no retry limit. Cancellation is cooperative: it wakes an interval
sleep right away but lets an in-flight fetch finish, and nothing from that
fetch is reported.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stockalert.constants import Direction
from stockalert.data.quote import Quote
from stockalert.data.quote_fetcher import QuoteFetcher
from stockalert.exceptions import ConfigurationError, FetchError, QuoteParseError
from stockalert.scheduler.observers import (
    AlertNotification,
    AlertObserver,
    LoggingObserver,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

QuoteSource = Callable[[str], Awaitable[Quote]]


class AlertState(str, Enum):
    """Lifecycle of one alert."""

    POLLING = "polling"
    TRIGGERED = "triggered"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AlertConfig:
    """What to watch and how often. Validated on construction."""

    symbol: str
    target_price: float
    direction: Direction
    interval_ms: int

    def __post_init__(self):
        if not self.symbol or not self.symbol.strip():
            raise ConfigurationError("symbol cannot be empty")
        if not math.isfinite(self.interval_ms) or int(self.interval_ms) != self.interval_ms:
            raise ConfigurationError(
                f"interval_ms must be a whole number of milliseconds, got: {self.interval_ms!r}"
            )
        if self.interval_ms <= 0:
            raise ConfigurationError("interval_ms must be greater than 0")
        if math.isnan(self.target_price) or self.target_price <= 0:
            raise ConfigurationError("target price must be greater than 0")
        try:
            object.__setattr__(self, "direction", Direction(self.direction))
        except ValueError as e:
            raise ConfigurationError(
                f"direction must be 'above' or 'below', got: {self.direction!r}"
            ) from e

    @classmethod
    def from_seconds(
        cls,
        symbol: str,
        target_price: float,
        direction: Direction | str,
        interval_seconds: float,
    ) -> AlertConfig:
        """Build a config from an interval given in seconds."""
        if not math.isfinite(interval_seconds):
            raise ConfigurationError(
                f"interval must be a finite number of seconds, got: {interval_seconds!r}"
            )
        return cls(
            symbol=symbol,
            target_price=target_price,
            direction=direction,
            interval_ms=int(round(interval_seconds * 1000)),
        )

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000


def threshold_crossed(close: float, target: float, direction: Direction) -> bool:
    """True when ``close`` is at or beyond ``target`` on the ``direction`` side."""
    if direction == Direction.ABOVE:
        return close >= target
    return close <= target


class AlertLoop:
    """
    Runs one alert to completion.

    Usage:
        loop = AlertLoop(config, observer=ConsoleObserver())
        notification = await loop.run()   # None if cancelled

    ``fetch`` defaults to a QuoteFetcher owned by the loop for the duration
    of ``run()``.
    """

    def __init__(
        self,
        config: AlertConfig,
        fetch: QuoteSource | None = None,
        observer: AlertObserver | None = None,
    ):
        self.config = config
        self.observer = observer or LoggingObserver()
        self._fetch = fetch

        self._state = AlertState.POLLING
        self._cycles = 0
        self._cancel_requested = asyncio.Event()
        self._notification: AlertNotification | None = None

    @property
    def state(self) -> AlertState:
        return self._state

    @property
    def cycles(self) -> int:
        """Number of fetches started so far."""
        return self._cycles

    @property
    def notification(self) -> AlertNotification | None:
        return self._notification

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def cancel(self) -> None:
        """Stop at the next suspension boundary without alerting."""
        if self._state is AlertState.POLLING and not self.cancel_requested:
            logger.info(f"Cancellation requested for {self.config.symbol} alert")
        self._cancel_requested.set()

    async def run(self) -> AlertNotification | None:
        """
        Poll until triggered or cancelled.

        Returns:
            The alert notification, or None if the loop was cancelled
        """
        if self._state is not AlertState.POLLING:
            return self._notification

        if self._fetch is not None:
            return await self._poll(self._fetch)

        async with QuoteFetcher() as fetcher:
            return await self._poll(fetcher.fetch)

    async def _poll(self, fetch: QuoteSource) -> AlertNotification | None:
        cfg = self.config
        logger.info(
            f"Starting alert for {cfg.symbol}: watching for price {cfg.direction.value} "
            f"{cfg.target_price} (checking every {cfg.interval_ms}ms)"
        )

        try:
            while not self.cancel_requested:
                self._cycles += 1

                try:
                    quote = await fetch(cfg.symbol)
                except (FetchError, QuoteParseError) as e:
                    if self.cancel_requested:
                        break
                    logger.warning(f"Cycle {self._cycles}: error fetching quote for {cfg.symbol}: {e}")
                    self._notify(self.observer.on_error, cfg.symbol, e)
                    logger.info(f"Retrying in {cfg.interval_ms}ms...")
                    await self._sleep()
                    continue
                except Exception as e:
                    if self.cancel_requested:
                        break
                    logger.error(
                        f"Cycle {self._cycles}: unexpected error fetching quote for {cfg.symbol}: {e}",
                        exc_info=True,
                    )
                    self._notify(self.observer.on_error, cfg.symbol, e)
                    logger.info(f"Retrying in {cfg.interval_ms}ms...")
                    await self._sleep()
                    continue

                if self.cancel_requested:
                    break

                self._notify(
                    self.observer.on_status,
                    StatusUpdate(
                        symbol=cfg.symbol,
                        price=quote.close,
                        date=quote.date,
                        time=quote.time,
                        cycle=self._cycles,
                    ),
                )

                if threshold_crossed(quote.close, cfg.target_price, cfg.direction):
                    return self._trigger(quote)

                await self._sleep()
        except asyncio.CancelledError:
            self._state = AlertState.CANCELLED
            raise

        self._state = AlertState.CANCELLED
        logger.info(f"Alert for {cfg.symbol} stopped after {self._cycles} cycles")
        return None

    def _trigger(self, quote: Quote) -> AlertNotification:
        cfg = self.config
        notification = AlertNotification(
            symbol=cfg.symbol,
            price=quote.close,
            target=cfg.target_price,
            direction=cfg.direction,
            date=quote.date,
            time=quote.time,
        )
        self._state = AlertState.TRIGGERED
        self._notification = notification
        logger.info(f"Alert triggered on cycle {self._cycles}: {notification.message}")
        self._notify(self.observer.on_alert, notification)
        return notification

    async def _sleep(self) -> None:
        """Wait one interval, returning early if cancelled."""
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(
                self._cancel_requested.wait(), timeout=self.config.interval_seconds
            )

    def _notify(self, hook: Callable[..., Any], *args: Any) -> None:
        try:
            hook(*args)
        except Exception as e:
            logger.error(f"Observer callback {hook.__name__} failed: {e}")


class AlertHandle:
    """A running alert: cancel it, or await its outcome."""

    def __init__(self, alert_loop: AlertLoop, task: asyncio.Task):
        self.alert_loop = alert_loop
        self._task = task

    @property
    def state(self) -> AlertState:
        return self.alert_loop.state

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        self.alert_loop.cancel()

    async def wait(self) -> AlertNotification | None:
        return await self._task


def start_alert(
    config: AlertConfig,
    fetch: QuoteSource | None = None,
    observer: AlertObserver | None = None,
) -> AlertHandle:
    """Schedule an alert on the running event loop and return its handle."""
    alert_loop = AlertLoop(config, fetch=fetch, observer=observer)
    task = asyncio.create_task(alert_loop.run(), name=f"alert-{config.symbol}")
    return AlertHandle(alert_loop, task)
