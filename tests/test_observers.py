"""Tests for alert observers."""

import logging

import pytest

from stockalert.constants import Direction
from stockalert.exceptions import HttpStatusError
from stockalert.scheduler.observers import (
    AlertNotification,
    ConsoleObserver,
    LoggingObserver,
    StatusUpdate,
)

UPDATE = StatusUpdate(symbol="aapl.us", price=185.644, date="2024-01-02", time="16:00:00", cycle=1)
NOTIFICATION = AlertNotification(
    symbol="aapl.us",
    price=99.5,
    target=100.0,
    direction=Direction.BELOW,
    date="2024-01-02",
    time="16:05:00",
)


def test_notification_message():
    assert NOTIFICATION.message == "aapl.us price ($99.50) has crossed below target ($100.00)!"


def test_console_observer_status(capsys: pytest.CaptureFixture) -> None:
    ConsoleObserver().on_status(UPDATE)
    assert capsys.readouterr().out == "[2024-01-02 16:00:00] aapl.us: $185.64\n"


def test_console_observer_error_mentions_retry(capsys: pytest.CaptureFixture) -> None:
    ConsoleObserver(interval_seconds=10).on_error("aapl.us", HttpStatusError("aapl.us", 500))
    err = capsys.readouterr().err
    assert "HTTP 500" in err
    assert "Retrying in 10s" in err


def test_console_observer_alert(capsys: pytest.CaptureFixture) -> None:
    ConsoleObserver().on_alert(NOTIFICATION)
    out = capsys.readouterr().out
    assert "ALERT: aapl.us price ($99.50)" in out
    assert "Alert triggered at 2024-01-02 16:05:00" in out
    assert "local time" not in out


def test_logging_observer(caplog: pytest.LogCaptureFixture) -> None:
    observer = LoggingObserver()
    with caplog.at_level(logging.INFO, logger="stockalert.scheduler.observers"):
        observer.on_status(UPDATE)
        observer.on_error("aapl.us", HttpStatusError("aapl.us", 500))
        observer.on_alert(NOTIFICATION)

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.WARNING, logging.INFO]
    assert "ALERT" in caplog.records[-1].getMessage()
