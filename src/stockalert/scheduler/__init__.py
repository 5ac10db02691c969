"""Scheduler Module - Polling and alerting."""

from stockalert.scheduler.alert_loop import (
    AlertConfig,
    AlertHandle,
    AlertLoop,
    AlertState,
    start_alert,
    threshold_crossed,
)
from stockalert.scheduler.observers import (
    AlertNotification,
    AlertObserver,
    ConsoleObserver,
    LoggingObserver,
    StatusUpdate,
)

__all__ = [
    "AlertConfig",
    "AlertHandle",
    "AlertLoop",
    "AlertState",
    "start_alert",
    "threshold_crossed",
    "AlertNotification",
    "AlertObserver",
    "ConsoleObserver",
    "LoggingObserver",
    "StatusUpdate",
]
