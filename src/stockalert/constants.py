"""Core constants for stockalert."""

from enum import Enum


class Direction(str, Enum):
    """Side of the target price that triggers an alert."""

    ABOVE = "above"
    BELOW = "below"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================
# Upstream Quote Source
# ============================================

# s=symbol, f=sd2t2ohlcvn (field set), h (header row), e=csv (export format)
DEFAULT_QUOTE_URL_TEMPLATE = "https://stooq.com/q/l/?s={symbol}&f=sd2t2ohlcvn&h&e=csv"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

REQUIRED_COLUMNS = ("Symbol", "Date", "Time", "Close")
NOT_AVAILABLE = "N/A"

# ============================================
# Default Values
# ============================================

DEFAULT_INTERVAL_SECONDS = 10.0
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 3000
DEFAULT_STATIC_DIR = "web"

# ============================================
# Application Constants
# ============================================

APP_NAME = "stockalert"
APP_VERSION = "0.1.0"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
