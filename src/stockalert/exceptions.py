"""Exception hierarchy for stockalert.

- ConfigurationError: invalid alert settings, raised once at construction.
- FetchError: the upstream request failed (empty symbol, HTTP status, transport).
- QuoteParseError: the upstream body could not be turned into a quote.

The alert loop recovers from FetchError and QuoteParseError; everything else
propagates.
"""

from __future__ import annotations

from enum import Enum


class StockAlertError(Exception):
    """Base class for all stockalert errors."""


class ConfigurationError(StockAlertError, ValueError):
    """Raised when an alert is configured with invalid values."""


class FetchError(StockAlertError):
    """Raised when a quote could not be retrieved from upstream."""

    def __init__(self, message: str, symbol: str = ""):
        super().__init__(message)
        self.symbol = symbol


class EmptySymbolError(FetchError):
    """Raised before any network call when the symbol token is blank."""

    def __init__(self) -> None:
        super().__init__("Symbol cannot be empty")


class HttpStatusError(FetchError):
    """Raised when upstream answers with a non-success status code."""

    def __init__(self, symbol: str, status: int):
        super().__init__(f"Failed to fetch quote for {symbol}: HTTP {status}", symbol)
        self.status = status


class ParseFailure(str, Enum):
    """Reasons a quote body can be rejected, in the order they are checked."""

    EMPTY_RESPONSE = "empty_response"
    MALFORMED_STRUCTURE = "malformed_structure"
    MISSING_COLUMN = "missing_column"
    INVALID_SYMBOL = "invalid_symbol"
    MISSING_TIMESTAMP = "missing_timestamp"
    MISSING_PRICE = "missing_price"
    INVALID_PRICE = "invalid_price"


class QuoteParseError(StockAlertError):
    """Raised when a quote body fails validation."""

    def __init__(self, reason: ParseFailure, symbol: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.symbol = symbol
