"""Quote Parser - turn an upstream CSV body into a validated Quote.

The body is a header row followed by a data row, comma separated:

    Symbol,Date,Time,Open,High,Low,Close,Volume,Name
    AAPL.US,2024-01-02,16:00:00,187.15,188.44,183.89,185.64,82488674,APPLE

Only the first two lines are read. Column positions come from the header, so
extra or reordered columns are fine as long as Symbol, Date, Time and Close
are present.
"""

from __future__ import annotations

import logging
import math
import re

from stockalert.constants import NOT_AVAILABLE, REQUIRED_COLUMNS
from stockalert.data.quote import Quote
from stockalert.exceptions import ParseFailure, QuoteParseError

logger = logging.getLogger(__name__)

DELIMITER = ","

# Optional sign, then Infinity or a decimal literal with optional exponent.
# An exponent marker without digits is not part of the prefix ("1e" -> 1.0).
_LEADING_FLOAT = re.compile(r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")


def parse_leading_float(text: str) -> float:
    """
    Parse the longest numeric prefix of ``text``.

    Leading whitespace is skipped and anything after the prefix is ignored,
    so ``"185.64*"`` gives ``185.64``. Returns NaN when there is no prefix.
    """
    match = _LEADING_FLOAT.match(text.lstrip())
    if match is None:
        return math.nan
    return float(match.group())


def _split_lines(text: str) -> list[str]:
    return [line.rstrip("\r") for line in text.split("\n")]


def _field(row: list[str], index: int) -> str:
    if index >= len(row):
        return ""
    return row[index].strip()


def parse_quote(text: str, symbol: str) -> Quote:
    """
    Parse an upstream CSV body.

    Args:
        text: Raw response body
        symbol: The symbol that was requested (used in error messages)

    Returns:
        Quote built from the first data row

    Raises:
        QuoteParseError: With the first failing check as ``reason``
    """
    body = (text or "").strip()
    if not body:
        raise QuoteParseError(
            ParseFailure.EMPTY_RESPONSE,
            symbol,
            f"Empty response received for symbol: {symbol}. The symbol may be invalid.",
        )

    lines = _split_lines(body)
    if len(lines) < 2:
        raise QuoteParseError(
            ParseFailure.MALFORMED_STRUCTURE,
            symbol,
            f"Invalid response format for symbol: {symbol}. "
            f"Expected at least 2 lines (header + data), got {len(lines)}",
        )

    header = lines[0].split(DELIMITER)
    missing = [name for name in REQUIRED_COLUMNS if name not in header]
    if missing:
        raise QuoteParseError(
            ParseFailure.MISSING_COLUMN,
            symbol,
            f"Invalid CSV header format. Expected columns: {', '.join(REQUIRED_COLUMNS)}; "
            f"missing: {', '.join(missing)}",
        )

    row = lines[1].split(DELIMITER)
    symbol_value = _field(row, header.index("Symbol"))
    date_value = _field(row, header.index("Date"))
    time_value = _field(row, header.index("Time"))
    close_value = _field(row, header.index("Close"))

    if not symbol_value or symbol_value == NOT_AVAILABLE:
        raise QuoteParseError(
            ParseFailure.INVALID_SYMBOL,
            symbol,
            f"Invalid symbol: {symbol}. The symbol was not found or is not recognized.",
        )

    if not date_value or not time_value:
        raise QuoteParseError(
            ParseFailure.MISSING_TIMESTAMP,
            symbol,
            f"Missing date or time data for symbol: {symbol}",
        )

    if not close_value or close_value == NOT_AVAILABLE:
        raise QuoteParseError(
            ParseFailure.MISSING_PRICE,
            symbol,
            f"No close price available for symbol: {symbol}. "
            "The symbol may be invalid or delisted.",
        )

    close = parse_leading_float(close_value)
    if math.isnan(close):
        raise QuoteParseError(
            ParseFailure.INVALID_PRICE,
            symbol,
            f'Invalid close price "{close_value}" for symbol: {symbol}. Expected a number.',
        )

    logger.debug(f"Parsed {symbol_value} close={close} at {date_value} {time_value}")

    return Quote(symbol=symbol_value, date=date_value, time=time_value, close=close)
