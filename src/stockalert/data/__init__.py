"""Quote retrieval and parsing."""

from stockalert.data.quote import Quote
from stockalert.data.quote_fetcher import QuoteFetcher, build_quote_url, fetch_quote
from stockalert.data.quote_parser import parse_leading_float, parse_quote

__all__ = [
    "Quote",
    "QuoteFetcher",
    "build_quote_url",
    "fetch_quote",
    "parse_leading_float",
    "parse_quote",
]
