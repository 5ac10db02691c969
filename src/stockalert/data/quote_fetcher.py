"""Quote Fetcher - download the latest quote for a symbol from Stooq.

No retry happens here; the alert loop decides what to do with a failure.
"""

from __future__ import annotations

import logging
import time
from urllib.parse import quote

import httpx

from stockalert.config_loader import UpstreamConfig
from stockalert.data.quote import Quote
from stockalert.data.quote_parser import parse_quote
from stockalert.exceptions import EmptySymbolError, FetchError, HttpStatusError

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone besides the unreserved set.
_SAFE_SYMBOL_CHARS = "!~*'()"


def build_quote_url(symbol: str, config: UpstreamConfig | None = None) -> str:
    """Build the upstream URL for a symbol, URL-encoding the symbol."""
    config = config or UpstreamConfig()
    return config.build_url(quote(symbol, safe=_SAFE_SYMBOL_CHARS))


class QuoteFetcher:
    """
    Fetch quotes over HTTP and hand the body to the parser.

    Usage:
        async with QuoteFetcher() as fetcher:
            quote = await fetcher.fetch("aapl.us")

    A client passed in is shared and left open; a client created here is
    closed by ``aclose()``.
    """

    def __init__(
        self,
        config: UpstreamConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or UpstreamConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        )

    async def fetch(self, symbol: str) -> Quote:
        """
        Fetch and parse the latest quote.

        Args:
            symbol: Stock symbol (e.g. "aapl.us")

        Returns:
            Parsed Quote

        Raises:
            EmptySymbolError: Symbol is blank, no request is made
            HttpStatusError: Upstream returned a non-2xx status
            FetchError: Transport failure (timeout, connection refused, ...)
            QuoteParseError: Body failed validation
        """
        if not symbol or not symbol.strip():
            raise EmptySymbolError()

        url = build_quote_url(symbol, self.config)
        start_time = time.time()

        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch quote for {symbol}: {e}", symbol) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(f"GET {url} -> {response.status_code} in {duration_ms:.1f}ms")

        if not response.is_success:
            raise HttpStatusError(symbol, response.status_code)

        return parse_quote(response.text, symbol)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> QuoteFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


async def fetch_quote(symbol: str, config: UpstreamConfig | None = None) -> Quote:
    """Fetch one quote with a short-lived client."""
    async with QuoteFetcher(config) as fetcher:
        return await fetcher.fetch(symbol)
