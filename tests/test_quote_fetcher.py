"""Tests for QuoteFetcher against a mocked upstream."""

from __future__ import annotations

import httpx
import pytest

from stockalert.config_loader import UpstreamConfig
from stockalert.data.quote import Quote
from stockalert.data.quote_fetcher import QuoteFetcher, build_quote_url
from stockalert.exceptions import (
    EmptySymbolError,
    FetchError,
    HttpStatusError,
    ParseFailure,
    QuoteParseError,
)

BODY = "Symbol,Date,Time,Open,High,Low,Close,Volume,Name\nAAPL.US,2024-01-02,16:00:00,187.15,188.44,183.89,185.64,82488674,APPLE\n"


class Upstream:
    """Records requests and answers with a fixed response."""

    def __init__(self, status_code: int = 200, text: str = BODY, error: Exception | None = None):
        self.status_code = status_code
        self.text = text
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.text)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class TestBuildQuoteUrl:
    def test_default_template(self) -> None:
        assert build_quote_url("aapl.us") == "https://stooq.com/q/l/?s=aapl.us&f=sd2t2ohlcvn&h&e=csv"

    def test_symbol_is_url_encoded(self) -> None:
        url = build_quote_url("brk b&x=1")
        assert "s=brk%20b%26x%3D1&" in url

    def test_custom_template(self) -> None:
        config = UpstreamConfig(url_template="http://localhost:9000/q?sym={symbol}")
        assert build_quote_url("^spx", config) == "http://localhost:9000/q?sym=%5Espx"


class TestQuoteFetcher:
    @pytest.mark.asyncio
    async def test_fetch_success(self) -> None:
        upstream = Upstream()
        async with upstream.client() as client:
            quote = await QuoteFetcher(client=client).fetch("aapl.us")

        assert quote == Quote("AAPL.US", "2024-01-02", "16:00:00", 185.64)
        assert len(upstream.requests) == 1
        request = upstream.requests[0]
        assert request.method == "GET"
        assert request.url.host == "stooq.com"
        assert request.url.params["s"] == "aapl.us"
        assert request.url.params["e"] == "csv"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("symbol", ["", "   ", "\t"])
    async def test_empty_symbol_makes_no_request(self, symbol: str) -> None:
        upstream = Upstream()
        async with upstream.client() as client:
            with pytest.raises(EmptySymbolError):
                await QuoteFetcher(client=client).fetch(symbol)
        assert upstream.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 429, 500, 503])
    async def test_http_error_status(self, status_code: int) -> None:
        upstream = Upstream(status_code=status_code)
        async with upstream.client() as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await QuoteFetcher(client=client).fetch("aapl.us")

        assert exc_info.value.status == status_code
        assert f"HTTP {status_code}" in str(exc_info.value)
        assert isinstance(exc_info.value, FetchError)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self) -> None:
        upstream = Upstream(error=httpx.ConnectError("connection refused"))
        async with upstream.client() as client:
            with pytest.raises(FetchError, match="connection refused") as exc_info:
                await QuoteFetcher(client=client).fetch("aapl.us")

        assert exc_info.value.symbol == "aapl.us"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_parse_error_propagates_unchanged(self) -> None:
        upstream = Upstream(text="Symbol,Date,Time,Close\nN/A,N/A,N/A,N/A")
        async with upstream.client() as client:
            with pytest.raises(QuoteParseError) as exc_info:
                await QuoteFetcher(client=client).fetch("zzzz.us")

        assert exc_info.value.reason is ParseFailure.INVALID_SYMBOL

    @pytest.mark.asyncio
    async def test_empty_body(self) -> None:
        upstream = Upstream(text="")
        async with upstream.client() as client:
            with pytest.raises(QuoteParseError) as exc_info:
                await QuoteFetcher(client=client).fetch("aapl.us")

        assert exc_info.value.reason is ParseFailure.EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_shared_client_left_open(self) -> None:
        upstream = Upstream()
        async with upstream.client() as client:
            async with QuoteFetcher(client=client) as fetcher:
                await fetcher.fetch("aapl.us")
            assert not client.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_closed(self) -> None:
        fetcher = QuoteFetcher()
        await fetcher.aclose()
        assert fetcher._client.is_closed
