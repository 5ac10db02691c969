"""Tests for the quote relay API."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from stockalert.config_loader import AppConfig, ServerConfig
from stockalert.data.quote import Quote
from stockalert.exceptions import FetchError, HttpStatusError, ParseFailure, QuoteParseError
from stockalert.server.relay import create_app


class FakeFetcher:
    def __init__(self, result=None):
        self.result = result or Quote("AAPL.US", "2024-01-02", "16:00:00", 185.64)
        self.symbols: list[str] = []

    async def fetch(self, symbol: str) -> Quote:
        self.symbols.append(symbol)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def make_client(fetcher: FakeFetcher, static_dir: Path) -> TestClient:
    config = AppConfig(server=ServerConfig(static_dir=str(static_dir)))
    return TestClient(create_app(config, fetcher=fetcher))


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def client(fetcher, tmp_path):
    with make_client(fetcher, tmp_path / "no-web-dir") as test_client:
        yield test_client


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "stockalert"}


def test_quote_success(client, fetcher):
    response = client.get("/api/quote", params={"symbol": " aapl.us "})

    assert response.status_code == 200
    assert response.json() == {
        "symbol": "AAPL.US",
        "date": "2024-01-02",
        "time": "16:00:00",
        "close": 185.64,
    }
    assert fetcher.symbols == ["aapl.us"]


@pytest.mark.parametrize("params", [{}, {"symbol": ""}, {"symbol": "   "}])
def test_missing_symbol(client, fetcher, params):
    response = client.get("/api/quote", params=params)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing or invalid 'symbol' query parameter"}
    assert fetcher.symbols == []


@pytest.mark.parametrize(
    "error",
    [
        HttpStatusError("aapl.us", 503),
        FetchError("Failed to fetch quote for aapl.us: timed out", "aapl.us"),
        QuoteParseError(ParseFailure.INVALID_SYMBOL, "aapl.us", "Invalid symbol: aapl.us."),
    ],
)
def test_upstream_failure_is_bad_gateway(tmp_path, error):
    with make_client(FakeFetcher(error), tmp_path) as client:
        response = client.get("/api/quote", params={"symbol": "aapl.us"})

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "Failed to fetch quote from upstream service"
    assert body["message"] == str(error)


def test_static_files_served(tmp_path, fetcher):
    web_dir = tmp_path / "web"
    web_dir.mkdir()
    (web_dir / "index.html").write_text("<h1>Stock Price Alert</h1>")

    with make_client(fetcher, web_dir) as client:
        page = client.get("/")
        api = client.get("/api/quote", params={"symbol": "aapl.us"})

    assert page.status_code == 200
    assert "Stock Price Alert" in page.text
    assert api.status_code == 200


def test_lifespan_creates_and_closes_fetcher(tmp_path):
    config = AppConfig(server=ServerConfig(static_dir=str(tmp_path)))
    app = create_app(config)
    assert app.state.fetcher is None

    with TestClient(app):
        assert app.state.fetcher is not None

    assert app.state.fetcher is None
