"""
FastAPI relay server for stock quotes.

Browsers can't read Stooq directly (no CORS), so the web page asks this server
instead. It also serves the static page from the configured web directory.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from stockalert.config_loader import AppConfig
from stockalert.constants import APP_NAME, APP_VERSION
from stockalert.data.quote_fetcher import QuoteFetcher
from stockalert.exceptions import FetchError, QuoteParseError

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None, fetcher: Optional[QuoteFetcher] = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Application config (defaults if omitted)
        fetcher: Quote fetcher to use; one is created for the app's lifespan if omitted

    Returns:
        Configured FastAPI app
    """
    config = config or AppConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Own the upstream HTTP client for the app's lifetime."""
        owned = None
        if app.state.fetcher is None:
            owned = QuoteFetcher(config.upstream)
            app.state.fetcher = owned

        logger.info("Starting quote relay")
        yield

        logger.info("Shutting down quote relay")
        if owned is not None:
            await owned.aclose()
            app.state.fetcher = None

    app = FastAPI(
        title="Stock Alert Quote Relay",
        description="Relays the latest Stooq quote for a symbol as JSON",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.fetcher = fetcher

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": APP_NAME}

    @app.get(
        "/api/quote",
        summary="Latest quote for a symbol",
        description="Returns {symbol, date, time, close}; 400 without a symbol, 502 on upstream failure",
    )
    async def get_quote(symbol: Optional[str] = None):
        """Fetch the latest quote for ``symbol``."""
        if symbol is None or not symbol.strip():
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Missing or invalid 'symbol' query parameter"},
            )

        try:
            quote = await app.state.fetcher.fetch(symbol.strip())
        except (FetchError, QuoteParseError) as e:
            logger.error(f"Error fetching quote for {symbol}: {e}")
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={
                    "error": "Failed to fetch quote from upstream service",
                    "message": str(e),
                },
            )

        return quote.to_dict()

    static_dir = Path(config.server.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.debug(f"Serving static files from {static_dir}")
    else:
        logger.debug(f"Static directory {static_dir} not found, UI disabled")

    return app


def run_server(config: AppConfig) -> None:
    """Run the relay with uvicorn (blocking)."""
    import uvicorn

    app = create_app(config)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.environment.log_level.value.lower(),
    )
