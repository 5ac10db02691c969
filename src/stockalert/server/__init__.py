"""HTTP relay server."""

from stockalert.server.relay import create_app, run_server

__all__ = ["create_app", "run_server"]
