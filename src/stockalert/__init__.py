"""stockalert - poll a stock quote and alert when it crosses a target price."""

from stockalert.constants import APP_VERSION

__version__ = APP_VERSION
