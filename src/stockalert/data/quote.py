"""Quote data structures."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Quote:
    """Point-in-time price observation for one symbol."""

    symbol: str
    date: str
    time: str
    close: float

    @property
    def timestamp(self) -> str:
        return f"{self.date} {self.time}"

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "date": self.date,
            "time": self.time,
            "close": self.close,
        }
