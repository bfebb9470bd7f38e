"""Pick the exchange client for a configured market."""

from __future__ import annotations

from typing import Callable

from mokka.config import MarketConfig
from mokka.errors import ConfigurationError
from mokka.exchange.base import Exchange
from mokka.exchange.binance import BinanceExchange

_EXCHANGES: dict[str, Callable[[MarketConfig], Exchange]] = {
    "binance": BinanceExchange,
}


def make_exchange(market: str, config: MarketConfig) -> Exchange:
    """Exchange client for *market*; unknown markets are a fatal config error."""
    factory = _EXCHANGES.get(market)
    if factory is None:
        raise ConfigurationError(
            f"No exchange client for market {market!r} (supported: {', '.join(sorted(_EXCHANGES))})"
        )
    return factory(config)
