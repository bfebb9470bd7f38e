"""Exchange interface used by the trading loop."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Protocol

from pydantic import BaseModel, Field


class MarketSnapshot(BaseModel):
    symbol: str
    price: Decimal = Field(gt=0)
    timestamp: int  # seconds since epoch


class OrderResult(BaseModel):
    order_id: str
    symbol: str
    side: str  # "BUY" or "SELL"
    status: str
    price: Decimal
    quantity: Decimal
    executed_quantity: Decimal = Decimal("0")
    raw: dict[str, Any] = {}


class Exchange(Protocol):
    """Narrow exchange contract. Every failure surfaces as ``ExchangeError``."""

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot: ...

    async def get_balance(self) -> Decimal: ...

    async def get_step_size(self, symbol: str) -> Decimal | None: ...

    async def submit_buy(self, symbol: str, price: Decimal, quantity: Decimal) -> OrderResult: ...

    async def submit_sell(self, symbol: str, price: Decimal, quantity: Decimal) -> OrderResult: ...

    async def aclose(self) -> None: ...
