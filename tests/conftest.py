from __future__ import annotations

from decimal import Decimal

import pytest

from mokka.action import Action, ActionType
from mokka.config import MarketConfig
from mokka.errors import ExchangeError
from mokka.exchange.base import MarketSnapshot, OrderResult
from mokka.indicators.base import Verdict
from mokka.storage.action_log import ActionLog

NOW = 1_700_000_000


@pytest.fixture
def anyio_backend():
    """Force anyio-powered async tests to run under asyncio backend only."""
    return "asyncio"


class FakeExchange:
    """In-memory exchange: scripted prices, recorded orders."""

    def __init__(self, prices, balance=Decimal("1000"), step=None, fail_orders=False):
        self.prices = [Decimal(str(p)) for p in prices]
        self.balance = Decimal(str(balance))
        self.step = step
        self.fail_orders = fail_orders
        self.orders: list[tuple[str, str, Decimal, Decimal]] = []
        self.balance_calls = 0
        self.closed = False

    async def fetch_snapshot(self, symbol):
        if not self.prices:
            raise ExchangeError("no more prices")
        if self.prices[0] <= 0:
            raise ExchangeError(f"bad price {self.prices.pop(0)}")
        return MarketSnapshot(symbol=symbol, price=self.prices.pop(0), timestamp=NOW)

    async def get_balance(self):
        self.balance_calls += 1
        return self.balance

    async def get_step_size(self, symbol):
        return self.step

    async def _order(self, side, symbol, price, quantity):
        if self.fail_orders:
            raise ExchangeError(f"{side} rejected")
        self.orders.append((side, symbol, price, quantity))
        return OrderResult(
            order_id=str(len(self.orders)), symbol=symbol, side=side,
            status="NEW", price=price, quantity=quantity,
        )

    async def submit_buy(self, symbol, price, quantity):
        return await self._order("BUY", symbol, price, quantity)

    async def submit_sell(self, symbol, price, quantity):
        return await self._order("SELL", symbol, price, quantity)

    async def aclose(self):
        self.closed = True


class ScriptedIndicator:
    """Replays a fixed list of proposals, using the snapshot price as trigger."""

    def __init__(self, proposals):
        self.proposals = list(proposals)
        self.seen: list[Action] = []

    def evaluate(self, snapshot, reference):
        self.seen.append(reference)
        proposed = self.proposals.pop(0) if self.proposals else ActionType.IDLE
        return Verdict(type=proposed, price=snapshot.price, trigger="scripted")


class FakeSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_action(type_=ActionType.BUY, price="100", previous=None, quantity=None, ts=NOW - 60):
    return Action(
        type=type_,
        symbol="BTCUSDT",
        market="binance",
        previous_price=Decimal(previous or price),
        action_price=Decimal(price),
        quantity=None if quantity is None else Decimal(quantity),
        last_update=ts,
    )


@pytest.fixture
def market_config():
    return MarketConfig(max_fund=Decimal("100"), max_sell=Decimal("1"))


@pytest.fixture
def action_log(tmp_path):
    return ActionLog(tmp_path / "logs" / "BTCUSDT.jsonl")
