"""Moving-average crossover indicator.

Keeps the last ``window`` prices. Once the window is full it proposes BUY
when the price closes above the simple moving average by more than
``band_percent`` while flat, and SELL when it closes below by more than the
band while holding. The band filters out noise around the average.
"""

from __future__ import annotations

from collections import deque
from decimal import Decimal

from pydantic import BaseModel, Field

from mokka.action import Action, ActionType
from mokka.exchange.base import MarketSnapshot
from mokka.indicators.base import Verdict


class MovingAverageParams(BaseModel):
    window: int = Field(default=20, ge=2)
    band_percent: Decimal = Field(default=Decimal("0.5"), ge=0)


class MovingAverageIndicator:
    def __init__(self, params: MovingAverageParams) -> None:
        self.params = params
        self._prices: deque[Decimal] = deque(maxlen=params.window)

    @property
    def ready(self) -> bool:
        return len(self._prices) == self.params.window

    def average(self) -> Decimal | None:
        if not self._prices:
            return None
        return sum(self._prices, Decimal("0")) / len(self._prices)

    def evaluate(self, snapshot: MarketSnapshot, reference: Action) -> Verdict:
        price = snapshot.price
        self._prices.append(price)
        trigger = f"SMA{self.params.window}±{self.params.band_percent}%"

        if not self.ready:
            return Verdict(type=ActionType.IDLE, price=price, trigger=trigger)

        sma = self.average()
        band = sma * self.params.band_percent / 100

        if reference.holding and price < sma - band:
            proposed = ActionType.SELL
        elif not reference.holding and price > sma + band:
            proposed = ActionType.BUY
        else:
            proposed = ActionType.IDLE
        return Verdict(type=proposed, price=price, trigger=trigger)
