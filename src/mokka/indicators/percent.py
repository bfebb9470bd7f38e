"""Percent-threshold indicator.

Compares the live price against the reference action's price:
- holding (last action BUY) and price up more than ``sell_percent`` → SELL
- flat (last action SELL) and price down more than ``buy_percent`` → BUY
- anything else → IDLE
"""

from __future__ import annotations

import logging
from decimal import Decimal

from pydantic import BaseModel, Field

from mokka.action import Action, ActionType
from mokka.exchange.base import MarketSnapshot
from mokka.indicators.base import Verdict

logger = logging.getLogger(__name__)


class PercentParams(BaseModel):
    buy_percent: Decimal = Field(default=Decimal("2"), gt=0)
    sell_percent: Decimal = Field(default=Decimal("2"), gt=0)


class PercentIndicator:
    def __init__(self, params: PercentParams) -> None:
        self.params = params

    def trigger_for(self, reference: Action) -> str:
        if reference.holding:
            return f"+{self.params.sell_percent}%"
        return f"-{self.params.buy_percent}%"

    def evaluate(self, snapshot: MarketSnapshot, reference: Action) -> Verdict:
        price = snapshot.price
        change = (price - reference.action_price) / reference.action_price * 100
        trigger = self.trigger_for(reference)

        if reference.holding and change > self.params.sell_percent:
            proposed = ActionType.SELL
        elif not reference.holding and -change > self.params.buy_percent:
            proposed = ActionType.BUY
        else:
            proposed = ActionType.IDLE

        logger.debug(
            "%s %s vs ref %s: change=%.2f%% trigger=%s → %s",
            snapshot.symbol, price, reference.action_price, change, trigger, proposed.value,
        )
        return Verdict(type=proposed, price=price, trigger=trigger)
