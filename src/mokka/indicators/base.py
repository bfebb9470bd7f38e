"""Base indicator interface."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from pydantic import BaseModel

from mokka.action import Action, ActionType
from mokka.exchange.base import MarketSnapshot


class Verdict(BaseModel):
    type: ActionType  # proposed action, the loop still applies its guards
    price: Decimal  # price that triggered the proposal
    trigger: str = ""  # configured threshold, for display


class Indicator(Protocol):
    def evaluate(self, snapshot: MarketSnapshot, reference: Action) -> Verdict: ...
