"""Trading decision model and its projection onto action log records."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from mokka.errors import PersistenceError


class ActionType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    IDLE = "idle"  # nothing to do this cycle, never persisted


class Action(BaseModel):
    """One trading decision. Frozen: every cycle builds a new one."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: ActionType
    symbol: str
    market: str
    previous_price: Decimal
    action_price: Decimal
    quantity: Decimal | None = None
    last_update: int

    @field_validator("action_price")
    @classmethod
    def _positive_price(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("action price must be positive")
        return value

    @model_validator(mode="after")
    def _positive_quantity(self) -> Action:
        if self.quantity is not None and self.quantity < 0:
            raise ValueError("quantity cannot be negative")
        return self

    @property
    def is_idle(self) -> bool:
        return self.type is ActionType.IDLE

    @property
    def holding(self) -> bool:
        """True while the last decision left us long the base asset."""
        return self.type is ActionType.BUY

    def percent_change(self) -> Decimal:
        """Move from previous_price to action_price, in percent (2 dp)."""
        if self.previous_price <= 0:
            return Decimal("0.00")
        change = (self.action_price - self.previous_price) / self.previous_price * 100
        return change.quantize(Decimal("0.01"))

    def to_record(self) -> dict[str, Any]:
        """Flat, JSON-ready mapping as written to the action log."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Action:
        try:
            return cls.model_validate(record)
        except ValidationError as exc:
            raise PersistenceError(f"Malformed action record {record!r}: {exc}") from exc
