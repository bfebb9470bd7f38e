from decimal import Decimal

import pytest
from pydantic import ValidationError

from mokka.action import Action, ActionType
from mokka.errors import PersistenceError

from conftest import make_action


def test_record_round_trip():
    action = make_action(ActionType.SELL, price="110.50", previous="100", quantity="0.12345678")
    record = action.to_record()
    assert record == {
        "type": "sell",
        "symbol": "BTCUSDT",
        "market": "binance",
        "previousPrice": "100",
        "actionPrice": "110.50",
        "quantity": "0.12345678",
        "lastUpdate": action.last_update,
    }
    assert Action.from_record(record) == action


def test_record_round_trip_without_quantity():
    action = make_action(ActionType.BUY, price="42")
    assert Action.from_record(action.to_record()) == action


def test_action_is_frozen():
    action = make_action()
    with pytest.raises(ValidationError):
        action.quantity = Decimal("1")


def test_action_price_must_be_positive():
    with pytest.raises(ValidationError):
        make_action(price="0")


def test_malformed_record_is_persistence_error():
    with pytest.raises(PersistenceError):
        Action.from_record({"type": "buy", "symbol": "BTCUSDT"})


def test_percent_change_and_holding():
    action = make_action(ActionType.SELL, price="110", previous="100")
    assert action.percent_change() == Decimal("10.00")
    assert not action.holding
    assert make_action(ActionType.BUY).holding


def test_idle_flag():
    assert make_action(ActionType.IDLE).is_idle
    assert not make_action(ActionType.BUY).is_idle
