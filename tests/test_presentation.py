from decimal import Decimal

from rich.console import Console

from mokka.action import ActionType
from mokka.presentation import RowPrinter
from mokka.trader import CycleRow


def row(type_, price, change):
    return CycleRow(
        type=type_,
        previous_price=Decimal("100"),
        action_price=Decimal(price),
        symbol="BTCUSDT",
        quantity=Decimal("0.50") if type_ is not ActionType.IDLE else None,
        trigger="+2%",
        change=Decimal(change),
        timestamp=1_700_000_000,
    )


def test_header_only_once():
    out = Console(record=True, width=160)
    printer = RowPrinter(out)
    printer(row(ActionType.IDLE, "101", "1.00"))
    printer(row(ActionType.SELL, "103", "3.00"))

    text = out.export_text()
    assert text.count("Previous Price") == 1
    assert "SELL" in text
    assert "+3.00%" in text
    assert "0.5" in text
