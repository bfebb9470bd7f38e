"""Console rendering of cycle rows and logged actions."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from rich.console import Console
from rich.table import Table

from mokka.action import Action, ActionType
from mokka.trader import CycleRow

console = Console()

_TYPE_STYLE = {
    ActionType.BUY: "bold green",
    ActionType.SELL: "bold red",
    ActionType.IDLE: "dim",
}

HEADERS = ("Action", "Previous Price", "Action Price", "Symbol", "Amount", "Trigger", "Change", "Date")


def _fmt_qty(quantity: Decimal | None) -> str:
    return "-" if quantity is None else format(quantity.normalize(), "f")


def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def _table(title: str | None = None, show_header: bool = True) -> Table:
    table = Table(title=title, show_header=show_header)
    table.add_column(HEADERS[0])
    table.add_column(HEADERS[1], justify="right")
    table.add_column(HEADERS[2], justify="right")
    table.add_column(HEADERS[3], style="cyan")
    table.add_column(HEADERS[4], justify="right")
    table.add_column(HEADERS[5], justify="right")
    table.add_column(HEADERS[6], justify="right")
    table.add_column(HEADERS[7], style="dim")
    return table


class RowPrinter:
    """Prints one row per cycle; the header only on the first one."""

    def __init__(self, out: Console | None = None) -> None:
        self.console = out or console
        self._printed = 0

    def __call__(self, row: CycleRow) -> None:
        table = _table(show_header=self._printed == 0)
        style = _TYPE_STYLE[row.type]
        change_style = "green" if row.change > 0 else "red" if row.change < 0 else ""
        table.add_row(
            f"[{style}]{row.type.value.upper()}[/{style}]",
            f"{row.previous_price}",
            f"{row.action_price}",
            row.symbol,
            _fmt_qty(row.quantity),
            row.trigger,
            f"[{change_style}]{row.change:+}%[/{change_style}]" if change_style else f"{row.change}%",
            _fmt_ts(row.timestamp),
        )
        self.console.print(table)
        self._printed += 1


def print_actions(actions: list[Action], title: str = "Logged actions") -> None:
    """Pretty-print persisted actions, newest first."""
    table = _table(title=title)
    for a in actions:
        style = _TYPE_STYLE[a.type]
        table.add_row(
            f"[{style}]{a.type.value.upper()}[/{style}]",
            f"{a.previous_price}",
            f"{a.action_price}",
            a.symbol,
            _fmt_qty(a.quantity),
            "",
            f"{a.percent_change()}%",
            _fmt_ts(a.last_update),
        )
    console.print(table)
