"""Establish the reference action before the trading loop starts."""

from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable

from pydantic import BaseModel
from rich.console import Console
from rich.prompt import Prompt

from mokka.action import Action, ActionType
from mokka.errors import BootstrapCancelled
from mokka.storage.action_log import ActionLog

logger = logging.getLogger(__name__)
console = Console()


class SeedAnswer(BaseModel):
    type: ActionType
    price: Decimal | None = None
    quantity: Decimal | None = None


ReferenceResolver = Callable[[str, str], SeedAnswer | None]


def last_action(log: ActionLog, market: str, symbol: str) -> Action | None:
    """Most recent persisted action for (market, symbol), if any."""
    rows = log.query(
        {"market": market, "symbol": symbol},
        sort_key="lastUpdate",
        descending=True,
        limit=1,
    )
    return Action.from_record(rows[0]) if rows else None


def load_reference(
    log: ActionLog,
    market: str,
    symbol: str,
    resolver: ReferenceResolver,
    clock: Callable[[], float] = time.time,
) -> Action:
    """Return the last logged action, or seed one from *resolver* and log it.

    Raises ``BootstrapCancelled`` when nothing is logged and the resolver
    gives no price: there is no safe reference to trade from.
    """
    reference = last_action(log, market, symbol)
    if reference is not None:
        logger.info(
            "Resuming %s %s from last %s at %s",
            market, symbol, reference.type.value, reference.action_price,
        )
        return reference

    answer = resolver(market, symbol)
    if answer is None or answer.price is None:
        raise BootstrapCancelled(
            f"No reference action for {symbol} on {market}: the last action price is required"
        )
    if answer.type is ActionType.IDLE:
        raise BootstrapCancelled("The seed action must be a buy or a sell")

    seed = Action(
        type=answer.type,
        symbol=symbol,
        market=market,
        previous_price=answer.price,
        action_price=answer.price,
        quantity=answer.quantity,
        last_update=int(clock()),
    )
    log.append(seed.to_record())
    logger.info("Seeded %s %s with %s at %s", market, symbol, seed.type.value, seed.action_price)
    return seed


def _parse_decimal(raw: str) -> Decimal | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return None
    return value if value > 0 else None


def prompt_reference(market: str, symbol: str) -> SeedAnswer | None:
    """Ask the user for the last action taken on *symbol* outside the bot."""
    console.print(
        f"\n[bold]We need to know your last transaction.[/bold] "
        f"Please check the market ([cyan]{market}[/cyan]) and set your last action for "
        f"[cyan]{symbol}[/cyan]."
    )
    chosen = Prompt.ask("Last action", choices=["buy", "sell"], default="buy", console=console)

    price = _parse_decimal(
        Prompt.ask(f"What was the last price for {symbol}?", default="", show_default=False, console=console)
    )
    if price is None:
        console.print(
            "[yellow]You need to tell me the last action price. Otherwise I can not move on.[/yellow]"
        )
        return None

    quantity = None
    if chosen == "buy":
        quantity = _parse_decimal(
            Prompt.ask(
                f"How much {symbol} do you hold? (blank if unknown)",
                default="",
                show_default=False,
                console=console,
            )
        )

    console.print("[green]OK. I know what to do now.[/green]")
    return SeedAnswer(type=ActionType(chosen), price=price, quantity=quantity)
