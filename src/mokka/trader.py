"""Trading loop: price → indicator verdict → guarded action → size → order → log.

The reference action (the last non-idle decision) is passed into every
cycle and the possibly-updated reference is returned, so a cycle never
depends on hidden state other than the indicator's own.
"""

from __future__ import annotations

import asyncio
import logging
import time
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, NamedTuple

from pydantic import BaseModel
from rich.console import Console

from mokka.action import Action, ActionType
from mokka.bootstrap import ReferenceResolver, load_reference
from mokka.calculator.quantity import buy_quantity, sell_quantity
from mokka.config import MarketConfig
from mokka.errors import ExchangeError, InvalidAmount, PersistenceError
from mokka.exchange.base import Exchange, MarketSnapshot
from mokka.indicators.base import Indicator, Verdict
from mokka.storage.action_log import ActionLog

log = logging.getLogger(__name__)
console = Console()


class LoopState(str, Enum):
    AWAITING_REFERENCE = "awaiting_reference"
    RUNNING = "running"
    TERMINATED = "terminated"


class CycleRow(BaseModel):
    """One rendered line per cycle."""

    type: ActionType
    previous_price: Decimal
    action_price: Decimal
    symbol: str
    quantity: Decimal | None
    trigger: str
    change: Decimal  # percent vs previous price
    timestamp: int


class CycleResult(NamedTuple):
    reference: Action
    row: CycleRow | None  # None when no price could be fetched


class Trader:
    """Runs one market/symbol pair until cancelled."""

    def __init__(
        self,
        exchange: Exchange,
        indicator: Indicator,
        action_log: ActionLog,
        *,
        market: str,
        symbol: str,
        market_config: MarketConfig,
        interval: float = 60,
        dry_run: bool = False,
        log_dry_run: bool = True,
        on_row: Callable[[CycleRow], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.exchange = exchange
        self.indicator = indicator
        self.action_log = action_log
        self.market = market
        self.symbol = symbol
        self.market_config = market_config
        self.interval = interval
        self.dry_run = dry_run
        self.log_dry_run = log_dry_run
        self.on_row = on_row
        self._sleep = sleep
        self._clock = clock
        self._step: Decimal | None = market_config.step_size
        self._step_loaded = market_config.step_size is not None
        self.state = LoopState.AWAITING_REFERENCE

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self, resolver: ReferenceResolver) -> Action:
        """Load or seed the reference action and switch to RUNNING."""
        try:
            reference = load_reference(
                self.action_log, self.market, self.symbol, resolver, clock=self._clock
            )
        except Exception:
            self.state = LoopState.TERMINATED
            raise
        self.state = LoopState.RUNNING
        return reference

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _step_size(self) -> Decimal | None:
        """Configured step, or the exchange's LOT_SIZE fetched once per run."""
        if not self._step_loaded:
            self._step = await self.exchange.get_step_size(self.symbol)
            self._step_loaded = True
            log.info("Step size for %s: %s", self.symbol, self._step)
        return self._step

    def _idle(self, reference: Action, price: Decimal) -> Action:
        return Action(
            type=ActionType.IDLE,
            symbol=self.symbol,
            market=self.market,
            previous_price=reference.action_price,
            action_price=price,
            last_update=int(self._clock()),
        )

    def _row(self, action: Action, trigger: str) -> CycleRow:
        return CycleRow(
            type=action.type,
            previous_price=action.previous_price,
            action_price=action.action_price,
            symbol=action.symbol,
            quantity=action.quantity,
            trigger=trigger,
            change=action.percent_change(),
            timestamp=action.last_update,
        )

    def _guard(self, verdict: Verdict, reference: Action) -> ActionType:
        """Drop proposals that contradict the current position."""
        if verdict.type is ActionType.BUY and reference.holding:
            log.info("BUY suppressed: already holding %s since %s", self.symbol, reference.action_price)
            return ActionType.IDLE
        if verdict.type is ActionType.SELL and not reference.holding:
            log.info("SELL suppressed: no %s position held", self.symbol)
            return ActionType.IDLE
        return verdict.type

    async def _size(self, proposed: ActionType, price: Decimal, reference: Action) -> Decimal:
        step = await self._step_size()
        if proposed is ActionType.BUY:
            balance = await self.exchange.get_balance()
            return buy_quantity(self.market_config.max_fund, price, balance, step)
        return sell_quantity(self.market_config.max_sell, reference.quantity, step)

    async def _submit(self, action: Action) -> None:
        if action.type is ActionType.BUY:
            result = await self.exchange.submit_buy(action.symbol, action.action_price, action.quantity)
        else:
            result = await self.exchange.submit_sell(action.symbol, action.action_price, action.quantity)
        log.info("Exchange accepted %s order %s (%s)", result.side, result.order_id, result.status)

    def _persist(self, action: Action) -> None:
        if action.is_idle or (self.dry_run and not self.log_dry_run):
            return
        try:
            self.action_log.append(action.to_record())
        except PersistenceError as exc:
            # The order went through but the log does not know about it
            log.critical("EXECUTED %s NOT LOGGED: %s (%s)", action.type.value.upper(), action.to_record(), exc)
            console.print(
                f"[bold red]Executed {action.type.value} of {action.quantity} {action.symbol} "
                f"@ {action.action_price} could not be logged:[/bold red] {exc}"
            )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run_cycle(self, reference: Action) -> CycleResult:
        """Run one decision cycle and return the (possibly new) reference."""
        try:
            snapshot: MarketSnapshot = await self.exchange.fetch_snapshot(self.symbol)
        except ExchangeError as exc:
            log.error("Price fetch failed for %s: %s", self.symbol, exc)
            return CycleResult(reference, None)

        verdict = self.indicator.evaluate(snapshot, reference)
        proposed = self._guard(verdict, reference)
        if proposed is ActionType.IDLE:
            return CycleResult(reference, self._row(self._idle(reference, snapshot.price), verdict.trigger))

        try:
            quantity = await self._size(proposed, verdict.price, reference)
        except InvalidAmount as exc:
            log.warning("%s %s skipped: %s", proposed.value.upper(), self.symbol, exc)
            return CycleResult(reference, self._row(self._idle(reference, snapshot.price), verdict.trigger))
        except ExchangeError as exc:
            log.error("Sizing %s %s failed: %s", proposed.value.upper(), self.symbol, exc)
            return CycleResult(reference, self._row(self._idle(reference, snapshot.price), verdict.trigger))

        action = Action(
            type=proposed,
            symbol=self.symbol,
            market=self.market,
            previous_price=reference.action_price,
            action_price=verdict.price,
            quantity=quantity,
            last_update=int(self._clock()),
        )

        if not self.dry_run:
            try:
                await self._submit(action)
            except ExchangeError as exc:
                log.error("%s order for %s failed: %s", proposed.value.upper(), self.symbol, exc)
                console.print(f"[bold red]Order failed:[/bold red] {exc}")
                return CycleResult(reference, self._row(self._idle(reference, snapshot.price), verdict.trigger))

        self._persist(action)
        return CycleResult(action, self._row(action, verdict.trigger))

    async def run(self, reference: Action, max_cycles: int | None = None) -> Action:
        """Cycle every ``interval`` seconds until cancelled or *max_cycles* is hit."""
        self.state = LoopState.RUNNING
        cycles = 0
        try:
            while True:
                reference, row = await self.run_cycle(reference)
                if row is not None and self.on_row is not None:
                    self.on_row(row)
                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    break
                await self._sleep(self.interval)
        finally:
            self.state = LoopState.TERMINATED
        return reference
