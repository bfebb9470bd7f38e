"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console

from mokka.config import Settings, load_settings
from mokka.errors import ConfigurationError, PersistenceError
from mokka.storage.action_log import ActionLog, log_path

console = Console()


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mokka", description="Mokka trading bot")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run Mokka! Run!")
    run.add_argument("-m", "--market", default="binance", help="Market to run on")
    run.add_argument("-i", "--interval", type=int, default=None, help="Seconds between requests (default: from config)")
    run.add_argument("-s", "--symbol", default="BTCUSDT", help="Symbol for the bot to run")
    run.add_argument("--indicator", default="percent", help="Indicator to apply")
    run.add_argument("-c", "--config", default="default", help="Config name under config/ or a YAML path")
    run.add_argument(
        "-t", "--test", action="store_true",
        help="Dry run: compute and show actions but never place orders",
    )

    history = sub.add_parser("history", help="Show the latest logged actions")
    history.add_argument("-m", "--market", default="binance")
    history.add_argument("-s", "--symbol", default="BTCUSDT")
    history.add_argument("-c", "--config", default="default")
    history.add_argument("-n", "--limit", type=int, default=20)
    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = _parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "run":
            _run(args)
        elif args.command == "history":
            _history(args)
        else:
            parser.print_help()
    except (ConfigurationError, PersistenceError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)


def _open_log(settings: Settings, symbol: str) -> ActionLog:
    return ActionLog(log_path(settings.log_dir, settings.log_file_type, symbol))


def _run(args: argparse.Namespace) -> None:
    from mokka.bootstrap import prompt_reference
    from mokka.exchange.factory import make_exchange
    from mokka.indicators.factory import make_indicator
    from mokka.presentation import RowPrinter
    from mokka.trader import Trader

    settings = load_settings(args.config)
    market_config = settings.market(args.market)
    exchange = make_exchange(args.market, market_config)
    action_log = _open_log(settings, args.symbol)
    indicator = make_indicator(args.indicator, settings.indicator(args.indicator))

    trader = Trader(
        exchange,
        indicator,
        action_log,
        market=args.market,
        symbol=args.symbol,
        market_config=market_config,
        interval=args.interval or settings.interval,
        dry_run=args.test,
        log_dry_run=settings.log_dry_run,
        on_row=RowPrinter(console),
    )
    reference = trader.start(prompt_reference)

    console.print("[bold green]Mokka Started![/bold green]")
    console.print(
        f"Market: [cyan]{args.market}[/cyan] | Symbol: [cyan]{args.symbol}[/cyan] | "
        f"Indicator: {args.indicator} | Interval: {trader.interval}s"
    )
    if args.test:
        console.print("[yellow]Test mode: no orders will be placed.[/yellow]")

    async def _do() -> None:
        try:
            await trader.run(reference)
        finally:
            await exchange.aclose()

    try:
        asyncio.run(_do())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


def _history(args: argparse.Namespace) -> None:
    from mokka.action import Action
    from mokka.presentation import print_actions

    settings = load_settings(args.config)
    action_log = _open_log(settings, args.symbol)
    rows = action_log.query(
        {"market": args.market, "symbol": args.symbol},
        sort_key="lastUpdate",
        descending=True,
        limit=args.limit,
    )
    if not rows:
        console.print("[yellow]No actions logged yet.[/yellow]")
        return
    print_actions([Action.from_record(r) for r in rows], title=f"{args.symbol} on {args.market}")
