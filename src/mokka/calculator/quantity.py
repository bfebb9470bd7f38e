"""Order sizing: turn configured fund/sell limits into an executable quantity.

Both calculators are pure and always round *down*, so a buy never spends
more than it may and a sell never offers more than is held.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, localcontext

from mokka.errors import InvalidAmount


def round_down(quantity: Decimal, step: Decimal | None) -> Decimal:
    """Round *quantity* down to a multiple of the exchange step size."""
    if step is None:
        return quantity
    if step <= 0:
        raise InvalidAmount(f"Step size must be positive, got {step}")
    return (quantity // step) * step


def buy_quantity(
    max_fund: Decimal,
    action_price: Decimal,
    available_balance: Decimal,
    step: Decimal | None = None,
) -> Decimal:
    """Quantity of base asset to buy with at most ``min(max_fund, available_balance)``."""
    if action_price <= 0:
        raise InvalidAmount(f"Action price must be positive, got {action_price}")

    fund = min(max_fund, available_balance)
    if fund <= 0:
        raise InvalidAmount(
            f"Nothing to spend (max_fund={max_fund}, balance={available_balance})"
        )

    with localcontext() as ctx:
        ctx.rounding = ROUND_DOWN
        quantity = fund / action_price
    quantity = round_down(quantity, step)

    if quantity <= 0:
        raise InvalidAmount(
            f"Fund {fund} buys less than one step ({step}) at {action_price}"
        )
    return quantity


def sell_quantity(
    max_sell: Decimal,
    held_quantity: Decimal | None,
    step: Decimal | None = None,
) -> Decimal:
    """Quantity to sell: the configured cap, never more than what is held."""
    if held_quantity is None or held_quantity <= 0:
        raise InvalidAmount(f"No position to sell (held={held_quantity})")
    if max_sell <= 0:
        raise InvalidAmount(f"max_sell must be positive, got {max_sell}")

    quantity = round_down(min(max_sell, held_quantity), step)
    if quantity <= 0:
        raise InvalidAmount(f"Held {held_quantity} is below one step ({step})")
    return quantity
