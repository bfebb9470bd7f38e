"""Binance spot REST client for prices, balance and orders."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import urlencode

import httpx

from mokka.config import MarketConfig
from mokka.errors import ExchangeError
from mokka.exchange.base import MarketSnapshot, OrderResult

logger = logging.getLogger(__name__)

RECV_WINDOW_MS = 5000


def _fmt(value: Decimal) -> str:
    """Plain decimal string, no exponent (Binance rejects ``1E-5``)."""
    return format(value.normalize(), "f")


def _decimal(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ExchangeError(f"Unexpected {field} in exchange response: {value!r}") from exc


class BinanceExchange:
    """Thin async wrapper around the Binance v3 REST API.

    Public endpoints need no credentials; balance and order calls are signed
    with the market's ``api_key``/``api_secret``.
    """

    def __init__(
        self,
        config: MarketConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Any = time.time,
    ) -> None:
        self.config = config
        self._clock = clock
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
            headers={"X-MBX-APIKEY": config.api_key} if config.api_key else None,
        )

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _sign(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self.config.api_key or not self.config.api_secret:
            raise ExchangeError("Signed request needs api_key and api_secret for this market")
        signed = dict(params)
        signed["recvWindow"] = RECV_WINDOW_MS
        signed["timestamp"] = int(self._clock() * 1000)
        query = urlencode(signed)
        signed["signature"] = hmac.new(
            self.config.api_secret.encode(), query.encode(), hashlib.sha256
        ).hexdigest()
        return signed

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        signed: bool = False,
    ) -> Any:
        params = self._sign(params or {}) if signed else (params or {})
        try:
            resp = await self._client.request(method, path, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            try:
                detail = exc.response.json().get("msg", exc.response.text)
            except ValueError:
                detail = exc.response.text
            raise ExchangeError(
                f"{method} {path} failed ({exc.response.status_code}): {detail}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExchangeError(f"{method} {path} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        """Latest traded price for *symbol*."""
        data = await self._request("GET", "/api/v3/ticker/price", {"symbol": symbol})
        price = _decimal(data.get("price"), "price")
        if not price.is_finite() or price <= 0:
            raise ExchangeError(f"Non-positive price for {symbol}: {price}")
        return MarketSnapshot(symbol=symbol, price=price, timestamp=int(self._clock()))

    async def get_step_size(self, symbol: str) -> Decimal | None:
        """LOT_SIZE step for *symbol*, or None if the exchange does not report one."""
        data = await self._request("GET", "/api/v3/exchangeInfo", {"symbol": symbol})
        for info in data.get("symbols", []):
            if info.get("symbol") != symbol:
                continue
            for f in info.get("filters", []):
                if f.get("filterType") == "LOT_SIZE":
                    step = _decimal(f.get("stepSize"), "stepSize")
                    return step.normalize() if step > 0 else None
        return None

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def get_balance(self) -> Decimal:
        """Free balance of the configured quote asset."""
        data = await self._request("GET", "/api/v3/account", signed=True)
        for bal in data.get("balances", []):
            if bal.get("asset") == self.config.quote_asset:
                balance = _decimal(bal.get("free", 0), "balance")
                logger.info("%s balance: %s", self.config.quote_asset, balance)
                return balance
        logger.warning("No %s balance on account", self.config.quote_asset)
        return Decimal("0")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def _order(self, side: str, symbol: str, price: Decimal, quantity: Decimal) -> OrderResult:
        params = {
            "symbol": symbol,
            "side": side,
            "type": "LIMIT",
            "timeInForce": "GTC",
            "quantity": _fmt(quantity),
            "price": _fmt(price),
        }
        data = await self._request("POST", "/api/v3/order", params, signed=True)
        logger.info("Order placed: %s %s %s @ %s → %s", side, quantity, symbol, price, data.get("status"))
        return OrderResult(
            order_id=str(data.get("orderId", "")),
            symbol=symbol,
            side=side,
            status=str(data.get("status", "")),
            price=price,
            quantity=quantity,
            executed_quantity=_decimal(data.get("executedQty", "0"), "executedQty"),
            raw=data,
        )

    async def submit_buy(self, symbol: str, price: Decimal, quantity: Decimal) -> OrderResult:
        """Place a GTC limit buy."""
        return await self._order("BUY", symbol, price, quantity)

    async def submit_sell(self, symbol: str, price: Decimal, quantity: Decimal) -> OrderResult:
        """Place a GTC limit sell."""
        return await self._order("SELL", symbol, price, quantity)

    async def aclose(self) -> None:
        await self._client.aclose()
