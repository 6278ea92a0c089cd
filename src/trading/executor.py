"""Trade execution engine — buy detected tokens, then place protective limit sells.

For a batch of SOL token addresses:
  Phase 1: buy every token (each buy independently retried)
  Phase 2: for each confirmed buy, read the received balance and place a
           limit sell for half of it at twice the implied entry price

A buy attempt walks QUOTE_REQUESTED → SWAP_BUILT → SIGNED → BROADCAST and
ends CONFIRMED or FAILED. A failed attempt is retried from a fresh quote, up
to max_attempts in total, without delay. Orders are never persisted: a crash
loses in-flight orders and they are not resumed (at-least-once).

Entry price is spend / received balance, using the REQUESTED spend, not the
amount actually debited (slippage and fees are ignored).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Protocol

from loguru import logger

from src.trading.jupiter_swap import WSOL_DECIMALS, WSOL_MINT, ConfirmResult

DEFAULT_MAX_ATTEMPTS = 5


class TradeVenue(Protocol):
    async def get_quote(self, input_mint: str, output_mint: str, amount: int, slippage_bps: int) -> dict: ...

    async def build_swap(self, quote: dict, user_pubkey: str) -> str: ...

    async def create_limit_order(
        self, input_mint: str, output_mint: str, maker: str, making_amount: int, taking_amount: int
    ) -> str: ...

    def sign_transaction(self, tx_b64: str) -> str: ...

    async def broadcast_and_confirm(self, signed_tx_b64: str) -> ConfirmResult: ...


class BalanceSource(Protocol):
    async def get_token_balance(self, mint: str) -> Decimal: ...


class DecimalsSource(Protocol):
    async def get_decimals(self, address: str) -> int: ...


class OrderSide(str, Enum):
    BUY = "buy"
    LIMIT_SELL = "limit_sell"


class OrderStage(str, Enum):
    PENDING = "pending"
    QUOTE_REQUESTED = "quote_requested"
    SWAP_BUILT = "swap_built"
    SIGNED = "signed"
    BROADCAST = "broadcast"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class TradeOrder:
    """One buy or limit-sell order and its retry history."""

    token_address: str
    side: OrderSide
    requested_amount: Decimal
    limit_price: Decimal | None = None
    attempts: int = 0
    stage: OrderStage = OrderStage.PENDING
    signature: str | None = None
    error: str | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.stage is OrderStage.CONFIRMED


def convert_to_base_units(amount: Decimal | float | int, decimals: int) -> int:
    """floor(amount × 10^decimals), computed on the decimal representation.

    Truncates, so an order never exceeds the true balance.
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))


def _advance(order: TradeOrder, stage: OrderStage) -> None:
    order.stage = stage
    logger.debug(f"[TRADE] {order.side.value} {order.token_address[:12]} -> {stage.value}")


class TradeExecutor:
    """Runs buy → balance check → limit sell for batches of SOL tokens."""

    def __init__(
        self,
        *,
        venue: TradeVenue,
        wallet: BalanceSource,
        registry: DecimalsSource,
        owner_pubkey: str,
        spend_sol: float | Decimal,
        slippage_bps: int,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._venue = venue
        self._wallet = wallet
        self._registry = registry
        self._owner = owner_pubkey
        self._spend_sol = Decimal(str(spend_sol))
        self._slippage_bps = slippage_bps
        self._max_attempts = max(1, max_attempts)

    async def execute_batch(self, token_addresses: list[str]) -> list[TradeOrder]:
        """Buy all tokens first, then place limit sells for the confirmed ones."""
        buys: list[TradeOrder] = []
        for address in token_addresses:
            buys.append(await self.buy(address))

        sells: list[TradeOrder] = []
        for order in buys:
            if not order.is_confirmed:
                continue
            try:
                sell = await self.place_take_profit(order.token_address)
            except Exception as e:
                logger.opt(exception=True).error(
                    f"[TRADE] Take-profit for {order.token_address} aborted: {e}"
                )
                continue
            if sell is not None:
                sells.append(sell)

        confirmed = sum(1 for o in buys if o.is_confirmed)
        logger.info(
            f"[TRADE] Batch done: {confirmed}/{len(buys)} buys confirmed, "
            f"{sum(1 for o in sells if o.is_confirmed)}/{len(sells)} limit sells placed"
        )
        return buys + sells

    async def buy(self, token_address: str) -> TradeOrder:
        order = TradeOrder(token_address, OrderSide.BUY, self._spend_sol)
        lamports = convert_to_base_units(self._spend_sol, WSOL_DECIMALS)
        logger.info(
            f"[TRADE] BUY {token_address} for {self._spend_sol} SOL "
            f"({lamports} lamports, slippage {self._slippage_bps}bps)"
        )

        async def attempt() -> ConfirmResult:
            _advance(order, OrderStage.QUOTE_REQUESTED)
            quote = await self._venue.get_quote(WSOL_MINT, token_address, lamports, self._slippage_bps)
            _advance(order, OrderStage.SWAP_BUILT)
            tx_b64 = await self._venue.build_swap(quote, self._owner)
            return await self._sign_and_broadcast(order, tx_b64)

        return await self._run_with_retry(order, attempt)

    async def place_take_profit(self, token_address: str) -> TradeOrder | None:
        """Limit sell half the held balance at 2× the implied entry price."""
        balance = await self._wallet.get_token_balance(token_address)
        if balance <= 0:
            logger.warning(f"[TRADE] No balance for {token_address} after buy, skipping limit sell")
            return None

        entry_price = self._spend_sol / balance
        return await self.place_limit_sell(token_address, balance / 2, entry_price * 2)

    async def place_limit_sell(
        self, token_address: str, amount: Decimal, limit_price: Decimal
    ) -> TradeOrder:
        """Limit order selling `amount` tokens for `amount × limit_price` SOL."""
        order = TradeOrder(token_address, OrderSide.LIMIT_SELL, amount, limit_price=limit_price)
        logger.info(f"[TRADE] LIMIT SELL {amount} of {token_address} @ {limit_price} SOL")
        decimals: int | None = None

        async def attempt() -> ConfirmResult:
            nonlocal decimals
            if decimals is None:
                decimals = await self._registry.get_decimals(token_address)
            making = convert_to_base_units(amount, decimals)
            taking = convert_to_base_units(amount * limit_price, WSOL_DECIMALS)
            _advance(order, OrderStage.QUOTE_REQUESTED)
            tx_b64 = await self._venue.create_limit_order(
                token_address, WSOL_MINT, self._owner, making, taking
            )
            _advance(order, OrderStage.SWAP_BUILT)
            return await self._sign_and_broadcast(order, tx_b64)

        return await self._run_with_retry(order, attempt)

    async def _sign_and_broadcast(self, order: TradeOrder, tx_b64: str) -> ConfirmResult:
        signed = self._venue.sign_transaction(tx_b64)
        _advance(order, OrderStage.SIGNED)
        _advance(order, OrderStage.BROADCAST)
        return await self._venue.broadcast_and_confirm(signed)

    async def _run_with_retry(
        self,
        order: TradeOrder,
        attempt: Callable[[], Awaitable[ConfirmResult]],
    ) -> TradeOrder:
        while order.attempts < self._max_attempts:
            order.attempts += 1
            try:
                result = await attempt()
            except Exception as e:
                order.error = f"{type(e).__name__}: {e}"
                logger.opt(exception=True).warning(
                    f"[TRADE] {order.side.value} {order.token_address[:12]} attempt "
                    f"{order.attempts}/{self._max_attempts} failed at {order.stage.value}: {e}"
                )
                continue

            order.signature = result.signature or order.signature
            if result.confirmed:
                order.stage = OrderStage.CONFIRMED
                order.error = None
                logger.info(
                    f"[TRADE] {order.side.value} {order.token_address[:12]} confirmed "
                    f"on attempt {order.attempts}: https://solscan.io/tx/{result.signature}"
                )
                return order

            order.error = result.error or "not confirmed"
            logger.warning(
                f"[TRADE] {order.side.value} {order.token_address[:12]} attempt "
                f"{order.attempts}/{self._max_attempts} unconfirmed: {order.error}"
            )

        order.stage = OrderStage.FAILED
        logger.error(
            f"[TRADE] {order.side.value} {order.token_address} FAILED after "
            f"{order.attempts} attempts: {order.error}"
        )
        return order
