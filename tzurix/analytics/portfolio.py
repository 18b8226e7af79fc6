from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Iterable, Mapping

from tzurix.config import PricingConfig
from tzurix.errors import StaleDataError, ValidationError
from tzurix.models import Holding, PortfolioSummary, RejectedTransaction, Side, StockBase, Transaction
from tzurix.scoring.pricing import DEFAULT_PRICING, derive
from tzurix.utils.sorting import stable_sorted
from tzurix.utils.time import as_utc, is_expired

logger = logging.getLogger(__name__)

# Float residue below this is treated as an empty position.
QTY_EPSILON = 1e-9


class PriceBook:
    """Current per-token prices keyed by stock id.

    ``as_of`` holds the time each price's score was calculated. When
    ``max_age_hours`` is set, prices older than that are treated like
    missing ones.
    """

    def __init__(
        self,
        prices: Mapping[str, float],
        as_of: Mapping[str, datetime | None] | None = None,
        max_age_hours: float | None = None,
        now: datetime | None = None,
    ) -> None:
        self.prices = {str(stock_id): price for stock_id, price in prices.items()}
        self.as_of = {str(stock_id): value for stock_id, value in (as_of or {}).items()}
        self.max_age_hours = max_age_hours
        self.now = now

    @classmethod
    def from_stocks(
        cls,
        stocks: Iterable[StockBase],
        pricing: PricingConfig = DEFAULT_PRICING,
        max_age_hours: float | None = None,
        now: datetime | None = None,
    ) -> "PriceBook":
        prices: dict[str, float] = {}
        as_of: dict[str, datetime | None] = {}
        for stock in stocks:
            prices[stock.id] = derive(stock.current_score, pricing).actual_price_per_token
            as_of[stock.id] = stock.last_score_update
        return cls(prices, as_of=as_of, max_age_hours=max_age_hours, now=now)

    def price_for(self, stock_id: str) -> float:
        price = self.prices.get(stock_id)
        if price is None or not math.isfinite(price) or price < 0:
            raise StaleDataError(stock_id, "price_unavailable")
        if self.max_age_hours is not None and is_expired(self.as_of.get(stock_id), self.max_age_hours, self.now):
            raise StaleDataError(stock_id, "price_expired")
        return price


def aggregate(
    transactions: Iterable[Transaction],
    latest_prices: PriceBook | Mapping[str, float],
    wallet_address: str | None = None,
) -> PortfolioSummary:
    book = latest_prices if isinstance(latest_prices, PriceBook) else PriceBook(latest_prices)
    positions, rejected = replay_ledger(transactions)

    holdings: list[Holding] = []
    total_value = 0.0
    total_cost_basis = 0.0
    for stock_id, position in positions.items():
        holding = value_position(stock_id, position["qty"], position["avg"], book)
        holdings.append(holding)
        if holding.stale:
            continue
        total_value += holding.current_value
        total_cost_basis += holding.cost_basis

    total_pnl = total_value - total_cost_basis
    stale_count = sum(1 for holding in holdings if holding.stale)
    logger.info(
        "Aggregated %d holdings for %s (stale=%d rejected=%d)",
        len(holdings),
        wallet_address or "anonymous wallet",
        stale_count,
        len(rejected),
    )
    return PortfolioSummary(
        wallet_address=wallet_address,
        holdings=holdings,
        rejected=rejected,
        total_value=total_value,
        total_cost_basis=total_cost_basis,
        total_pnl=total_pnl,
        total_pnl_percent=pnl_percent(total_value, total_cost_basis),
    )


def replay_ledger(
    transactions: Iterable[Transaction],
) -> tuple[dict[str, dict[str, float]], list[RejectedTransaction]]:
    ordered = stable_sorted(transactions, key=lambda tx: as_utc(tx.created_at))
    positions: dict[str, dict[str, float]] = {}
    rejected: list[RejectedTransaction] = []

    for tx in ordered:
        position = positions.get(tx.stock_id)
        held = position["qty"] if position else 0.0
        try:
            validate_transaction(tx, held)
        except ValidationError as exc:
            logger.warning("Rejected %s of %s on %s: %s", tx.side.value, tx.token_amount, tx.stock_id, exc)
            rejected.append(RejectedTransaction(transaction=tx, reason=exc.reason))
            continue

        if tx.side is Side.BUY:
            position = positions.setdefault(tx.stock_id, {"qty": 0.0, "avg": 0.0})
            new_qty = position["qty"] + tx.token_amount
            position["avg"] = (position["avg"] * position["qty"] + tx.price_at_trade * tx.token_amount) / new_qty
            position["qty"] = new_qty
        else:
            position["qty"] -= tx.token_amount
            if position["qty"] <= QTY_EPSILON:
                del positions[tx.stock_id]

    return positions, rejected


def validate_transaction(tx: Transaction, held_qty: float) -> None:
    amount = tx.token_amount
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError(f"token_amount must be > 0, got {amount}", reason="non_positive_amount")
    if tx.side is Side.BUY:
        if not math.isfinite(tx.price_at_trade) or tx.price_at_trade < 0:
            raise ValidationError(f"price_at_trade must be >= 0, got {tx.price_at_trade}", reason="invalid_price")
    elif amount > held_qty + QTY_EPSILON:
        raise ValidationError(f"sell of {amount} exceeds held {held_qty}", reason="sell_exceeds_holding")


def value_position(stock_id: str, qty: float, avg_buy_price: float, book: PriceBook) -> Holding:
    cost_basis = qty * avg_buy_price
    try:
        price = book.price_for(stock_id)
    except StaleDataError as exc:
        logger.warning("No current price for %s (%s); excluded from totals", stock_id, exc.reason)
        return Holding(
            stock_id=stock_id,
            token_amount=qty,
            avg_buy_price=avg_buy_price,
            cost_basis=cost_basis,
            stale=True,
            stale_reason=exc.reason,
        )

    current_value = qty * price
    return Holding(
        stock_id=stock_id,
        token_amount=qty,
        avg_buy_price=avg_buy_price,
        cost_basis=cost_basis,
        current_price=price,
        current_value=current_value,
        pnl=current_value - cost_basis,
        pnl_percent=pnl_percent(current_value, cost_basis),
    )


def pnl_percent(current_value: float, cost_basis: float) -> float:
    if cost_basis == 0:
        return 0.0
    return (current_value - cost_basis) / cost_basis * 100


def holdings_rows(summary: PortfolioSummary) -> list[dict[str, Any]]:
    return [holding.model_dump() for holding in summary.holdings]
