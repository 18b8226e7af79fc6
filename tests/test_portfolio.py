from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tzurix.analytics.portfolio import PriceBook, aggregate, pnl_percent, replay_ledger
from tzurix.models import AgentStock, IndividualStock, Transaction

T0 = datetime(2026, 1, 7, 9, 0, tzinfo=timezone.utc)


def _tx(stock_id: str, side: str, amount: float, price: float, minute: int) -> Transaction:
    return Transaction(
        stock_id=stock_id,
        side=side,
        token_amount=amount,
        price_at_trade=price,
        created_at=T0 + timedelta(minutes=minute),
    )


def test_weighted_average_on_buys() -> None:
    ledger = [_tx("a1", "buy", 100, 0.72, 0), _tx("a1", "buy", 50, 0.82, 1)]
    summary = aggregate(ledger, {"a1": 0.85})

    assert len(summary.holdings) == 1
    holding = summary.holdings[0]
    assert holding.token_amount == pytest.approx(150)
    assert holding.avg_buy_price == pytest.approx((100 * 0.72 + 50 * 0.82) / 150)
    assert holding.avg_buy_price == pytest.approx(0.7533, abs=1e-4)
    assert holding.current_value == pytest.approx(150 * 0.85)
    assert holding.stale is False


def test_sell_keeps_average_and_reduces_quantity() -> None:
    ledger = [
        _tx("a1", "buy", 100, 0.72, 0),
        _tx("a1", "buy", 50, 0.82, 1),
        _tx("a1", "sell", 60, 0.90, 2),
    ]
    holding = aggregate(ledger, {"a1": 0.80}).holdings[0]
    assert holding.token_amount == pytest.approx(90)
    assert holding.avg_buy_price == pytest.approx((100 * 0.72 + 50 * 0.82) / 150)


def test_selling_full_position_removes_holding() -> None:
    ledger = [
        _tx("a1", "buy", 100, 0.72, 0),
        _tx("a1", "buy", 50, 0.82, 1),
        _tx("a1", "sell", 150, 0.90, 2),
    ]
    summary = aggregate(ledger, {"a1": 0.80})
    assert summary.holdings == []
    assert summary.total_value == 0.0
    assert summary.total_cost_basis == 0.0
    assert summary.total_pnl_percent == 0.0

    # A second pass over the same ledger stays well defined.
    again = aggregate(ledger, {})
    assert again.total_pnl_percent == 0.0


def test_rebuy_after_close_starts_fresh_average() -> None:
    ledger = [
        _tx("a1", "buy", 10, 1.0, 0),
        _tx("a1", "sell", 10, 1.5, 1),
        _tx("a1", "buy", 10, 2.0, 2),
    ]
    holding = aggregate(ledger, {"a1": 2.0}).holdings[0]
    assert holding.avg_buy_price == pytest.approx(2.0)
    assert holding.token_amount == pytest.approx(10)


def test_oversell_is_rejected_without_partial_apply() -> None:
    ledger = [_tx("a1", "buy", 100, 0.5, 0), _tx("a1", "sell", 120, 0.6, 1)]
    summary = aggregate(ledger, {"a1": 0.6})

    assert summary.holdings[0].token_amount == pytest.approx(100)
    assert len(summary.rejected) == 1
    assert summary.rejected[0].reason == "sell_exceeds_holding"
    assert summary.rejected[0].transaction == ledger[1]


def test_sell_without_position_is_rejected() -> None:
    positions, rejected = replay_ledger([_tx("a1", "sell", 5, 0.6, 0)])
    assert positions == {}
    assert [item.reason for item in rejected] == ["sell_exceeds_holding"]


@pytest.mark.parametrize("amount", [0, -10, float("nan")])
def test_non_positive_amounts_are_rejected(amount: float) -> None:
    ledger = [_tx("a1", "buy", 100, 0.5, 0), _tx("a1", "buy", amount, 0.5, 1), _tx("a1", "sell", amount, 0.5, 2)]
    summary = aggregate(ledger, {"a1": 0.5})
    assert summary.holdings[0].token_amount == pytest.approx(100)
    assert [item.reason for item in summary.rejected] == ["non_positive_amount", "non_positive_amount"]


def test_negative_buy_price_is_rejected() -> None:
    summary = aggregate([_tx("a1", "buy", 10, -1.0, 0)], {"a1": 0.5})
    assert summary.holdings == []
    assert summary.rejected[0].reason == "invalid_price"


def test_replay_follows_created_at_not_ledger_position() -> None:
    ledger = [_tx("a1", "sell", 40, 0.9, 5), _tx("a1", "buy", 100, 0.5, 0)]
    summary = aggregate(ledger, {"a1": 0.9})
    assert summary.rejected == []
    assert summary.holdings[0].token_amount == pytest.approx(60)


def test_equal_timestamps_keep_ledger_order() -> None:
    ledger = [_tx("a1", "buy", 10, 0.5, 0), _tx("a1", "sell", 10, 0.6, 0)]
    summary = aggregate(ledger, {"a1": 0.6})
    assert summary.holdings == []
    assert summary.rejected == []


def test_totals_and_pnl_across_holdings() -> None:
    ledger = [_tx("a1", "buy", 100, 0.5, 0), _tx("b2", "buy", 100, 1.0, 1)]
    summary = aggregate(ledger, {"a1": 0.6, "b2": 0.5}, wallet_address="WalletXYZ")

    assert summary.wallet_address == "WalletXYZ"
    assert [holding.stock_id for holding in summary.holdings] == ["a1", "b2"]
    first, second = summary.holdings
    assert first.pnl == pytest.approx(10)
    assert first.pnl_percent == pytest.approx(20)
    assert second.pnl_percent == pytest.approx(-50)
    assert summary.total_value == pytest.approx(110)
    assert summary.total_cost_basis == pytest.approx(150)
    assert summary.total_pnl == pytest.approx(-40)
    assert summary.total_pnl_percent == pytest.approx(-40 / 150 * 100)


def test_missing_price_flags_holding_stale() -> None:
    ledger = [_tx("a1", "buy", 100, 0.5, 0), _tx("b2", "buy", 10, 1.0, 1)]
    summary = aggregate(ledger, {"a1": 0.6})

    stale = summary.holdings[1]
    assert stale.stock_id == "b2"
    assert stale.stale is True
    assert stale.stale_reason == "price_unavailable"
    assert stale.token_amount == pytest.approx(10)
    assert stale.avg_buy_price == pytest.approx(1.0)
    assert stale.current_price is None
    assert summary.total_value == pytest.approx(60)
    assert summary.total_cost_basis == pytest.approx(50)
    assert summary.total_pnl_percent == pytest.approx(20)


def test_expired_price_flags_holding_stale() -> None:
    now = T0 + timedelta(days=3)
    book = PriceBook(
        {"a1": 0.6, "b2": 0.7},
        as_of={"a1": now - timedelta(hours=1), "b2": now - timedelta(hours=72)},
        max_age_hours=48,
        now=now,
    )
    summary = aggregate([_tx("a1", "buy", 10, 0.5, 0), _tx("b2", "buy", 10, 0.5, 1)], book)
    reasons = {holding.stock_id: holding.stale_reason for holding in summary.holdings}
    assert reasons == {"a1": None, "b2": "price_expired"}
    assert summary.total_value == pytest.approx(6)


def test_zero_cost_basis_has_zero_pnl_percent() -> None:
    summary = aggregate([_tx("a1", "buy", 100, 0.0, 0)], {"a1": 0.5})
    holding = summary.holdings[0]
    assert holding.cost_basis == 0.0
    assert holding.pnl_percent == 0.0
    assert summary.total_pnl_percent == 0.0
    assert pnl_percent(5.0, 0.0) == 0.0


def test_price_book_from_stocks_uses_per_token_price() -> None:
    stocks = [
        AgentStock(id=1, name="Alpha", current_score=85),
        IndividualStock(id="ind-2", name="Dana", current_score=40, type="analyst"),
    ]
    book = PriceBook.from_stocks(stocks)
    assert book.price_for("1") == pytest.approx(0.00085)
    assert book.price_for("ind-2") == pytest.approx(0.0004)
