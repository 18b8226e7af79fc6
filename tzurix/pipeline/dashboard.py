from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Protocol

from tzurix.analytics.leaderboard import LeaderboardMetric, rank
from tzurix.analytics.portfolio import PriceBook, aggregate
from tzurix.config import AppConfig
from tzurix.errors import ValidationError
from tzurix.models import AgentStock, DisplayScore, IndividualStock, PortfolioSummary, Side, TradeQuote, Transaction
from tzurix.scoring.cap import build_score_record
from tzurix.scoring.pricing import apply_score_record, derive, quote_trade
from tzurix.utils.time import utc_now

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    def get_score_feed(self, entity_id: str, category: str | None = None) -> dict[str, Any]: ...

    def list_stocks(self, category: str | None = None) -> list[AgentStock | IndividualStock]: ...

    def get_transactions(self, wallet_address: str) -> list[Transaction]: ...


class Dashboard:
    """Read-side operations the UI calls. Fetches through ``source`` and hands
    the resolved data to the pure scoring, portfolio and leaderboard functions.
    """

    def __init__(
        self,
        config: AppConfig,
        source: DataSource,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.source = source
        self.clock = clock

    def get_display_score_and_price(self, entity_id: str, category: str | None = None) -> DisplayScore:
        feed = self.source.get_score_feed(entity_id, category)
        record = build_score_record(feed, self.config.scoring.cap_fraction)
        quote = derive(record.final_score, self.config.pricing)
        if record.was_capped:
            logger.info(
                "Score for %s capped %s: raw=%s final=%s",
                entity_id,
                record.cap_direction.value,
                record.raw_score,
                record.final_score,
            )
        return DisplayScore(
            entity_id=record.entity_id,
            final_score=record.final_score,
            was_capped=record.was_capped,
            cap_direction=record.cap_direction,
            display_price=quote.display_price_per_thousand,
            market_cap_usd=quote.market_cap_usd,
            calculated_at=record.calculated_at,
        )

    def get_portfolio_summary(self, wallet_address: str | None = None) -> PortfolioSummary:
        wallet = wallet_address or self.config.wallet.address
        if not wallet:
            raise ValidationError("wallet address is required", reason="missing_wallet")
        transactions = self.source.get_transactions(wallet)
        book = PriceBook.from_stocks(
            self.source.list_stocks(),
            self.config.pricing,
            max_age_hours=self.config.scoring.score_max_age_hours,
            now=self.clock(),
        )
        return aggregate(transactions, book, wallet_address=wallet)

    def get_leaderboard(
        self,
        metric: LeaderboardMetric | str = LeaderboardMetric.SCORE,
        limit: int | None = None,
        category: str | None = None,
        stock_type: str | None = None,
    ) -> list[AgentStock | IndividualStock]:
        if limit is None:
            limit = self.config.leaderboard.default_limit
        stocks = self.source.list_stocks(category)
        return rank(stocks, metric, limit=limit, category=category, stock_type=stock_type)

    def get_trade_quote(self, stock_id: str, side: Side | str, token_amount: float) -> TradeQuote:
        stock = self.refresh_stock(stock_id)
        return quote_trade(stock.current_score, side, token_amount, self.config.pricing, self.config.fees)

    def refresh_stock(self, stock_id: str) -> AgentStock | IndividualStock:
        """Re-price a listed stock from its latest capped score."""
        matches = [stock for stock in self.source.list_stocks() if stock.id == stock_id]
        if not matches:
            raise ValidationError(f"unknown stock: {stock_id}", reason="unknown_stock")
        stock = matches[0]
        feed = self.source.get_score_feed(stock.id, stock.category)
        record = build_score_record(feed, self.config.scoring.cap_fraction)
        return apply_score_record(stock, record, self.config.pricing)
