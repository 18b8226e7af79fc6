from __future__ import annotations

import math
from typing import TypeVar

from tzurix.config import FeesConfig, PricingConfig
from tzurix.errors import ValidationError
from tzurix.models import PriceQuote, ScoreRecord, Side, StockBase, TradeQuote

DEFAULT_PRICING = PricingConfig()
DEFAULT_FEES = FeesConfig()

S = TypeVar("S", bound=StockBase)


def derive(score: float, pricing: PricingConfig = DEFAULT_PRICING) -> PriceQuote:
    if not math.isfinite(score):
        raise ValidationError(f"score must be finite, got {score}", reason="non_finite")
    score = max(score, 0)
    actual_price = score * pricing.actual_price_per_token
    return PriceQuote(
        score=score,
        display_price_per_thousand=score * pricing.price_per_score_point,
        actual_price_per_token=actual_price,
        market_cap_usd=actual_price * pricing.total_supply,
    )


def market_cap_factor(pricing: PricingConfig = DEFAULT_PRICING) -> float:
    return pricing.actual_price_per_token * pricing.total_supply


def score_change_percent(current_score: float, previous_score: float | None) -> float:
    if not previous_score:
        return 0.0
    return (current_score - previous_score) / previous_score * 100


def quote_trade(
    score: float,
    side: Side | str,
    token_amount: float,
    pricing: PricingConfig = DEFAULT_PRICING,
    fees: FeesConfig = DEFAULT_FEES,
) -> TradeQuote:
    side = Side(side)
    if not math.isfinite(token_amount) or token_amount <= 0:
        raise ValidationError(f"token_amount must be > 0, got {token_amount}", reason="non_positive_amount")
    price = derive(score, pricing).actual_price_per_token
    gross = token_amount * price
    platform_fee = gross * fees.platform_fee_percent / 100
    creator_fee = gross * fees.creator_fee_percent / 100
    if side is Side.BUY:
        total = gross + platform_fee + creator_fee
    else:
        total = gross - platform_fee - creator_fee
    return TradeQuote(
        side=side,
        token_amount=token_amount,
        price_per_token=price,
        gross_usd=gross,
        platform_fee_usd=platform_fee,
        creator_fee_usd=creator_fee,
        total_usd=total,
    )


def apply_score_record(stock: S, record: ScoreRecord, pricing: PricingConfig = DEFAULT_PRICING) -> S:
    if record.entity_id != stock.id:
        raise ValidationError(f"score record for {record.entity_id} applied to {stock.id}", reason="entity_mismatch")
    quote = derive(record.final_score, pricing)
    return stock.model_copy(
        update={
            "previous_score": record.previous_score,
            "current_score": record.final_score,
            "display_price": quote.display_price_per_thousand,
            "market_cap_usd": quote.market_cap_usd,
            "last_score_update": record.calculated_at,
        }
    )
