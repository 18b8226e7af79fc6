from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

AgentType = Literal["trading", "social", "defi", "utility"]
IndividualType = Literal["trader", "influencer", "developer", "analyst"]


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class CapDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)


class CapResult(Record):
    final_score: int
    was_capped: bool
    direction: CapDirection = CapDirection.NONE


class ScoreRecord(Record):
    entity_id: str
    previous_score: int
    raw_score: int
    final_score: int
    was_capped: bool
    cap_direction: CapDirection = CapDirection.NONE
    calculated_at: datetime


class PriceQuote(Record):
    score: float
    display_price_per_thousand: float
    actual_price_per_token: float
    market_cap_usd: float


class TradeQuote(Record):
    side: Side
    token_amount: float
    price_per_token: float
    gross_usd: float
    platform_fee_usd: float
    creator_fee_usd: float
    total_usd: float


class StockBase(Record):
    id: str
    name: str = ""
    current_score: int = Field(ge=1, le=100)
    previous_score: int = Field(default=0, ge=0)
    display_price: float = 0.0
    market_cap_usd: float = 0.0
    holders: int = 0
    volume_24h: float = 0.0
    last_score_update: Optional[datetime] = None


class AgentStock(StockBase):
    category: Literal["agent"] = "agent"
    type: AgentType = "trading"
    wallet_address: str = ""


class IndividualStock(StockBase):
    category: Literal["individual"] = "individual"
    type: IndividualType = "trader"
    twitter_handle: Optional[str] = None


StockEntry = Annotated[Union[AgentStock, IndividualStock], Field(discriminator="category")]

_STOCK_ADAPTER: TypeAdapter = TypeAdapter(StockEntry)


def parse_stock(payload: dict[str, Any]) -> AgentStock | IndividualStock:
    return _STOCK_ADAPTER.validate_python(payload)


class Transaction(Record):
    stock_id: str
    side: Side
    token_amount: float
    price_at_trade: float
    created_at: datetime
    sol_amount: Optional[float] = None
    score_at_trade: Optional[int] = None


class RejectedTransaction(Record):
    transaction: Transaction
    reason: str


class Holding(Record):
    stock_id: str
    token_amount: float
    avg_buy_price: float
    cost_basis: float
    current_price: Optional[float] = None
    current_value: float = 0.0
    pnl: float = 0.0
    pnl_percent: float = 0.0
    stale: bool = False
    stale_reason: Optional[str] = None


class PortfolioSummary(Record):
    wallet_address: Optional[str] = None
    holdings: List[Holding] = []
    rejected: List[RejectedTransaction] = []
    total_value: float = 0.0
    total_cost_basis: float = 0.0
    total_pnl: float = 0.0
    total_pnl_percent: float = 0.0


class DisplayScore(Record):
    entity_id: str
    final_score: int
    was_capped: bool
    cap_direction: CapDirection
    display_price: float
    market_cap_usd: float
    calculated_at: Optional[datetime] = None
