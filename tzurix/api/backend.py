from __future__ import annotations

import logging
from typing import Any

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from tzurix.config import ApiConfig
from tzurix.errors import ValidationError
from tzurix.models import AgentStock, IndividualStock, Transaction, parse_stock
from tzurix.utils.time import parse_datetime

logger = logging.getLogger(__name__)


def _should_retry(exc: BaseException) -> bool:
    if isinstance(exc, requests.HTTPError):
        if exc.response is None:
            return True
        status = exc.response.status_code
        return status >= 500 or status == 429
    return isinstance(exc, (requests.Timeout, requests.ConnectionError))


class BackendClient:
    def __init__(self, config: ApiConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or ApiConfig()
        self.session = session or requests.Session()
        self.timeout = (self.config.request_timeout_s, self.config.request_timeout_s)
        self._get_json = retry(
            stop=stop_after_attempt(max(self.config.retry_max, 1)),
            wait=wait_exponential_jitter(initial=1, max=10),
            retry=retry_if_exception(_should_retry),
            reraise=True,
        )(self._get_json_once)

    def _get_json_once(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.config.base_url.rstrip('/')}{path}"
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_score_feed(self, entity_id: str, category: str | None = None) -> dict[str, Any]:
        if category not in (None, "agent", "individual"):
            raise ValidationError(f"unknown stock category: {category}", reason="unknown_category")
        if category in (None, "agent"):
            try:
                payload = self._get_json(f"/api/agents/{entity_id}")
            except requests.HTTPError as exc:
                if category is not None or exc.response is None or exc.response.status_code != 404:
                    raise
                payload = None
            agent = payload.get("agent") if isinstance(payload, dict) else None
            if isinstance(agent, dict):
                return score_feed_from_payload(agent)
            if category == "agent":
                raise LookupError(f"no agent payload for {entity_id}")
            logger.debug("No agent %s, trying individuals", entity_id)
        payload = self._get_json(f"/api/individuals/{entity_id}")
        individual = payload.get("individual") if isinstance(payload, dict) else None
        if not isinstance(individual, dict):
            raise LookupError(f"no individual payload for {entity_id}")
        return score_feed_from_payload(individual)

    def list_stocks(self, category: str | None = None, limit: int | None = None) -> list[AgentStock | IndividualStock]:
        stocks: list[AgentStock | IndividualStock] = []
        if category in (None, "agent"):
            params = {"limit": limit} if limit else None
            payload = self._get_json("/api/agents", params=params)
            stocks.extend(stock_from_payload(row, "agent") for row in _extract_list(payload, "agents"))
        if category in (None, "individual"):
            payload = self._get_json("/api/individuals")
            stocks.extend(stock_from_payload(row, "individual") for row in _extract_list(payload, "individuals"))
        logger.info("Fetched %d stocks (category=%s)", len(stocks), category or "all")
        return stocks

    def get_transactions(self, wallet_address: str, page_size: int = 100) -> list[Transaction]:
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            payload = self._get_json(
                f"/api/user/{wallet_address}/transactions",
                params={"limit": page_size, "offset": offset},
            )
            batch = _extract_list(payload, "transactions")
            rows.extend(batch)
            if len(batch) < page_size:
                break
            offset += page_size
        logger.info("Fetched %d transactions for %s", len(rows), wallet_address)
        return [transaction_from_row(row) for row in rows]


def score_feed_from_payload(payload: dict[str, Any]) -> dict[str, Any]:
    raw_score = payload.get("raw_score")
    if raw_score is None:
        raw_score = payload.get("current_score")
    return {
        "entity_id": str(payload.get("id")),
        "raw_score": raw_score,
        "previous_score": payload.get("previous_score") or 0,
        "calculated_at": payload.get("last_score_update") or payload.get("updated_at"),
    }


def stock_from_payload(payload: dict[str, Any], default_category: str) -> AgentStock | IndividualStock:
    data = dict(payload)
    data.setdefault("category", default_category)
    if data.get("last_score_update") is not None:
        data["last_score_update"] = parse_datetime(data["last_score_update"])
    for key in ("holders", "volume_24h", "display_price", "market_cap_usd"):
        if data.get(key) is None:
            data.pop(key, None)
    return parse_stock(data)


def transaction_from_row(row: dict[str, Any]) -> Transaction:
    stock_id = row.get("stock_id", row.get("agent_id"))
    return Transaction(
        stock_id=str(stock_id),
        side=str(row.get("side", "")).lower(),
        token_amount=row.get("token_amount"),
        price_at_trade=row.get("price_at_trade"),
        sol_amount=row.get("sol_amount"),
        score_at_trade=row.get("score_at_trade"),
        created_at=parse_datetime(row.get("created_at")),
    )


def _extract_list(payload: Any, key: str) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict):
        for candidate in (key, "data", "results"):
            value = payload.get(candidate)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
    return []
