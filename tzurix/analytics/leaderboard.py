from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, Sequence, TypeVar

from tzurix.errors import ValidationError
from tzurix.models import StockBase
from tzurix.utils.sorting import stable_sorted

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=StockBase)


class LeaderboardMetric(str, Enum):
    SCORE = "score"
    GAINERS = "gainers"
    VOLUME = "volume"
    HOLDERS = "holders"


def gain_ratio(entry: StockBase) -> float:
    if entry.previous_score <= 0:
        return 0.0
    return (entry.current_score - entry.previous_score) / entry.previous_score


_METRIC_KEYS: dict[LeaderboardMetric, Callable[[StockBase], float]] = {
    LeaderboardMetric.SCORE: lambda entry: entry.current_score,
    LeaderboardMetric.GAINERS: gain_ratio,
    LeaderboardMetric.VOLUME: lambda entry: entry.volume_24h,
    LeaderboardMetric.HOLDERS: lambda entry: entry.holders,
}


def parse_metric(metric: LeaderboardMetric | str) -> LeaderboardMetric:
    try:
        return LeaderboardMetric(metric)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in LeaderboardMetric)
        raise ValidationError(f"unknown leaderboard metric {metric!r} (expected {allowed})", reason="unknown_metric") from exc


def metric_value(entry: StockBase, metric: LeaderboardMetric | str) -> float:
    return _METRIC_KEYS[parse_metric(metric)](entry)


def rank(
    entries: Iterable[S],
    metric: LeaderboardMetric | str,
    limit: int | None = None,
    category: str | None = None,
    stock_type: str | None = None,
) -> list[S]:
    metric = parse_metric(metric)
    if limit is not None and limit < 0:
        raise ValidationError(f"limit must be >= 0, got {limit}", reason="negative_limit")

    candidates: Sequence[S] = [
        entry
        for entry in entries
        if (category is None or getattr(entry, "category", None) == category)
        and (stock_type is None or getattr(entry, "type", None) == stock_type)
    ]
    ranked = stable_sorted(candidates, key=_METRIC_KEYS[metric], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    logger.debug("Ranked %d of %d entries by %s", len(ranked), len(candidates), metric.value)
    return ranked
