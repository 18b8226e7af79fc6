from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from tzurix.errors import ValidationError
from tzurix.models import CapDirection, CapResult, ScoreRecord
from tzurix.utils.time import parse_datetime, utc_now

MIN_SCORE = 1
MAX_SCORE = 100


def apply_daily_cap(previous_score: float, proposed_score: float, cap_fraction: float) -> CapResult:
    _require_finite("previous_score", previous_score)
    _require_finite("proposed_score", proposed_score)
    _require_finite("cap_fraction", cap_fraction)
    # negative inputs clamp to zero; a negative previous score bootstraps
    previous_score = max(previous_score, 0)
    cap_fraction = max(cap_fraction, 0)

    if previous_score == 0:
        return CapResult(final_score=clamp_score(round_half_up(proposed_score)), was_capped=False)

    delta = (proposed_score - previous_score) / previous_score
    clamped = max(-cap_fraction, min(cap_fraction, delta))
    final_score = clamp_score(round_half_up(previous_score * (1 + clamped)))

    was_capped = delta != clamped
    direction = CapDirection.NONE
    if was_capped:
        direction = CapDirection.UP if delta > clamped else CapDirection.DOWN
    return CapResult(final_score=final_score, was_capped=was_capped, direction=direction)


def build_score_record(
    feed_entry: dict[str, Any],
    cap_fraction: float,
    calculated_at: datetime | None = None,
) -> ScoreRecord:
    previous_score = feed_entry.get("previous_score") or 0
    raw_score = feed_entry["raw_score"]
    result = apply_daily_cap(previous_score, raw_score, cap_fraction)
    if calculated_at is None:
        calculated_at = parse_datetime(feed_entry.get("calculated_at")) or utc_now()
    return ScoreRecord(
        entity_id=feed_entry["entity_id"],
        previous_score=round_half_up(previous_score),
        raw_score=round_half_up(raw_score),
        final_score=result.final_score,
        was_capped=result.was_capped,
        cap_direction=result.direction,
        calculated_at=calculated_at,
    )


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}", reason="non_finite")
