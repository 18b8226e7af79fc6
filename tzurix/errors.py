from __future__ import annotations


class TzurixError(Exception):
    """Base class for errors raised by the scoring and portfolio core."""


class ValidationError(TzurixError, ValueError):
    """Input the core refuses to apply: non-finite scores, bad amounts, oversells.

    ``reason`` is a short code suitable for reports (``non_positive_amount``,
    ``sell_exceeds_holding`` and so on).
    """

    def __init__(self, message: str, reason: str = "invalid_input") -> None:
        super().__init__(message)
        self.reason = reason


class StaleDataError(TzurixError, LookupError):
    """No usable current price for a stock. Surfaced as a flag on holdings, not raised to callers."""

    def __init__(self, stock_id: str, reason: str) -> None:
        super().__init__(f"{reason}: {stock_id}")
        self.stock_id = stock_id
        self.reason = reason
