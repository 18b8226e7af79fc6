from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

T = TypeVar("T")


def stable_sorted(
    items: Iterable[T],
    key: Callable[[T], Any],
    reverse: bool = False,
    tie_breaker: Callable[[T], Any] | None = None,
) -> list[T]:
    # Equal keys keep insertion order unless an explicit tie breaker is given.
    indexed = list(enumerate(items))
    if tie_breaker is not None:
        indexed = sorted(indexed, key=lambda pair: tie_breaker(pair[1]))
    indexed = sorted(indexed, key=lambda pair: key(pair[1]), reverse=reverse)
    return [item for _, item in indexed]
