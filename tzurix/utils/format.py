from __future__ import annotations


def format_usd(value: float | None, digits: int = 2) -> str:
    if value is None:
        return "n/a"
    return f"${value:,.{digits}f}"


def format_price(score: float, price_per_score_point: float = 0.01) -> str:
    return format_usd(score * price_per_score_point)


def format_number(value: float) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"


def format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"


def shorten_address(address: str | None, chars: int = 4) -> str:
    if not address:
        return ""
    if len(address) <= chars * 2:
        return address
    return f"{address[:chars]}...{address[-chars:]}"
