from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Sequence

from tzurix.analytics.leaderboard import LeaderboardMetric, metric_value, parse_metric
from tzurix.analytics.portfolio import holdings_rows
from tzurix.models import PortfolioSummary, StockBase
from tzurix.utils.format import format_number, format_percent, format_usd, shorten_address
from tzurix.utils.io import ensure_dir, save_json, write_csv

logger = logging.getLogger(__name__)

HOLDING_HEADERS = [
    "stock_id",
    "token_amount",
    "avg_buy_price",
    "cost_basis",
    "current_price",
    "current_value",
    "pnl",
    "pnl_percent",
    "stale",
    "stale_reason",
]

LEADERBOARD_HEADERS = [
    "rank",
    "id",
    "name",
    "category",
    "type",
    "current_score",
    "previous_score",
    "metric_value",
    "holders",
    "volume_24h",
]


def write_portfolio_report(summary: PortfolioSummary, out_dir: Path, report_date: date) -> Path:
    ensure_dir(out_dir)
    stamp = report_date.isoformat()
    csv_path = out_dir / f"portfolio_{stamp}.csv"
    md_path = out_dir / f"portfolio_{stamp}.md"
    json_path = out_dir / f"portfolio_{stamp}.json"

    write_csv(csv_path, HOLDING_HEADERS, holdings_rows(summary))
    save_json(json_path, summary.model_dump(mode="json"))

    with md_path.open("w", encoding="utf-8") as handle:
        handle.write(f"# Portfolio Report ({stamp})\n\n")
        handle.write(f"Wallet: {shorten_address(summary.wallet_address) or 'n/a'}\n\n")
        handle.write("## Totals\n\n")
        handle.write(
            f"- total_value: {format_usd(summary.total_value, 6)}\n"
            f"- total_cost_basis: {format_usd(summary.total_cost_basis, 6)}\n"
            f"- total_pnl: {format_usd(summary.total_pnl, 6)}\n"
            f"- total_pnl_percent: {format_percent(summary.total_pnl_percent)}\n"
            f"- holdings: {len(summary.holdings)}\n"
            f"- rejected_transactions: {len(summary.rejected)}\n\n"
        )
        if not summary.holdings:
            handle.write("No open holdings.\n")
        else:
            handle.write("| Stock | Tokens | Avg Buy | Value | P&L |\n")
            handle.write("| --- | --- | --- | --- | --- |\n")
            for holding in summary.holdings:
                value = "price unavailable" if holding.stale else format_usd(holding.current_value, 6)
                pnl = "n/a" if holding.stale else format_percent(holding.pnl_percent)
                handle.write(
                    f"| {holding.stock_id} | {format_number(holding.token_amount)} "
                    f"| {format_usd(holding.avg_buy_price, 6)} | {value} | {pnl} |\n"
                )
        if summary.rejected:
            handle.write("\n## Rejected transactions\n\n")
            for item in summary.rejected:
                tx = item.transaction
                handle.write(
                    f"- {tx.created_at.isoformat()} {tx.side.value} {tx.token_amount} of {tx.stock_id}: {item.reason}\n"
                )

    logger.info("Wrote portfolio report %s", md_path)
    return md_path


def write_leaderboard_report(
    entries: Sequence[StockBase],
    metric: LeaderboardMetric | str,
    out_dir: Path,
    report_date: date,
) -> Path:
    metric = parse_metric(metric)
    ensure_dir(out_dir)
    stamp = report_date.isoformat()
    csv_path = out_dir / f"leaderboard_{metric.value}_{stamp}.csv"
    md_path = out_dir / f"leaderboard_{metric.value}_{stamp}.md"

    rows = []
    for idx, entry in enumerate(entries, start=1):
        rows.append(
            {
                "rank": idx,
                **entry.model_dump(),
                "metric_value": metric_value(entry, metric),
            }
        )
    write_csv(csv_path, LEADERBOARD_HEADERS, rows)

    with md_path.open("w", encoding="utf-8") as handle:
        handle.write(f"# Leaderboard by {metric.value} ({stamp})\n\n")
        if not rows:
            handle.write("No entries.\n")
        else:
            handle.write("| Rank | Name | Category | Score | Holders | Volume 24h |\n")
            handle.write("| --- | --- | --- | --- | --- | --- |\n")
            for row in rows:
                handle.write(
                    f"| {row['rank']} | {row['name'] or row['id']} | {row['category']} "
                    f"| {row['current_score']} | {row['holders']} | {format_usd(row['volume_24h'])} |\n"
                )

    logger.info("Wrote %s leaderboard with %d entries", metric.value, len(rows))
    return md_path
