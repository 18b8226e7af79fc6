from __future__ import annotations

import json
from datetime import date, datetime, timezone

from tzurix.analytics.leaderboard import rank
from tzurix.analytics.portfolio import aggregate
from tzurix.models import AgentStock, IndividualStock, Transaction
from tzurix.pipeline.report import write_leaderboard_report, write_portfolio_report

RUN_DATE = date(2026, 1, 7)
CREATED = datetime(2026, 1, 7, 9, 0, tzinfo=timezone.utc)


def test_portfolio_report_outputs(tmp_path) -> None:
    ledger = [
        Transaction(stock_id="a1", side="buy", token_amount=100, price_at_trade=0.5, created_at=CREATED),
        Transaction(stock_id="b2", side="buy", token_amount=10, price_at_trade=1.0, created_at=CREATED),
        Transaction(stock_id="a1", side="sell", token_amount=500, price_at_trade=0.5, created_at=CREATED),
    ]
    summary = aggregate(ledger, {"a1": 0.6}, wallet_address="So1anaWa11etAddre55")
    md_path = write_portfolio_report(summary, tmp_path, RUN_DATE)

    csv_path = tmp_path / "portfolio_2026-01-07.csv"
    json_path = tmp_path / "portfolio_2026-01-07.json"
    assert md_path.exists()
    assert csv_path.exists()
    assert json_path.exists()

    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("stock_id,token_amount,avg_buy_price,cost_basis")
    assert len(lines) == 3

    report_text = md_path.read_text(encoding="utf-8")
    assert "## Totals" in report_text
    assert "price unavailable" in report_text
    assert "sell_exceeds_holding" in report_text
    assert "So1a...re55" in report_text

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert payload["wallet_address"] == "So1anaWa11etAddre55"
    assert len(payload["rejected"]) == 1


def test_leaderboard_report_outputs(tmp_path) -> None:
    entries = rank(
        [
            AgentStock(id="a", name="Alpha", current_score=30, previous_score=20, volume_24h=50.0),
            IndividualStock(id="b", name="Dana", current_score=60, previous_score=60, type="analyst"),
        ],
        "gainers",
    )
    md_path = write_leaderboard_report(entries, "gainers", tmp_path, RUN_DATE)

    csv_lines = (tmp_path / "leaderboard_gainers_2026-01-07.csv").read_text(encoding="utf-8").splitlines()
    assert csv_lines[0] == "rank,id,name,category,type,current_score,previous_score,metric_value,holders,volume_24h"
    assert csv_lines[1].startswith("1,a,Alpha,agent,trading,30,20,0.5")
    assert "# Leaderboard by gainers (2026-01-07)" in md_path.read_text(encoding="utf-8")
