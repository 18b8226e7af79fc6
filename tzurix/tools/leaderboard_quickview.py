from __future__ import annotations

import logging
import sys
from pathlib import Path

from tzurix.analytics.leaderboard import metric_value, parse_metric
from tzurix.api.backend import BackendClient
from tzurix.config import load_config
from tzurix.pipeline.dashboard import Dashboard
from tzurix.scoring.pricing import derive
from tzurix.utils.format import format_number, format_usd


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(message)s")
    root = Path(__file__).resolve().parents[2]
    config = load_config(root / "config.yaml")
    metric = parse_metric(sys.argv[1] if len(sys.argv) > 1 else "score")

    entries = Dashboard(config, BackendClient(config.api)).get_leaderboard(metric, limit=10)
    if not entries:
        print("No stocks listed.")
        return

    print(f"leaderboard: {metric.value}")
    for idx, entry in enumerate(entries, start=1):
        quote = derive(entry.current_score, config.pricing)
        print(
            f"{idx}. {entry.name or entry.id} ({entry.category}/{entry.type}) score={entry.current_score} "
            f"price={format_usd(quote.display_price_per_thousand)}/1K mcap={format_usd(quote.market_cap_usd, 0)} "
            f"{metric.value}={format_number(metric_value(entry, metric))}"
        )


if __name__ == "__main__":
    main()
