from __future__ import annotations

import logging
from pathlib import Path

from tzurix.analytics.leaderboard import LeaderboardMetric
from tzurix.api.backend import BackendClient
from tzurix.config import load_config
from tzurix.pipeline.dashboard import Dashboard
from tzurix.pipeline.report import write_leaderboard_report, write_portfolio_report
from tzurix.utils.time import local_today

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    root = Path(__file__).resolve().parents[2]
    config = load_config(root / "config.yaml")
    report_date = local_today(config.run.timezone)
    out_dir = root / config.report.out_dir

    dashboard = Dashboard(config, BackendClient(config.api))

    for metric in LeaderboardMetric:
        entries = dashboard.get_leaderboard(metric)
        write_leaderboard_report(entries, metric, out_dir, report_date)

    if config.wallet.address:
        summary = dashboard.get_portfolio_summary()
        write_portfolio_report(summary, out_dir, report_date)
        logger.info(
            "Run summary holdings=%d rejected=%d total_value=%.6f total_pnl_percent=%.2f outputs=%s",
            len(summary.holdings),
            len(summary.rejected),
            summary.total_value,
            summary.total_pnl_percent,
            out_dir,
        )
    else:
        logger.info("No wallet.address configured; skipping portfolio report")


if __name__ == "__main__":
    main()
