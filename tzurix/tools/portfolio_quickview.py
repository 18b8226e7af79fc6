from __future__ import annotations

import logging
import sys
from pathlib import Path

from tzurix.api.backend import BackendClient
from tzurix.config import load_config
from tzurix.pipeline.dashboard import Dashboard
from tzurix.utils.format import format_number, format_percent, format_usd, shorten_address


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(message)s")
    root = Path(__file__).resolve().parents[2]
    config = load_config(root / "config.yaml")
    wallet = sys.argv[1] if len(sys.argv) > 1 else config.wallet.address
    if not wallet:
        print("No wallet given and wallet.address is not configured.")
        return

    summary = Dashboard(config, BackendClient(config.api)).get_portfolio_summary(wallet)

    print(f"wallet: {shorten_address(wallet)}")
    print(f"total_value: {format_usd(summary.total_value, 6)}")
    print(f"total_cost_basis: {format_usd(summary.total_cost_basis, 6)}")
    print(f"total_pnl_percent: {format_percent(summary.total_pnl_percent)}")
    print("holdings:")
    for holding in summary.holdings:
        if holding.stale:
            print(f"- {holding.stock_id} tokens={format_number(holding.token_amount)} price unavailable ({holding.stale_reason})")
            continue
        print(
            f"- {holding.stock_id} tokens={format_number(holding.token_amount)} "
            f"avg={format_usd(holding.avg_buy_price, 6)} value={format_usd(holding.current_value, 6)} "
            f"pnl={format_percent(holding.pnl_percent)}"
        )
    if summary.rejected:
        print(f"rejected_transactions: {len(summary.rejected)}")


if __name__ == "__main__":
    main()
