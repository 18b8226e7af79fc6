from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel


class RunConfig(BaseModel):
    timezone: str = "UTC"


class ScoringConfig(BaseModel):
    cap_fraction: float
    score_max_age_hours: Optional[float] = 48


class PricingConfig(BaseModel):
    price_per_score_point: float = 0.01
    actual_price_per_token: float = 0.00001
    total_supply: int = 100_000_000


class FeesConfig(BaseModel):
    platform_fee_percent: float = 1.0
    creator_fee_percent: float = 0.5


class ApiConfig(BaseModel):
    base_url: str = "https://tzurix.up.railway.app"
    request_timeout_s: int = 15
    retry_max: int = 3


class WalletConfig(BaseModel):
    address: Optional[str] = None


class LeaderboardConfig(BaseModel):
    default_limit: int = 20


class ReportConfig(BaseModel):
    out_dir: str = "out"


class AppConfig(BaseModel):
    run: RunConfig = RunConfig()
    scoring: ScoringConfig
    pricing: PricingConfig = PricingConfig()
    fees: FeesConfig = FeesConfig()
    api: ApiConfig = ApiConfig()
    wallet: WalletConfig = WalletConfig()
    leaderboard: LeaderboardConfig = LeaderboardConfig()
    report: ReportConfig = ReportConfig()


def load_config(path: str | Path) -> AppConfig:
    data: Dict[str, Any] = {}
    config_path = Path(path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
            if isinstance(loaded, dict):
                data = loaded
    scoring = data.get("scoring")
    if not isinstance(scoring, dict) or scoring.get("cap_fraction") is None:
        raise ValueError("config.yaml must set scoring.cap_fraction")
    return AppConfig(**data)
