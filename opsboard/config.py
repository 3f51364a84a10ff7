"""
Application-wide configuration constants and helper utilities.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from opsboard.data.models import DUE_COLUMN, SourceCategory, Tier

TIME_URL = "https://worldtimeapi.org/api/timezone/PST8PDT"
API_BASE = "https://api.cmh.platform-prod2.evinternal.net/operations-center/api"
FEED_BASE = "https://api.cmh.platform-prod.evinternal.net/operations-center/api/TaskTrafficView/"

# Query strings of the TaskTrafficView feed, one per category
FEED_QUERIES: Dict[SourceCategory, str] = {
    SourceCategory.BEING_MEASURED_LIVE: (
        "?type=16&value=beingmeasured&type=30&value=test&type=30&value=training"
        "&type=26&value=true&type=18&value=HQ&"
    ),
    SourceCategory.READY_TO_MEASURE_LIVE: (
        "?type=16&value=readytomeasure&type=30&value=test&type=30&value=training"
        "&type=26&value=true&type=18&value=HQ&type=15&value=null&"
    ),
    SourceCategory.BEING_MEASURED_TRAINING: (
        "?type=16&value=beingmeasured&type=29&value=test&type=29&value=training"
        "&type=26&value=true&type=18&value=HQ&"
    ),
    SourceCategory.READY_TO_MEASURE_TRAINING: (
        "?type=16&value=readytomeasure&type=29&value=test&type=29&value=training"
        "&type=26&value=true&type=18&value=HQ&type=15&value=null&"
    ),
}

DEFAULT_TIER_COLORS: Dict[Tier, str] = {
    Tier.ALERT: "red",
    Tier.SECOND: "orangered",
    Tier.THIRD: "DarkOrange",
}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(f"OPSBOARD_{name}")
    if val is None or not val.strip():
        return default
    return val.strip()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = _env(name)
    if raw is None:
        return default
    if raw.lower() in {"none", "unbounded"}:
        return None
    return int(raw)


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = _env(name)
    if raw is None:
        return default
    if raw.lower() == "none":
        return None
    return float(raw)


@dataclass(frozen=True)
class BoardSettings:
    time_url: str = TIME_URL
    api_base: str = API_BASE
    feed_base: str = FEED_BASE
    time_retries: int = 10
    time_retry_delay: float = 1.0
    reload_seconds: int = 600
    tick_interval: float = 1.0
    # None keeps the unbounded fan-out of one task per feed item
    max_concurrency: Optional[int] = None
    http_timeout: Optional[float] = None
    timezone: str = "PST8PDT"
    log_level: str = "INFO"
    elapsed_alert_seconds: int = 10800
    due_alert_seconds: int = 3600
    due_second_seconds: int = 7200
    due_third_seconds: int = 10800
    tier_colors: Dict[Tier, str] = field(default_factory=lambda: dict(DEFAULT_TIER_COLORS))

    @classmethod
    def from_env(cls) -> "BoardSettings":
        defaults = cls()
        return cls(
            time_url=_env("TIME_URL", defaults.time_url),
            api_base=_env("API_BASE", defaults.api_base).rstrip("/"),
            feed_base=_env("FEED_BASE", defaults.feed_base),
            time_retries=_env_int("TIME_RETRIES", defaults.time_retries),
            time_retry_delay=_env_float("TIME_RETRY_DELAY", defaults.time_retry_delay),
            reload_seconds=_env_int("RELOAD_SECONDS", defaults.reload_seconds),
            tick_interval=_env_float("TICK_INTERVAL", defaults.tick_interval),
            max_concurrency=_env_int("MAX_CONCURRENCY", defaults.max_concurrency),
            http_timeout=_env_float("HTTP_TIMEOUT", defaults.http_timeout),
            timezone=_env("TIMEZONE", defaults.timezone),
            log_level=_env("LOG_LEVEL", defaults.log_level),
        )

    def feed_url(self, category: SourceCategory) -> str:
        return f"{self.feed_base}{FEED_QUERIES[category]}"

    def color_for(self, tier: Tier) -> str:
        return self.tier_colors.get(tier, "")


@dataclass(frozen=True)
class ColumnSpec:
    label: str
    # Overrides the positional index when set to a non-zero value
    sort_col: Optional[int] = None
    tie_break: Optional[int] = None
    no_sort: bool = False


@dataclass(frozen=True)
class TableSpec:
    columns: List[ColumnSpec]
    ascending_by_default: bool = False
    null_last: bool = False


# Ordered column definitions for the board table
TABLE_COLUMNS: List[ColumnSpec] = [
    ColumnSpec("Status", tie_break=DUE_COLUMN),
    ColumnSpec("Type", tie_break=DUE_COLUMN),
    ColumnSpec("Report ID"),
    ColumnSpec("User"),
    ColumnSpec("Tech"),
    ColumnSpec("Team", tie_break=DUE_COLUMN),
    ColumnSpec("Location", tie_break=DUE_COLUMN),
    ColumnSpec("Product", tie_break=DUE_COLUMN),
    ColumnSpec("Measurement Items", no_sort=True),
    ColumnSpec("Elapsed"),
    ColumnSpec("Due"),
]

BOARD_TABLE = TableSpec(columns=TABLE_COLUMNS, ascending_by_default=True, null_last=True)

# Values of the category selector; the empty option matches every row
CATEGORY_OPTIONS: List[str] = ["", "Ready To Measure", "Being Measured"]
