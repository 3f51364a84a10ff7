"""
Resolution of the single instant every duration of a cycle is measured from.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pandas as pd

from opsboard.config import BoardSettings
from opsboard.data.client import ApiClient, FetchError
from opsboard.data.models import parse_instant

logger = logging.getLogger(__name__)


class TimeSourceError(FetchError):
    """The time service kept failing after every retry."""


def _instant_from_payload(payload: Any, timezone: str) -> pd.Timestamp:
    if not isinstance(payload, dict):
        raise ValueError("time payload is not an object")
    # Fractional seconds and anything after them are discarded
    raw = str(payload.get("datetime") or "").split(".")[0]
    return parse_instant(raw, timezone)


async def resolve_cycle_instant(client: ApiClient, settings: BoardSettings) -> pd.Timestamp:
    """Fetch the authoritative instant, retrying with a fixed delay."""
    attempts = settings.time_retries + 1
    last_error: Exception = FetchError(settings.time_url, "no attempt made")
    for attempt in range(1, attempts + 1):
        try:
            payload = await client.time()
            return _instant_from_payload(payload, settings.timezone)
        except (FetchError, ValueError) as exc:
            last_error = exc
            logger.warning("Time service attempt %d/%d failed: %s", attempt, attempts, exc)
            if attempt < attempts:
                await asyncio.sleep(settings.time_retry_delay)
    raise TimeSourceError(settings.time_url, f"giving up after {attempts} attempts: {last_error}")
