"""
Team and location lookup maps used to decorate board rows.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable

from opsboard.data.client import ApiClient, FetchError
from opsboard.data.models import ReferenceMaps


def _lookup(records: Iterable[Any], key: str, label: str, url: str) -> Dict[Any, str]:
    if not isinstance(records, list):
        raise FetchError(url, "directory payload is not a list")
    return {record.get(key): record.get(label) for record in records if isinstance(record, dict)}


async def load_reference_maps(client: ApiClient) -> ReferenceMaps:
    """Fetch both directories concurrently; any failure propagates to the caller."""
    teams, locations = await asyncio.gather(client.teams(), client.locations())
    return ReferenceMaps(
        teams=_lookup(teams, "teamId", "name", "Team"),
        locations=_lookup(locations, "id", "description", "Location"),
    )
