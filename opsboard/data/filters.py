"""
Filter utilities that compute row visibility from the board's search box,
category selector and Live/Training facets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import pandas as pd

from opsboard.data.models import Row
from opsboard.data.table import CountLabel, TableModel


@dataclass(frozen=True)
class BoardFilters:
    query: str = ""
    category: str = ""
    show_live: bool = False
    show_training: bool = False


DEFAULT_FILTERS = BoardFilters()


def visibility_mask(texts: pd.Series, filters: BoardFilters) -> pd.Series:
    """
    Visibility of each rendered row text under the current filters.

    Text and category are case-insensitive substring matches where an empty
    value matches everything. Active facets are OR-combined with each other
    and AND-combined with the text and category matches.
    """
    lowered = texts.astype(str).str.lower()
    mask = pd.Series(True, index=texts.index)

    query = filters.query.strip().lower()
    if query:
        mask &= lowered.str.contains(query, regex=False)

    category = filters.category.strip().lower()
    if category:
        mask &= lowered.str.contains(category, regex=False)

    if filters.show_live or filters.show_training:
        facet_mask = pd.Series(False, index=texts.index)
        if filters.show_live:
            facet_mask |= lowered.str.contains("live", regex=False)
        if filters.show_training:
            facet_mask |= lowered.str.contains("training", regex=False)
        mask &= facet_mask

    return mask


def apply_board_filters(table: TableModel, filters: BoardFilters, label: CountLabel) -> int:
    """Recompute visibility for every row and write the visible count to `label`."""
    rows: List[Row] = list(table.rows())
    texts = pd.Series([row.text() for row in rows], dtype=object)
    mask = visibility_mask(texts, filters)
    table.visible = {id(row): bool(show) for row, show in zip(rows, mask)}
    visible_count = int(mask.sum())
    label.write(visible_count)
    return visible_count


def serialize_filters(filters: BoardFilters) -> Dict[str, Any]:
    """
    Convert the BoardFilters dataclass to a JSON-serialisable dictionary to be
    stored in session_state or used for logging/debugging.
    """
    return {
        "query": filters.query,
        "category": filters.category,
        "show_live": filters.show_live,
        "show_training": filters.show_training,
    }
