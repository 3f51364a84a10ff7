"""
Layout helpers for the Streamlit application (page setup and sidebar controls).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import streamlit as st

from opsboard.config import BOARD_TABLE, CATEGORY_OPTIONS
from opsboard.data.filters import DEFAULT_FILTERS, BoardFilters
from opsboard.data.sorting import SortCommand


@dataclass(frozen=True)
class SidebarResult:
    filters: BoardFilters
    sort_command: Optional[SortCommand]
    reload_requested: bool


def setup_page() -> None:
    """Set Streamlit page configuration and top-level styling."""
    st.set_page_config(
        page_title="Operations Board",
        layout="wide",
        page_icon=":stopwatch:",
    )


def _category_options(products: List[str]) -> List[str]:
    extra = [product for product in products if product not in CATEGORY_OPTIONS]
    return CATEGORY_OPTIONS + extra


def _sortable_columns() -> List[int]:
    return [index for index, column in enumerate(BOARD_TABLE.columns) if not column.no_sort]


def sidebar_controls(products: List[str]) -> SidebarResult:
    """Render the search, facet, sort and reload controls and collect their values."""
    defaults = DEFAULT_FILTERS

    query = st.sidebar.text_input(
        "Search",
        value=defaults.query,
        key="ob_search",
        help="Case-insensitive match against every column of a row.",
    )
    category = st.sidebar.selectbox(
        "Filter",
        options=_category_options(products),
        index=0,
        key="ob_category",
        format_func=lambda v: v or "All",
    )

    col_live, col_training = st.sidebar.columns(2)
    with col_live:
        show_live = st.checkbox("Live", value=defaults.show_live, key="ob_live")
    with col_training:
        show_training = st.checkbox("Training", value=defaults.show_training, key="ob_training")

    sort_command = None
    with st.sidebar.expander("Sort", expanded=False):
        column = st.selectbox(
            "Column",
            options=_sortable_columns(),
            format_func=lambda i: BOARD_TABLE.columns[i].label,
            key="ob_sort_column",
        )
        alternate = st.checkbox(
            "Use alternate sort key",
            value=False,
            key="ob_sort_alternate",
            help="Sort duration columns by their displayed text instead of stored seconds.",
        )
        if st.button("Sort / toggle direction", key="ob_sort"):
            sort_command = SortCommand(column=column, alternate=alternate)

    st.sidebar.divider()
    reload_requested = st.sidebar.button("Reload now", key="ob_reload", type="primary")

    return SidebarResult(
        filters=BoardFilters(
            query=query,
            category=category or "",
            show_live=show_live,
            show_training=show_training,
        ),
        sort_command=sort_command,
        reload_requested=reload_requested,
    )
