"""
Reusable helpers for rendering the board table with tier colouring.
"""

from __future__ import annotations

from typing import List

import pandas as pd
import streamlit as st

from opsboard.config import BOARD_TABLE, BoardSettings
from opsboard.data.cycle import BoardSnapshot
from opsboard.data.models import DUE_COLUMN, ELAPSED_COLUMN, Tier


def column_labels() -> List[str]:
    return [column.label for column in BOARD_TABLE.columns]


def snapshot_frame(snapshot: BoardSnapshot) -> pd.DataFrame:
    return pd.DataFrame([row.cells for row in snapshot.rows], columns=column_labels())


def tier_styles(snapshot: BoardSnapshot, settings: BoardSettings) -> pd.DataFrame:
    """CSS per cell: only the elapsed and due columns carry a tier colour."""
    labels = column_labels()
    styles = pd.DataFrame("", index=range(len(snapshot.rows)), columns=labels)

    def css(tier: Tier) -> str:
        color = settings.color_for(tier)
        return f"color: {color};" if color else ""

    for position, row in enumerate(snapshot.rows):
        styles.iat[position, ELAPSED_COLUMN] = css(row.elapsed_tier)
        styles.iat[position, DUE_COLUMN] = css(row.due_tier)
    return styles


def render_board_table(snapshot: BoardSnapshot, settings: BoardSettings, height: int = 700) -> None:
    if not snapshot.rows:
        st.info("No reports to display.")
        return

    frame = snapshot_frame(snapshot)
    styles = tier_styles(snapshot, settings)
    styled = frame.style.apply(lambda _: styles, axis=None)

    st.dataframe(
        styled,
        height=height,
        hide_index=True,
    )
