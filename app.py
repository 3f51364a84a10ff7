import opsboard.bootstrap_env  # must be first to set env/secrets
import streamlit as st

from opsboard import configure_logging
from opsboard.config import BoardSettings
from opsboard.data.cycle import STATUS_FAILED, STATUS_LOADING, STATUS_STARTING
from opsboard.data.filters import serialize_filters
from opsboard.data.view import BoardView
from opsboard.runtime import BoardRuntime
from opsboard.ui.components.tables import render_board_table
from opsboard.ui.layout import setup_page, sidebar_controls

VIEW_KEY = "ob_view"


@st.cache_resource
def get_runtime() -> BoardRuntime:
    settings = BoardSettings.from_env()
    configure_logging(settings.log_level)
    runtime = BoardRuntime(settings)
    runtime.start()
    return runtime


def _session_view() -> BoardView:
    # One per browser session; the runtime and its rows are shared
    if VIEW_KEY not in st.session_state:
        st.session_state[VIEW_KEY] = BoardView()
    return st.session_state[VIEW_KEY]


def _render_live_board(runtime: BoardRuntime) -> None:
    view = _session_view()
    snapshot = runtime.snapshot(view.filters, view.sort)

    header_left, header_right = st.columns([3, 1])
    with header_left:
        st.markdown(f"**{snapshot.count_label}**")
    with header_right:
        if snapshot.reload_label:
            st.caption(snapshot.reload_label)

    if snapshot.status == STATUS_FAILED:
        st.warning(f"Board could not be loaded: {snapshot.error}. Use 'Reload now' to retry.")
    elif snapshot.status in (STATUS_STARTING, STATUS_LOADING) and not snapshot.rows:
        st.caption("Loading reports…")

    render_board_table(snapshot, runtime.settings)


def main() -> None:
    setup_page()
    st.title("Operations Board")

    runtime = get_runtime()
    view = _session_view()
    current = runtime.snapshot(view.filters, view.sort)
    view.sync(current.version)

    controls = sidebar_controls(current.products)
    view.filters = controls.filters
    st.session_state["ob_active_filters"] = serialize_filters(controls.filters)

    if controls.reload_requested:
        runtime.reload_now()
    if controls.sort_command is not None:
        direction = view.request_sort(controls.sort_command, current.version)
        if direction:
            st.toast(f"Sorted {direction}", icon="↕️")

    live_board = st.fragment(run_every=runtime.settings.tick_interval)(_render_live_board)
    live_board(runtime)


if __name__ == "__main__":
    main()
