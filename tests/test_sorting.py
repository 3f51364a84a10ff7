import math

import pytest

from conftest import make_row
from opsboard.config import BOARD_TABLE, TABLE_COLUMNS, ColumnSpec, TableSpec
from opsboard.data.models import DUE_COLUMN, Cell
from opsboard.data.sorting import (
    ASCENDING,
    DESCENDING,
    SortCommand,
    SortEngine,
    _cell_value,
    collate,
    sort_by_seconds,
    to_number,
)
from opsboard.data.table import TableModel

REPORT_ID = 2
USER = 3
PRODUCT = 7

PLAIN_TABLE = TableSpec(columns=TABLE_COLUMNS)


def table_of(*rows, segments=1):
    table = TableModel(segments=segments)
    for row in rows:
        table.append(row)
    return table


def ids(table, segment=0):
    return [row.report_id for row in table.segments[segment]]


def test_first_activation_is_descending_by_default():
    table = table_of(make_row(10), make_row(30), make_row(20))
    engine = SortEngine(PLAIN_TABLE)
    assert engine.activate(table, SortCommand(REPORT_ID)) == DESCENDING
    assert ids(table) == [30, 20, 10]
    assert engine.activate(table, SortCommand(REPORT_ID)) == ASCENDING
    assert ids(table) == [10, 20, 30]


def test_ascending_by_default_table_starts_ascending():
    table = table_of(make_row(10), make_row(30), make_row(20))
    engine = SortEngine(BOARD_TABLE)
    assert engine.activate(table, SortCommand(REPORT_ID)) == ASCENDING
    assert ids(table) == [10, 20, 30]
    assert engine.activate(table, SortCommand(REPORT_ID)) == DESCENDING
    assert ids(table) == [30, 20, 10]


@pytest.mark.parametrize("spec", [PLAIN_TABLE, BOARD_TABLE])
@pytest.mark.parametrize("column", [REPORT_ID, USER, DUE_COLUMN])
def test_toggle_returns_to_first_order_after_two_more_activations(spec, column):
    rows = [
        make_row(4, user_name="dora", due=-20),
        make_row(1, user_name="alma", due=500),
        make_row(3, user_name="cyd", due=7),
        make_row(2, user_name="bea", due=9000),
    ]
    table = table_of(*rows)
    engine = SortEngine(spec)
    engine.activate(table, SortCommand(column))
    first = ids(table)
    engine.activate(table, SortCommand(column))
    assert ids(table) == list(reversed(first))
    engine.activate(table, SortCommand(column))
    assert ids(table) == first


@pytest.mark.parametrize("clicks", [1, 2])
def test_null_last_keeps_blank_values_at_the_end(clicks):
    table = table_of(
        make_row(1, user_name=""),
        make_row(2, user_name="bea"),
        make_row(3, user_name=""),
        make_row(4, user_name="alma"),
    )
    engine = SortEngine(TableSpec(columns=TABLE_COLUMNS, null_last=True))
    for _ in range(clicks):
        engine.activate(table, SortCommand(USER))
    order = ids(table)
    assert set(order[-2:]) == {1, 3}
    expected_named = [4, 2] if clicks == 2 else [2, 4]
    assert order[:2] == expected_named


def test_without_null_last_blank_values_follow_the_comparison():
    table = table_of(make_row(1, user_name=""), make_row(2, user_name="5"), make_row(3, user_name="-5"))
    engine = SortEngine(TableSpec(columns=TABLE_COLUMNS, ascending_by_default=True))
    engine.activate(table, SortCommand(USER))
    # Blank text counts as zero in numeric comparison
    assert ids(table) == [3, 1, 2]


def test_positional_override_sorts_on_another_column():
    columns = list(TABLE_COLUMNS)
    columns[0] = ColumnSpec("Status", sort_col=DUE_COLUMN)
    table = table_of(make_row(1, due=300), make_row(2, due=-10), make_row(3, due=40))
    engine = SortEngine(TableSpec(columns=columns, ascending_by_default=True))
    engine.activate(table, SortCommand(0))
    assert ids(table) == [2, 3, 1]


def test_zero_override_falls_back_to_position():
    columns = list(TABLE_COLUMNS)
    columns[REPORT_ID] = ColumnSpec("Report ID", sort_col=0)
    engine = SortEngine(TableSpec(columns=columns))
    assert engine.resolve_column(REPORT_ID) == REPORT_ID


def test_tie_break_column_orders_equal_values():
    table = table_of(
        make_row(1, product_label="Roof", due=900),
        make_row(2, product_label="Wall", due=10),
        make_row(3, product_label="Roof", due=100),
        make_row(4, product_label="Roof", due=500),
    )
    engine = SortEngine(BOARD_TABLE)
    assert BOARD_TABLE.columns[PRODUCT].tie_break == DUE_COLUMN
    engine.activate(table, SortCommand(PRODUCT))
    assert ids(table) == [3, 4, 1, 2]


def test_no_sort_column_is_ignored():
    table = table_of(make_row(2), make_row(1))
    engine = SortEngine(BOARD_TABLE)
    assert engine.activate(table, SortCommand(8)) is None
    assert ids(table) == [2, 1]
    assert engine.state.active is None


def test_activating_another_column_clears_sibling_indicators():
    table = table_of(make_row(2, user_name="b"), make_row(1, user_name="a"))
    engine = SortEngine(PLAIN_TABLE)
    engine.activate(table, SortCommand(REPORT_ID))
    engine.activate(table, SortCommand(USER))
    assert engine.state.indicators == {USER: DESCENDING}
    # The cleared column starts over from its first direction
    assert engine.activate(table, SortCommand(REPORT_ID)) == DESCENDING


def test_each_segment_is_sorted_in_place():
    table = TableModel(segments=2)
    for report_id in (3, 1, 2):
        table.append(make_row(report_id), segment=0)
    for report_id in (9, 7, 8):
        table.append(make_row(report_id), segment=1)
    SortEngine(BOARD_TABLE).activate(table, SortCommand(REPORT_ID))
    assert ids(table, 0) == [1, 2, 3]
    assert ids(table, 1) == [7, 8, 9]


def test_alternate_key_falls_back_to_text_not_primary():
    assert _cell_value(Cell(" shown ", sort="5"), alternate=True) == "shown"
    assert _cell_value(Cell("shown", sort="5", sort_alt="9"), alternate=True) == "9"
    assert _cell_value(Cell("shown", sort="5", sort_alt="9"), alternate=False) == "5"
    assert _cell_value(Cell(" shown "), alternate=False) == "shown"


@pytest.mark.parametrize(
    "text, expected",
    [("", 0.0), ("  12 ", 12.0), ("-3.5", -3.5), ("1e3", 1000.0), ("0x1A", 26.0), ("Infinity", math.inf)],
)
def test_to_number_parses_numeric_text(text, expected):
    assert to_number(text) == expected


@pytest.mark.parametrize("text", ["abc", "12abc", "1_000", "inf", "nan", "01:06:40"])
def test_to_number_rejects_non_numeric_text(text):
    assert math.isnan(to_number(text))


def test_sort_by_seconds_orders_by_stored_due():
    table = table_of(make_row(1, due=50), make_row(2, due=-5), make_row(3, due=None), make_row(4, due=10))
    sort_by_seconds(table, DUE_COLUMN, ascending=True)
    assert ids(table) == [2, 3, 4, 1]
    sort_by_seconds(table, DUE_COLUMN, ascending=False)
    assert ids(table) == [1, 4, 3, 2]


def test_text_sort_ignores_case():
    table = table_of(
        make_row(1, user_name="bea"),
        make_row(2, user_name="Alma"),
        make_row(3, user_name="carl"),
        make_row(4, user_name="Dora"),
    )
    engine = SortEngine(BOARD_TABLE)
    engine.activate(table, SortCommand(USER))
    assert [row.user_name for row in table.segments[0]] == ["Alma", "bea", "carl", "Dora"]
    engine.activate(table, SortCommand(USER))
    assert [row.user_name for row in table.segments[0]] == ["Dora", "carl", "bea", "Alma"]


def test_mixed_numeric_and_text_values_fall_back_to_collation():
    table = table_of(make_row(1, user_name="Zed"), make_row(2, user_name="10"), make_row(3, user_name="ada"))
    SortEngine(BOARD_TABLE).activate(table, SortCommand(USER))
    # Any pair with a non-numeric side compares as text
    assert [row.user_name for row in table.segments[0]] == ["10", "ada", "Zed"]


@pytest.mark.parametrize(
    "x, y, expected",
    [("alma", "Bea", -1), ("Bea", "alma", 1), ("same", "same", 0), ("a", "A", -1), ("Émile", "émile", 1)],
)
def test_collate(x, y, expected):
    assert collate(x, y) == expected


@pytest.mark.parametrize("text", ["١٢", "１２", "٣.٥"])
def test_to_number_rejects_non_ascii_digits(text):
    assert math.isnan(to_number(text))


def test_column_spec_pointing_outside_the_table_is_rejected():
    columns = list(TABLE_COLUMNS)
    columns[0] = ColumnSpec("Status", tie_break=42)
    with pytest.raises(ValueError):
        SortEngine(TableSpec(columns=columns))


def test_out_of_range_activation_leaves_indicators_alone():
    table = table_of(make_row(2), make_row(1))
    engine = SortEngine(BOARD_TABLE)
    engine.activate(table, SortCommand(REPORT_ID))
    with pytest.raises(IndexError):
        engine.activate(table, SortCommand(len(TABLE_COLUMNS)))
    with pytest.raises(IndexError):
        engine.activate(table, SortCommand(-1))
    assert engine.state.indicators == {REPORT_ID: ASCENDING}
    assert ids(table) == [1, 2]


def test_apply_sorts_without_touching_indicators():
    table = table_of(make_row(1), make_row(3), make_row(2))
    engine = SortEngine(BOARD_TABLE)
    engine.apply(table, REPORT_ID, DESCENDING)
    assert ids(table) == [3, 2, 1]
    assert engine.state.active is None
