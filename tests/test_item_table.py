"""Unit tests for column discovery, widths and the item grid."""
from __future__ import annotations

from io import StringIO

from rich.console import Console

from cirrus.services.dynamo.item_table import (
    ItemTable,
    build_item_table,
    column_width,
    discover_columns,
    select_columns,
)
from cirrus.services.dynamo.schema_cache import SchemaCache, TableSchema


def test_column_width_pads_widest_cell(item):
    rows = [item(id="x" * 20), item(id="short")]

    assert column_width("id", rows) == 22


def test_column_width_floor_and_ceiling(item):
    assert column_width("x", []) == 15
    assert column_width("id", [item(id="y" * 60)]) == 62


def test_column_width_only_samples_first_ten_rows(item):
    rows = [item(id="a")] * 10 + [item(id="z" * 40)]

    assert column_width("id", rows) == 15


def test_key_columns_pinned_then_sorted(item):
    schema = TableSchema(partition_key="pk", sort_key="sk")
    rows = [item(zeta=1, sk="s", pk="p"), item(pk="q", extra="e", alpha="a")]

    assert discover_columns(rows, schema) == ["pk", "sk", "alpha", "extra", "zeta"]


def test_inferred_order_for_pk_sk_extra(item):
    schema = TableSchema(partition_key="pk", sort_key="sk")

    assert select_columns([item(extra=1, sk="s", pk="p")], schema) == ["pk", "sk", "extra"]


def test_saved_preference_keeps_order_and_drops_absent(item):
    schema = TableSchema(partition_key="pk")
    rows = [item(pk="a", b=1), item(pk="b", c=2)]

    assert select_columns(rows, schema, ["c", "gone", "pk"]) == ["c", "pk"]


def test_build_item_table_rows_and_all_columns(item, orders_schema):
    rows = [item(pk="a", sk="1", status="open"), item(pk="b", sk="2")]

    table, all_columns = build_item_table(rows, orders_schema, saved_columns=["status"])

    assert table.titles == ["status"]
    assert table.rows == [["open"], ["-"]]
    assert all_columns == ["pk", "sk", "status"]


def test_build_item_table_empty(orders_schema):
    table, all_columns = build_item_table([], orders_schema)

    assert table.rows == []
    assert all_columns == []


def test_cursor_navigation_scrolls_window():
    table = ItemTable(rows=[[str(i)] for i in range(10)], height=3)

    table.handle_key("down")
    table.handle_key("down")
    table.handle_key("down")
    assert (table.cursor, table.offset) == (3, 1)

    table.handle_key("end")
    assert (table.cursor, table.offset) == (9, 7)

    table.handle_key("home")
    assert (table.cursor, table.offset) == (0, 0)

    assert table.handle_key("x") is False


def test_render_shows_visible_rows(item, orders_schema):
    rows = [item(pk=f"k{i}", sk="s") for i in range(5)]
    table, _ = build_item_table(rows, orders_schema, height=2)

    out = StringIO()
    Console(file=out, width=120).print(table.render())

    assert "k0" in out.getvalue()
    assert "k1" in out.getvalue()
    assert "k4" not in out.getvalue()


def test_schema_cache_first_put_wins():
    cache = SchemaCache()
    cache.put("t", TableSchema("a"))
    cache.put("t", TableSchema("b"))

    assert cache.get("t") == TableSchema("a")
    assert "t" in cache
    assert len(cache) == 1
    assert cache.get("other") is None


def test_render_shows_markup_like_values_verbatim(item):
    rows = [item(pk="a", note="see [/x] here"), item(pk="b", note="[red]secret")]
    table, _ = build_item_table(rows, TableSchema("pk"))

    out = StringIO()
    Console(file=out, width=120).print(table.render())

    assert "see [/x] here" in out.getvalue()
    assert "[red]secret" in out.getvalue()


def test_render_shows_markup_like_column_names_verbatim(item):
    table, _ = build_item_table([item(pk="a", **{"[b]tag": "v"})], TableSchema("pk"))

    out = StringIO()
    Console(file=out, width=120).print(table.render())

    assert "[b]tag" in out.getvalue()
