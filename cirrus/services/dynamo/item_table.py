"""Build the item grid shown in the item list.

Column discovery rules:
    - No saved preference: every attribute name seen in any fetched item,
      partition key first, sort key second, the rest sorted by name.
    - Saved preference: the saved order, minus columns no fetched item has.

Widths are measured on the first WIDTH_SAMPLE rows only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from .attributes import Item
from .formatting import MISSING_CELL, format_compact
from .schema_cache import TableSchema

WIDTH_SAMPLE = 10
MIN_COLUMN_WIDTH = 15
MAX_COLUMN_WIDTH = 1000
COLUMN_PADDING = 2


@dataclass(frozen=True)
class Column:
    title: str
    width: int


def column_width(column: str, items: Sequence[Item]) -> int:
    """Width for one column: widest of header and sampled cells, padded and clamped."""
    widest = len(column)
    for item in items[:WIDTH_SAMPLE]:
        if column in item:
            widest = max(widest, len(format_compact(item[column])))
    return min(max(widest + COLUMN_PADDING, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)


def discover_columns(items: Sequence[Item], schema: TableSchema) -> list[str]:
    """All attribute names across ``items``, key columns pinned first."""
    seen: set[str] = set()
    for item in items:
        seen.update(item)

    pinned = [schema.partition_key]
    if schema.sort_key:
        pinned.append(schema.sort_key)

    rest = sorted(seen - set(pinned))
    return pinned + rest


def select_columns(
    items: Sequence[Item],
    schema: TableSchema,
    saved: Sequence[str] | None = None,
) -> list[str]:
    """Column titles to display, honouring a saved preference when present."""
    if saved:
        present: set[str] = set()
        for item in items:
            present.update(item)
        return [col for col in saved if col in present]
    return discover_columns(items, schema)


def build_rows(columns: Sequence[Column], items: Sequence[Item]) -> list[list[str]]:
    rows = []
    for item in items:
        rows.append([
            format_compact(item[col.title]) if col.title in item else MISSING_CELL
            for col in columns
        ])
    return rows


@dataclass
class ItemTable:
    """Scrollable grid with a row cursor."""

    columns: list[Column] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    cursor: int = 0
    height: int = 20
    offset: int = 0

    @property
    def titles(self) -> list[str]:
        return [c.title for c in self.columns]

    def set_height(self, height: int) -> None:
        self.height = max(1, height)
        self._follow_cursor()

    def move(self, delta: int) -> None:
        if not self.rows:
            self.cursor = 0
            return
        self.cursor = min(max(self.cursor + delta, 0), len(self.rows) - 1)
        self._follow_cursor()

    def handle_key(self, key: str) -> bool:
        """Apply a navigation key. Returns True when the key was consumed."""
        if key in ("up", "k"):
            self.move(-1)
        elif key in ("down", "j"):
            self.move(1)
        elif key == "pgup":
            self.move(-self.height)
        elif key == "pgdown":
            self.move(self.height)
        elif key in ("home", "g"):
            self.move(-len(self.rows))
        elif key in ("end", "G"):
            self.move(len(self.rows))
        else:
            return False
        return True

    def _follow_cursor(self) -> None:
        if self.cursor < self.offset:
            self.offset = self.cursor
        elif self.cursor >= self.offset + self.height:
            self.offset = self.cursor - self.height + 1

    def render(self) -> Table:
        table = Table(box=box.SIMPLE_HEAD, header_style="bold", show_edge=False, pad_edge=False)
        for col in self.columns:
            table.add_column(Text(col.title), min_width=col.width, max_width=col.width, no_wrap=True, overflow="ellipsis")
        visible = self.rows[self.offset:self.offset + self.height]
        for i, row in enumerate(visible, start=self.offset):
            style = "bold #ffffaf on #5f00ff" if i == self.cursor else None
            # Cells are item data, never markup.
            table.add_row(*(Text(cell) for cell in row), style=style)
        return table


def build_item_table(
    items: Sequence[Item],
    schema: TableSchema,
    saved_columns: Sequence[str] | None = None,
    height: int = 20,
) -> tuple[ItemTable, list[str]]:
    """Build the grid for ``items`` and report every discovered column.

    Args:
        items: Fetched items (possibly heterogeneous).
        schema: Key schema of the table; key columns are pinned first.
        saved_columns: Saved column-order preference, if any.
        height: Visible row count.

    Returns:
        ``(table, all_columns)`` where ``all_columns`` is the full
        deterministic column set, independent of the saved preference.
    """
    if not items:
        return ItemTable(height=height), []

    titles = select_columns(items, schema, saved_columns)
    columns = [Column(title, column_width(title, items)) for title in titles]
    table = ItemTable(columns=columns, rows=build_rows(columns, items), height=max(1, height))
    return table, discover_columns(items, schema)
