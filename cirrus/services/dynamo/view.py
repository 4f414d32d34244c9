from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from ...tui.components import (
    HELP_STYLE,
    KEY_STYLE,
    TYPE_STYLE,
    centered,
    help_line,
    render_error,
    render_loading,
    selectable,
    title,
)
from .formatting import format_compact, format_detailed
from .store import item_key

if TYPE_CHECKING:
    from .browser import DynamoBrowser

PARTITION_MARK = " 🔑"
SORT_MARK = " 🗝"


def render(m: DynamoBrowser) -> RenderableType:
    from .browser import DeleteMode, State

    if m.err is not None:
        return render_error(m.err)

    if m.state is State.LOADING:
        return render_loading(m.loading_label)
    if m.state is State.TABLE_LIST:
        return centered(render_table_list(m), m.width, m.height)
    if m.state is State.ITEM_LIST:
        return render_item_list(m)
    if m.state is State.ITEM_DETAIL:
        return render_item_detail(m)
    if m.state is State.COLUMN_FILTER and m.column_editor is not None:
        return m.column_editor.render()
    if m.state is State.ITEM_FILTER and m.filter_editor is not None:
        return m.filter_editor.render()
    if m.state is State.DELETE_CONFIRM:
        if m.delete_mode is DeleteMode.BULK:
            return render_bulk_confirm(m)
        return render_single_confirm(m)
    if m.state is State.DELETING:
        return render_deleting(m)
    return Text("")


def render_table_list(m: DynamoBrowser) -> RenderableType:
    parts: list = [title("DynamoDB Tables"), Text("")]
    if not m.tables:
        parts.append(Text("No tables found"))
    for i, table in enumerate(m.tables):
        parts.append(selectable(table, i == m.table_idx))
    parts.append(Text(""))
    parts.append(help_line("↑/↓: Navigate • Enter: Select • r: Refresh • e: Empty Table • q: Back to Menu"))
    return Group(*parts)


def render_item_list(m: DynamoBrowser) -> RenderableType:
    parts: list = [title(f"Items in {m.selected_table}")]

    if m.active_filters:
        badge = Text(f" 🔍 {len(m.active_filters)} filter(s) active ", style="bold #000000 on #00ff00")
        detail = Text(" " + " AND ".join(c.describe() for c in m.active_filters), style=HELP_STYLE)
        parts.append(badge + detail)

    parts.append(Text(f"Total items: {len(m.items)}"))
    parts.append(Text(""))
    if m.items:
        parts.append(m.item_table.render())
    else:
        parts.append(Text("No items found"))
    parts.append(Text(""))

    help_text = "↑/↓: Navigate • Enter: View Details • c: Column Filter • "
    help_text += "f: Edit Filters • " if m.active_filters else "f: Add Filters • "
    help_text += "r: Refresh • q: Back"
    parts.append(help_line(help_text))
    return Group(*parts)


def render_item_detail_text(m: DynamoBrowser) -> str:
    """Plain-text body of the detail view (fed to the scroll viewport)."""
    item = m.selected_item
    if item is None:
        return "Invalid item selection"

    schema = m.schema
    lines = []
    for name in sorted(item):
        label = name
        if schema is not None and name == schema.partition_key:
            label += PARTITION_MARK
        elif schema is not None and schema.sort_key and name == schema.sort_key:
            label += SORT_MARK
        lines.append(label)
        lines.append(format_detailed(item[name], 1))
        lines.append("")
    return "\n".join(lines)


def _style_detail_line(line: str) -> Text:
    if line and not line.startswith(" "):
        return Text(line, style=KEY_STYLE)
    text = Text(line)
    text.highlight_regex(r"\([A-Z][A-Za-z ]*(?: - \d+ [a-z]+)?\)", TYPE_STYLE)
    return text


def render_item_detail(m: DynamoBrowser) -> RenderableType:
    body = Group(*(_style_detail_line(line) for line in m.detail.visible_lines()))
    parts: list = [
        title(f"📋 Item Details - {m.selected_table}"),
        Text(""),
        body,
        Text(""),
        help_line("↑/↓: Scroll • d: Delete • Esc: Back to List"),
    ]
    return Panel(Group(*parts), border_style="#5f5fff", padding=(1, 2))


def render_single_confirm(m: DynamoBrowser) -> RenderableType:
    warning = Text("⚠️  Delete this item?", style="bold #ff0000")
    key_text = ""
    item = m.selected_item
    if item is not None and m.schema is not None:
        key_text = ", ".join(f"{k}={format_compact(v)}" for k, v in item_key(item, m.schema).items())
    parts = [
        warning,
        Text(""),
        Text(f"Table: {m.selected_table}"),
        Text(f"Key:   {key_text}"),
        Text(""),
        help_line("y/Enter: Confirm • n/Esc: Cancel"),
    ]
    return Panel.fit(Group(*parts), border_style="red", title="Confirm delete")


def render_bulk_confirm(m: DynamoBrowser) -> RenderableType:
    info = "#626262"
    parts = [
        Text("⚠️  EMPTY TABLE", style="bold #ff0000"),
        Text(""),
        Text(f"You are about to delete ALL {len(m.items)} items from:", style=info),
        Text(""),
        Text(m.selected_table, style="bold #0000ff"),
        Text(""),
        Text("THIS ACTION CANNOT BE UNDONE!", style="bold #ff0000"),
        Text(""),
        Text("Type the table name to confirm:", style=info),
        Text(""),
        m.confirm_input.render(),
        Text(""),
        Text("Enter", style="bold #ff5faf") + Text(": Confirm deletion • ", style=info)
        + Text("Esc", style="bold #ff5faf") + Text(": Cancel", style=info),
    ]
    return Group(*parts)


def render_deleting(m: DynamoBrowser) -> RenderableType:
    return Group(
        Text("🗑️  Deleting Items...", style="bold #0000ff"),
        Text(""),
        Text(f"Deleting {m.delete_total} items from {m.selected_table}", style="#626262"),
        Text(""),
        Text("⏳ Please wait..."),
    )
