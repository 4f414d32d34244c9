from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.text import Text

from ...tui.components import (
    HELP_STYLE,
    TIMESTAMP_STYLE,
    centered,
    help_line,
    render_error,
    render_loading,
    selectable,
    title,
)
from .store import LogEvent

if TYPE_CHECKING:
    from .browser import LogBrowser

NO_MATCHES = "No matches found"
NO_EVENTS = "No log events in the selected window"


def format_event(event: LogEvent) -> str | None:
    """``HH:MM:SS.mmm message`` in local time, or None for an empty event."""
    if event.message is None:
        return None
    stamp = datetime.fromtimestamp(event.timestamp / 1000)
    return f"{stamp:%H:%M:%S}.{stamp.microsecond // 1000:03d} {event.message.strip()}"


def render_events(events: list[LogEvent]) -> str:
    lines = (format_event(e) for e in events)
    return "\n".join(line for line in lines if line is not None)


def render(m: LogBrowser) -> RenderableType:
    from .browser import State

    if m.err is not None:
        return render_error(m.err)
    if m.state is State.LOADING:
        return render_loading(m.loading_label)
    if m.state is State.GROUP_LIST:
        return centered(render_group_list(m), m.width, m.height)
    return render_stream(m)


def render_group_list(m: LogBrowser) -> RenderableType:
    parts: list = [title("CloudWatch Log Groups"), Text("")]
    if not m.groups:
        parts.append(Text("No log groups found"))
    for i, group in enumerate(m.groups):
        label = f"{i + 1}. {group.display_name}" if i < 9 else f"   {group.display_name}"
        parts.append(selectable(label, i == m.selected_idx))
    parts.append(Text(""))
    parts.append(help_line("↑/↓: Navigate • Enter/1-9: Open • r: Refresh • q: Back to Menu"))
    return Group(*parts)


def _style_log_line(line: str) -> Text:
    text = Text(line)
    if len(line) > 12 and line[2] == ":" and line[8] == ".":
        text.stylize(TIMESTAMP_STYLE, 0, 12)
    return text


def render_stream(m: LogBrowser) -> RenderableType:
    from .browser import State

    group = m.current_group.display_name if m.current_group else ""
    parts: list = [title(f"📝 {group}")]
    if m.filtered is not None:
        parts.append(Text(f" 🔍 filter: {m.pattern} ", style="bold #000000 on #00ff00"))
    else:
        parts.append(Text(f"Last {m.window_minutes} minutes", style=HELP_STYLE))
    parts.append(Text(""))

    if m.viewport.lines:
        parts.extend(_style_log_line(line) for line in m.viewport.visible_lines())
    else:
        parts.append(Text(NO_EVENTS, style=HELP_STYLE))
    parts.append(Text(""))

    if m.state is State.SEARCH_INPUT:
        parts.append(Text("Search: ") + m.search_input.render())
        parts.append(help_line("Enter: Run (empty clears) • Esc: Cancel"))
    else:
        parts.append(help_line("↑/↓: Scroll • /: Search • c: Clear Filter • r: Reload • 1-9: Switch Group • q: Back"))
    return Group(*parts)
