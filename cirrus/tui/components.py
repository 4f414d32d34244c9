"""Reusable rendering pieces for the TUI."""
from __future__ import annotations

from rich.align import Align
from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from .messages import ToastLevel

# ═══════════════════════════════════════════════════════════════════════════════
# BRAND STYLING
# ═══════════════════════════════════════════════════════════════════════════════

ACCENT = "#5f5fff"
TITLE_STYLE = f"bold {ACCENT}"
SELECTED_STYLE = "bold #d75fd7"
HELP_STYLE = "#626262"
ERROR_STYLE = "bold #ff0000"
KEY_STYLE = "bold #5fd7d7"
TYPE_STYLE = "italic #626262"
TIMESTAMP_STYLE = "#626262"

_TOAST_STYLES = {
    ToastLevel.INFO: ("ℹ️", "bold #ffffd7 on #5f5fd7"),
    ToastLevel.SUCCESS: ("✅", "bold #ffffd7 on #00d787"),
    ToastLevel.WARNING: ("⚠️", "bold #000000 on #ffaf00"),
    ToastLevel.ERROR: ("❌", "bold #ffffd7 on #ff0000"),
}


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def title(text: str) -> Text:
    return Text(text, style=TITLE_STYLE)


def help_line(text: str) -> Text:
    return Text(text, style=HELP_STYLE)


def selectable(label: str | Text, selected: bool) -> Text:
    """List row with the ``▶`` cursor marker."""
    body = label if isinstance(label, Text) else Text(label)
    if selected:
        row = Text("▶ ") + body
        row.stylize(SELECTED_STYLE)
        return row
    return Text("  ") + body


def centered(content: RenderableType, width: int, height: int) -> RenderableType:
    """Center ``content`` in a ``width`` x ``height`` area."""
    if width <= 0 or height <= 0:
        return content
    return Align.center(content, vertical="middle", width=width, height=height)


def render_error(error: BaseException | str) -> Panel:
    """Blocking error overlay body."""
    content = Text("❌ Error", style=ERROR_STYLE)
    content.append("\n\n")
    content.append(str(error))
    content.append("\n\n")
    content.append("Press Enter or Esc to continue", style=HELP_STYLE)
    return Panel.fit(content, border_style="red", title="Error")


def render_loading(label: str = "Loading...") -> Text:
    return Text(f"⏳ {label}", style="bold #5fd7d7")


def render_toast(message: str, level: ToastLevel) -> Text:
    icon, style = _TOAST_STYLES[level]
    return Text(f"  {icon} {message}  ", style=style)


def toast_left_padding(width: int, toast_width: int) -> int:
    return max(0, (width - toast_width) // 2)

