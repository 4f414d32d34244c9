"""Small stateful widgets driven by normalized key names."""
from __future__ import annotations

from rich.text import Text


class TextInput:
    """Single-line text field.

    Printable single characters are appended, ``backspace`` deletes the last
    one and ``ctrl+u`` clears the field. Other keys are left to the caller.
    """

    def __init__(self, placeholder: str = "", char_limit: int = 0, focused: bool = False):
        self.placeholder = placeholder
        self.char_limit = char_limit
        self.focused = focused
        self.value = ""

    def focus(self) -> None:
        self.focused = True

    def blur(self) -> None:
        self.focused = False

    def set_value(self, value: str) -> None:
        self.value = value if not self.char_limit else value[: self.char_limit]

    def handle_key(self, key: str) -> bool:
        """Edit the value. Returns True when the key was consumed."""
        if key == "backspace":
            self.value = self.value[:-1]
            return True
        if key == "ctrl+u":
            self.value = ""
            return True
        if key == "space":
            key = " "
        if len(key) == 1 and key.isprintable():
            if self.char_limit and len(self.value) >= self.char_limit:
                return True
            self.value += key
            return True
        return False

    def render(self) -> Text:
        if not self.value and self.placeholder:
            text = Text(self.placeholder, style="dim")
        else:
            text = Text(self.value)
        if self.focused:
            text = Text("> ", style="bold #00b4d8") + text + Text("█", style="#00b4d8")
        else:
            text = Text("  ") + text
        return text


class Viewport:
    """Scrollable window over a block of text lines."""

    SCROLL_KEYS = frozenset({
        "up", "down", "k", "j",
        "pgup", "pgdown",
        "home", "end",
        "ctrl+u", "ctrl+d",
        "ctrl+b", "ctrl+f",
    })

    def __init__(self, height: int = 20):
        self.height = max(1, height)
        self.lines: list[str] = []
        self.offset = 0

    @property
    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    def set_content(self, content: str) -> None:
        self.lines = content.splitlines()
        self.offset = min(self.offset, self.max_offset)

    def set_height(self, height: int) -> None:
        self.height = max(1, height)
        self.offset = min(self.offset, self.max_offset)

    def scroll(self, delta: int) -> None:
        self.offset = min(max(self.offset + delta, 0), self.max_offset)

    def goto_top(self) -> None:
        self.offset = 0

    def goto_bottom(self) -> None:
        self.offset = self.max_offset

    def handle_key(self, key: str) -> bool:
        if key not in self.SCROLL_KEYS:
            return False
        half = max(1, self.height // 2)
        if key in ("up", "k"):
            self.scroll(-1)
        elif key in ("down", "j"):
            self.scroll(1)
        elif key in ("pgup", "ctrl+b"):
            self.scroll(-self.height)
        elif key in ("pgdown", "ctrl+f"):
            self.scroll(self.height)
        elif key == "ctrl+u":
            self.scroll(-half)
        elif key == "ctrl+d":
            self.scroll(half)
        elif key == "home":
            self.goto_top()
        elif key == "end":
            self.goto_bottom()
        return True

    def visible_lines(self) -> list[str]:
        return self.lines[self.offset:self.offset + self.height]

    def view(self) -> str:
        return "\n".join(self.visible_lines())
