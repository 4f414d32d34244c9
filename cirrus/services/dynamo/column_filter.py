"""Column picker: choose which columns the item list shows, and in what order."""
from __future__ import annotations

from typing import Sequence

from rich.console import Group
from rich.text import Text


class ColumnFilterEditor:
    def __init__(self, available: Sequence[str], saved: Sequence[str] | None = None):
        if saved:
            # Saved order first, then anything discovered since.
            ordered = [c for c in saved if c in available]
            ordered += [c for c in available if c not in ordered]
            self.selected = {c: c in saved for c in ordered}
        else:
            ordered = list(available)
            self.selected = {c: True for c in ordered}
        self.columns: list[str] = ordered
        self.cursor = 0

    def handle_key(self, key: str) -> None:
        if not self.columns:
            return
        if key in ("up", "k"):
            self.cursor = max(0, self.cursor - 1)
        elif key in ("down", "j"):
            self.cursor = min(len(self.columns) - 1, self.cursor + 1)
        elif key in (" ", "space", "enter"):
            col = self.columns[self.cursor]
            self.selected[col] = not self.selected[col]
        elif key == "a":
            for col in self.columns:
                self.selected[col] = True
        elif key == "n":
            for col in self.columns:
                self.selected[col] = False
        elif key == "K":
            self._swap(-1)
        elif key == "J":
            self._swap(1)

    def _swap(self, step: int) -> None:
        target = self.cursor + step
        if 0 <= target < len(self.columns):
            cols = self.columns
            cols[self.cursor], cols[target] = cols[target], cols[self.cursor]
            self.cursor = target

    def selected_columns(self) -> list[str]:
        return [c for c in self.columns if self.selected[c]]

    def render(self) -> Group:
        parts: list = [
            Text("🔍 Column Filter", style="bold #5f5fff"),
            Text(""),
            Text("Select columns to display:"),
            Text(""),
        ]
        for i, col in enumerate(self.columns):
            cursor = "▶ " if i == self.cursor else "  "
            checkbox = "☑" if self.selected[col] else "☐"
            style = "bold #d75fd7" if i == self.cursor else ""
            parts.append(Text(f"{cursor}{checkbox} {col}", style=style))
        parts.append(Text(""))
        parts.append(Text(
            "↑/↓: Navigate • Space/Enter: Toggle • a: All • n: None • "
            "K/J: Move up/down • s: Save • Esc: Cancel",
            style="dim",
        ))
        return Group(*parts)
