"""Log browser: groups -> recent events, with local text search.

States and their keys::

    GROUP_LIST    ↑/↓ enter r 1-9 q
    LOADING       esc (cancel, back to caller)
    STREAM        scroll keys, / search, c clear, r reload, 1-9 switch group, q/esc
    SEARCH_INPUT  text, enter run, esc cancel
"""
from __future__ import annotations

import logging
from enum import Enum

from rich.console import RenderableType

from ...errors import CirrusError
from ...tui.messages import back_to_menu
from ...tui.widgets import TextInput, Viewport
from ..base import Browser
from . import commands
from .store import LogGroup, LogStore
from .view import NO_MATCHES, render, render_events

logger = logging.getLogger(__name__)

# Title, group, filter badge, blank, blank, help.
STREAM_CHROME = 6
DIGIT_KEYS = "123456789"


def _is_digit(key: str) -> bool:
    return len(key) == 1 and key in DIGIT_KEYS


class State(str, Enum):
    GROUP_LIST = "group_list"
    LOADING = "loading"
    STREAM = "stream"
    SEARCH_INPUT = "search_input"


class LogBrowser(Browser):
    name = "logs"

    def __init__(
        self,
        store: LogStore,
        name_pattern: str = "",
        env: str = "",
        window_minutes: int = 10,
        event_limit: int = 500,
        search_tool: str = "rg",
    ):
        super().__init__()
        self.store = store
        self.name_pattern = name_pattern
        self.env = env
        self.window_minutes = window_minutes
        self.event_limit = event_limit
        self.search_tool = search_tool

        self.state = State.GROUP_LIST
        self.previous_state = State.GROUP_LIST
        self.loading_label = "Loading..."

        self.groups: list[LogGroup] = []
        self.selected_idx = 0
        self.current_group: LogGroup | None = None
        self.pending_idx = 0

        # Text of the last fetch; search always runs over this.
        self.unfiltered = ""
        self.filtered: str | None = None
        self.pattern = ""
        self.viewport = Viewport()
        self.search_input = TextInput(placeholder="Search pattern (regex)", char_limit=256)

    def init(self) -> list:
        return self._load_groups(State.GROUP_LIST)

    def on_resize(self) -> None:
        self.viewport.set_height(self.height - STREAM_CHROME)

    # ─── helpers ───────────────────────────────────────────────────────────────

    def _start_loading(self, caller: State, label: str) -> None:
        self.previous_state = caller
        self.state = State.LOADING
        self.loading_label = label
        self.next_epoch()

    def _load_groups(self, caller: State) -> list:
        self._start_loading(caller, "Loading log groups...")
        return [commands.load_groups(self.store, self.name_pattern, self.env, self.epoch)]

    def _open_group(self, idx: int, caller: State) -> list:
        if not 0 <= idx < len(self.groups):
            return []
        # The stream keeps showing the old group until the fetch lands.
        self.pending_idx = idx
        group = self.groups[idx]
        self._start_loading(caller, f"Fetching {group.display_name}...")
        return [commands.load_events(
            self.store,
            group.name,
            self.window_minutes,
            self.event_limit,
            self.epoch,
        )]

    def _show(self, text: str) -> None:
        self.viewport.set_content(text)

    def _clear_filter(self) -> None:
        self.filtered = None
        self.pattern = ""
        self._show(self.unfiltered)
        self.viewport.goto_bottom()

    def _leave_stream(self) -> None:
        self.state = State.GROUP_LIST
        self.current_group = None
        self.unfiltered = ""
        self.filtered = None
        self.pattern = ""
        self.viewport.set_content("")
        self.viewport.goto_top()

    # ═══════════════════════════════════════════════════════════════════════════
    # KEYS
    # ═══════════════════════════════════════════════════════════════════════════

    def handle_key(self, key: str) -> list:
        if self.state is State.GROUP_LIST:
            return self._key_group_list(key)
        if self.state is State.LOADING:
            return self._key_loading(key)
        if self.state is State.STREAM:
            return self._key_stream(key)
        if self.state is State.SEARCH_INPUT:
            return self._key_search(key)
        return []

    def _key_group_list(self, key: str) -> list:
        if key == "q":
            return [back_to_menu()]
        if key in ("up", "k"):
            self.selected_idx = max(0, self.selected_idx - 1)
        elif key in ("down", "j"):
            self.selected_idx = max(0, min(len(self.groups) - 1, self.selected_idx + 1))
        elif key == "enter":
            return self._open_group(self.selected_idx, State.GROUP_LIST)
        elif key == "r":
            return self._load_groups(State.GROUP_LIST)
        elif _is_digit(key):
            return self._open_group(int(key) - 1, State.GROUP_LIST)
        return []

    def _key_loading(self, key: str) -> list:
        if key == "esc":
            self.invalidate()
            self.state = self.previous_state
            if self.state is State.GROUP_LIST:
                self._leave_stream()
        return []

    def _key_stream(self, key: str) -> list:
        if key in ("q", "esc"):
            self._leave_stream()
            return []
        if key == "/":
            self.search_input.set_value(self.pattern)
            self.search_input.focus()
            self.state = State.SEARCH_INPUT
            return []
        if key == "c":
            self._clear_filter()
            return []
        if key == "r":
            return self._open_group(self.selected_idx, State.STREAM)
        if _is_digit(key):
            return self._open_group(int(key) - 1, State.STREAM)
        self.viewport.handle_key(key)
        return []

    def _key_search(self, key: str) -> list:
        if key == "esc":
            self.search_input.blur()
            self.state = State.STREAM
            return []
        if key == "enter":
            pattern = self.search_input.value.strip()
            self.search_input.blur()
            if not pattern:
                self._clear_filter()
                self.state = State.STREAM
                return []
            self._start_loading(State.STREAM, f"Searching for {pattern!r}...")
            return [commands.run_search(self.search_tool, pattern, self.unfiltered, self.epoch)]
        self.search_input.handle_key(key)
        return []

    # ═══════════════════════════════════════════════════════════════════════════
    # RESULTS
    # ═══════════════════════════════════════════════════════════════════════════

    def handle_result(self, msg) -> list:
        if isinstance(msg, commands.LogGroupsLoaded):
            return self._on_groups(msg)
        if isinstance(msg, commands.LogEventsLoaded):
            return self._on_events(msg)
        if isinstance(msg, commands.SearchCompleted):
            return self._on_search(msg)
        return []

    def _fail_back(self, error: CirrusError) -> list:
        self.fail(error)
        self.state = self.previous_state
        if self.state is State.GROUP_LIST:
            self._leave_stream()
        return []

    def _on_groups(self, msg: commands.LogGroupsLoaded) -> list:
        if msg.err is not None:
            self.fail(msg.err)
        else:
            self.groups = msg.groups
        self.selected_idx = 0
        self.state = State.GROUP_LIST
        return []

    def _on_events(self, msg: commands.LogEventsLoaded) -> list:
        if msg.err is not None:
            return self._fail_back(msg.err)
        self.selected_idx = self.pending_idx
        self.current_group = self.groups[self.pending_idx]
        self.unfiltered = render_events(msg.events)
        self.filtered = None
        self.pattern = ""
        self._show(self.unfiltered)
        self.viewport.goto_bottom()
        self.state = State.STREAM
        return []

    def _on_search(self, msg: commands.SearchCompleted) -> list:
        self.state = State.STREAM
        if msg.err is not None:
            self.fail(msg.err)
            return []
        self.pattern = msg.pattern
        self.filtered = msg.output.rstrip("\n")
        self._show(self.filtered or NO_MATCHES)
        self.viewport.goto_top()
        return []

    def view(self) -> RenderableType:
        return render(self)
