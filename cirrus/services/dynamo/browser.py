"""Key-value browser: tables -> items -> detail, with filters and deletes.

States and their keys::

    TABLE_LIST      ↑/↓ enter r e q
    LOADING         esc (cancel, back to caller)
    ITEM_LIST       ↑/↓ enter f c r q/esc
    ITEM_DETAIL     ↑/↓ d q/esc
    ITEM_FILTER     editor keys, ctrl+s apply, ctrl+x clear, esc cancel
    COLUMN_FILTER   editor keys, s save, esc cancel
    DELETE_CONFIRM  single: y/enter, n/esc    bulk: type table name, enter, esc
    DELETING        (waits)

Any key not listed is a no-op. A failed request puts an error overlay on
top of the caller state; only enter/esc dismiss it.
"""
from __future__ import annotations

import logging
from enum import Enum

from rich.console import RenderableType

from ...config import ConfigStore, Preferences
from ...errors import CirrusError, PersistenceError
from ...tui.messages import ToastLevel, back_to_menu, toast
from ...tui.widgets import TextInput, Viewport
from ..base import Browser
from . import commands
from .attributes import Item
from .column_filter import ColumnFilterEditor
from .filters import FilterCondition, ItemFilterEditor
from .item_table import ItemTable, build_item_table
from .schema_cache import SchemaCache, TableSchema
from .store import DynamoStore

logger = logging.getLogger(__name__)

# Rows of chrome around the item grid (title, badge, count, header, help).
ITEM_LIST_CHROME = 9
DETAIL_CHROME = 8


class State(str, Enum):
    TABLE_LIST = "table_list"
    LOADING = "loading"
    ITEM_LIST = "item_list"
    ITEM_DETAIL = "item_detail"
    COLUMN_FILTER = "column_filter"
    ITEM_FILTER = "item_filter"
    DELETE_CONFIRM = "delete_confirm"
    DELETING = "deleting"


class DeleteMode(str, Enum):
    SINGLE = "single"
    BULK = "bulk"


class Intent(str, Enum):
    """What the pending item load is for."""

    BROWSE = "browse"
    EMPTY_TABLE = "empty_table"


class DynamoBrowser(Browser):
    name = "dynamodb"

    def __init__(self, store: DynamoStore, config: ConfigStore):
        super().__init__()
        self.store = store
        self.config = config
        self.schemas = SchemaCache()
        self.prefs_error: PersistenceError | None = None
        try:
            self.prefs = config.load()
        except PersistenceError as exc:
            logger.error("preferences unavailable, using defaults: %s", exc)
            self.prefs = Preferences()
            self.prefs_error = exc

        self.state = State.TABLE_LIST
        self.previous_state = State.TABLE_LIST
        self.loading_label = "Loading..."
        self.intent = Intent.BROWSE

        self.tables: list[str] = []
        self.table_idx = 0
        # Index into items of the item being viewed or deleted.
        self.selected_idx = 0
        self.selected_table = ""
        self.items: list[Item] = []
        self.all_columns: list[str] = []
        self.item_table = ItemTable()
        self.active_filters: list[FilterCondition] = []

        self.filter_editor: ItemFilterEditor | None = None
        self.column_editor: ColumnFilterEditor | None = None
        self.detail = Viewport()
        self.delete_mode = DeleteMode.SINGLE
        self.confirm_input = TextInput(placeholder="Type table name to confirm", char_limit=255)
        self.delete_total = 0

    # ═══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    def init(self) -> list:
        effects = self._start_loading(State.TABLE_LIST, "Loading tables...")
        effects.append(commands.load_tables(self.store, self.epoch))
        if self.prefs_error is not None:
            effects.append(toast(f"Preferences unreadable, using defaults: {self.prefs_error}", ToastLevel.ERROR))
            self.prefs_error = None
        return effects

    def on_resize(self) -> None:
        self.item_table.set_height(self.height - ITEM_LIST_CHROME)
        self.detail.set_height(self.height - DETAIL_CHROME)

    @property
    def schema(self) -> TableSchema | None:
        return self.schemas.get(self.selected_table)

    @property
    def selected_item(self) -> Item | None:
        if 0 <= self.selected_idx < len(self.items):
            return self.items[self.selected_idx]
        return None

    def _start_loading(self, caller: State, label: str) -> list:
        self.previous_state = caller
        self.state = State.LOADING
        self.loading_label = label
        self.next_epoch()
        return []

    def _load_items(self, caller: State, intent: Intent = Intent.BROWSE) -> list:
        self.intent = intent
        self._start_loading(caller, f"Scanning {self.selected_table}...")
        filters = self.active_filters if intent is Intent.BROWSE else []
        return [commands.load_items(self.store, self.selected_table, filters, self.epoch)]

    def _open_table(self, intent: Intent) -> list:
        """Describe (once per table) then scan the selected table."""
        self.selected_table = self.tables[self.table_idx]
        self.active_filters = self.prefs.get_filter_conditions(self.selected_table)
        if self.schema is not None:
            return self._load_items(State.TABLE_LIST, intent)
        self.intent = intent
        self._start_loading(State.TABLE_LIST, f"Describing {self.selected_table}...")
        return [commands.load_schema(self.store, self.selected_table, self.epoch)]

    def _rebuild_table(self) -> None:
        schema = self.schema or TableSchema(partition_key="")
        self.item_table, self.all_columns = build_item_table(
            self.items,
            schema,
            self.prefs.get_table_columns(self.selected_table),
            height=self.height - ITEM_LIST_CHROME if self.height else 20,
        )

    def _leave_table(self) -> None:
        self.state = State.TABLE_LIST
        self.selected_table = ""
        self.items = []
        self.all_columns = []
        self.item_table = ItemTable()
        self.active_filters = []

    def _save_prefs(self) -> list:
        """Persist preferences; a failure is reported as an error toast."""
        try:
            self.config.save(self.prefs)
        except PersistenceError as exc:
            logger.error("saving preferences failed: %s", exc)
            return [toast("Failed to save preferences", ToastLevel.ERROR)]
        return []

    # ═══════════════════════════════════════════════════════════════════════════
    # KEYS
    # ═══════════════════════════════════════════════════════════════════════════

    def handle_key(self, key: str) -> list:
        handler = {
            State.TABLE_LIST: self._key_table_list,
            State.LOADING: self._key_loading,
            State.ITEM_LIST: self._key_item_list,
            State.ITEM_DETAIL: self._key_item_detail,
            State.ITEM_FILTER: self._key_item_filter,
            State.COLUMN_FILTER: self._key_column_filter,
            State.DELETE_CONFIRM: self._key_delete_confirm,
        }.get(self.state)
        if handler is None:
            return []
        return handler(key)

    def _key_table_list(self, key: str) -> list:
        if key == "q":
            return [back_to_menu()]
        if key in ("up", "k"):
            self.table_idx = max(0, self.table_idx - 1)
        elif key in ("down", "j"):
            self.table_idx = max(0, min(len(self.tables) - 1, self.table_idx + 1))
        elif key == "enter" and self.tables:
            return self._open_table(Intent.BROWSE)
        elif key == "e" and self.tables:
            return self._open_table(Intent.EMPTY_TABLE)
        elif key == "r":
            self._start_loading(State.TABLE_LIST, "Loading tables...")
            return [commands.load_tables(self.store, self.epoch)]
        return []

    def _key_loading(self, key: str) -> list:
        if key == "esc":
            self.invalidate()
            self.state = self.previous_state
            if self.state is State.TABLE_LIST:
                self._leave_table()
        return []

    def _key_item_list(self, key: str) -> list:
        if key in ("q", "esc"):
            self._leave_table()
            return []
        if key == "enter":
            cursor = self.item_table.cursor
            if 0 <= cursor < len(self.items):
                self.selected_idx = cursor
                self._show_detail()
            return []
        if key == "f":
            self.filter_editor = ItemFilterEditor(self.prefs.get_filter_conditions(self.selected_table))
            self.state = State.ITEM_FILTER
            return []
        if key == "c":
            self.column_editor = ColumnFilterEditor(self.all_columns, self.prefs.get_table_columns(self.selected_table))
            self.state = State.COLUMN_FILTER
            return []
        if key == "r":
            return self._load_items(State.ITEM_LIST)
        self.item_table.handle_key(key)
        return []

    def _show_detail(self) -> None:
        from .view import render_item_detail_text

        self.detail.set_content(render_item_detail_text(self))
        self.detail.goto_top()
        self.state = State.ITEM_DETAIL

    def _key_item_detail(self, key: str) -> list:
        if key in ("q", "esc"):
            self.state = State.ITEM_LIST
        elif key in ("d", "delete"):
            self.delete_mode = DeleteMode.SINGLE
            self.state = State.DELETE_CONFIRM
        else:
            self.detail.handle_key(key)
        return []

    def _key_item_filter(self, key: str) -> list:
        editor = self.filter_editor
        if editor is None or key == "esc":
            self.filter_editor = None
            self.state = State.ITEM_LIST
            return []
        if key == "ctrl+s":
            return self._apply_filters(list(editor.conditions))
        if key == "ctrl+x":
            return self._apply_filters([])
        editor.handle_key(key)
        return []

    def _apply_filters(self, conditions: list[FilterCondition]) -> list:
        previous = self.prefs.get_filter_conditions(self.selected_table)
        self.prefs.set_filter_conditions(self.selected_table, conditions)
        failed = self._save_prefs()
        if failed:
            # Keep the editor open; server filters must match what is saved.
            self.prefs.set_filter_conditions(self.selected_table, previous)
            return failed
        self.active_filters = conditions
        self.filter_editor = None
        return self._load_items(State.ITEM_LIST)

    def _key_column_filter(self, key: str) -> list:
        editor = self.column_editor
        if editor is None or key == "esc":
            self.column_editor = None
            self.state = State.ITEM_LIST
            return []
        if key == "s":
            self.prefs.set_table_columns(self.selected_table, editor.selected_columns())
            effects = self._save_prefs()
            self._rebuild_table()
            self.column_editor = None
            self.state = State.ITEM_LIST
            if not effects:
                effects = [toast("Column preferences saved", ToastLevel.SUCCESS)]
            return effects
        editor.handle_key(key)
        return []

    def _key_delete_confirm(self, key: str) -> list:
        if self.delete_mode is DeleteMode.SINGLE:
            if key in ("y", "enter"):
                item = self.selected_item
                if item is None or self.schema is None:
                    self.state = State.ITEM_LIST
                    return []
                self.state = State.DELETING
                self.delete_total = 1
                return [commands.delete_item(self.store, self.selected_table, self.schema, item, self.next_epoch())]
            if key in ("n", "esc"):
                self.state = State.ITEM_DETAIL
            return []

        if key == "esc":
            self.confirm_input.set_value("")
            self._leave_table()
            return []
        if key == "enter":
            if self.confirm_input.value != self.selected_table:
                # Mismatch is rejected without a message; retype.
                self.confirm_input.set_value("")
                return []
            self.confirm_input.set_value("")
            self.state = State.DELETING
            self.delete_total = len(self.items)
            return [commands.empty_table(self.store, self.selected_table, self.schema, self.items, self.next_epoch())]
        self.confirm_input.handle_key(key)
        return []

    # ═══════════════════════════════════════════════════════════════════════════
    # RESULTS
    # ═══════════════════════════════════════════════════════════════════════════

    def handle_result(self, msg) -> list:
        if isinstance(msg, commands.TablesLoaded):
            return self._on_tables(msg)
        if isinstance(msg, commands.SchemaLoaded):
            return self._on_schema(msg)
        if isinstance(msg, commands.ItemsLoaded):
            return self._on_items(msg)
        if isinstance(msg, commands.ItemDeleted):
            return self._on_item_deleted(msg)
        if isinstance(msg, commands.DeleteComplete):
            return self._on_delete_complete(msg)
        return []

    def _fail_back(self, error: CirrusError) -> list:
        self.fail(error)
        self.state = self.previous_state
        if self.state is State.TABLE_LIST:
            self._leave_table()
        return []

    def _on_tables(self, msg: commands.TablesLoaded) -> list:
        if msg.err is not None:
            self.fail(msg.err)
        else:
            self.tables = msg.tables
        self.table_idx = 0
        self.state = State.TABLE_LIST
        return []

    def _on_schema(self, msg: commands.SchemaLoaded) -> list:
        if msg.err is not None:
            return self._fail_back(msg.err)
        self.schemas.put(msg.table, msg.schema)
        return self._load_items(self.previous_state, self.intent)

    def _on_items(self, msg: commands.ItemsLoaded) -> list:
        if msg.err is not None:
            return self._fail_back(msg.err)
        self.items = msg.items
        self.selected_idx = 0
        if self.intent is Intent.EMPTY_TABLE:
            self.intent = Intent.BROWSE
            self.delete_mode = DeleteMode.BULK
            self.confirm_input.set_value("")
            self.confirm_input.focus()
            self.state = State.DELETE_CONFIRM
            return []
        self._rebuild_table()
        self.state = State.ITEM_LIST
        return []

    def _on_item_deleted(self, msg: commands.ItemDeleted) -> list:
        if msg.err is not None:
            self.fail(msg.err)
            self.state = State.ITEM_DETAIL
            return []
        effects = [toast("Item deleted", ToastLevel.SUCCESS)]
        effects += self._load_items(State.ITEM_LIST)
        return effects

    def _on_delete_complete(self, msg: commands.DeleteComplete) -> list:
        self._leave_table()
        if msg.err is not None:
            self.fail(msg.err)
            return []
        return [toast(f"Deleted {msg.deleted} items from {msg.table}", ToastLevel.SUCCESS)]

    # ═══════════════════════════════════════════════════════════════════════════
    # VIEW
    # ═══════════════════════════════════════════════════════════════════════════

    def view(self) -> RenderableType:
        from .view import render

        return render(self)
