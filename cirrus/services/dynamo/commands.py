"""Async commands for the key-value browser and the messages they produce.

Each builder returns a :class:`~cirrus.tui.messages.Task`; the task body
runs on a worker thread and returns exactly one message tagged with the
epoch it was issued under.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ...errors import BulkDeleteError, CirrusError, TransportError
from ...tui.messages import Task
from .attributes import Item
from .filters import FilterCondition, build_filter_expression
from .schema_cache import TableSchema
from .store import BATCH_WRITE_LIMIT, DynamoStore, item_key

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TablesLoaded:
    epoch: int
    tables: list[str] = field(default_factory=list)
    err: CirrusError | None = None


@dataclass(frozen=True)
class SchemaLoaded:
    epoch: int
    table: str
    schema: TableSchema | None = None
    err: CirrusError | None = None


@dataclass(frozen=True)
class ItemsLoaded:
    epoch: int
    table: str
    items: list[Item] = field(default_factory=list)
    err: CirrusError | None = None


@dataclass(frozen=True)
class ItemDeleted:
    epoch: int
    table: str
    err: CirrusError | None = None


@dataclass(frozen=True)
class DeleteComplete:
    epoch: int
    table: str
    deleted: int
    total: int
    err: CirrusError | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# BULK DELETE
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DeleteResult:
    deleted: int
    error: CirrusError | None = None


def delete_all_items(
    store: DynamoStore,
    table: str,
    schema: TableSchema,
    items: list[Item],
    batch_size: int = BATCH_WRITE_LIMIT,
) -> DeleteResult:
    """Delete ``items`` in sequential batches.

    Stops at the first failing batch and reports how many items were
    deleted before it. A failed batch is not retried; unprocessed keys
    reported by the service count as a failure.
    """
    deleted = 0
    total = len(items)
    for start in range(0, total, batch_size):
        batch = items[start:start + batch_size]
        keys = [item_key(item, schema) for item in batch]
        try:
            unprocessed = store.batch_delete_items(table, keys)
        except TransportError as exc:
            return DeleteResult(deleted, BulkDeleteError(str(exc), deleted, total))
        deleted += len(batch) - unprocessed
        if unprocessed:
            error = BulkDeleteError(f"{unprocessed} keys left unprocessed", deleted, total)
            return DeleteResult(deleted, error)
    return DeleteResult(deleted)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════

def load_tables(store: DynamoStore, epoch: int) -> Task:
    def run() -> TablesLoaded:
        logger.debug("listing tables (prefix=%r)", store.table_prefix)
        try:
            return TablesLoaded(epoch, tables=store.list_tables())
        except CirrusError as exc:
            return TablesLoaded(epoch, err=exc)

    return Task(run, name="list_tables")


def load_schema(store: DynamoStore, table: str, epoch: int) -> Task:
    def run() -> SchemaLoaded:
        logger.debug("describing %s", table)
        try:
            return SchemaLoaded(epoch, table, schema=store.describe_table(table))
        except CirrusError as exc:
            return SchemaLoaded(epoch, table, err=exc)

    return Task(run, name="describe_table")


def load_items(store: DynamoStore, table: str, conditions: list[FilterCondition], epoch: int) -> Task:
    # Snapshot now: the browser may edit its list before the worker runs.
    expression = build_filter_expression(list(conditions))

    def run() -> ItemsLoaded:
        logger.debug("scanning %s (filter=%r)", table, expression.expression)
        try:
            return ItemsLoaded(epoch, table, items=store.scan(table, expression))
        except CirrusError as exc:
            return ItemsLoaded(epoch, table, err=exc)

    return Task(run, name="scan")


def delete_item(store: DynamoStore, table: str, schema: TableSchema, item: Item, epoch: int) -> Task:
    key = item_key(item, schema)

    def run() -> ItemDeleted:
        logger.debug("deleting %r from %s", key, table)
        try:
            store.delete_item(table, key)
        except CirrusError as exc:
            return ItemDeleted(epoch, table, err=exc)
        return ItemDeleted(epoch, table)

    return Task(run, name="delete_item")


def empty_table(store: DynamoStore, table: str, schema: TableSchema, items: list[Item], epoch: int) -> Task:
    snapshot = list(items)

    def run() -> DeleteComplete:
        logger.info("emptying %s (%d items)", table, len(snapshot))
        result = delete_all_items(store, table, schema, snapshot)
        return DeleteComplete(epoch, table, result.deleted, len(snapshot), err=result.error)

    return Task(run, name="empty_table")
