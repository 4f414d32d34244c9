"""Per-table key schema cache.

Eviction policy: none. An entry is written the first time a table is
described and kept for the life of the process; tables are never
re-described, so a key schema change needs a restart. Growth is bounded
by the number of distinct tables opened in one session, which
:meth:`SchemaCache.__len__` exposes.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TableSchema:
    partition_key: str
    sort_key: str = ""


class SchemaCache:
    """Keyed cache of :class:`TableSchema` by table name (never evicts)."""

    def __init__(self):
        self._entries: dict[str, TableSchema] = {}

    def get(self, table: str) -> TableSchema | None:
        return self._entries.get(table)

    def put(self, table: str, schema: TableSchema) -> None:
        # First describe wins; see module docstring.
        self._entries.setdefault(table, schema)

    def __contains__(self, table: object) -> bool:
        return table in self._entries

    def __len__(self) -> int:
        return len(self._entries)
