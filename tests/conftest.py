from __future__ import annotations

import os
import sys


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `cirrus/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

import pytest  # noqa: E402

from cirrus.config import ConfigStore  # noqa: E402
from cirrus.services.dynamo.attributes import AttributeValue  # noqa: E402
from cirrus.services.dynamo.schema_cache import TableSchema  # noqa: E402
from cirrus.services.logs.store import LogEvent, LogGroup  # noqa: E402
from cirrus.tui.messages import Task  # noqa: E402


# ═══════════════════════════════════════════════════════════════════════════════
# ISOLATION
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Never read a developer's .env or CIRRUS_* variables."""
    for name in list(os.environ):
        if name.startswith("CIRRUS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


# ═══════════════════════════════════════════════════════════════════════════════
# FAKE COLLABORATORS
# ═══════════════════════════════════════════════════════════════════════════════

class FakeDynamoStore:
    """In-memory stand-in for DynamoStore.

    ``fail_on`` maps a method name to the exception it should raise;
    ``fail_batch`` makes the Nth (1-based) batch delete raise.
    """

    def __init__(self, tables=None, schemas=None, items=None):
        self.table_prefix = ""
        self.tables = list(tables or [])
        self.schemas = dict(schemas or {})
        self.items = {k: list(v) for k, v in (items or {}).items()}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}
        self.fail_batch: int | None = None
        self.batches: list[int] = []

    def _check(self, name):
        if name in self.fail_on:
            raise self.fail_on[name]

    def list_tables(self):
        self.calls.append(("list_tables",))
        self._check("list_tables")
        return list(self.tables)

    def describe_table(self, table):
        self.calls.append(("describe_table", table))
        self._check("describe_table")
        return self.schemas[table]

    def scan(self, table, expression=None):
        self.calls.append(("scan", table, expression))
        self._check("scan")
        return list(self.items.get(table, []))

    def delete_item(self, table, key):
        self.calls.append(("delete_item", table, key))
        self._check("delete_item")
        self.items[table] = [
            item for item in self.items.get(table, [])
            if any(item.get(k) != v for k, v in key.items())
        ]

    def batch_delete_items(self, table, keys):
        from cirrus.errors import TransportError

        self.batches.append(len(keys))
        if self.fail_batch == len(self.batches):
            raise TransportError("throttled")
        return 0


class FakeLogStore:
    """Serves log groups in pages and a fixed list of events per group."""

    def __init__(self, pages=None, events=None):
        self.pages: list[list[str]] = pages or [[]]
        self.events: dict[str, list[LogEvent]] = events or {}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}

    def list_log_groups(self, name_pattern, next_token=None):
        self.calls.append(("list_log_groups", name_pattern, next_token))
        if "list_log_groups" in self.fail_on:
            raise self.fail_on["list_log_groups"]
        index = int(next_token) if next_token else 0
        groups = [LogGroup(name) for name in self.pages[index]]
        more = str(index + 1) if index + 1 < len(self.pages) else None
        return groups, more

    def filter_log_events(self, group, start_ms, end_ms, limit):
        self.calls.append(("filter_log_events", group, start_ms, end_ms, limit))
        if "filter_log_events" in self.fail_on:
            raise self.fail_on["filter_log_events"]
        return list(self.events.get(group, []))


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

def make_item(**attrs) -> dict[str, AttributeValue]:
    """Item from plain Python values: str -> S, int/float -> N, bool -> BOOL."""
    item = {}
    for name, value in attrs.items():
        if isinstance(value, AttributeValue):
            item[name] = value
        elif isinstance(value, bool):
            item[name] = AttributeValue.from_wire({"BOOL": value})
        elif isinstance(value, (int, float)):
            item[name] = AttributeValue.number(value)
        else:
            item[name] = AttributeValue.string(value)
    return item


def pump(model, effects) -> list:
    """Run Task effects inline and feed each result back into ``model``.

    Returns every non-Task effect produced along the way, in order.
    """
    other = []
    pending = list(effects)
    while pending:
        effect = pending.pop(0)
        if isinstance(effect, Task):
            pending.extend(model.update(effect.run()))
        else:
            other.append(effect)
    return other


@pytest.fixture
def item():
    return make_item


@pytest.fixture
def run_effects():
    return pump


@pytest.fixture
def orders_schema():
    return TableSchema(partition_key="pk", sort_key="sk")


@pytest.fixture
def dynamo_store(item, orders_schema):
    return FakeDynamoStore(
        tables=["orders", "users"],
        schemas={
            "orders": orders_schema,
            "users": TableSchema(partition_key="id"),
        },
        items={
            "orders": [
                item(pk="o#1", sk="2024-01-01", status="open", total=10),
                item(pk="o#2", sk="2024-01-02", status="shipped"),
                item(pk="o#3", sk="2024-01-03", note="gift"),
            ],
            "users": [item(id="u1", name="ada")],
        },
    )


@pytest.fixture
def events():
    return [
        LogEvent(1_700_000_000_123, "  START request  \n"),
        LogEvent(1_700_000_001_000, None),
        LogEvent(1_700_000_002_456, "ERROR boom"),
        LogEvent(1_700_000_003_000, "END request"),
    ]


@pytest.fixture
def log_store(events):
    return FakeLogStore(
        pages=[
            ["/aws/lambda/api-dev", "/aws/lambda/worker-dev"],
            ["/aws/lambda/cron-dev", "/aws/lambda/api-prod"],
        ],
        events={
            "/aws/lambda/api-dev": events,
            "/aws/lambda/worker-dev": [LogEvent(1_700_000_000_000, "w")],
        },
    )


@pytest.fixture
def config_store(tmp_path):
    return ConfigStore(tmp_path / "cfg" / "config.json")
