"""Async commands for the log browser and the messages they produce."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from ...errors import CirrusError
from ...tui.messages import Task
from .search import search_text
from .store import LogEvent, LogGroup, LogStore, list_all_log_groups

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LogGroupsLoaded:
    epoch: int
    groups: list[LogGroup] = field(default_factory=list)
    err: CirrusError | None = None


@dataclass(frozen=True)
class LogEventsLoaded:
    epoch: int
    group: str
    events: list[LogEvent] = field(default_factory=list)
    err: CirrusError | None = None


@dataclass(frozen=True)
class SearchCompleted:
    epoch: int
    pattern: str
    output: str = ""
    err: CirrusError | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════

def load_groups(store: LogStore, name_pattern: str, env: str, epoch: int) -> Task:
    def run() -> LogGroupsLoaded:
        logger.debug("listing log groups (pattern=%r, env=%r)", name_pattern, env)
        try:
            return LogGroupsLoaded(epoch, groups=list_all_log_groups(store, name_pattern, env))
        except CirrusError as exc:
            return LogGroupsLoaded(epoch, err=exc)

    return Task(run, name="list_log_groups")


def load_events(
    store: LogStore,
    group: str,
    window_minutes: int,
    limit: int,
    epoch: int,
    clock: Callable[[], float] = time.time,
) -> Task:
    """Fetch the most recent ``window_minutes`` of events from ``group``.

    The window is computed when the task runs, not when it is built.
    """

    def run() -> LogEventsLoaded:
        end_ms = int(clock() * 1000)
        start_ms = end_ms - window_minutes * 60 * 1000
        logger.debug("fetching %s events [%d, %d] limit=%d", group, start_ms, end_ms, limit)
        try:
            return LogEventsLoaded(epoch, group, events=store.filter_log_events(group, start_ms, end_ms, limit))
        except CirrusError as exc:
            return LogEventsLoaded(epoch, group, err=exc)

    return Task(run, name="filter_log_events")


def run_search(tool: str, pattern: str, text: str, epoch: int) -> Task:
    def run() -> SearchCompleted:
        logger.debug("searching %d chars for %r with %s", len(text), pattern, tool)
        try:
            return SearchCompleted(epoch, pattern, output=search_text(tool, pattern, text))
        except CirrusError as exc:
            return SearchCompleted(epoch, pattern, err=exc)

    return Task(run, name="search")
