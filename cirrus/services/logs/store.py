"""boto3 adapter for the log service."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError

from ...errors import TransportError

logger = logging.getLogger(__name__)

LAMBDA_PREFIX = "/aws/lambda/"
GROUP_PAGE_SIZE = 50


@dataclass(frozen=True)
class LogGroup:
    name: str

    @property
    def display_name(self) -> str:
        return self.name[len(LAMBDA_PREFIX):] if self.name.startswith(LAMBDA_PREFIX) else self.name


@dataclass(frozen=True)
class LogEvent:
    timestamp: int  # epoch milliseconds
    message: str | None


class LogStore:
    """Thin wrapper over a boto3 ``logs`` client."""

    def __init__(self, client):
        self.client = client

    def list_log_groups(self, name_pattern: str, next_token: str | None = None) -> tuple[list[LogGroup], str | None]:
        """One page of log groups matching ``name_pattern``."""
        params: dict = {"limit": GROUP_PAGE_SIZE}
        if name_pattern:
            params["logGroupNamePattern"] = name_pattern
        if next_token:
            params["nextToken"] = next_token
        try:
            result = self.client.describe_log_groups(**params)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"describe log groups failed: {exc}") from exc
        groups = [LogGroup(g["logGroupName"]) for g in result.get("logGroups", [])]
        logger.debug("log group page: %d groups (more=%s)", len(groups), bool(result.get("nextToken")))
        return groups, result.get("nextToken")

    def filter_log_events(self, group: str, start_ms: int, end_ms: int, limit: int) -> list[LogEvent]:
        try:
            result = self.client.filter_log_events(
                logGroupName=group,
                startTime=start_ms,
                endTime=end_ms,
                limit=limit,
            )
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"filter log events on {group} failed: {exc}") from exc
        return [LogEvent(e.get("timestamp", 0), e.get("message")) for e in result.get("events", [])]


def list_all_log_groups(store: LogStore, name_pattern: str, env: str = "") -> list[LogGroup]:
    """Walk every page and return the concatenation, in page order.

    When ``env`` is set, only groups whose name ends with ``-<env>`` are kept.
    """
    groups: list[LogGroup] = []
    token: str | None = None
    while True:
        page, token = store.list_log_groups(name_pattern, token)
        groups.extend(page)
        if not token:
            break
    if env:
        suffix = f"-{env}"
        groups = [g for g in groups if g.name.endswith(suffix)]
    return groups
