"""boto3 adapter for the key-value store."""
from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ...errors import TransportError
from .attributes import AttributeValue, Item, item_from_wire
from .filters import FilterExpression
from .schema_cache import TableSchema

logger = logging.getLogger(__name__)

BATCH_WRITE_LIMIT = 25


def item_key(item: Item, schema: TableSchema) -> dict[str, AttributeValue]:
    """Primary-key attributes of ``item`` (only the ones it actually has)."""
    key = {}
    if schema.partition_key in item:
        key[schema.partition_key] = item[schema.partition_key]
    if schema.sort_key and schema.sort_key in item:
        key[schema.sort_key] = item[schema.sort_key]
    return key


def _wire_key(key: dict[str, AttributeValue]) -> dict[str, Any]:
    return {name: value.to_wire() for name, value in key.items()}


class DynamoStore:
    """Thin wrapper over a boto3 ``dynamodb`` client.

    Every botocore failure is re-raised as :class:`TransportError`.
    """

    def __init__(self, client, table_prefix: str = ""):
        self.client = client
        self.table_prefix = table_prefix

    def list_tables(self) -> list[str]:
        names: list[str] = []
        try:
            for page in self.client.get_paginator("list_tables").paginate():
                names.extend(page.get("TableNames", []))
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"list tables failed: {exc}") from exc
        return [n for n in names if n.startswith(self.table_prefix)]

    def describe_table(self, table: str) -> TableSchema:
        try:
            result = self.client.describe_table(TableName=table)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"describe {table} failed: {exc}") from exc

        partition_key = sort_key = ""
        for key in result["Table"].get("KeySchema", []):
            if key["KeyType"] == "HASH":
                partition_key = key["AttributeName"]
            elif key["KeyType"] == "RANGE":
                sort_key = key["AttributeName"]
        return TableSchema(partition_key=partition_key, sort_key=sort_key)

    def scan(self, table: str, expression: FilterExpression | None = None) -> list[Item]:
        """Read the whole table, following LastEvaluatedKey."""
        params: dict[str, Any] = {"TableName": table}
        if expression:
            params["FilterExpression"] = expression.expression
            params["ExpressionAttributeNames"] = dict(expression.names)
            params["ExpressionAttributeValues"] = {
                k: v.to_wire() for k, v in expression.values.items()
            }

        items: list[Item] = []
        try:
            while True:
                result = self.client.scan(**params)
                items.extend(item_from_wire(raw) for raw in result.get("Items", []))
                last_key = result.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"scan {table} failed: {exc}") from exc
        logger.debug("scan %s returned %d items", table, len(items))
        return items

    def delete_item(self, table: str, key: dict[str, AttributeValue]) -> None:
        try:
            self.client.delete_item(TableName=table, Key=_wire_key(key))
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"delete from {table} failed: {exc}") from exc

    def batch_delete_items(self, table: str, keys: list[dict[str, AttributeValue]]) -> int:
        """Delete up to BATCH_WRITE_LIMIT keys in one request.

        Returns:
            Number of keys the service reported as unprocessed.
        """
        if len(keys) > BATCH_WRITE_LIMIT:
            raise ValueError(f"batch of {len(keys)} exceeds the {BATCH_WRITE_LIMIT}-item limit")
        requests = [{"DeleteRequest": {"Key": _wire_key(key)}} for key in keys]
        try:
            result = self.client.batch_write_item(RequestItems={table: requests})
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"batch delete on {table} failed: {exc}") from exc
        return len(result.get("UnprocessedItems", {}).get(table, []))
