"""
DynamoDB-backed record store for profiles, passcodes and provider connections.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Key

from app.core.config import AWSSettings


class DynamoDBRecordStore:
    """Simple CRUD operations against a single pk/sk table."""

    def __init__(self, settings: AWSSettings, *, table: Any = None) -> None:
        self._settings = settings
        if table is None:
            resource = boto3.resource("dynamodb", region_name=settings.region_name)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    def put_item(self, item: Dict[str, Any]) -> None:
        """Create or replace an item."""
        if not item.get("pk") or not item.get("sk"):
            raise ValueError("Item must include 'pk' and 'sk' keys")
        self._table.put_item(Item=item)

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]:
        """Retrieve an item using its key."""
        response = self._table.get_item(Key={"pk": partition_key, "sk": sort_key})
        return response.get("Item")

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        self._table.delete_item(Key={"pk": partition_key, "sk": sort_key})

    def query_items(self, *, partition_key: str) -> list[Dict[str, Any]]:
        """Query every item sharing the partition key, following pagination."""
        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(partition_key)
        }
        items: list[Dict[str, Any]] = []
        while True:
            response = self._table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key


__all__ = ["DynamoDBRecordStore"]
