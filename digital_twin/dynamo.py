"""DynamoDB-backed transaction collection.

Each user's transactions live in one partition of a shared table. The
partition key ``collection`` holds the namespaced collection path
``artifacts/<namespace>/users/<user_id>/transactions``; the sort key ``id`` is
the document id.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import uuid4

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .logging_setup import get_logger

logger = get_logger(__name__)

REMOTE_ERRORS = (ClientError, BotoCoreError)

PARTITION_KEY = "collection"
SORT_KEY = "id"


def collection_path(user_id: str, namespace: str = "digital-twin") -> str:
    return f"artifacts/{namespace}/users/{user_id}/transactions"


class DynamoCollection:
    """CRUD access to one user's transaction documents."""

    def __init__(self, table: Any, user_id: str, namespace: str = "digital-twin") -> None:
        self.table = table
        self.user_id = user_id
        self.path = collection_path(user_id, namespace)

    def list(self) -> list[dict[str, Any]]:
        """Return every document in the collection, ids included."""

        items: list[dict[str, Any]] = []
        query: dict[str, Any] = {"KeyConditionExpression": Key(PARTITION_KEY).eq(self.path)}
        while True:
            response = self.table.query(**query)
            items.extend(_from_dynamo(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            query["ExclusiveStartKey"] = last_key
        return [_strip_partition(item) for item in items]

    def add(self, record: dict[str, Any]) -> str:
        doc_id = uuid4().hex
        self.set(doc_id, record)
        return doc_id

    def set(self, doc_id: str, record: dict[str, Any]) -> None:
        """Replace the whole document stored under ``doc_id``."""

        item = {k: v for k, v in record.items() if k != SORT_KEY}
        item[PARTITION_KEY] = self.path
        item[SORT_KEY] = doc_id
        self.table.put_item(Item=_convert_for_dynamo(item))

    def delete(self, doc_id: str) -> None:
        self.table.delete_item(Key={PARTITION_KEY: self.path, SORT_KEY: doc_id})


def connect(settings: Settings, user_id: str) -> DynamoCollection | None:
    """Open the configured table, or return ``None`` when remote storage is off."""

    if not settings.remote_enabled:
        return None
    try:
        dynamodb = boto3.resource("dynamodb", region_name=settings.aws_region)
        table = dynamodb.Table(settings.dynamo_table)
    except REMOTE_ERRORS as exc:
        logger.warning("DynamoDB init failed, using local storage: %s", exc)
        return None
    logger.info("Using DynamoDB table %s for user %s", settings.dynamo_table, user_id)
    return DynamoCollection(table, user_id, settings.namespace)


def _strip_partition(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k != PARTITION_KEY}


def _convert_for_dynamo(obj: Any):
    """Recursively convert floats to Decimal for DynamoDB compatibility."""
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """Recursively convert Decimal instances back to native numbers."""
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
