"""Shared fixtures: fixed clock and in-memory stand-ins for AWS and Gemini."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from botocore.exceptions import ClientError

from digital_twin.config import Settings
from digital_twin.storage import LocalKeyValueStore

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def client_error(operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "boom"}}, operation)


class FakeTable:
    """Just enough of a boto3 ``Table`` for ``DynamoCollection``."""

    def __init__(self, page_size: int | None = None) -> None:
        self.items: dict[tuple[str, str], dict[str, Any]] = {}
        self.page_size = page_size
        self.queries: list[dict[str, Any]] = []
        self.fail: set[str] = set()

    def query(self, **kwargs: Any) -> dict[str, Any]:
        if "query" in self.fail:
            raise client_error("Query")
        self.queries.append(kwargs)
        _, path = kwargs["KeyConditionExpression"].get_expression()["values"]
        matches = [item for (collection, _), item in sorted(self.items.items()) if collection == path]
        start = int(kwargs.get("ExclusiveStartKey", {}).get("offset", 0))
        if self.page_size is None:
            return {"Items": matches[start:]}
        page = matches[start : start + self.page_size]
        response: dict[str, Any] = {"Items": page}
        if start + self.page_size < len(matches):
            response["LastEvaluatedKey"] = {"offset": start + self.page_size}
        return response

    def put_item(self, Item: dict[str, Any]) -> dict[str, Any]:
        if "put" in self.fail:
            raise client_error("PutItem")
        self.items[(Item["collection"], Item["id"])] = dict(Item)
        return {}

    def delete_item(self, Key: dict[str, Any]) -> dict[str, Any]:
        if "delete" in self.fail:
            raise client_error("DeleteItem")
        self.items.pop((Key["collection"], Key["id"]), None)
        return {}


class FakeModels:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def gemini_response(text: str | None, sources: list[tuple[str | None, str | None]] = ()) -> Any:
    chunks = [SimpleNamespace(web=SimpleNamespace(title=title, uri=uri)) for title, uri in sources]
    part = SimpleNamespace(text=text)
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=[part]),
        grounding_metadata=SimpleNamespace(grounding_chunks=chunks),
    )
    return SimpleNamespace(candidates=[candidate])


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def local(tmp_path) -> LocalKeyValueStore:
    return LocalKeyValueStore(tmp_path / "local_storage.json")


@pytest.fixture
def table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path)


@pytest.fixture
def make_client():
    """Build a stand-in ``genai.Client`` whose ``models`` records calls."""

    def factory(response: Any = None, error: Exception | None = None) -> Any:
        return SimpleNamespace(models=FakeModels(response=response, error=error))

    return factory


@pytest.fixture
def make_response():
    return gemini_response


@pytest.fixture
def make_client_error():
    return client_error


@pytest.fixture
def make_table():
    return FakeTable
