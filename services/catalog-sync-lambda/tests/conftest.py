"""Pytest fixtures and configuration."""

import os
from typing import Optional

import pytest

os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

from exceptions import RemoteStoreCallError
from models import RemoteFile, VectorStoreRef
from remote_store import RemoteStoreClient


class FakeRemoteStore(RemoteStoreClient):
    """In-memory vector store that records every call in order."""

    def __init__(self, vector_store_id: Optional[str] = "vs_1"):
        self.vector_store_id = vector_store_id
        self.container_files: dict[str, list[str]] = {}
        if vector_store_id:
            self.container_files[vector_store_id] = []
        self.files: dict[str, RemoteFile] = {}
        self.contents: dict[str, bytes] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.fail_on_nth: dict[str, int] = {}
        self.hide_attached = 0
        self._next_id = 0

    def add_file(self, filename: str, data: bytes = b"old", attach: bool = True) -> str:
        file_id = self._new_id()
        self.files[file_id] = RemoteFile(id=file_id, filename=filename)
        self.contents[file_id] = data
        if attach:
            self.container_files[self.vector_store_id].append(file_id)
        return file_id

    def filenames(self) -> list[str]:
        return [
            self.files[file_id].filename
            for file_id in self.container_files.get(self.vector_store_id, [])
        ]

    def _new_id(self) -> str:
        self._next_id += 1
        return f"file_{self._next_id}"

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on or self.fail_on_nth.get(operation) == self.calls.count(operation):
            raise RemoteStoreCallError(f"{operation} refused", operation)

    def resolve_container(self, assistant_ref):
        self._record("resolve_container")
        if self.vector_store_id is None:
            return None
        return VectorStoreRef(id=self.vector_store_id)

    def create_container(self, assistant_ref, name):
        self._record("create_container")
        self.vector_store_id = "vs_new"
        self.container_files[self.vector_store_id] = []
        return VectorStoreRef(id=self.vector_store_id)

    def list_container_files(self, container):
        self._record("list_container_files")
        file_ids = list(self.container_files[container.id])
        if self.hide_attached:
            self.hide_attached -= 1
            return file_ids[:-1]
        return file_ids

    def get_file_metadata(self, file_id):
        self._record("get_file_metadata")
        return self.files[file_id]

    def delete_container_file(self, container, file_id):
        self._record("delete_container_file")
        self.container_files[container.id].remove(file_id)

    def delete_file(self, file_id):
        self._record("delete_file")
        del self.files[file_id]
        del self.contents[file_id]

    def upload_file(self, logical_name, data):
        self._record("upload_file")
        file_id = self._new_id()
        self.files[file_id] = RemoteFile(id=file_id, filename=logical_name)
        self.contents[file_id] = data
        return file_id

    def attach_file_to_container(self, container, file_id):
        self._record("attach_file_to_container")
        self.container_files[container.id].append(file_id)


def dynamo_item(product_id=None, category=None, attributes=None):
    """Build a raw item in DynamoDB AttributeValue form."""
    item = {}
    if product_id is not None:
        item["product_id"] = {"S": product_id}
    if category is not None:
        item["category"] = {"S": category}
    if attributes is not None:
        item["attributes"] = {"M": attributes}
    return item


@pytest.fixture
def fake_store():
    """Return a fake remote store with an empty vector store."""
    return FakeRemoteStore()


@pytest.fixture
def shoe_records():
    """Return two shoes from the products table."""
    return [
        dynamo_item(
            "p1",
            "shoes",
            {"color": {"S": "red"}, "size": {"N": "9"}},
        ),
        dynamo_item(
            "p2",
            "shoes",
            {"color": {"S": "blue"}, "size": {"N": "8"}},
        ),
    ]


@pytest.fixture
def mixed_records(shoe_records):
    """Return shoes, a hat and two malformed records."""
    return [
        shoe_records[0],
        dynamo_item("h1", "hats", {"brim": {"N": "7.50"}, "waterproof": {"BOOL": True}}),
        dynamo_item("x1", None, {"color": {"S": "green"}}),
        shoe_records[1],
        {"product_id": {"S": "x2"}, "category": "not-an-attribute-value"},
    ]
