"""Tests for the OpenAI remote store adapter."""

from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from exceptions import RemoteStoreCallError
from models import RemoteFile, VectorStoreRef
from openai_store import OpenAIRemoteStore

REQUEST = httpx.Request("GET", "https://api.openai.com/v1/assistants/asst_1")


def make_store():
    client = MagicMock()
    return OpenAIRemoteStore(api_key="k", client=client), client


def make_assistant(vector_store_ids):
    assistant = MagicMock()
    assistant.tool_resources.file_search.vector_store_ids = vector_store_ids
    return assistant


class TestClientConstruction:
    def test_builds_client_without_retries(self):
        """Test the SDK client makes a single attempt per call."""
        with patch("openai_store.openai.OpenAI") as client_cls:
            OpenAIRemoteStore(api_key="k", timeout_seconds=30)

        client_cls.assert_called_once_with(
            api_key="k", timeout=30, base_url=None, max_retries=0
        )


class TestResolveContainer:
    def test_returns_first_vector_store(self):
        store, client = make_store()
        client.beta.assistants.retrieve.return_value = make_assistant(["vs_1", "vs_2"])

        assert store.resolve_container("asst_1") == VectorStoreRef(id="vs_1")
        client.beta.assistants.retrieve.assert_called_once_with("asst_1")

    @pytest.mark.parametrize("vector_store_ids", [None, []])
    def test_no_vector_store(self, vector_store_ids):
        store, client = make_store()
        client.beta.assistants.retrieve.return_value = make_assistant(vector_store_ids)

        assert store.resolve_container("asst_1") is None

    def test_no_tool_resources(self):
        store, client = make_store()
        assistant = MagicMock()
        assistant.tool_resources = None
        client.beta.assistants.retrieve.return_value = assistant

        assert store.resolve_container("asst_1") is None


class TestFileOperations:
    def test_list_container_files(self):
        store, client = make_store()
        client.vector_stores.files.list.return_value = [MagicMock(id="file_1"), MagicMock(id="file_2")]

        assert store.list_container_files(VectorStoreRef(id="vs_1")) == ["file_1", "file_2"]
        client.vector_stores.files.list.assert_called_once_with(vector_store_id="vs_1")

    def test_get_file_metadata(self):
        store, client = make_store()
        file_object = MagicMock(id="file_1")
        file_object.filename = "products.json"
        client.files.retrieve.return_value = file_object

        assert store.get_file_metadata("file_1") == RemoteFile(id="file_1", filename="products.json")

    def test_delete_container_file_detaches(self):
        store, client = make_store()

        store.delete_container_file(VectorStoreRef(id="vs_1"), "file_1")

        client.vector_stores.files.delete.assert_called_once_with("file_1", vector_store_id="vs_1")
        client.files.delete.assert_not_called()

    def test_delete_file(self):
        store, client = make_store()

        store.delete_file("file_1")

        client.files.delete.assert_called_once_with("file_1")

    def test_upload_file(self):
        store, client = make_store()
        client.files.create.return_value = MagicMock(id="file_9")

        assert store.upload_file("products.json", b"[]") == "file_9"
        client.files.create.assert_called_once_with(
            file=("products.json", b"[]", "application/json"),
            purpose="assistants",
        )

    def test_attach_file_to_container(self):
        store, client = make_store()

        store.attach_file_to_container(VectorStoreRef(id="vs_1"), "file_9")

        client.vector_stores.files.create.assert_called_once_with(
            vector_store_id="vs_1", file_id="file_9"
        )

    def test_create_container_binds_assistant(self):
        store, client = make_store()
        client.vector_stores.create.return_value = MagicMock(id="vs_new")

        assert store.create_container("asst_1", "products.json") == VectorStoreRef(id="vs_new")
        client.beta.assistants.update.assert_called_once_with(
            "asst_1",
            tool_resources={"file_search": {"vector_store_ids": ["vs_new"]}},
        )


class TestErrorTranslation:
    def test_connection_error(self):
        """Test network failures become RemoteStoreCallError."""
        store, client = make_store()
        client.files.delete.side_effect = openai.APIConnectionError(request=REQUEST)

        with pytest.raises(RemoteStoreCallError) as exc_info:
            store.delete_file("file_1")

        assert exc_info.value.operation == "delete_file"
        assert "network error" in str(exc_info.value)

    def test_timeout(self):
        store, client = make_store()
        client.files.create.side_effect = httpx.ReadTimeout("slow", request=REQUEST)

        with pytest.raises(RemoteStoreCallError) as exc_info:
            store.upload_file("products.json", b"[]")

        assert exc_info.value.operation == "upload_file"

    def test_api_error(self):
        """Test API errors become RemoteStoreCallError."""
        store, client = make_store()
        client.beta.assistants.retrieve.side_effect = openai.APIError(
            "No assistant found", request=REQUEST, body=None
        )

        with pytest.raises(RemoteStoreCallError) as exc_info:
            store.resolve_container("asst_missing")

        assert exc_info.value.operation == "resolve_container"
        assert "API error" in str(exc_info.value)
