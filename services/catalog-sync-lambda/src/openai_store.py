"""
OpenAI implementation of the remote store.
The assistant's file_search tool reads from one vector store; files live in
the global Files API and are attached to that vector store.
"""

import logging
from typing import Optional

import httpx
import openai

from exceptions import RemoteStoreCallError
from models import RemoteFile, VectorStoreRef
from remote_store import RemoteStoreClient

logger = logging.getLogger(__name__)

FILE_PURPOSE = "assistants"


class OpenAIRemoteStore(RemoteStoreClient):
    """Remote store backed by the OpenAI Assistants, Files and Vector Stores APIs."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float = 60.0,
        base_url: Optional[str] = None,
        client: Optional[openai.OpenAI] = None,
    ) -> None:
        # One attempt per call; the scheduler decides whether to re-run.
        self._client = client or openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def _call(self, operation: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise RemoteStoreCallError(
                f"OpenAI network error during {operation}: {exc}", operation
            ) from exc
        except openai.APIError as exc:
            raise RemoteStoreCallError(
                f"OpenAI API error during {operation}: {exc}", operation
            ) from exc

    def resolve_container(self, assistant_ref: str) -> Optional[VectorStoreRef]:
        assistant = self._call(
            "resolve_container",
            self._client.beta.assistants.retrieve,
            assistant_ref,
        )
        tool_resources = assistant.tool_resources
        file_search = tool_resources.file_search if tool_resources else None
        vector_store_ids = (file_search.vector_store_ids if file_search else None) or []
        if not vector_store_ids:
            return None
        if len(vector_store_ids) > 1:
            logger.warning(
                f"Assistant {assistant_ref} has {len(vector_store_ids)} vector stores, using the first",
                extra={"vector_store_id": vector_store_ids[0]},
            )
        return VectorStoreRef(id=vector_store_ids[0])

    def create_container(self, assistant_ref: str, name: str) -> VectorStoreRef:
        vector_store = self._call(
            "create_container", self._client.vector_stores.create, name=name
        )
        self._call(
            "create_container",
            self._client.beta.assistants.update,
            assistant_ref,
            tool_resources={"file_search": {"vector_store_ids": [vector_store.id]}},
        )
        return VectorStoreRef(id=vector_store.id)

    def list_container_files(self, container: VectorStoreRef) -> list[str]:
        def _list() -> list[str]:
            # Iterating the cursor page fetches the following pages.
            page = self._client.vector_stores.files.list(vector_store_id=container.id)
            return [vector_store_file.id for vector_store_file in page]

        return self._call("list_container_files", _list)

    def get_file_metadata(self, file_id: str) -> RemoteFile:
        file_object = self._call("get_file_metadata", self._client.files.retrieve, file_id)
        return RemoteFile(id=file_object.id, filename=file_object.filename)

    def delete_container_file(self, container: VectorStoreRef, file_id: str) -> None:
        self._call(
            "delete_container_file",
            self._client.vector_stores.files.delete,
            file_id,
            vector_store_id=container.id,
        )

    def delete_file(self, file_id: str) -> None:
        self._call("delete_file", self._client.files.delete, file_id)

    def upload_file(self, logical_name: str, data: bytes) -> str:
        file_object = self._call(
            "upload_file",
            self._client.files.create,
            file=(logical_name, data, "application/json"),
            purpose=FILE_PURPOSE,
        )
        return file_object.id

    def attach_file_to_container(self, container: VectorStoreRef, file_id: str) -> None:
        self._call(
            "attach_file_to_container",
            self._client.vector_stores.files.create,
            vector_store_id=container.id,
            file_id=file_id,
        )
