from abc import ABC, abstractmethod
from typing import Optional

from models import RemoteFile, VectorStoreRef


class RemoteStoreClient(ABC):
    """Contract for the service holding the assistant's knowledge-base files."""

    @abstractmethod
    def resolve_container(self, assistant_ref: str) -> Optional[VectorStoreRef]:
        """Return the assistant's vector store, or None if it has none."""

    @abstractmethod
    def create_container(self, assistant_ref: str, name: str) -> VectorStoreRef:
        """Create a vector store and bind it to the assistant."""

    @abstractmethod
    def list_container_files(self, container: VectorStoreRef) -> list[str]:
        """Return the ids of the files attached to the vector store."""

    @abstractmethod
    def get_file_metadata(self, file_id: str) -> RemoteFile:
        """Return the stored file object for an id."""

    @abstractmethod
    def delete_container_file(self, container: VectorStoreRef, file_id: str) -> None:
        """Detach a file from the vector store."""

    @abstractmethod
    def delete_file(self, file_id: str) -> None:
        """Delete a file from the global file store."""

    @abstractmethod
    def upload_file(self, logical_name: str, data: bytes) -> str:
        """Upload bytes under a filename and return the new file id."""

    @abstractmethod
    def attach_file_to_container(self, container: VectorStoreRef, file_id: str) -> None:
        """Attach an uploaded file to the vector store."""
