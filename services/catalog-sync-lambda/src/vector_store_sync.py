"""
Replaces the catalog file in the assistant's vector store.

A run walks RESOLVE_CONTAINER -> RECONCILE -> [DELETE] -> UPLOAD -> VERIFY.
Any stale file with the same name is detached and deleted before the new
file is uploaded, so a successful run leaves exactly one file with that name.
Each remote call is attempted once; the first failure ends the run.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, TypeVar

from exceptions import (
    ErrorContext,
    RemoteProtocolError,
    RemoteStoreCallError,
    VerificationError,
)
from logging_config import get_correlation_id, get_run_id
from models import VectorStoreRef
from remote_store import RemoteStoreClient
from retry import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncState(str, Enum):
    """States of a single sync run."""
    RESOLVE_CONTAINER = "RESOLVE_CONTAINER"
    RECONCILE = "RECONCILE"
    DELETE = "DELETE"
    UPLOAD = "UPLOAD"
    VERIFY = "VERIFY"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({SyncState.SUCCEEDED, SyncState.FAILED})


@dataclass
class SyncReport:
    """What a sync run did, state by state."""
    logical_name: str
    states: list[SyncState] = field(default_factory=list)
    container: Optional[VectorStoreRef] = None
    container_created: bool = False
    stale_file_id: Optional[str] = None
    stale_file_removed: bool = False
    new_file_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.states) and self.states[-1] == SyncState.SUCCEEDED

    def to_dict(self) -> dict:
        return {
            "logical_name": self.logical_name,
            "states": [state.value for state in self.states],
            "vector_store_id": self.container.id if self.container else None,
            "container_created": self.container_created,
            "stale_file_id": self.stale_file_id,
            "stale_file_removed": self.stale_file_removed,
            "new_file_id": self.new_file_id,
        }


class VectorStoreSync:
    """
    Makes an uploaded document the only file with its name in the
    assistant's vector store.
    """

    def __init__(
        self,
        client: RemoteStoreClient,
        assistant_ref: str,
        verify_retry: Optional[RetryConfig] = None,
    ):
        self.client = client
        self.assistant_ref = assistant_ref
        self.verify_retry = verify_retry
        self._handlers: dict[SyncState, Callable[[SyncReport, bytes], SyncState]] = {
            SyncState.RESOLVE_CONTAINER: self._resolve_container,
            SyncState.RECONCILE: self._reconcile,
            SyncState.DELETE: self._delete,
            SyncState.UPLOAD: self._upload,
            SyncState.VERIFY: self._verify,
        }

    def run(self, logical_name: str, data: bytes) -> SyncReport:
        """
        Publish ``data`` under ``logical_name``.

        Returns:
            SyncReport ending in SUCCEEDED

        Raises:
            RemoteProtocolError: A remote call failed; ``state`` names where
            VerificationError: The new file was not listed after attaching
        """
        report = SyncReport(logical_name=logical_name)
        state = SyncState.RESOLVE_CONTAINER

        while state not in TERMINAL_STATES:
            report.states.append(state)
            logger.info(f"Sync entering {state.value}", extra={"state": state.value})
            try:
                state = self._handlers[state](report, data)
            except RemoteProtocolError as e:
                report.states.append(SyncState.FAILED)
                logger.error(
                    f"Sync failed in {e.state}: {e.message}",
                    extra={"state": e.state, "error": e.to_dict()},
                )
                raise

        report.states.append(state)
        logger.info(
            f"Sync complete: '{logical_name}' is file {report.new_file_id}",
            extra={"state": state.value, "file_id": report.new_file_id},
        )
        return report

    def _error_context(self, report: SyncReport, file_id: Optional[str] = None) -> ErrorContext:
        return ErrorContext(
            correlation_id=get_correlation_id() or None,
            run_id=get_run_id() or None,
            vector_store_id=report.container.id if report.container else None,
            file_id=file_id,
            additional_data={"assistant_id": self.assistant_ref},
        )

    def _remote(
        self,
        report: SyncReport,
        state: SyncState,
        func: Callable[..., T],
        *args,
        file_id: Optional[str] = None,
    ) -> T:
        try:
            return func(*args)
        except RemoteStoreCallError as e:
            raise RemoteProtocolError(
                message=f"{e.operation} failed: {e}",
                state=state.value,
                operation=e.operation,
                stale_file_removed=report.stale_file_removed,
                context=self._error_context(report, file_id),
                original_exception=e,
            )

    def _resolve_container(self, report: SyncReport, data: bytes) -> SyncState:
        report.container = self._remote(
            report,
            SyncState.RESOLVE_CONTAINER,
            self.client.resolve_container,
            self.assistant_ref,
        )
        if report.container is None:
            logger.info(f"Assistant {self.assistant_ref} has no vector store yet")
        return SyncState.RECONCILE

    def _reconcile(self, report: SyncReport, data: bytes) -> SyncState:
        if report.container is None:
            return SyncState.UPLOAD

        file_ids = self._remote(
            report, SyncState.RECONCILE, self.client.list_container_files, report.container
        )
        for file_id in file_ids:
            metadata = self._remote(
                report,
                SyncState.RECONCILE,
                self.client.get_file_metadata,
                file_id,
                file_id=file_id,
            )
            if metadata.filename == report.logical_name:
                report.stale_file_id = file_id
                logger.info(
                    f"Found existing file '{report.logical_name}' ({file_id}), replacing it",
                    extra={"file_id": file_id, "vector_store_id": report.container.id},
                )
                return SyncState.DELETE

        logger.info(f"No existing file '{report.logical_name}' found, uploading")
        return SyncState.UPLOAD

    def _delete(self, report: SyncReport, data: bytes) -> SyncState:
        stale_id = report.stale_file_id

        # Detach first; the global delete only runs once the file is out of the store.
        self._remote(
            report,
            SyncState.DELETE,
            self.client.delete_container_file,
            report.container,
            stale_id,
            file_id=stale_id,
        )
        report.stale_file_removed = True
        logger.info(f"Detached file {stale_id} from vector store", extra={"file_id": stale_id})

        self._remote(
            report, SyncState.DELETE, self.client.delete_file, stale_id, file_id=stale_id
        )
        logger.info(f"Deleted file {stale_id} from file storage", extra={"file_id": stale_id})
        return SyncState.UPLOAD

    def _upload(self, report: SyncReport, data: bytes) -> SyncState:
        report.new_file_id = self._remote(
            report, SyncState.UPLOAD, self.client.upload_file, report.logical_name, data
        )
        logger.info(
            f"Uploaded '{report.logical_name}' as {report.new_file_id} ({len(data)} bytes)",
            extra={"file_id": report.new_file_id},
        )

        if report.container is None:
            report.container = self._remote(
                report,
                SyncState.UPLOAD,
                self.client.create_container,
                self.assistant_ref,
                report.logical_name,
                file_id=report.new_file_id,
            )
            report.container_created = True
            logger.info(
                f"Created vector store {report.container.id} for assistant {self.assistant_ref}",
                extra={"vector_store_id": report.container.id},
            )

        self._remote(
            report,
            SyncState.UPLOAD,
            self.client.attach_file_to_container,
            report.container,
            report.new_file_id,
            file_id=report.new_file_id,
        )
        return SyncState.VERIFY

    def _verify(self, report: SyncReport, data: bytes) -> SyncState:
        def check_attached() -> None:
            file_ids = self._remote(
                report,
                SyncState.VERIFY,
                self.client.list_container_files,
                report.container,
                file_id=report.new_file_id,
            )
            if report.new_file_id not in file_ids:
                raise VerificationError(
                    message=f"File {report.new_file_id} uploaded but attachment unverified",
                    file_id=report.new_file_id,
                    vector_store_id=report.container.id,
                    stale_file_removed=report.stale_file_removed,
                    context=self._error_context(report, report.new_file_id),
                )

        # Only the missing-file outcome repeats; a failed listing ends the run.
        retry_config = copy.copy(self.verify_retry or RetryConfig(max_attempts=1))
        retry_config.retryable_exceptions = (VerificationError,)
        call_with_retry(check_attached, retry_config)
        return SyncState.SUCCEEDED
