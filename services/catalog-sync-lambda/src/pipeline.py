"""
One catalog sync run: fetch, decode, reshape, encode, publish.

Every fatal error is caught here and returned as a failed RunResult tagged
with the stage it came from; decode failures are skipped record by record.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from decoder import RecordDecoder
from encoder import encode
from exceptions import CatalogSyncError
from reshaper import FirstSeenSchema, reshape
from vector_store_sync import SyncReport, VectorStoreSync

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Terminal result of a run."""
    success: bool
    error: Optional[CatalogSyncError] = None
    metrics: dict = field(default_factory=dict)
    sync_report: Optional[SyncReport] = None

    @property
    def failed_stage(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, "state", None) or self.error.stage

    def to_dict(self) -> dict:
        result = {
            "success": self.success,
            "metrics": self.metrics,
        }
        if self.sync_report is not None:
            result["sync"] = self.sync_report.to_dict()
        if self.error is not None:
            result["failed_stage"] = self.failed_stage
            result["error"] = self.error.to_dict()
        return result


def build_document(
    raw_records: Iterable[Any],
    schema_policy: Optional[FirstSeenSchema] = None,
    metrics: Optional[dict] = None,
) -> bytes:
    """
    Decode, reshape and encode a set of raw records.

    Raises:
        EncodeError: If the reshaped catalog cannot be serialized
    """
    metrics = {} if metrics is None else metrics

    decoded = RecordDecoder().decode_batch(raw_records)
    metrics["record_count"] = decoded.total_count
    metrics["decoded_count"] = decoded.success_count
    metrics["skipped_count"] = decoded.failure_count

    categories = reshape(decoded.products, schema_policy)
    metrics["category_count"] = len(categories)

    document = encode(categories)
    metrics["document_bytes"] = len(document)
    return document


def run_catalog_sync(
    fetch_records: Callable[[], Iterable[Any]],
    sync: VectorStoreSync,
    logical_name: str,
    schema_policy: Optional[FirstSeenSchema] = None,
) -> RunResult:
    """
    Publish the current catalog as the assistant's knowledge-base file.

    Args:
        fetch_records: Returns the full set of raw catalog records
        sync: Vector store sync bound to the target assistant
        logical_name: Filename of the published document
        schema_policy: Attribute schema policy for the reshaper

    Returns:
        RunResult; on failure ``error`` names the failing stage
    """
    metrics: dict = {}
    try:
        raw_records = fetch_records()
        document = build_document(raw_records, schema_policy, metrics)
        report = sync.run(logical_name, document)
    except CatalogSyncError as e:
        logger.error(
            f"Catalog sync failed during {getattr(e, 'state', e.stage)}: {e.message}",
            extra={"error": e.to_dict(), "metrics": metrics},
        )
        return RunResult(success=False, error=e, metrics=metrics)

    logger.info(
        "Catalog sync complete",
        extra={"metrics": metrics, "file_id": report.new_file_id},
    )
    return RunResult(success=True, metrics=metrics, sync_report=report)
