"""
AWS Lambda handler for the catalog sync.
Triggered on a schedule, exports the products table and republishes it as
the assistant's knowledge-base file.
"""

import os
import time
import uuid
from typing import Any

from exceptions import CatalogSyncError
from logging_config import configure_logging, set_correlation_id, set_run_id
from openai_store import OpenAIRemoteStore
from pipeline import RunResult, run_catalog_sync
from reshaper import FirstSeenSchema
from retry import RetryConfig
from settings import Settings
from source import DynamoDBCatalogSource
from vector_store_sync import VectorStoreSync

logger = configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    service_name="catalog-sync-lambda",
)


def build_sync(settings: Settings) -> VectorStoreSync:
    """Build the vector store sync for the configured assistant."""
    verify_retry = None
    if settings.verify_max_attempts > 1:
        verify_retry = RetryConfig(max_attempts=settings.verify_max_attempts, base_delay=2.0)

    return VectorStoreSync(
        client=OpenAIRemoteStore(api_key=settings.openai_api_key),
        assistant_ref=settings.assistant_id,
        verify_retry=verify_retry,
    )


def handler(event: dict, context: Any) -> dict:
    """
    Main Lambda handler.

    Args:
        event: Scheduled event (contents are not used)
        context: Lambda context

    Returns:
        Run result summary
    """
    start_time = time.perf_counter()

    correlation_id = set_correlation_id()
    run_id = str(uuid.uuid4())
    set_run_id(run_id)

    logger.info(
        "Lambda invocation started",
        extra={"aws_request_id": getattr(context, "aws_request_id", None) if context else None},
    )

    try:
        settings = Settings.from_env()
        source = DynamoDBCatalogSource(
            table_name=settings.source_table,
            region=settings.source_region,
            endpoint_url=settings.localstack_endpoint,
        )
        result = run_catalog_sync(
            fetch_records=source.fetch_all_records,
            sync=build_sync(settings),
            logical_name=settings.document_name,
            schema_policy=FirstSeenSchema(allow_drift=settings.allow_schema_drift),
        )
    except CatalogSyncError as e:
        logger.error(f"Catalog sync error: {e.message}", extra={"error": e.to_dict()})
        result = RunResult(success=False, error=e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return build_response(
            500,
            {
                "error": {"type": type(e).__name__, "message": str(e)},
                "correlationId": correlation_id,
                "runId": run_id,
            },
            start_time,
        )

    if result.success:
        status_code = 200
    else:
        status_code = 500 if result.error.retryable else 400

    return build_response(
        status_code,
        {
            "message": "Catalog published" if result.success else "Catalog sync failed",
            "correlationId": correlation_id,
            "runId": run_id,
            "result": result.to_dict(),
        },
        start_time,
    )


def build_response(status_code: int, body: dict, start_time: float) -> dict:
    """Build Lambda response with timing metadata."""
    duration_ms = (time.perf_counter() - start_time) * 1000

    body["durationMs"] = round(duration_ms, 2)

    logger.info(
        "Lambda invocation complete",
        extra={"status_code": status_code, "duration_ms": round(duration_ms, 2)},
    )

    return {
        "statusCode": status_code,
        "body": body,
    }
