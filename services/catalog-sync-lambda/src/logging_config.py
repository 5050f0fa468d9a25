"""
Structured logging configuration with correlation ID support.
Provides JSON logging format suitable for CloudWatch and log aggregation.
"""

import functools
import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

# Attributes passed through ``extra=`` that are copied to the JSON payload.
PASSTHROUGH_FIELDS = (
    "product_id",
    "record_index",
    "table_name",
    "state",
    "vector_store_id",
    "file_id",
    "category",
    "duration_ms",
    "metrics",
    "aws_request_id",
    "status_code",
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set correlation ID for the current context."""
    cid = correlation_id or generate_correlation_id()
    correlation_id_var.set(cid)
    return cid


def get_correlation_id() -> str:
    """Get correlation ID for the current context."""
    return correlation_id_var.get()


def set_run_id(run_id: str) -> None:
    """Set the sync run ID for the current context."""
    run_id_var.set(run_id)


def get_run_id() -> str:
    """Get the sync run ID for the current context."""
    return run_id_var.get()


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in a format suitable for CloudWatch Logs Insights and log aggregation.
    """

    def __init__(self, service_name: str = "catalog-sync-lambda"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "correlation_id": get_correlation_id(),
            "run_id": get_run_id(),
        }

        if record.funcName:
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        for name in PASSTHROUGH_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if hasattr(record, "error") and isinstance(record.error, dict):
            log_data["error"] = record.error

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        return json.dumps(log_data, default=str)


class ContextualLogger(logging.LoggerAdapter):
    """
    Logger adapter that automatically includes contextual information.
    """

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        extra["correlation_id"] = get_correlation_id()
        extra["run_id"] = get_run_id()
        kwargs["extra"] = extra
        return msg, kwargs


def configure_logging(
    level: str = "INFO",
    service_name: str = "catalog-sync-lambda",
) -> ContextualLogger:
    """
    Configure structured logging for Lambda.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service for log identification

    Returns:
        Configured contextual logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
        handler.setFormatter(StructuredJsonFormatter(service_name))
    else:
        handler.setFormatter(
            logging.Formatter(
                "[%(levelname)s] %(asctime)s - %(name)s - %(message)s"
            )
        )

    root_logger.addHandler(handler)

    for noisy in ("boto3", "botocore", "urllib3", "openai", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return ContextualLogger(root_logger, {})


def log_execution_time(logger: logging.Logger):
    """
    Decorator to log function execution time.

    Example:
        @log_execution_time(logger)
        def decode_batch(records):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.info(
                    f"{func.__name__} completed",
                    extra={"duration_ms": round(duration_ms, 2)},
                )
                return result
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"{func.__name__} failed after {duration_ms:.2f}ms: {e}",
                    extra={"duration_ms": round(duration_ms, 2)},
                    exc_info=True,
                )
                raise
        return wrapper
    return decorator
