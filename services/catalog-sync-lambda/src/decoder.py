"""
Decoder for raw DynamoDB catalog items.
Turns AttributeValue-encoded items into Product models and skips whatever does not fit.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from boto3.dynamodb.types import TypeDeserializer
from pydantic import ValidationError

from exceptions import DecodeError
from logging_config import get_correlation_id, log_execution_time
from models import Product

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("product_id", "category")

_deserializer = TypeDeserializer()


@dataclass
class DecodeResult:
    """Result of decoding a full table scan."""
    products: list[Product] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.products)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "total_count": self.total_count,
            "failed_indexes": [f["index"] for f in self.failed],
        }


def _deserialize_item(raw: Mapping[str, Any]) -> dict[str, Any]:
    item = {}
    for name, value in raw.items():
        try:
            item[name] = _deserializer.deserialize(value)
        except (TypeError, ValueError, KeyError, AttributeError, ArithmeticError) as e:
            raise DecodeError(
                message=f"Malformed attribute value for '{name}': {e}",
                field_name=name,
                original_exception=e,
            )
    return item


def decode_record(raw: Any) -> Product:
    """
    Decode one DynamoDB item into a Product.

    Args:
        raw: Item in low-level AttributeValue form, e.g. ``{"category": {"S": "shoes"}}``

    Returns:
        The decoded Product

    Raises:
        DecodeError: If the item does not have the Product shape
    """
    if not isinstance(raw, Mapping):
        raise DecodeError(message=f"Expected a mapping, got {type(raw).__name__}")

    item = _deserialize_item(raw)
    product_id = item.get("product_id")

    for field_name in REQUIRED_FIELDS:
        value = item.get(field_name)
        if not isinstance(value, str) or not value:
            raise DecodeError(
                message=f"Missing or non-string required field: {field_name}",
                field_name=field_name,
                product_id=product_id if isinstance(product_id, str) else None,
            )

    attributes = item.get("attributes")
    if attributes is None:
        attributes = {}

    try:
        return Product(
            id=product_id,
            category=item["category"],
            attributes=attributes,
        )
    except ValidationError as e:
        raise DecodeError(
            message=f"Product {product_id} does not match the product shape: {e.error_count()} error(s)",
            field_name="attributes",
            product_id=product_id,
            original_exception=e,
        )


class RecordDecoder:
    """Decodes a batch of raw records, skipping the ones that fail."""

    def __init__(self):
        self.result = DecodeResult()

    @log_execution_time(logger)
    def decode_batch(self, raw_records: Iterable[Any]) -> DecodeResult:
        """
        Decode every record, logging and skipping decode failures.

        Args:
            raw_records: Raw items from the catalog table

        Returns:
            DecodeResult with decoded products and skipped records
        """
        self.result = DecodeResult()

        for idx, raw in enumerate(raw_records):
            try:
                self.result.products.append(decode_record(raw))
            except DecodeError as e:
                e.context.record_index = idx
                e.context.correlation_id = get_correlation_id()
                self.result.failed.append({"index": idx, "error": e.to_dict()})
                logger.warning(
                    f"Skipping record at index {idx}: {e.message}",
                    extra={"record_index": idx, "product_id": e.context.product_id},
                )

        logger.info(
            "Record decoding complete",
            extra={"metrics": self.result.to_dict()},
        )
        return self.result
