"""
Reshaper for the catalog document.
Groups products by category and pivots each category into an attribute-major
table so the assistant can compare products attribute by attribute.
"""

import base64
import json
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from boto3.dynamodb.types import Binary

from logging_config import log_execution_time
from models import PivotedCategory, Product

logger = logging.getLogger(__name__)


def _format_number(value: Any) -> str:
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return repr(value)
        value = Decimal(repr(value))
    if not value.is_finite():
        return str(value)
    if value == 0:
        return "0"
    if value == value.to_integral_value():
        return format(value.to_integral_value(), "f")
    return format(value.normalize(), "f")


def _to_json(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float, Decimal)):
        text = _format_number(value)
        # NaN and Infinity have no JSON literal
        return text if _is_json_number(value) else json.dumps(text)
    if isinstance(value, (bytes, bytearray, Binary)):
        return json.dumps(_encode_binary(value))
    if isinstance(value, dict):
        members = sorted(((str(key), item) for key, item in value.items()), key=lambda m: m[0])
        return "{" + ",".join(
            f"{json.dumps(key, ensure_ascii=False)}:{_to_json(item)}" for key, item in members
        ) + "}"
    if isinstance(value, (set, frozenset)):
        return "[" + ",".join(_to_json(item) for item in sorted(value, key=stringify)) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_to_json(item) for item in value) + "]"
    return json.dumps(str(value), ensure_ascii=False)


def _is_json_number(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return True


def _encode_binary(value: Any) -> str:
    raw = value.value if isinstance(value, Binary) else bytes(value)
    return base64.b64encode(raw).decode("ascii")


def stringify(value: Any) -> str:
    """
    Render an attribute value as the text stored in the catalog document.

    Strings pass through, booleans become ``true``/``false``, ``None`` becomes
    ``null``, numbers drop trailing zeros and exponents (``Decimal("9.50")``
    -> ``9.5``, ``Decimal("8")`` -> ``8``), binary values are base64 encoded
    and nested structures become compact JSON with sorted keys.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float, Decimal)):
        return _format_number(value)
    if isinstance(value, (bytes, bytearray, Binary)):
        return _encode_binary(value)
    return _to_json(value)


@dataclass(frozen=True)
class FirstSeenSchema:
    """
    Attribute schema taken from the first product of each category.

    Categories are assumed to be schema-consistent. With ``allow_drift`` an
    attribute that only shows up on a later product gets its own bucket;
    without it the value is dropped and logged.
    """
    allow_drift: bool = True

    def admit(self, category: str, product_id: str, attribute: str) -> bool:
        if self.allow_drift:
            logger.debug(
                f"Attribute '{attribute}' not in the first-seen schema of '{category}', adding it",
                extra={"category": category, "product_id": product_id},
            )
            return True
        logger.warning(
            f"Dropping attribute '{attribute}' of product {product_id}: not in the first-seen schema of '{category}'",
            extra={"category": category, "product_id": product_id},
        )
        return False


def _pivot(name: str, products: list[Product], schema_policy: FirstSeenSchema) -> PivotedCategory:
    attributes_list: dict[str, dict[str, str]] = {
        attribute: {} for attribute in products[0].attributes
    }

    for product in products:
        for attribute, value in product.attributes.items():
            if attribute not in attributes_list:
                if not schema_policy.admit(name, product.id, attribute):
                    continue
                attributes_list[attribute] = {}
            attributes_list[attribute][product.id] = stringify(value)

    return PivotedCategory(name=name, attributes_list=attributes_list)


@log_execution_time(logger)
def reshape(
    products: Iterable[Product],
    schema_policy: Optional[FirstSeenSchema] = None,
) -> list[PivotedCategory]:
    """
    Group products by category and pivot each group.

    Args:
        products: Decoded products in arrival order
        schema_policy: Policy for attributes missing from a category's first product

    Returns:
        One PivotedCategory per observed category, sorted by category name
    """
    schema_policy = schema_policy or FirstSeenSchema()

    groups: dict[str, list[Product]] = {}
    for product in products:
        groups.setdefault(product.category, []).append(product)

    categories = [_pivot(name, groups[name], schema_policy) for name in sorted(groups)]

    logger.info(
        f"Reshaped catalog into {len(categories)} categories",
        extra={"metrics": {"category_count": len(categories)}},
    )
    return categories
