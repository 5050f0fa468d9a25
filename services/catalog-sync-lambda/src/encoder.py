"""Serializes the reshaped catalog into the published JSON document."""

import logging
from typing import Sequence

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from exceptions import EncodeError
from models import CatalogDocument, PivotedCategory

logger = logging.getLogger(__name__)


def encode(categories: Sequence[PivotedCategory]) -> bytes:
    """
    Encode categories as compact UTF-8 JSON.

    Key order follows insertion order, so the same reshaped catalog always
    yields the same bytes.

    Raises:
        EncodeError: If the catalog cannot be serialized
    """
    try:
        document = CatalogDocument(list(categories))
        payload = document.model_dump_json().encode("utf-8")
    except (ValidationError, PydanticSerializationError, UnicodeEncodeError) as e:
        raise EncodeError(
            message=f"Failed to serialize catalog document: {e}",
            original_exception=e,
        )

    logger.info(
        f"Encoded catalog document ({len(payload)} bytes)",
        extra={"metrics": {"document_bytes": len(payload)}},
    )
    return payload
