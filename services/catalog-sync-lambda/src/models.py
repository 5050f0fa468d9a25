"""
Data models for the catalog sync pipeline.
Products come out of the decoder, pivoted categories out of the reshaper,
and the remote references describe what the vector store holds.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel


class Product(BaseModel):
    """One catalog entry as stored in the products table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    id: str = Field(..., alias="product_id", min_length=1)
    category: str = Field(..., min_length=1)
    attributes: dict[str, Any] = Field(default_factory=dict)


class PivotedCategory(BaseModel):
    """
    A category with its products folded into an attribute-major table:
    ``attributes_list[attribute][product_id] = value``.
    """
    name: str
    attributes_list: dict[str, dict[str, str]] = Field(default_factory=dict)


class CatalogDocument(RootModel[list[PivotedCategory]]):
    """The published knowledge-base document."""


class RemoteFile(BaseModel):
    """A file object tracked by the remote file store."""
    id: str
    filename: str


class VectorStoreRef(BaseModel):
    """The vector store backing the assistant's file_search tool."""
    id: str
