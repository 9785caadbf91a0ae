"""Pydantic models for product documents.

Hierarchy:
  Product: the document as returned to callers (no embedding).
  ProductDocument: the stored representation, adds the write-only embedding.
  ProductCreate: input of an index (create) request.
  ProductUpdate: partial field edit.
  ReindexChanges / ReindexResult / BulkIndexResult: operation results.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A single indexed product as exposed to callers.

    The embedding vector is never part of this model; any extra field in the
    stored source (including ``embedding``) is ignored on validation.
    """

    id: str
    name: str
    description: str = ""
    tags: list[str] = []
    categories: list[str] = []
    url: str
    owner_handle: str | None = None
    creator_handle: str | None = None
    site_handle: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductDocument(Product):
    """Stored representation of a product, including its embedding vector."""

    embedding: list[float]

    def to_product(self) -> Product:
        """Strip the embedding for read responses."""
        return Product.model_validate(self.model_dump(exclude={"embedding"}))


class ProductCreate(BaseModel):
    """Index request. Supplying both name and description skips page extraction."""

    url: str
    name: str | None = None
    description: str | None = None
    tags: list[str] = []
    categories: list[str] = []
    indexed_by: str | None = None


class ProductUpdate(BaseModel):
    """Partial field edit. Fields left as None are not touched."""

    name: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    categories: list[str] | None = None

    def provided_fields(self) -> dict:
        return self.model_dump(exclude_none=True)


class ReindexChanges(BaseModel):
    """Per-field change report of a re-index, relative to the pre-refresh snapshot."""

    name: bool = False
    tags: bool = False
    description: bool = False
    owner: bool = False


class ReindexResult(BaseModel):
    document: Product
    changes: ReindexChanges


class BulkIndexFailure(BaseModel):
    url: str
    error: str
    kind: str | None = None


class BulkIndexResult(BaseModel):
    success: list[Product] = Field(default_factory=list)
    failed: list[BulkIndexFailure] = Field(default_factory=list)
