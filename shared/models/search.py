"""Pydantic models for search requests and responses."""

from pydantic import BaseModel, Field

from shared.models.product import Product

# offset + limit must stay within the store's default result window of 10000
MAX_OFFSET = 9900


class SearchRequest(BaseModel):
    """Incoming natural language search query."""

    query: str = Field(min_length=1)
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0, le=MAX_OFFSET)
    tags: list[str] | None = None


class SearchResultItem(Product):
    """A single product hit with its blended relevance score."""

    score: float


class SearchResponse(BaseModel):
    query: str
    total: int
    results: list[SearchResultItem]
    elapsed_ms: float


class SimilarResponse(BaseModel):
    product_id: str
    total: int
    results: list[SearchResultItem]


class StoreSearchResult(BaseModel):
    """Backend-agnostic result of a store search request.

    Attributes:
        total: Total number of matching documents reported by the backend.
        hits:  Raw hits, each a dict with "id", "score" and "source".
        took:  Time in milliseconds the backend spent on the query.
    """

    total: int
    hits: list[dict]
    took: float = 0


class ExploreResponse(BaseModel):
    total: int
    results: list[Product]
