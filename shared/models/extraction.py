"""Pydantic models for data extracted from product web pages."""

from pydantic import BaseModel


class ExtractedContent(BaseModel):
    """Normalized content scraped from a product page.

    Attributes:
        name:           Resolved title (Open Graph → <title> → <h1> → "Untitled").
        description:    Resolved description (Open Graph → meta → body text).
        full_text:      Cleaned body text, at most 2000 characters.
        tags:           Heuristic candidate tags, at most 10.
        url:            The URL that was fetched.
        creator_handle: Normalized twitter:creator handle, if present.
        site_handle:    Normalized twitter:site handle, if present.
    """

    name: str
    description: str
    full_text: str = ""
    tags: list[str] = []
    url: str
    creator_handle: str | None = None
    site_handle: str | None = None


class PricingInfo(BaseModel):
    has_pricing: bool = False
    pricing_info: str | None = None
