"""Indexing orchestrator.

Turns a product URL into a normalized, tagged and embedded document and
drives the rest of a document's lifecycle: field updates, re-indexing from
the live page, ownership claims and deletion.
"""

import math
import uuid
from datetime import datetime
from typing import Callable

import pytz

from services.extraction.ContentExtractor import ContentExtractor
from services.indexing.categories import validate_categories
from services.tagging.TagExpander import TagExpander
from services.tagging.tag_pipeline import merge_expand_cap
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.errors.product_errors import (
    DuplicateURLError,
    OwnershipValidationError,
    ProductError,
    ProductNotFoundError,
    ProductValidationError,
    RateLimitedError,
)
from shared.helper.HelperConfig import HelperConfig
from shared.helper.url_helper import normalize_handle, normalize_product_url, url_variants
from shared.models.extraction import ExtractedContent
from shared.models.product import (
    BulkIndexFailure,
    BulkIndexResult,
    Product,
    ProductCreate,
    ProductDocument,
    ProductUpdate,
    ReindexChanges,
    ReindexResult,
)

MAX_OWNER_PRODUCTS = 100
DESCRIPTION_FALLBACK_LENGTH = 300
TEXT_FIELDS = ("name", "description", "tags")


def _utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else pytz.UTC.localize(value)


def expected_creator_meta(handle: str) -> str:
    """The meta tag a product page must carry for the given handle to own it."""
    return f'<meta name="twitter:creator" content="@{handle}">'


class IndexingService:
    """Builds, embeds and persists product documents."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        embed_client: EmbedClientInterface,
        extractor: ContentExtractor,
        tag_expander: TagExpander,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._embed_client = embed_client
        self._extractor = extractor
        self._tag_expander = tag_expander
        self._now = now_fn or _utc_now

        self.max_tags = helper_config.get_int_val("PRODUCT_MAX_TAGS", default=15)
        self.max_categories = helper_config.get_int_val("PRODUCT_MAX_CATEGORIES", default=5)
        self.cooldown_hours = helper_config.get_float_val("REINDEX_COOLDOWN_HOURS", default=24)

    ##########################################
    ################ HELPERS #################
    ##########################################

    async def _load(self, product_id: str) -> Product:
        source = await self._store.do_get_document(product_id)
        if source is None:
            raise ProductNotFoundError(product_id)
        return Product.model_validate(source)

    async def _find_by_normalized_url(self, url: str) -> dict | None:
        matches = await self._store.do_find_by_urls(url_variants(url))
        return matches[0] if matches else None

    async def _embed_document(self, name: str, description: str, tags: list[str]) -> list[float]:
        text = self._embed_client.create_searchable_text(name, description, tags)
        return await self._embed_client.embed_text(text)

    async def _build_tags(self, manual_tags: list[str] | None, auto_tags: list[str] | None) -> list[str]:
        return await merge_expand_cap(manual_tags, auto_tags, self._tag_expander, self.max_tags)

    @staticmethod
    def _description_of(content: ExtractedContent) -> str:
        return content.description or content.full_text[:DESCRIPTION_FALLBACK_LENGTH]

    ##########################################
    ################ GUARDS ##################
    ##########################################

    def check_rate_limit(self, product: Product) -> None:
        """Reject a re-index inside the cooldown window that starts at updated_at.

        Raises:
            RateLimitedError: With the remaining whole hours, rounded up.
        """
        elapsed_hours = (self._now() - _as_utc(product.updated_at)).total_seconds() / 3600
        if elapsed_hours < self.cooldown_hours:
            hours_remaining = math.ceil(self.cooldown_hours - elapsed_hours)
            self.logging.warning("Re-index of %s rejected, %d hours of cooldown left.", product.id, hours_remaining)
            raise RateLimitedError(hours_remaining)

    def verify_ownership(self, creator_handle: str | None, claimed_handle: str) -> None:
        """Require the page's creator handle to equal the claimed handle (both normalized).

        Raises:
            OwnershipValidationError: On mismatch or a missing creator meta tag.
        """
        expected = normalize_handle(claimed_handle)
        found = normalize_handle(creator_handle)
        if found is None or found != expected:
            self.logging.warning("Ownership check failed: page creator %r, claimed %r.", found, expected)
            message = (
                "No twitter:creator meta tag found on the website."
                if found is None
                else f"The twitter:creator meta tag ({found}) does not match your handle ({expected})."
            )
            raise OwnershipValidationError(message, expected_meta=expected_creator_meta(expected))

    def _require_owner(self, product: Product, requester: str) -> None:
        if product.owner_handle != requester:
            self.logging.warning("%s is not the owner of product %s.", requester, product.id)
            raise OwnershipValidationError(
                "You can only modify products you own. Claim the product first.",
                expected_meta=expected_creator_meta(requester),
            )

    ##########################################
    ################# INDEX ##################
    ##########################################

    async def index_product(self, request: ProductCreate) -> Product:
        """Index a new product.

        Supplying both name and description skips page extraction; an
        identified caller (indexed_by) still has the page's creator meta tag
        verified.

        Args:
            request (ProductCreate): URL, optional manual data and the indexing identity.

        Returns:
            Product: The stored document without its embedding.

        Raises:
            InvalidURLError: If the URL is not a root-domain http(s) URL.
            DuplicateURLError: If the normalized URL is already indexed.
            ProductValidationError: On unknown categories.
            ExtractionBlockedError / ExtractionUnreachableError: If the page cannot be fetched.
            OwnershipValidationError: If indexed_by does not match the page's creator tag.
            EmbeddingUnavailableError / StoreUnavailableError: On backend failures.
        """
        url = normalize_product_url(request.url)
        categories = validate_categories(request.categories, self.max_categories)
        owner = normalize_handle(request.indexed_by)

        existing = await self._find_by_normalized_url(url)
        if existing:
            raise DuplicateURLError(url, existing_id=existing.get("id"))

        manual_name = (request.name or "").strip()
        manual_description = (request.description or "").strip()
        content: ExtractedContent | None = None
        if manual_name and manual_description:
            self.logging.info("Indexing %s with manual data, skipping extraction.", url)
            creator = await self._extractor.fetch_creator_handle(url) if owner else None
        else:
            content = await self._extractor.fetch_page_content(url)
            creator = content.creator_handle

        if owner:
            self.verify_ownership(creator, owner)

        name = manual_name or content.name
        description = manual_description or self._description_of(content)
        tags = await self._build_tags(request.tags, content.tags if content else None)
        embedding = await self._embed_document(name, description, tags)

        now = self._now()
        document = ProductDocument(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            tags=tags,
            categories=categories,
            url=url,
            owner_handle=owner,
            creator_handle=creator,
            site_handle=content.site_handle if content else None,
            created_at=now,
            updated_at=now,
            embedding=embedding,
        )
        await self._store.do_put_document(document.id, document.model_dump(mode="json"))
        self.logging.info("Indexed product %s (%s) with %d tags.", document.id, url, len(tags))
        return document.to_product()

    async def bulk_index_products(self, requests: list[ProductCreate]) -> BulkIndexResult:
        """Index products one after another, collecting per-item failures instead of aborting."""
        result = BulkIndexResult()
        for request in requests:
            try:
                result.success.append(await self.index_product(request))
            except ProductError as exc:
                self.logging.warning("Bulk index of %s failed (%s): %s", request.url, exc.kind, exc.message)
                result.failed.append(BulkIndexFailure(url=request.url, error=exc.message, kind=exc.kind))
            except Exception as exc:
                self.logging.error("Bulk index of %s failed unexpectedly: %s", request.url, exc, exc_info=True)
                result.failed.append(
                    BulkIndexFailure(url=request.url, error=str(exc) or exc.__class__.__name__, kind="InternalError")
                )
        self.logging.info("Bulk index finished: %d indexed, %d failed.", len(result.success), len(result.failed))
        return result

    ##########################################
    ################# UPDATE #################
    ##########################################

    async def update_product(self, product_id: str, update: ProductUpdate, requested_by: str | None = None) -> Product:
        """Apply a partial field edit.

        New tags are expanded and capped. The embedding is recomputed when
        name, description or tags change. Fields left out are untouched.

        Raises:
            ProductNotFoundError: If the product does not exist.
            ProductValidationError: If nothing is to be updated, or a field is invalid.
            OwnershipValidationError: If requested_by is set and does not own the product.
        """
        fields = update.provided_fields()
        if not fields:
            raise ProductValidationError("No fields to update")

        current = await self._load(product_id)
        requester = normalize_handle(requested_by)
        if requester:
            self._require_owner(current, requester)

        if "name" in fields:
            fields["name"] = fields["name"].strip()
            if not fields["name"]:
                raise ProductValidationError("Product name must not be empty")
        if "description" in fields:
            fields["description"] = fields["description"].strip()
        if "categories" in fields:
            fields["categories"] = validate_categories(fields["categories"], self.max_categories)
        if "tags" in fields:
            fields["tags"] = await self._build_tags(fields["tags"], None)

        fields["updated_at"] = self._now()
        updated = current.model_copy(update=fields)
        payload = updated.model_dump(mode="json", include=set(fields))
        if any(field in fields for field in TEXT_FIELDS):
            payload["embedding"] = await self._embed_document(updated.name, updated.description, updated.tags)

        await self._store.do_update_document(product_id, payload)
        self.logging.info("Updated product %s: %s", product_id, ", ".join(sorted(fields)))
        return updated

    ##########################################
    ################ REINDEX #################
    ##########################################

    async def reindex_product(self, product_id: str, requested_by: str | None = None) -> ReindexResult:
        """Refresh a product from its live page.

        Previously stored tags are replaced by freshly extracted and expanded
        ones. created_at, categories and owner are kept, updated_at moves to now.
        For an identified requester, ownership and the cooldown are checked
        before any page is fetched, and the creator tag is re-verified after.

        Returns:
            ReindexResult: The refreshed document and which fields changed.

        Raises:
            ProductNotFoundError, RateLimitedError, OwnershipValidationError,
            ExtractionBlockedError, ExtractionUnreachableError,
            EmbeddingUnavailableError, StoreUnavailableError
        """
        current = await self._load(product_id)
        requester = normalize_handle(requested_by)
        if requester:
            self._require_owner(current, requester)
            self.check_rate_limit(current)

        content = await self._extractor.fetch_page_content(current.url)
        if requester:
            self.verify_ownership(content.creator_handle, requester)

        description = self._description_of(content)
        tags = await self._build_tags(None, content.tags)
        embedding = await self._embed_document(content.name, description, tags)

        changes = ReindexChanges(
            name=content.name != current.name,
            tags=set(tags) != set(current.tags),
            description=description != current.description,
            owner=(content.creator_handle, content.site_handle) != (current.creator_handle, current.site_handle),
        )
        document = ProductDocument(
            **current.model_dump(exclude={"name", "description", "tags", "creator_handle", "site_handle", "updated_at"}),
            name=content.name,
            description=description,
            tags=tags,
            creator_handle=content.creator_handle,
            site_handle=content.site_handle,
            updated_at=self._now(),
            embedding=embedding,
        )
        await self._store.do_put_document(document.id, document.model_dump(mode="json"))
        self.logging.info("Re-indexed product %s, changes: %s", product_id, changes.model_dump())
        return ReindexResult(document=document.to_product(), changes=changes)

    ##########################################
    ################# CLAIM ##################
    ##########################################

    async def claim_product(self, url: str, handle: str) -> Product:
        """Take ownership of an indexed product by proving control of its page.

        Raises:
            ProductValidationError: If the handle is blank.
            ProductNotFoundError: If no product is indexed under the URL.
            OwnershipValidationError: If the page's creator tag does not match.
        """
        owner = normalize_handle(handle)
        if not owner:
            raise ProductValidationError("An identity handle is required to claim a product")
        normalized = normalize_product_url(url)
        source = await self._find_by_normalized_url(normalized)
        if source is None:
            raise ProductNotFoundError(normalized)
        current = Product.model_validate(source)

        content = await self._extractor.fetch_page_content(current.url)
        self.verify_ownership(content.creator_handle, owner)

        fields: dict = {
            "owner_handle": owner,
            "creator_handle": content.creator_handle,
            "site_handle": content.site_handle,
            "updated_at": self._now(),
        }
        description = self._description_of(content)
        if content.name and content.name != current.name:
            fields["name"] = content.name
        if description and description != current.description:
            fields["description"] = description

        updated = current.model_copy(update=fields)
        payload = updated.model_dump(mode="json", include=set(fields))
        if "name" in fields or "description" in fields:
            payload["embedding"] = await self._embed_document(updated.name, updated.description, updated.tags)

        await self._store.do_update_document(current.id, payload)
        self.logging.info("Product %s claimed by %s.", current.id, owner)
        return updated

    ##########################################
    ################ DELETE ##################
    ##########################################

    async def delete_product(self, product_id: str, requested_by: str | None = None) -> None:
        """Delete a product. Deleting an unknown (or already deleted) id raises NotFound.

        Raises:
            ProductNotFoundError: If the product does not exist.
            OwnershipValidationError: If requested_by is set and does not own the product.
        """
        requester = normalize_handle(requested_by)
        if requester:
            self._require_owner(await self._load(product_id), requester)
        if not await self._store.do_delete_document(product_id):
            raise ProductNotFoundError(product_id)
        self.logging.info("Deleted product %s.", product_id)

    ##########################################
    ################ LOOKUPS #################
    ##########################################

    async def get_product(self, product_id: str) -> Product:
        return await self._load(product_id)

    async def find_product_by_url(self, url: str) -> Product:
        """Look a product up by URL, with or without trailing slash.

        Raises:
            InvalidURLError: If the URL is not a root-domain http(s) URL.
            ProductNotFoundError: If nothing is indexed under it.
        """
        normalized = normalize_product_url(url)
        source = await self._find_by_normalized_url(normalized)
        if source is None:
            raise ProductNotFoundError(normalized)
        return Product.model_validate(source)

    async def list_products_by_owner(self, handle: str, limit: int = MAX_OWNER_PRODUCTS) -> list[Product]:
        """An owner's products, most recently updated first."""
        owner = normalize_handle(handle)
        if not owner:
            raise ProductValidationError("An identity handle is required")
        payload = self._store.get_owner_lookup_payload(owner, min(limit, MAX_OWNER_PRODUCTS))
        result = await self._store.do_search(payload)
        return [Product.model_validate({**hit["source"], "id": hit["id"]}) for hit in result.hits]
