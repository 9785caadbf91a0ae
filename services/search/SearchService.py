"""Hybrid search engine.

Embeds the query, runs a blended lexical + vector request against the
document store and post-processes the hits into ranked results.
"""

import random
import time

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.errors.product_errors import ProductNotFoundError, ProductValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.product import Product
from shared.models.search import (
    ExploreResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SimilarResponse,
    StoreSearchResult,
)

# description carries the most signal, then tags, then name
HYBRID_FIELD_BOOSTS = {"name": 1.2, "description": 2.5, "tags": 1.5}
MAX_SIMILAR = 50


class SearchService:
    """Natural language product search."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._embed_client = embed_client
        self.vector_weight = helper_config.get_float_val("SEARCH_VECTOR_WEIGHT", default=0.7)
        self.keyword_weight = helper_config.get_float_val("SEARCH_KEYWORD_WEIGHT", default=1.2)
        self.min_score = helper_config.get_float_val("SEARCH_MIN_SCORE", default=1.0)

    ##########################################
    ################ HELPERS #################
    ##########################################

    @staticmethod
    def _clean_query(query: str) -> str:
        cleaned = " ".join((query or "").split())
        if not cleaned:
            raise ProductValidationError("Search query must not be empty")
        return cleaned

    @staticmethod
    def _to_items(result: StoreSearchResult, min_score: float | None = None, exclude_id: str | None = None) -> list[SearchResultItem]:
        items = []
        for hit in result.hits:
            if exclude_id is not None and hit["id"] == exclude_id:
                continue
            if min_score is not None and hit["score"] < min_score:
                continue
            items.append(SearchResultItem.model_validate({**hit["source"], "id": hit["id"], "score": hit["score"]}))
        return items

    def _build_response(
        self,
        query: str,
        result: StoreSearchResult,
        started: float,
        min_score: float | None = None,
    ) -> SearchResponse:
        items = self._to_items(result, min_score=min_score)
        # the store already drops low scores, hits removed here are subtracted from the total as well
        dropped = len(result.hits) - len(items)
        return SearchResponse(
            query=query,
            total=max(result.total - dropped, len(items)),
            results=items,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    ##########################################
    ################ SEARCH ##################
    ##########################################

    async def do_search(self, request: SearchRequest) -> SearchResponse:
        """Hybrid search: weighted vector similarity OR weighted fuzzy lexical match.

        Hits below the minimum combined score are discarded. The tag filter
        restricts membership without influencing scores.

        Raises:
            ProductValidationError: If the query is blank.
            EmbeddingUnavailableError: If the query cannot be embedded.
            StoreUnavailableError: If the store request fails.
        """
        started = time.perf_counter()
        query = self._clean_query(request.query)
        vector = await self._embed_client.embed_text(query)

        payload = self._store.get_hybrid_search_payload(
            query_text=query,
            query_vector=vector,
            limit=request.limit,
            offset=request.offset,
            vector_weight=self.vector_weight,
            keyword_weight=self.keyword_weight,
            field_boosts=HYBRID_FIELD_BOOSTS,
            min_score=self.min_score,
            tag_filter=request.tags,
        )
        result = await self._store.do_search(payload)
        response = self._build_response(query, result, started, min_score=self.min_score)
        self.logging.info(
            "Search %r: %d of %d hits in %.1f ms", query, len(response.results), response.total, response.elapsed_ms,
        )
        return response

    async def do_vector_search(self, request: SearchRequest) -> SearchResponse:
        """Vector-only search, for diagnostics and as a fallback."""
        started = time.perf_counter()
        query = self._clean_query(request.query)
        vector = await self._embed_client.embed_text(query)
        payload = self._store.get_vector_search_payload(
            query_vector=vector, limit=request.limit, offset=request.offset, tag_filter=request.tags,
        )
        result = await self._store.do_search(payload)
        return self._build_response(query, result, started)

    async def do_keyword_search(self, request: SearchRequest) -> SearchResponse:
        """Lexical-only search, for diagnostics and as a fallback."""
        started = time.perf_counter()
        query = self._clean_query(request.query)
        payload = self._store.get_keyword_search_payload(
            query_text=query, limit=request.limit, offset=request.offset, tag_filter=request.tags,
        )
        result = await self._store.do_search(payload)
        return self._build_response(query, result, started)

    async def find_similar(self, product_id: str, limit: int = 10) -> SimilarResponse:
        """Products closest to a stored product's embedding, the product itself excluded.

        Raises:
            ProductNotFoundError: If the product does not exist.
            ProductValidationError: If the stored product has no embedding.
        """
        limit = max(1, min(limit, MAX_SIMILAR))
        source = await self._store.do_get_document(product_id, with_vector=True)
        if source is None:
            raise ProductNotFoundError(product_id)
        embedding = source.get("embedding")
        if not embedding:
            raise ProductValidationError(f"Product {product_id} has no stored embedding")

        # one extra hit in case the store returns the source document anyway
        payload = self._store.get_vector_search_payload(
            query_vector=embedding, limit=limit + 1, exclude_ids=[product_id],
        )
        result = await self._store.do_search(payload)
        items = self._to_items(result, exclude_id=product_id)[:limit]
        return SimilarResponse(product_id=product_id, total=len(items), results=items)

    async def explore(self, limit: int = 20, category: str | None = None, seed: int | None = None) -> ExploreResponse:
        """A random sample of products, optionally restricted to a category or tag."""
        seed = random.randint(0, 2**31 - 1) if seed is None else seed
        payload = self._store.get_random_payload(limit=limit, seed=seed, category=category)
        result = await self._store.do_search(payload)
        products = [Product.model_validate({**hit["source"], "id": hit["id"]}) for hit in result.hits]
        return ExploreResponse(total=result.total, results=products)
