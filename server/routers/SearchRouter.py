from fastapi import APIRouter, Query, Request

from shared.models.search import ExploreResponse, SearchRequest, SearchResponse, SimilarResponse

router = APIRouter(prefix="/search", tags=["search"])


@router.post("")
async def search_products(request: Request, body: SearchRequest) -> SearchResponse:
    """Hybrid natural language search.

    Args:
        request (Request): FastAPI request (provides app.state.search_service).
        body (SearchRequest): Query text, paging and an optional tag filter.

    Returns:
        SearchResponse: Ranked products with their blended scores.
    """
    return await request.app.state.search_service.do_search(body)


@router.post("/vector")
async def vector_search(request: Request, body: SearchRequest) -> SearchResponse:
    return await request.app.state.search_service.do_vector_search(body)


@router.post("/keyword")
async def keyword_search(request: Request, body: SearchRequest) -> SearchResponse:
    return await request.app.state.search_service.do_keyword_search(body)


@router.get("/similar/{product_id}")
async def find_similar(request: Request, product_id: str, limit: int = Query(10, ge=1, le=50)) -> SimilarResponse:
    """Products nearest to the given product's embedding, excluding the product itself."""
    return await request.app.state.search_service.find_similar(product_id, limit=limit)


@router.get("/explore")
async def explore(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    category: str | None = None,
) -> ExploreResponse:
    """A random sample of products, optionally limited to one category or tag."""
    return await request.app.state.search_service.explore(limit=limit, category=category)
