from fastapi import APIRouter, Header, Query, Request

from server.models.requests import BulkIndexRequest, ClaimRequest
from server.models.responses import DeleteResponse
from shared.models.extraction import PricingInfo
from shared.models.product import BulkIndexResult, Product, ProductCreate, ProductUpdate, ReindexResult

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", status_code=201)
async def index_product(request: Request, body: ProductCreate) -> Product:
    """Index a new product from its root-domain URL.

    Args:
        request (Request): FastAPI request (provides app.state.indexing_service).
        body (ProductCreate): URL plus optional manual name, description, tags and categories.

    Returns:
        Product: The stored document without its embedding.
    """
    return await request.app.state.indexing_service.index_product(body)


@router.post("/bulk")
async def bulk_index_products(request: Request, body: BulkIndexRequest) -> BulkIndexResult:
    """Index several products; failures are reported per item and do not abort the batch."""
    return await request.app.state.indexing_service.bulk_index_products(body.products)


@router.post("/claim")
async def claim_product(request: Request, body: ClaimRequest) -> Product:
    """Claim ownership of an indexed product via its twitter:creator meta tag."""
    return await request.app.state.indexing_service.claim_product(body.url, body.handle)


@router.get("/by-url")
async def find_product_by_url(request: Request, url: str = Query(..., min_length=1)) -> Product:
    return await request.app.state.indexing_service.find_product_by_url(url)


@router.get("/by-owner/{handle}")
async def list_products_by_owner(request: Request, handle: str) -> list[Product]:
    return await request.app.state.indexing_service.list_products_by_owner(handle)


@router.get("/pricing")
async def fetch_pricing_info(request: Request, url: str = Query(..., min_length=1)) -> PricingInfo:
    """Check the common pricing pages of a product site. Informational only."""
    return await request.app.state.extractor.fetch_pricing_info(url)


@router.get("/{product_id}")
async def get_product(request: Request, product_id: str) -> Product:
    return await request.app.state.indexing_service.get_product(product_id)


@router.patch("/{product_id}")
async def update_product(
    request: Request,
    product_id: str,
    body: ProductUpdate,
    x_requested_by: str | None = Header(default=None),
) -> Product:
    """Edit fields of a product. The embedding follows name, description and tags.

    Args:
        request (Request): FastAPI request (provides app.state.indexing_service).
        product_id (str): Id of the product.
        body (ProductUpdate): Fields to change; omitted fields stay untouched.
        x_requested_by (str | None): Identity handle of the caller, if any.
    """
    return await request.app.state.indexing_service.update_product(product_id, body, requested_by=x_requested_by)


@router.post("/{product_id}/reindex")
async def reindex_product(
    request: Request,
    product_id: str,
    x_requested_by: str | None = Header(default=None),
) -> ReindexResult:
    """Refresh a product from its live page and report which fields changed.

    Identified callers must own the product and are limited to one re-index per cooldown window.
    """
    return await request.app.state.indexing_service.reindex_product(product_id, requested_by=x_requested_by)


@router.delete("/{product_id}")
async def delete_product(
    request: Request,
    product_id: str,
    x_requested_by: str | None = Header(default=None),
) -> DeleteResponse:
    await request.app.state.indexing_service.delete_product(product_id, requested_by=x_requested_by)
    return DeleteResponse(status="deleted", id=product_id)
