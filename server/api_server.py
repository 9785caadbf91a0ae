"""FastAPI application entry point for the indiesearch indexing and search API."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from server.models.responses import HealthResponse
from server.routers.ProductRouter import router as product_router
from server.routers.SearchRouter import router as search_router
from services.extraction.ContentExtractor import ContentExtractor
from services.indexing.IndexingService import IndexingService
from services.indexing.index_admin import ensure_index
from services.search.SearchService import SearchService
from services.tagging.TagExpander import TagExpander
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.errors.product_errors import ProductError, RateLimitedError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")

STATUS_BY_KIND = {
    "InvalidURL": 400,
    "ValidationError": 400,
    "DuplicateURL": 409,
    "ExtractionBlocked": 422,
    "ExtractionUnreachable": 502,
    "EmbeddingUnavailable": 503,
    "StoreUnavailable": 503,
    "OwnershipValidationFailed": 403,
    "RateLimited": 429,
    "NotFound": 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    store_client = StoreClientManager(helper_config=app.state.helper_config).get_client()
    extractor = ContentExtractor(helper_config=app.state.helper_config)

    logging.info("Booting all clients...")
    for client in [embed_client, store_client, extractor]:
        await client.boot()
    logging.info("All clients booted successfully.")

    # the store is required, without it nothing can be served
    await store_client.do_healthcheck()
    await ensure_index(store_client, embed_client.get_dimension(), logging)

    app.state.embed_client = embed_client
    app.state.store_client = store_client
    app.state.extractor = extractor
    # one expander per process, it owns the reference embedding cache
    app.state.tag_expander = TagExpander(helper_config=app.state.helper_config, embed_client=embed_client)
    app.state.indexing_service = IndexingService(
        helper_config=app.state.helper_config,
        store_client=store_client,
        embed_client=embed_client,
        extractor=extractor,
        tag_expander=app.state.tag_expander,
    )
    app.state.search_service = SearchService(
        helper_config=app.state.helper_config,
        store_client=store_client,
        embed_client=embed_client,
    )

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in [embed_client, store_client, extractor]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="indiesearch",
    description=(
        "Indexes web-hosted products from their URL into a document store and serves "
        "hybrid (lexical + vector) natural language search over them."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(product_router)
app.include_router(search_router)


@app.exception_handler(ProductError)
async def product_error_handler(request: Request, exc: ProductError) -> JSONResponse:
    """Render any core error as {"error": {kind, message, hint, retryable}} with a matching status."""
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.hours_remaining * 3600)}
    if status_code >= 500:
        logging.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()}, headers=headers)


@app.get("/health", tags=["health"])
async def health(request: Request) -> HealthResponse:
    documents = await request.app.state.store_client.do_count()
    return HealthResponse(status="ok", version=app_version, documents=documents)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting indiesearch API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
