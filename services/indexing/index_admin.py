"""Product index administration: create if missing, reset, count."""

import logging

from shared.clients.store.StoreClientInterface import StoreClientInterface


async def ensure_index(store_client: StoreClientInterface, dimension: int, logger: logging.Logger) -> bool:
    """Create the product index unless it already exists.

    Returns:
        bool: True if the index was created, False if it was already there.
    """
    if await store_client.do_existence_check():
        logger.info("Product index already exists.")
        return False
    await store_client.do_create_index(dimension)
    return True


async def reset_index(store_client: StoreClientInterface, dimension: int, logger: logging.Logger) -> None:
    """Drop the product index with all documents and recreate it empty.

    Required whenever the embedding dimension changes.
    """
    if await store_client.do_delete_index():
        logger.warning("Deleted product index and all its documents.")
    await store_client.do_create_index(dimension)
