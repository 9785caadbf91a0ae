"""Indexing runner entry point.

One-shot administration of the product index.

Usage:
    python -m services.indexing.indexing_runner setup
    python -m services.indexing.indexing_runner reset
    python -m services.indexing.indexing_runner count
    python -m services.indexing.indexing_runner bulk products.json|urls.txt

A bulk file is either a JSON list of index requests
({"url": ..., "tags": [...], ...}) or plain text with one URL per line.
"""

import argparse
import asyncio
import json
from pathlib import Path

from services.extraction.ContentExtractor import ContentExtractor
from services.indexing.IndexingService import IndexingService
from services.indexing.index_admin import ensure_index, reset_index
from services.tagging.TagExpander import TagExpander
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.product import ProductCreate

logging = setup_logging()


def load_bulk_file(path: Path) -> list[ProductCreate]:
    """Read index requests from a JSON list or a one-URL-per-line text file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return [ProductCreate.model_validate(item) for item in json.loads(text)]
    return [
        ProductCreate(url=line.strip())
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


async def main(command: str, bulk_file: Path | None = None) -> None:
    """Run one administration command against the configured store."""
    config = HelperConfig(logger=logging)
    embed_client = EmbedClientManager(helper_config=config).get_client()
    store_client = StoreClientManager(helper_config=config).get_client()
    extractor = ContentExtractor(helper_config=config)

    try:
        for client in [embed_client, store_client, extractor]:
            await client.boot()
        await store_client.do_healthcheck()

        if command == "setup":
            await ensure_index(store_client, embed_client.get_dimension(), logging)
        elif command == "reset":
            await reset_index(store_client, embed_client.get_dimension(), logging)
        elif command == "count":
            logging.info("Product index holds %d documents.", await store_client.do_count())
        elif command == "bulk":
            await ensure_index(store_client, embed_client.get_dimension(), logging)
            service = IndexingService(
                helper_config=config,
                store_client=store_client,
                embed_client=embed_client,
                extractor=extractor,
                tag_expander=TagExpander(helper_config=config, embed_client=embed_client),
            )
            result = await service.bulk_index_products(load_bulk_file(bulk_file))
            for failure in result.failed:
                logging.warning("  %s: [%s] %s", failure.url, failure.kind, failure.error)
            logging.info("Indexed %d products, %d failed.", len(result.success), len(result.failed), color="green")
    finally:
        for client in [embed_client, store_client, extractor]:
            await client.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Product index administration")
    parser.add_argument("command", choices=["setup", "reset", "count", "bulk"])
    parser.add_argument("file", nargs="?", type=Path, help="bulk file (JSON list or one URL per line)")
    args = parser.parse_args(argv)
    if args.command == "bulk" and args.file is None:
        parser.error("bulk requires a file")
    return args


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(main(args.command, args.file))
