"""Tag expansion engine.

Maps noisy raw tags onto the canonical reference vocabulary by cosine
similarity of their embeddings. Reference embeddings are computed once per
instance, on first use, and shared by all concurrent callers.
"""

import asyncio
import math

from services.tagging.reference_tags import REFERENCE_TAGS
from services.tagging.tag_pipeline import normalize_tags
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.errors.product_errors import EmbeddingUnavailableError
from shared.helper.HelperConfig import HelperConfig


def cosine_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """dot(a, b) / (|a| * |b|). A zero vector has similarity 0 to anything.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(vec_a) != len(vec_b):
        raise ValueError(f"Vectors must have the same length ({len(vec_a)} != {len(vec_b)})")
    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class TagExpander:
    """Proposes canonical tags for raw tags via embedding similarity."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        reference_tags: list[str] | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self.similarity_threshold = helper_config.get_float_val("TAG_SIMILARITY_THRESHOLD", default=0.65)
        self.max_expansions = helper_config.get_int_val("TAG_MAX_EXPANSIONS", default=3)
        self.batch_size = helper_config.get_int_val("TAG_REFERENCE_BATCH_SIZE", default=10)

        self._reference_tags = list(dict.fromkeys(reference_tags or REFERENCE_TAGS))
        self._reference_set = frozenset(self._reference_tags)
        self._reference_embeddings: dict[str, list[float]] | None = None
        self._reference_task: asyncio.Future | None = None

    def get_reference_tags(self) -> list[str]:
        return list(self._reference_tags)

    ##########################################
    ########## REFERENCE EMBEDDINGS ##########
    ##########################################

    async def _compute_reference_embeddings(self) -> dict[str, list[float]]:
        self.logging.info("Computing embeddings for %d reference tags (one-time setup)...", len(self._reference_tags))
        embeddings: dict[str, list[float]] = {}
        for start in range(0, len(self._reference_tags), self.batch_size):
            batch = self._reference_tags[start:start + self.batch_size]
            vectors = await self._embed_client.do_embed(batch)
            embeddings.update(zip(batch, vectors))
            self.logging.debug(
                "Processed %d/%d reference tags",
                min(start + self.batch_size, len(self._reference_tags)),
                len(self._reference_tags),
            )
        self._reference_embeddings = embeddings
        self.logging.info("Reference tag embeddings computed and cached.")
        return embeddings

    async def get_reference_embeddings(self) -> dict[str, list[float]]:
        """Return the cached reference embeddings, computing them on first use.

        Concurrent first callers all await the same in-flight computation. If
        it fails, every waiter sees the error and the next call starts over.
        """
        if self._reference_embeddings is not None:
            return self._reference_embeddings

        if self._reference_task is None:
            self._reference_task = asyncio.ensure_future(self._compute_reference_embeddings())
        task = self._reference_task
        try:
            # shield: a cancelled caller must not cancel the shared computation
            return await asyncio.shield(task)
        except Exception:
            if self._reference_task is task:
                self._reference_task = None
            raise

    ##########################################
    ############### EXPANSION ################
    ##########################################

    def most_similar(
        self,
        vector: list[float],
        references: dict[str, list[float]],
        similarity_threshold: float,
        max_expansions: int,
    ) -> list[tuple[str, float]]:
        """Reference tags at or above the threshold, best first, at most max_expansions."""
        scored = [
            (ref_tag, similarity)
            for ref_tag, ref_vector in references.items()
            if (similarity := cosine_similarity(vector, ref_vector)) >= similarity_threshold
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:max_expansions]

    async def expand(
        self,
        tags: list[str],
        similarity_threshold: float | None = None,
        max_expansions: int | None = None,
    ) -> list[str]:
        """Expand raw tags with semantically similar reference tags.

        The output always starts with the normalized input, followed by the
        expansions. Tags already in the reference vocabulary are not expanded.
        If the embedding provider fails, the normalized input is returned as is.

        Args:
            tags (list[str]): Raw tags.
            similarity_threshold (float | None): Minimum cosine similarity, defaults to config.
            max_expansions (int | None): Maximum additions per input tag, defaults to config.

        Returns:
            list[str]: Deduplicated expanded tags.
        """
        normalized = normalize_tags(tags)
        if not normalized:
            return []
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold
        limit = self.max_expansions if max_expansions is None else max_expansions

        try:
            references = await self.get_reference_embeddings()
            candidates = [tag for tag in normalized if tag not in self._reference_set]
            expanded = dict.fromkeys(normalized)
            if candidates:
                vectors = await self._embed_client.do_embed(candidates)
                for tag, vector in zip(candidates, vectors):
                    matches = self.most_similar(vector, references, threshold, limit)
                    for ref_tag, similarity in matches:
                        expanded[ref_tag] = None
                    self.logging.debug(
                        "Expansions for %r: %s", tag, ", ".join(f"{t} ({s:.3f})" for t, s in matches) or "none",
                    )
        except (EmbeddingUnavailableError, ValueError) as exc:
            self.logging.warning("Tag expansion failed, falling back to original tags: %s", exc)
            return normalized

        result = list(expanded)
        self.logging.info("Expanded %d tags to %d tags.", len(normalized), len(result))
        return result
