from abc import abstractmethod
from typing import Any

from shared.clients.ClientInterface import ClientInterface
from shared.errors.product_errors import EmbeddingUnavailableError, ProductError, ProductValidationError
from shared.helper.HelperConfig import HelperConfig

DEFAULT_EMBED_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_EMBED_DIMENSION = 384


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_model = helper_config.get_string_val("EMBED_MODEL", default=DEFAULT_EMBED_MODEL)
        self.embed_dimension = helper_config.get_int_val("EMBED_DIMENSION", default=DEFAULT_EMBED_DIMENSION)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    def get_dimension(self) -> int:
        """Returns the fixed vector dimension D every embedding of this deployment has."""
        return self.embed_dimension

    def _get_transport_retries(self) -> int:
        # provider failures surface as EmbeddingUnavailableError, callers decide whether to retry
        return 0

    ################ ERRORS ##################
    def _make_unavailable_error(self, message: str) -> ProductError:
        return EmbeddingUnavailableError(message)

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/embeddings")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: Any) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - HuggingFace feature-extraction: [[...], [...]], already ordered
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}, needs sorting by index

        Args:
            response_data (Any): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    @staticmethod
    def create_searchable_text(name: str | None, description: str | None, tags: list[str] | None) -> str:
        """Build the canonical searchable text of a product.

        Name, description and the space-joined tags, in that order, with all
        whitespace runs collapsed to single spaces.
        """
        parts = [name or "", description or "", " ".join(tags or [])]
        return " ".join(" ".join(parts).split())

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send one embedding request and return the extracted vectors.

        Texts in one request are embedded independently of each other; the
        batch only saves round trips.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            EmbeddingUnavailableError: If the provider is unreachable, answers with
                an error status or returns an unusable body.
            ValueError: If the provider returns vectors of the wrong dimension.
        """
        texts = [texts] if isinstance(texts, str) else texts
        if not texts:
            return []

        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=self.get_embed_payload(texts),
        )
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise EmbeddingUnavailableError(f"Embedding request failed with status {response.status_code}.")

        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except ValueError as exc:
            raise EmbeddingUnavailableError(f"Embedding provider returned an unusable response: {exc}") from exc

        if len(vectors) != len(texts):
            raise EmbeddingUnavailableError(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts."
            )
        for vector in vectors:
            if len(vector) != self.embed_dimension:
                raise ValueError(
                    f"Embedding dimension mismatch: expected {self.embed_dimension}, got {len(vector)} "
                    f"(model {self.embed_model}). Changing the dimension requires re-embedding the whole index."
                )
        return vectors

    async def embed_text(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            ProductValidationError: If the text is empty.
            EmbeddingUnavailableError: See do_embed().
        """
        if not text or not text.strip():
            raise ProductValidationError("Invalid text input for embedding generation")
        vectors = await self.do_embed([text])
        return vectors[0]
