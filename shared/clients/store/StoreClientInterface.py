from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors.product_errors import ProductError, ProductNotFoundError, StoreUnavailableError
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import StoreSearchResult


class StoreClientInterface(ClientInterface):
    """Document store backend: exact-term filters, full-text scoring and k-NN vector search."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "store"
        """
        return "store"

    ################ ERRORS ##################
    def _make_unavailable_error(self, message: str) -> ProductError:
        return StoreUnavailableError(message)

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_index(self) -> str:
        """
        Returns the endpoint path of the product index itself (create / delete / exists).
        """
        pass

    @abstractmethod
    def _get_endpoint_document(self, doc_id: str) -> str:
        """
        Returns the endpoint path for put / get / delete of a single document.
        """
        pass

    @abstractmethod
    def _get_endpoint_update(self, doc_id: str) -> str:
        """
        Returns the endpoint path for partial updates of a single document.
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for search requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self) -> str:
        """
        Returns the endpoint path for document counts.
        """
        pass

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    @abstractmethod
    def get_index_mapping(self, dimension: int) -> dict:
        """
        Returns the index definition: keyword url/categories/owner fields, scorable
        name/description/tags text fields, date fields and a fixed-dimension
        cosine vector field named "embedding".

        Args:
            dimension (int): Embedding dimension of the deployment.
        """
        pass

    @abstractmethod
    def get_update_payload(self, fields: dict) -> dict:
        """
        Returns the body of a partial document update.
        """
        pass

    @abstractmethod
    def get_url_lookup_payload(self, urls: list[str]) -> dict:
        """
        Returns a search body matching documents whose url equals any of the given values exactly.
        """
        pass

    @abstractmethod
    def get_owner_lookup_payload(self, owner_handle: str, limit: int) -> dict:
        """
        Returns a search body for an owner's documents, newest update first.
        """
        pass

    @abstractmethod
    def get_hybrid_search_payload(
        self,
        query_text: str,
        query_vector: list[float],
        limit: int,
        offset: int,
        vector_weight: float,
        keyword_weight: float,
        field_boosts: dict[str, float],
        min_score: float,
        tag_filter: list[str] | None = None,
    ) -> dict:
        """
        Returns a disjunctive search body: a weighted vector-similarity clause OR a
        weighted fuzzy multi-field lexical clause; at least one must match.
        The tag filter is a hard, non-scoring membership filter.

        Args:
            query_text (str): The raw query for the lexical branch.
            query_vector (list[float]): The query embedding for the vector branch.
            limit (int): Page size.
            offset (int): Number of hits to skip.
            vector_weight (float): Boost of the vector clause.
            keyword_weight (float): Boost of the lexical clause.
            field_boosts (dict[str, float]): Per-field boosts of the lexical clause.
            min_score (float): Hits scoring lower are dropped by the backend.
            tag_filter (list[str] | None): Required tags (any of), or None.
        """
        pass

    @abstractmethod
    def get_vector_search_payload(
        self,
        query_vector: list[float],
        limit: int,
        offset: int = 0,
        tag_filter: list[str] | None = None,
        exclude_ids: list[str] | None = None,
    ) -> dict:
        """
        Returns a vector-only search body scored by cosine similarity over all documents.
        """
        pass

    @abstractmethod
    def get_keyword_search_payload(
        self,
        query_text: str,
        limit: int,
        offset: int = 0,
        tag_filter: list[str] | None = None,
    ) -> dict:
        """
        Returns a lexical-only search body.
        """
        pass

    @abstractmethod
    def get_random_payload(self, limit: int, seed: int, category: str | None = None) -> dict:
        """
        Returns a search body yielding a random sample, optionally restricted to a category or tag.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_search_result(self, raw_response: dict) -> StoreSearchResult:
        """
        Converts a raw search response into a StoreSearchResult whose hits are
        dicts with keys "id", "score" and "source".
        """
        pass

    @abstractmethod
    def extract_document(self, raw_response: dict) -> dict | None:
        """
        Returns the stored source of a single-document get response (with "id" set),
        or None when the backend reports the document as not found.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check whether the product index exists.

        Returns:
            bool: True if the index exists, False if the backend answers 404.

        Raises:
            StoreUnavailableError: On any other status or transport error.
        """
        resp = await self.do_request(method="HEAD", endpoint=self._get_endpoint_index())
        if resp.status_code == 404:
            return False
        if resp.status_code >= 300:
            raise StoreUnavailableError(f"Index existence check failed with status {resp.status_code}")
        return True

    async def do_create_index(self, dimension: int) -> None:
        """Create the product index with the schema mapping.

        Args:
            dimension (int): The fixed embedding dimension of the deployment.
        """
        await self.do_request(
            method="PUT",
            json=self.get_index_mapping(dimension),
            endpoint=self._get_endpoint_index(),
            raise_on_error=True,
        )
        self.logging.info("Created %s index with embedding dimension %d.", self.get_engine_name(), dimension)

    async def do_delete_index(self) -> bool:
        """Delete the product index. Returns False if it did not exist."""
        resp = await self.do_request(method="DELETE", endpoint=self._get_endpoint_index())
        if resp.status_code == 404:
            return False
        if resp.status_code >= 300:
            raise StoreUnavailableError(f"Index deletion failed with status {resp.status_code}")
        return True

    async def do_put_document(self, doc_id: str, document: dict) -> None:
        """Create or fully replace a document and make it immediately searchable."""
        await self.do_request(
            method="PUT",
            json=document,
            params={"refresh": "true"},
            endpoint=self._get_endpoint_document(doc_id),
            raise_on_error=True,
        )

    async def do_get_document(self, doc_id: str, with_vector: bool = False) -> dict | None:
        """Fetch one document by id.

        Args:
            doc_id (str): Document id.
            with_vector (bool): Include the embedding field in the returned source.

        Returns:
            dict | None: The stored source including "id", or None if it does not exist.

        Raises:
            StoreUnavailableError: On any status other than 200/404 or transport errors.
        """
        params = None if with_vector else {"_source_excludes": "embedding"}
        resp = await self.do_request(method="GET", params=params, endpoint=self._get_endpoint_document(doc_id))
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StoreUnavailableError(f"Fetching document {doc_id} failed with status {resp.status_code}")
        return self.extract_document(resp.json())

    async def do_update_document(self, doc_id: str, fields: dict) -> None:
        """Apply a partial update to one document.

        Raises:
            ProductNotFoundError: If the document does not exist.
            StoreUnavailableError: On other failures.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_update_payload(fields),
            params={"refresh": "true"},
            endpoint=self._get_endpoint_update(doc_id),
        )
        if resp.status_code == 404:
            raise ProductNotFoundError(doc_id)
        if resp.status_code >= 300:
            raise StoreUnavailableError(f"Updating document {doc_id} failed with status {resp.status_code}")

    async def do_delete_document(self, doc_id: str) -> bool:
        """Delete one document.

        Returns:
            bool: True if deleted, False if it did not exist.
        """
        resp = await self.do_request(
            method="DELETE",
            params={"refresh": "true"},
            endpoint=self._get_endpoint_document(doc_id),
        )
        if resp.status_code == 404:
            return False
        if resp.status_code >= 300:
            raise StoreUnavailableError(f"Deleting document {doc_id} failed with status {resp.status_code}")
        return True

    async def do_search(self, payload: dict) -> StoreSearchResult:
        """Execute a search body built by one of the payload builders."""
        resp = await self.do_request(
            method="POST",
            json=payload,
            endpoint=self._get_endpoint_search(),
            raise_on_error=True,
        )
        return self.extract_search_result(resp.json())

    async def do_count(self) -> int:
        """Count all documents in the index."""
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_count(), raise_on_error=True)
        return int(resp.json().get("count", 0))

    async def do_find_by_urls(self, urls: list[str]) -> list[dict]:
        """Return the sources of all documents whose url is exactly one of the given values.

        An empty list means "no match"; a store failure raises StoreUnavailableError
        instead of being reported as an empty result.
        """
        result = await self.do_search(self.get_url_lookup_payload(urls))
        return [{**hit["source"], "id": hit["id"]} for hit in result.hits]
