import base64

from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.search import StoreSearchResult

_SOURCE_WITHOUT_VECTOR = {"excludes": ["embedding"]}


class StoreClientOpensearch(StoreClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://localhost:9200", val_type="string")
        self._username = self.get_config_val("USERNAME", default="admin", val_type="string")
        self._password = self.get_config_val("PASSWORD", default="admin", val_type="string")
        self._index_name = self.get_config_val("INDEX", default="indiesearch_products", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Opensearch"

    def get_index_name(self) -> str:
        return self._index_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://localhost:9200"),
            EnvConfig(env_key="USERNAME", val_type="string", default="admin"),
            EnvConfig(env_key="PASSWORD", val_type="string", default="admin"),
            EnvConfig(env_key="INDEX", val_type="string", default="indiesearch_products"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if not self._username:
            return {}
        token = base64.b64encode(f"{self._username}:{self._password}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/_cluster/health"

    def _get_endpoint_index(self) -> str:
        return f"/{self._index_name}"

    def _get_endpoint_document(self, doc_id: str) -> str:
        return f"/{self._index_name}/_doc/{doc_id}"

    def _get_endpoint_update(self, doc_id: str) -> str:
        return f"/{self._index_name}/_update/{doc_id}"

    def _get_endpoint_search(self) -> str:
        return f"/{self._index_name}/_search"

    def _get_endpoint_count(self) -> str:
        return f"/{self._index_name}/_count"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_index_mapping(self, dimension: int) -> dict:
        text_with_keyword = {"type": "text", "analyzer": "standard", "fields": {"keyword": {"type": "keyword"}}}
        return {
            "settings": {"index": {"knn": True, "knn.algo_param.ef_search": 100}},
            "mappings": {
                "properties": {
                    "id": {"type": "keyword"},
                    "name": text_with_keyword,
                    "description": {"type": "text", "analyzer": "standard"},
                    "tags": text_with_keyword,
                    "categories": {"type": "keyword"},
                    "url": {"type": "keyword"},
                    "owner_handle": {"type": "keyword"},
                    "creator_handle": {"type": "keyword"},
                    "site_handle": {"type": "keyword"},
                    "created_at": {"type": "date"},
                    "updated_at": {"type": "date"},
                    "embedding": {
                        "type": "knn_vector",
                        "dimension": dimension,
                        "method": {
                            "name": "hnsw",
                            "space_type": "cosinesimil",
                            "engine": "nmslib",
                            "parameters": {"ef_construction": 128, "m": 24},
                        },
                    },
                }
            },
        }

    def get_update_payload(self, fields: dict) -> dict:
        return {"doc": fields}

    def get_url_lookup_payload(self, urls: list[str]) -> dict:
        return {
            "size": max(len(urls), 1),
            "query": {"terms": {"url": urls}},
            "_source": _SOURCE_WITHOUT_VECTOR,
        }

    def get_owner_lookup_payload(self, owner_handle: str, limit: int) -> dict:
        return {
            "size": limit,
            "query": {"term": {"owner_handle": owner_handle}},
            "sort": [
                {"updated_at": {"order": "desc", "missing": "_last"}},
                {"created_at": {"order": "desc"}},
            ],
            "_source": _SOURCE_WITHOUT_VECTOR,
        }

    def _knn_script_score(self, query_vector: list[float], inner_query: dict | None = None) -> dict:
        return {
            "script_score": {
                "query": inner_query or {"match_all": {}},
                "script": {
                    "source": "knn_score",
                    "lang": "knn",
                    "params": {
                        "field": "embedding",
                        "query_value": query_vector,
                        "space_type": "cosinesimil",
                    },
                },
            }
        }

    def _tag_filter_clause(self, tag_filter: list[str] | None) -> list[dict]:
        if not tag_filter:
            return []
        return [{"terms": {"tags.keyword": [tag.strip().lower() for tag in tag_filter]}}]

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
        vector_clause = self._knn_script_score(query_vector)
        vector_clause["script_score"]["boost"] = vector_weight
        lexical_clause = {
            "multi_match": {
                "query": query_text,
                "fields": [f"{field}^{boost}" for field, boost in field_boosts.items()],
                # most_fields sums the per-field scores
                "type": "most_fields",
                "boost": keyword_weight,
                "fuzziness": "AUTO",
            }
        }
        bool_query: dict = {"should": [vector_clause, lexical_clause], "minimum_should_match": 1}
        filters = self._tag_filter_clause(tag_filter)
        if filters:
            bool_query["filter"] = filters
        return {
            "from": offset,
            "size": limit,
            "min_score": min_score,
            "track_total_hits": True,
            "query": {"bool": bool_query},
            "_source": _SOURCE_WITHOUT_VECTOR,
        }

    def get_vector_search_payload(
        self,
        query_vector: list[float],
        limit: int,
        offset: int = 0,
        tag_filter: list[str] | None = None,
        exclude_ids: list[str] | None = None,
    ) -> dict:
        inner: dict | None = None
        filters = self._tag_filter_clause(tag_filter)
        if filters or exclude_ids:
            inner = {"bool": {"filter": filters}}
            if exclude_ids:
                inner["bool"]["must_not"] = [{"ids": {"values": exclude_ids}}]
        return {
            "from": offset,
            "size": limit,
            "track_total_hits": True,
            "query": self._knn_script_score(query_vector, inner),
            "_source": _SOURCE_WITHOUT_VECTOR,
        }

    def get_keyword_search_payload(
        self,
        query_text: str,
        limit: int,
        offset: int = 0,
        tag_filter: list[str] | None = None,
    ) -> dict:
        query: dict = {
            "multi_match": {
                "query": query_text,
                "fields": ["name^3", "description^2", "tags^1.5"],
                "type": "best_fields",
                "fuzziness": "AUTO",
            }
        }
        filters = self._tag_filter_clause(tag_filter)
        if filters:
            query = {"bool": {"must": [query], "filter": filters}}
        return {
            "from": offset,
            "size": limit,
            "track_total_hits": True,
            "query": query,
            "_source": _SOURCE_WITHOUT_VECTOR,
        }

    def get_random_payload(self, limit: int, seed: int, category: str | None = None) -> dict:
        base_query: dict = {"match_all": {}}
        if category:
            value = category.strip().lower()
            base_query = {
                "bool": {
                    "should": [{"term": {"categories": value}}, {"term": {"tags.keyword": value}}],
                    "minimum_should_match": 1,
                }
            }
        return {
            "size": limit,
            "track_total_hits": True,
            "query": {
                "function_score": {
                    "query": base_query,
                    "random_score": {"seed": seed, "field": "_seq_no"},
                }
            },
            "_source": _SOURCE_WITHOUT_VECTOR,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_result(self, raw_response: dict) -> StoreSearchResult:
        hits_block = raw_response.get("hits", {})
        total = hits_block.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)
        hits = [
            {
                "id": hit.get("_id"),
                "score": hit.get("_score") or 0.0,
                "source": hit.get("_source", {}),
            }
            for hit in hits_block.get("hits", [])
        ]
        return StoreSearchResult(total=int(total or 0), hits=hits, took=raw_response.get("took", 0))

    def extract_document(self, raw_response: dict) -> dict | None:
        if not raw_response.get("found", False):
            return None
        return {**raw_response.get("_source", {}), "id": raw_response.get("_id")}
