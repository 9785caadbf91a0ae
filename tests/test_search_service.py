from unittest.mock import AsyncMock, Mock

import pytest

from services.indexing.IndexingService import IndexingService
from services.search.SearchService import HYBRID_FIELD_BOOSTS, SearchService
from services.tagging.TagExpander import cosine_similarity
from shared.clients.store.opensearch.StoreClientOpensearch import StoreClientOpensearch
from shared.errors.product_errors import ProductNotFoundError, ProductValidationError
from shared.models.extraction import ExtractedContent
from shared.models.product import ProductCreate
from shared.models.search import SearchRequest, StoreSearchResult
from tests.fakes import T0, FakeExtractor, FixedExpander, InMemoryStore


class ScoringStore(InMemoryStore):
    """Evaluates hybrid payloads with a toy scorer.

    vector part:  boost * (1 + cosine), like a cosinesimil knn script score
    lexical part: boost * sum(field boost * number of query terms found in the field)

    Payloads come from a real OpenSearch client, so the tests score the query
    the backend would receive.
    """

    def __init__(self, builder: StoreClientOpensearch) -> None:
        super().__init__()
        self.builder = builder

    def get_hybrid_search_payload(self, **kwargs) -> dict:
        return self.builder.get_hybrid_search_payload(**kwargs)

    def get_vector_search_payload(self, **kwargs) -> dict:
        return self.builder.get_vector_search_payload(**kwargs)

    def get_keyword_search_payload(self, **kwargs) -> dict:
        return self.builder.get_keyword_search_payload(**kwargs)

    def _score(self, payload: dict, doc: dict) -> float:
        vector_clause, lexical_clause = payload["query"]["bool"]["should"]
        script = vector_clause["script_score"]
        score = script["boost"] * (1 + cosine_similarity(script["script"]["params"]["query_value"], doc["embedding"]))

        match = lexical_clause["multi_match"]
        terms = set(match["query"].lower().split())
        lexical = 0.0
        for field_spec in match["fields"]:
            field, boost = field_spec.split("^")
            value = doc.get(field) or ""
            words = set((" ".join(value) if isinstance(value, list) else value).lower().split())
            lexical += float(boost) * len(terms & words)
        return score + match["boost"] * lexical

    async def do_search(self, payload: dict) -> StoreSearchResult:
        self.search_payloads.append(payload)
        tag_filter = set()
        for clause in payload["query"]["bool"].get("filter", []):
            tag_filter.update(clause["terms"]["tags.keyword"])

        scored = []
        for doc in self.docs.values():
            if tag_filter and not tag_filter & set(doc["tags"]):
                continue
            score = self._score(payload, doc)
            if score >= payload["min_score"]:
                scored.append((score, doc))
        scored.sort(key=lambda item: item[0], reverse=True)

        page = scored[payload["from"]: payload["from"] + payload["size"]]
        hits = [
            {"id": doc["id"], "score": score, "source": {k: v for k, v in doc.items() if k != "embedding"}}
            for score, doc in page
        ]
        return StoreSearchResult(total=len(scored), hits=hits)


def stored_doc(doc_id: str, name: str, description: str, tags: list[str], embedding: list[float]) -> dict:
    return {
        "id": doc_id,
        "name": name,
        "description": description,
        "tags": tags,
        "categories": [],
        "url": f"https://{doc_id}.io",
        "created_at": T0.isoformat(),
        "updated_at": T0.isoformat(),
        "embedding": embedding,
    }


@pytest.fixture
def scoring_store(helper_config):
    return ScoringStore(StoreClientOpensearch(helper_config))


@pytest.fixture
def search_service(helper_config, scoring_store, embed_client):
    return SearchService(helper_config, scoring_store, embed_client)


class TestHybridSearch:
    @pytest.mark.asyncio
    async def test_example_scenario(self, helper_config, scoring_store, embed_client, search_service, clock):
        extractor = FakeExtractor({
            "https://examplehq.io": ExtractedContent(
                name="ExampleHQ", description="A tool for teams", tags=["teams"], url="https://examplehq.io",
            ),
        })
        indexing = IndexingService(
            helper_config, scoring_store, embed_client, extractor, FixedExpander({"teams": ["collaboration"]}),
            now_fn=clock,
        )
        indexed = await indexing.index_product(ProductCreate(url="https://examplehq.io"))
        scoring_store.docs["ledger"] = stored_doc("ledger", "Ledger", "Payments and checkout", ["payments"], [0.0, 1.0, 0.0])

        response = await search_service.do_search(SearchRequest(query="team collaboration tool"))

        assert [item.id for item in response.results] == [indexed.id]
        assert response.total == 1
        assert response.results[0].score >= search_service.min_score
        assert response.elapsed_ms >= 0

    @pytest.mark.asyncio
    async def test_vector_only_match_is_returned(self, search_service, scoring_store):
        # no word of the query appears in the document, only the embedding is close
        scoring_store.docs["huddle"] = stored_doc("huddle", "Huddle", "Keep your crew in sync", ["crew"], [1.0, 0.0, 0.0])

        response = await search_service.do_search(SearchRequest(query="teamwork"))

        assert [item.id for item in response.results] == ["huddle"]

    @pytest.mark.asyncio
    async def test_low_combined_score_is_excluded(self, helper_config, env, scoring_store, embed_client):
        env.setenv("SEARCH_MIN_SCORE", "2.5")
        service = SearchService(helper_config, scoring_store, embed_client)
        # lexical hit on name only (1.2 * 1.2) plus an orthogonal vector (0.7) stays below 2.5
        scoring_store.docs["weak"] = stored_doc("weak", "Teamwork", "Unrelated", [], [0.0, 0.0, 1.0])
        scoring_store.docs["strong"] = stored_doc("strong", "Teamwork", "Teamwork hub", ["teamwork"], [1.0, 0.0, 0.0])

        response = await service.do_search(SearchRequest(query="teamwork"))

        assert [item.id for item in response.results] == ["strong"]

    @pytest.mark.asyncio
    async def test_tag_filter_is_hard_filter(self, search_service, scoring_store):
        scoring_store.docs["a"] = stored_doc("a", "Team chat", "Chat for teams", ["chat"], [1.0, 0.0, 0.0])
        scoring_store.docs["b"] = stored_doc("b", "Team pay", "Payroll for teams", ["payments"], [0.5, 0.5, 0.0])

        response = await search_service.do_search(SearchRequest(query="team", tags=["Payments"]))

        assert [item.id for item in response.results] == ["b"]

    @pytest.mark.asyncio
    async def test_pagination(self, search_service, scoring_store):
        for i in range(5):
            # same lexical score everywhere, the vector part decreases from d4 to d0
            scoring_store.docs[f"d{i}"] = stored_doc(f"d{i}", f"Team {i}", "team tool", [], [1.0, float(4 - i), 0.0])

        first = await search_service.do_search(SearchRequest(query="team", limit=2))
        second = await search_service.do_search(SearchRequest(query="team", limit=2, offset=2))

        assert first.total == second.total == 5
        assert [r.id for r in first.results] == ["d4", "d3"]
        assert [r.id for r in second.results] == ["d2", "d1"]

    @pytest.mark.asyncio
    async def test_payload_uses_configured_weights(self, search_service, scoring_store):
        await search_service.do_search(SearchRequest(query="anything"))
        payload = scoring_store.search_payloads[-1]
        vector_clause, lexical_clause = payload["query"]["bool"]["should"]
        assert vector_clause["script_score"]["boost"] == 0.7
        assert lexical_clause["multi_match"]["boost"] == 1.2
        assert payload["min_score"] == 1.0
        assert HYBRID_FIELD_BOOSTS["description"] > HYBRID_FIELD_BOOSTS["tags"] > HYBRID_FIELD_BOOSTS["name"]


@pytest.fixture
def mock_store():
    store = Mock()
    store.do_search = AsyncMock()
    store.do_get_document = AsyncMock()
    return store


def hit(doc_id: str, score: float) -> dict:
    source = stored_doc(doc_id, doc_id.title(), "desc", [], [])
    source.pop("embedding")
    return {"id": doc_id, "score": score, "source": source}


class TestModesAndPostProcessing:
    @pytest.mark.asyncio
    async def test_hits_below_min_score_are_dropped(self, helper_config, embed_client, mock_store):
        mock_store.do_search.return_value = StoreSearchResult(total=3, hits=[hit("a", 3.0), hit("b", 1.5), hit("c", 0.4)])
        service = SearchService(helper_config, mock_store, embed_client)

        response = await service.do_search(SearchRequest(query="x"))

        assert [r.id for r in response.results] == ["a", "b"]
        assert response.total == 2

    @pytest.mark.asyncio
    async def test_blank_query(self, helper_config, embed_client, mock_store):
        service = SearchService(helper_config, mock_store, embed_client)
        with pytest.raises(ProductValidationError):
            await service.do_search(SearchRequest(query="   "))
        mock_store.do_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_vector_mode_has_no_min_score(self, helper_config, embed_client, mock_store):
        mock_store.get_vector_search_payload.return_value = {"vector": True}
        mock_store.do_search.return_value = StoreSearchResult(total=1, hits=[hit("a", 0.2)])
        service = SearchService(helper_config, mock_store, embed_client)

        response = await service.do_vector_search(SearchRequest(query="team", tags=["chat"]))

        assert [r.id for r in response.results] == ["a"]
        kwargs = mock_store.get_vector_search_payload.call_args.kwargs
        assert kwargs["tag_filter"] == ["chat"]
        assert kwargs["query_vector"] == [1.0, 0.0, 0.0]

    @pytest.mark.asyncio
    async def test_keyword_mode_does_not_embed(self, helper_config, embed_client, mock_store):
        mock_store.get_keyword_search_payload.return_value = {"keyword": True}
        mock_store.do_search.return_value = StoreSearchResult(total=0, hits=[])
        service = SearchService(helper_config, mock_store, embed_client)

        response = await service.do_keyword_search(SearchRequest(query="invoice"))

        assert response.total == 0
        assert embed_client.calls == []

    @pytest.mark.asyncio
    async def test_find_similar_excludes_source(self, helper_config, embed_client, mock_store):
        mock_store.do_get_document.return_value = {"id": "src", "embedding": [1.0, 0.0, 0.0]}
        mock_store.get_vector_search_payload.return_value = {"similar": True}
        mock_store.do_search.return_value = StoreSearchResult(
            total=4, hits=[hit("src", 2.0), hit("a", 1.9), hit("b", 1.5), hit("c", 1.2)],
        )
        service = SearchService(helper_config, mock_store, embed_client)

        response = await service.find_similar("src", limit=2)

        assert [r.id for r in response.results] == ["a", "b"]
        mock_store.do_get_document.assert_awaited_once_with("src", with_vector=True)
        kwargs = mock_store.get_vector_search_payload.call_args.kwargs
        assert kwargs["exclude_ids"] == ["src"]
        assert kwargs["limit"] == 3

    @pytest.mark.asyncio
    async def test_find_similar_unknown(self, helper_config, embed_client, mock_store):
        mock_store.do_get_document.return_value = None
        service = SearchService(helper_config, mock_store, embed_client)
        with pytest.raises(ProductNotFoundError):
            await service.find_similar("missing")

    @pytest.mark.asyncio
    async def test_explore(self, helper_config, embed_client, mock_store):
        mock_store.get_random_payload.return_value = {"random": True}
        mock_store.do_search.return_value = StoreSearchResult(total=9, hits=[hit("a", 1.0), hit("b", 1.0)])
        service = SearchService(helper_config, mock_store, embed_client)

        response = await service.explore(limit=2, category="ai", seed=7)

        assert response.total == 9
        assert [p.id for p in response.results] == ["a", "b"]
        mock_store.get_random_payload.assert_called_once_with(limit=2, seed=7, category="ai")
