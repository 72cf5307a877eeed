"""Tests for the hybrid search coordinator and the Meilisearch client."""

import asyncio
import json
import threading
import time
from datetime import datetime, timezone

import httpx
import pytest

from docindex.core.constants import SearchMode
from docindex.core.exceptions import SearchIndexError
from docindex.services.search.hybrid import (
    HybridSearchService,
    SearchHit,
    SearchQuery,
    build_filter,
    build_sort,
    extract_highlights,
    merge_results,
    quote_query,
    translate_file_types,
)
from docindex.services.search.meilisearch import IndexDocument, MeiliSearchClient
from docindex.services.search.vector_store import SemanticHit


def _index_hit(doc_id, title="Doc", **extra):
    hit = {
        "id": doc_id,
        "title": title,
        "filePath": f"/docs/{doc_id}.pdf",
        "fileType": "pdf",
        "fileSize": 10,
        "categories": ["product"],
        "categoryNames": ["产品文档"],
        "keywords": ["budget"],
        "createdAt": 1700000000000,
        "modifiedAt": 1700000000000,
    }
    hit.update(extra)
    return hit


def test_quote_query():
    assert quote_query("发票") == '"发票"'
    assert quote_query("  budget  ") == '"budget"'
    assert quote_query("budget review") == "budget review"
    assert quote_query('"exact"') == '"exact"'
    assert quote_query("") == ""


def test_translate_file_types_expands_groups():
    assert translate_file_types(["word"]) == ["doc", "DOC", "docx", "DOCX"]
    assert translate_file_types(["PDF", "pdf"]) == ["pdf", "PDF"]
    assert translate_file_types(["ofd"]) == ["ofd", "OFD"]


def test_build_filter_combines_clauses():
    query = SearchQuery(
        q="x",
        categories=["报销文件", "tech"],
        file_types=["pdf"],
        date_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
        date_to=datetime(2024, 1, 2, tzinfo=timezone.utc),
    )

    assert build_filter(query) == (
        'categories IN ["reimbursement", "tech"] AND fileType IN ["pdf", "PDF"] '
        "AND createdAt >= 1704067200000 AND createdAt <= 1704153600000"
    )


def test_build_filter_empty():
    assert build_filter(SearchQuery(q="x")) is None


def test_build_sort():
    assert build_sort(SearchQuery(sort_by="date", sort_order="asc")) == ["createdAt:asc"]
    assert build_sort(SearchQuery(sort_by="title")) == ["title:desc"]
    assert build_sort(SearchQuery()) is None


def test_extract_highlights():
    highlights = extract_highlights({
        "title": "<mark>预算</mark>报告",
        "content": "no highlight here",
        "summary": "<mark>budget</mark> and <mark>review</mark>",
    })

    assert [h.field for h in highlights] == ["title", "summary"]
    assert highlights[0].matched_words == ["预算"]
    assert highlights[1].matched_words == ["budget", "review"]
    assert extract_highlights(None) == []


def test_merge_results_blends_and_resorts():
    fulltext = [
        SearchHit(id="a", title="A", file_path="", file_type="pdf", score=1.0),
        SearchHit(id="b", title="B", file_path="", file_type="pdf", score=0.75),
    ]
    semantic = [SemanticHit(id="b", score=1.0, metadata={}), SemanticHit(id="z", score=0.9, metadata={})]

    merged = merge_results(fulltext, semantic)

    assert [h.id for h in merged] == ["b", "a"]
    assert merged[0].score == pytest.approx(0.825)
    assert merged[1].score == pytest.approx(0.7)


@pytest.mark.asyncio
async def test_hybrid_search_reranks_oversized_page(fake_index, vector_store):
    fake_index.search_response = {
        "hits": [_index_hit("a"), _index_hit("b"), _index_hit("c"), _index_hit("d")],
        "estimatedTotalHits": 4,
    }
    vector_store.add("b", "budget", {"title": "B"})
    service = HybridSearchService(fake_index, vector_store)

    response = await service.search(SearchQuery(q="budget", limit=2, page=1))

    assert fake_index.last_search["q"] == '"budget"'
    assert fake_index.last_search["limit"] == 4
    assert fake_index.last_search["offset"] == 0
    assert [hit.id for hit in response.results] == ["b", "a"]
    assert response.results[0].score == pytest.approx(0.825)
    assert response.total == 4
    assert response.total_pages == 2
    assert response.mode == "hybrid"
    assert response.degraded is False


@pytest.mark.asyncio
async def test_fulltext_search_maps_hits(fake_index, vector_store):
    fake_index.search_response = {
        "hits": [_index_hit("a", _formatted={"title": "<mark>Doc</mark>"})],
        "estimatedTotalHits": 1,
    }
    service = HybridSearchService(fake_index, vector_store)

    response = await service.search(SearchQuery(q="doc", mode=SearchMode.FULLTEXT, page=3, limit=10))

    assert fake_index.last_search["limit"] == 10
    assert fake_index.last_search["offset"] == 20
    hit = response.results[0]
    assert hit.score == 1.0
    assert hit.categories == [{"id": "product", "name": "产品文档"}]
    assert hit.highlights[0].matched_words == ["Doc"]
    assert response.page == 3


@pytest.mark.asyncio
async def test_unreachable_index_degrades_to_semantic(fake_index, vector_store):
    fake_index.healthy = False
    fake_index.search_error = SearchIndexError("connection refused")
    vector_store.add("a", "budget review", {"title": "Budget", "fileType": "pdf", "categories": ["report"]})
    service = HybridSearchService(fake_index, vector_store)

    response = await service.search(SearchQuery(q="budget review"))

    assert response.degraded is True
    assert [hit.id for hit in response.results] == ["a"]
    assert response.results[0].categories == [{"id": "report", "name": "报表"}]


@pytest.mark.asyncio
async def test_index_error_while_healthy_returns_empty(fake_index, vector_store):
    fake_index.search_error = SearchIndexError("bad filter", status_code=400)
    vector_store.add("a", "budget review")
    service = HybridSearchService(fake_index, vector_store)

    response = await service.search(SearchQuery(q="budget review"))

    assert response.results == []
    assert response.total == 0
    assert response.degraded is False


@pytest.mark.asyncio
async def test_semantic_mode_applies_filters(fake_index, vector_store):
    created = int(datetime(2024, 6, 1, tzinfo=timezone.utc).timestamp() * 1000)
    vector_store.add("a", "budget review", {"fileType": "pdf", "categories": ["report"], "createdAt": created})
    vector_store.add("b", "budget review", {"fileType": "docx", "categories": ["product"], "createdAt": created})
    service = HybridSearchService(fake_index, vector_store)

    response = await service.search(SearchQuery(q="budget review", mode=SearchMode.SEMANTIC, categories=["报表"]))
    assert [hit.id for hit in response.results] == ["a"]

    response = await service.search(SearchQuery(q="budget review", mode="semantic", file_types=["word"]))
    assert [hit.id for hit in response.results] == ["b"]

    response = await service.search(SearchQuery(
        q="budget review",
        mode="semantic",
        date_from=datetime(2024, 7, 1, tzinfo=timezone.utc),
    ))
    assert response.results == []
    assert fake_index.last_search is None


@pytest.mark.asyncio
async def test_search_waits_for_store_lock_off_the_event_loop(fake_index, vector_store):
    vector_store.add("a", "budget review", {"title": "Budget"})
    service = HybridSearchService(fake_index, vector_store)
    held = threading.Event()

    def hold_store_lock():
        with vector_store._lock:
            held.set()
            time.sleep(0.6)

    writer = threading.Thread(target=hold_store_lock)
    writer.start()
    held.wait()

    gaps = []

    async def ticker():
        last = time.monotonic()
        while writer.is_alive():
            await asyncio.sleep(0.05)
            now = time.monotonic()
            gaps.append(now - last)
            last = now

    response, _ = await asyncio.gather(
        service.search(SearchQuery(q="budget review", mode=SearchMode.SEMANTIC)),
        ticker(),
    )
    writer.join()

    assert [hit.id for hit in response.results] == ["a"]
    assert max(gaps) < 0.3


class TestMeiliSearchClient:
    """Client calls against an httpx mock transport."""

    @staticmethod
    def _client(handler):
        return MeiliSearchClient(
            host="http://meili.test/",
            api_key="secret",
            index_name="documents",
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_search_request_body(self):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("Authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"hits": [], "estimatedTotalHits": 0})

        client = self._client(handler)
        await client.search('"x"', filter='fileType IN ["pdf"]', sort=["createdAt:desc"], limit=5, offset=10)

        assert captured["url"] == "http://meili.test/indexes/documents/search"
        assert captured["auth"] == "Bearer secret"
        assert captured["body"]["filter"] == 'fileType IN ["pdf"]'
        assert captured["body"]["sort"] == ["createdAt:desc"]
        assert captured["body"]["highlightPreTag"] == "<mark>"
        assert captured["body"]["limit"] == 5

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = self._client(lambda request: httpx.Response(400, json={"message": "invalid filter"}))

        with pytest.raises(SearchIndexError) as excinfo:
            await client.search("x")
        assert excinfo.value.status_code == 400

    @pytest.mark.asyncio
    async def test_health(self):
        healthy = self._client(lambda request: httpx.Response(200, json={"status": "available"}))
        assert await healthy.health() is True

        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        assert await self._client(refuse).health() is False
        result = await self._client(refuse).test_connection()
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_add_documents_posts_dicts(self):
        captured = {}

        def handler(request):
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(202, json={"taskUid": 1})

        document = IndexDocument(
            id="a", title="A", content="text", summary=None, fileType="pdf", filePath="/a.pdf",
            categories=["tech"], categoryNames=["技术文档"], keywords=[], createdAt=1, modifiedAt=None,
            fileSize=3,
        )
        await self._client(handler).add_documents([document])

        assert captured["path"] == "/indexes/documents/documents"
        assert captured["body"][0]["categoryNames"] == ["技术文档"]
