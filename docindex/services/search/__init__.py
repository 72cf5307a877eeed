from docindex.services.search.hybrid import (
    HybridSearchService,
    SearchHighlight,
    SearchHit,
    SearchQuery,
    SearchResponse,
    merge_results,
)
from docindex.services.search.meilisearch import IndexDocument, MeiliSearchClient, get_meili_client
from docindex.services.search.vector_store import VectorStore, get_vector_store

__all__ = [
    "HybridSearchService",
    "SearchHighlight",
    "SearchHit",
    "SearchQuery",
    "SearchResponse",
    "merge_results",
    "IndexDocument",
    "MeiliSearchClient",
    "get_meili_client",
    "VectorStore",
    "get_vector_store",
]
