"""Hybrid search coordinator.

Full-text hits come from Meilisearch, semantic hits from the hash vector
store. In hybrid mode an oversized full-text page is re-ranked with

    score = 0.7 * fulltext_score + 0.3 * semantic_score

where the full-text score is derived from rank position. When the index is
unreachable every mode silently degrades to semantic-only search.
"""

import asyncio
import logging
import math
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from docindex.core.config import settings
from docindex.core.constants import SearchMode
from docindex.core.exceptions import SearchIndexError
from docindex.services.classification.categories import CATEGORY_NAME_TO_ID, category_name
from docindex.services.search.meilisearch import HIGHLIGHT_POST_TAG, HIGHLIGHT_PRE_TAG, MeiliSearchClient, to_millis
from docindex.services.search.vector_store import SemanticHit, VectorStore

logger = logging.getLogger(__name__)

# Loose user-facing type names -> stored file types / extensions
FILE_TYPE_GROUPS: Dict[str, List[str]] = {
    "word": ["doc", "docx"],
    "excel": ["xls", "xlsx", "csv"],
    "ppt": ["ppt", "pptx"],
    "pdf": ["pdf"],
    "文本": ["txt", "md", "text"],
    "图片": ["png", "jpg", "jpeg", "image"],
}

HIGHLIGHT_FIELDS = ("title", "content", "summary")
_MARKED = re.compile(re.escape(HIGHLIGHT_PRE_TAG) + r"([^<]+)" + re.escape(HIGHLIGHT_POST_TAG))


@dataclass
class SearchQuery:
    q: str = ""
    mode: SearchMode = SearchMode.HYBRID
    categories: Sequence[str] = ()
    file_types: Sequence[str] = ()
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    limit: int = 20
    sort_by: str = "relevance"
    sort_order: str = "desc"


@dataclass
class SearchHighlight:
    field: str
    snippet: str
    matched_words: List[str]


@dataclass
class SearchHit:
    id: str
    title: str
    file_path: str
    file_type: str
    score: float
    file_size: int = 0
    summary: Optional[str] = None
    categories: List[Dict[str, str]] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    created_at: Optional[int] = None
    modified_at: Optional[int] = None
    highlights: List[SearchHighlight] = field(default_factory=list)


@dataclass
class SearchResponse:
    results: List[SearchHit]
    total: int
    page: int
    limit: int
    total_pages: int
    query: str
    mode: str
    processing_time: int
    degraded: bool = False


def translate_categories(values: Sequence[str]) -> List[str]:
    """Map display names to catalog ids; unknown values pass through."""
    return [CATEGORY_NAME_TO_ID.get(value, value) for value in values]


def translate_file_types(values: Sequence[str]) -> List[str]:
    """Expand loose type names into every stored spelling, in both cases."""
    expanded: List[str] = []
    for value in values:
        key = value.lower()
        for item in FILE_TYPE_GROUPS.get(key, [key]):
            for spelling in (item, item.upper()):
                if spelling not in expanded:
                    expanded.append(spelling)
    return expanded


def _quoted_list(values: Sequence[str]) -> str:
    return ", ".join(f'"{value}"' for value in values)


def build_filter(query: SearchQuery) -> Optional[str]:
    filters = []
    if query.categories:
        filters.append(f"categories IN [{_quoted_list(translate_categories(query.categories))}]")
    if query.file_types:
        filters.append(f"fileType IN [{_quoted_list(translate_file_types(query.file_types))}]")
    if query.date_from:
        filters.append(f"createdAt >= {to_millis(query.date_from)}")
    if query.date_to:
        filters.append(f"createdAt <= {to_millis(query.date_to)}")
    return " AND ".join(filters) if filters else None


def build_sort(query: SearchQuery) -> Optional[List[str]]:
    order = "asc" if query.sort_order == "asc" else "desc"
    if query.sort_by == "date":
        return [f"createdAt:{order}"]
    if query.sort_by == "title":
        return [f"title:{order}"]
    return None


def quote_query(q: str) -> str:
    """Wrap a bare, space-free query in quotes so short CJK phrases match exactly."""
    trimmed = (q or "").strip()
    if trimmed and '"' not in trimmed and " " not in trimmed:
        return f'"{trimmed}"'
    return trimmed


def extract_highlights(formatted: Optional[Dict[str, Any]]) -> List[SearchHighlight]:
    if not formatted:
        return []
    highlights = []
    for name in HIGHLIGHT_FIELDS:
        value = formatted.get(name)
        if isinstance(value, str) and HIGHLIGHT_PRE_TAG in value:
            highlights.append(SearchHighlight(
                field=name,
                snippet=value,
                matched_words=_MARKED.findall(value),
            ))
    return highlights


def merge_results(
    fulltext: List[SearchHit],
    semantic: Sequence[SemanticHit],
    fulltext_weight: float = 0.7,
    semantic_weight: float = 0.3,
) -> List[SearchHit]:
    """Blend semantic scores into full-text hits and re-sort, best first.

    Only full-text hits are kept so index-side filters stay in force; a
    hit without a semantic score contributes 0 for that part.
    """
    semantic_scores = {hit.id: hit.score for hit in semantic}
    for hit in fulltext:
        hit.score = hit.score * fulltext_weight + semantic_scores.get(hit.id, 0.0) * semantic_weight
    return sorted(fulltext, key=lambda h: h.score, reverse=True)


def _hit_from_index(hit: Dict[str, Any], score: float) -> SearchHit:
    category_ids = hit.get("categories") or []
    names = hit.get("categoryNames") or []
    return SearchHit(
        id=hit["id"],
        title=hit.get("title", ""),
        file_path=hit.get("filePath", ""),
        file_type=hit.get("fileType", ""),
        file_size=hit.get("fileSize") or 0,
        summary=hit.get("summary"),
        categories=[
            {"id": cid, "name": names[i] if i < len(names) else category_name(cid)}
            for i, cid in enumerate(category_ids)
        ],
        keywords=list(hit.get("keywords") or []),
        created_at=hit.get("createdAt"),
        modified_at=hit.get("modifiedAt"),
        score=score,
        highlights=extract_highlights(hit.get("_formatted")),
    )


def _hit_from_vector(hit: SemanticHit) -> SearchHit:
    metadata = hit.metadata or {}
    return SearchHit(
        id=hit.id,
        title=metadata.get("title") or hit.id,
        file_path=metadata.get("filePath", ""),
        file_type=metadata.get("fileType", ""),
        file_size=metadata.get("fileSize") or 0,
        categories=[{"id": cid, "name": category_name(cid)} for cid in metadata.get("categories", [])],
        created_at=metadata.get("createdAt"),
        score=hit.score,
    )


def _matches_filters(metadata: Dict[str, Any], query: SearchQuery) -> bool:
    """Apply the index filter vocabulary to vector-store metadata."""
    if query.categories:
        wanted = set(translate_categories(query.categories))
        if not wanted.intersection(metadata.get("categories", [])):
            return False
    if query.file_types:
        if metadata.get("fileType") not in set(translate_file_types(query.file_types)):
            return False
    created = metadata.get("createdAt")
    if query.date_from and (created is None or created < to_millis(query.date_from)):
        return False
    if query.date_to and (created is None or created > to_millis(query.date_to)):
        return False
    return True


class HybridSearchService:
    """Read-only search coordinator; safe to use concurrently with a scan."""

    def __init__(self, index: MeiliSearchClient, vector_store: VectorStore):
        self.index = index
        self.vector_store = vector_store
        self.fulltext_weight = settings.HYBRID_FULLTEXT_WEIGHT
        self.semantic_weight = settings.HYBRID_SEMANTIC_WEIGHT

    async def search(self, query: SearchQuery) -> SearchResponse:
        started = time.monotonic()
        mode = SearchMode(query.mode)
        limit = max(1, query.limit)
        page = max(1, query.page)
        degraded = False

        results: List[SearchHit] = []
        total = 0

        if mode in (SearchMode.FULLTEXT, SearchMode.HYBRID):
            try:
                results, total = await self._fulltext(query, page, limit, oversize=mode == SearchMode.HYBRID)
                if mode == SearchMode.HYBRID:
                    semantic = await asyncio.to_thread(self.vector_store.search, query.q, limit=limit * 2)
                    results = merge_results(results, semantic, self.fulltext_weight, self.semantic_weight)
            except SearchIndexError as e:
                logger.error(f"Full-text search failed for {query.q!r}: {e}")
                if not await self.index.health():
                    logger.warning("Meilisearch is not available, falling back to semantic search")
                    results, total = await self._semantic(query, limit)
                    degraded = True
        else:
            results, total = await self._semantic(query, limit * 2)

        return SearchResponse(
            results=results[:limit],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
            query=query.q,
            mode=mode.value,
            processing_time=int((time.monotonic() - started) * 1000),
            degraded=degraded,
        )

    async def _fulltext(self, query: SearchQuery, page: int, limit: int, oversize: bool):
        response = await self.index.search(
            quote_query(query.q),
            filter=build_filter(query),
            sort=build_sort(query),
            limit=limit * 2 if oversize else limit,
            offset=(page - 1) * limit,
        )
        hits = response.get("hits") or []
        results = [
            _hit_from_index(hit, 1 - (position / len(hits)))
            for position, hit in enumerate(hits)
        ]
        total = response.get("estimatedTotalHits") or response.get("totalHits") or len(hits)
        return results, total

    async def _semantic(self, query: SearchQuery, limit: int):
        # The store lock may be held by a scan writing vectors
        candidates = await asyncio.to_thread(self.vector_store.search, query.q, limit=limit * 2)
        hits = [
            hit for hit in candidates
            if _matches_filters(hit.metadata, query)
        ][:limit]
        return [_hit_from_vector(hit) for hit in hits], len(hits)
