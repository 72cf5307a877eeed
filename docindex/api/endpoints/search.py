"""Endpoints for hybrid search and suggestions."""

from datetime import date, datetime, time, UTC
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db, get_search_service
from docindex.core.constants import SearchMode
from docindex.schemas.search import SearchResponseOut, SuggestionsOut
from docindex.services.documents import DocumentStore
from docindex.services.search.hybrid import HybridSearchService, SearchQuery

router = APIRouter()


def _split(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _day_start(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min, tzinfo=UTC) if value else None


def _day_end(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max, tzinfo=UTC) if value else None


@router.get("", response_model=SearchResponseOut)
async def search(
    q: str = Query("", description="Query text"),
    mode: SearchMode = Query(SearchMode.HYBRID),
    categories: Optional[str] = Query(None, description="Comma-separated category ids or names"),
    file_types: Optional[str] = Query(None, description="Comma-separated file types"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: str = Query("relevance", pattern="^(relevance|date|title)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    service: HybridSearchService = Depends(get_search_service),
):
    response = await service.search(SearchQuery(
        q=q,
        mode=mode,
        categories=_split(categories),
        file_types=_split(file_types),
        date_from=_day_start(date_from),
        date_to=_day_end(date_to),
        page=page,
        limit=limit,
        sort_by=sort,
        sort_order=order,
    ))
    return SearchResponseOut.model_validate(response)


@router.get("/suggestions", response_model=SuggestionsOut)
async def suggestions(
    q: str = Query("", description="Partial query"),
    limit: int = Query(5, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
):
    return SuggestionsOut(query=q, suggestions=await DocumentStore(db).suggestions(q, limit))
