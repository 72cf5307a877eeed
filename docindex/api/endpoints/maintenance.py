"""Endpoints for reindexing and clearing stored data."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db, get_index, get_vectors
from docindex.core.exceptions import ScanInProgressError
from docindex.schemas.settings import ClearRequest
from docindex.services.maintenance import clear_data, reindex_all
from docindex.services.search.meilisearch import MeiliSearchClient
from docindex.services.search.vector_store import VectorStore

router = APIRouter()


@router.post("/reindex")
async def reindex(
    index: MeiliSearchClient = Depends(get_index),
    vectors: VectorStore = Depends(get_vectors),
) -> dict:
    """Rebuild the search index and vector store from the database."""
    try:
        return await reindex_all(index, vectors)
    except ScanInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/clear")
async def clear(
    request: ClearRequest,
    db: AsyncSession = Depends(get_db),
    index: MeiliSearchClient = Depends(get_index),
    vectors: VectorStore = Depends(get_vectors),
) -> dict:
    try:
        return await clear_data(db, request.target, index, vectors)
    except ScanInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
