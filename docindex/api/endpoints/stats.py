from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db, get_vectors
from docindex.services.maintenance import get_stats
from docindex.services.search.vector_store import VectorStore

router = APIRouter()


@router.get("")
async def corpus_stats(
    db: AsyncSession = Depends(get_db),
    vectors: VectorStore = Depends(get_vectors),
) -> dict:
    """Document totals by type and category, storage used and the last scan."""
    return await get_stats(db, vectors)
