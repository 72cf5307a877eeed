from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db
from docindex.schemas.category import CategoryOut
from docindex.services.documents import DocumentStore

router = APIRouter()


@router.get("", response_model=List[CategoryOut])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Catalog categories in display order, with document counts."""
    counts = await DocumentStore(db).category_counts()
    return [
        CategoryOut.model_validate(category).model_copy(update={"document_count": count})
        for category, count in counts
    ]
