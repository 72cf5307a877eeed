import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db, get_index
from docindex.services.search.meilisearch import MeiliSearchClient

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check(
    db: AsyncSession = Depends(get_db),
    index: MeiliSearchClient = Depends(get_index),
) -> dict[str, str]:
    """Health check endpoint that verifies database and index connectivity."""
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
        "search_index": "available" if await index.health() else "unavailable",
    }
