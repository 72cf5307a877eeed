from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from docindex.db.session import AsyncSessionLocal
from docindex.services.search.hybrid import HybridSearchService
from docindex.services.search.meilisearch import MeiliSearchClient, get_meili_client
from docindex.services.search.vector_store import VectorStore, get_vector_store


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        yield session


async def get_index() -> MeiliSearchClient:
    """Index client built from the current runtime settings."""
    return await get_meili_client()


def get_vectors() -> VectorStore:
    return get_vector_store()


async def get_search_service() -> HybridSearchService:
    return HybridSearchService(await get_index(), get_vectors())
