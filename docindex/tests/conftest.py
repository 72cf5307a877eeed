"""Test fixtures for the application."""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import AsyncMock, MagicMock

from docindex.core.config import settings
from docindex.core.exceptions import SearchIndexError
from docindex.db.base import Base
from docindex.db.session import create_engine_for
from docindex.services.documents import DocumentStore
from docindex.services.search.vector_store import VectorStore
from docindex.services.settings_service import invalidate_cache


class FakeIndex:
    """In-memory stand-in for the Meilisearch client."""

    def __init__(self, healthy: bool = True, fail_writes: bool = False):
        self.healthy = healthy
        self.fail_writes = fail_writes
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.add_calls = 0
        self.deleted: List[str] = []
        self.index_deleted = False
        self.search_response: Optional[Dict[str, Any]] = None
        self.search_error: Optional[Exception] = None
        self.last_search: Optional[Dict[str, Any]] = None

    async def health(self) -> bool:
        return self.healthy

    async def init_index(self) -> None:
        if not self.healthy:
            raise SearchIndexError("index unavailable")

    async def add_documents(self, documents) -> None:
        self.add_calls += 1
        if self.fail_writes or not self.healthy:
            raise SearchIndexError("index unavailable")
        for document in documents:
            self.documents[document.id] = document.to_dict()

    async def delete_document(self, document_id: str) -> None:
        if not self.healthy:
            raise SearchIndexError("index unavailable")
        self.deleted.append(document_id)
        self.documents.pop(document_id, None)

    async def delete_index(self) -> None:
        self.index_deleted = True
        self.documents.clear()

    async def search(self, query, filter=None, sort=None, limit=20, offset=0, attributes_to_highlight=None):
        self.last_search = {"q": query, "filter": filter, "sort": sort, "limit": limit, "offset": offset}
        if self.search_error is not None:
            raise self.search_error
        return self.search_response or {"hits": [], "estimatedTotalHits": 0}

    async def test_connection(self) -> Dict[str, object]:
        return {"success": self.healthy, "message": "fake"}


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a fresh in-memory database with the full schema."""
    engine = create_engine_for(settings.TEST_DATABASE_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Context-managed sessions that commit on success, like get_async_session."""
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    @asynccontextmanager
    async def factory():
        session = maker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    return factory


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    """Create a clean database session for a test."""
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_session(db_session):
    await DocumentStore(db_session).seed_categories()
    await db_session.commit()
    return db_session


@pytest.fixture
def fake_index():
    return FakeIndex()


@pytest.fixture
def vector_store(tmp_path):
    return VectorStore(path=str(tmp_path / "vectors" / "embeddings.json"), dimension=384)


@pytest.fixture
def ai_service():
    """AI service double that never reaches the network."""
    service = MagicMock()
    service.classify = AsyncMock(return_value=None)
    service.summarize = AsyncMock(return_value=None)
    service.describe_image = AsyncMock(return_value="一张包含公司标志的图片")
    service.answer_question = AsyncMock(return_value="answer")
    return service


@pytest.fixture(autouse=True)
def clear_settings_cache():
    invalidate_cache()
    yield
    invalidate_cache()
