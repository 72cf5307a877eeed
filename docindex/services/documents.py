"""Persistence helpers for documents, their categories and keywords.

All writes go through ``DocumentStore``; the remote index and vector store
projections are built from the rows it returns.
"""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.core.constants import FileType
from docindex.core.exceptions import DocumentNotFoundError, SearchIndexError
from docindex.db.models import Category, Document, DocumentCategory, Keyword
from docindex.services.classification.categories import CATEGORY_DEFINITIONS, IMAGE_CATEGORY_ID, category_name
from docindex.services.classification.classifier import ClassificationResult
from docindex.services.classification.keywords import ExtractedKeyword
from docindex.services.search.meilisearch import IndexDocument, MeiliSearchClient, to_millis
from docindex.services.search.vector_store import VectorStore

logger = logging.getLogger(__name__)

MIN_SUGGESTION_QUERY_LENGTH = 2


def to_index_document(document: Document) -> IndexDocument:
    """Project a stored document onto the index schema."""
    assignments = list(document.categories)
    return IndexDocument(
        id=document.id,
        title=document.title,
        content=document.content or "",
        summary=document.summary,
        fileType=document.file_type,
        filePath=document.file_path,
        categories=[a.category_id for a in assignments],
        categoryNames=[category_name(a.category_id) for a in assignments],
        keywords=[k.keyword for k in document.keywords],
        createdAt=to_millis(document.created_at),
        modifiedAt=to_millis(document.modified_at),
        fileSize=document.file_size or 0,
    )


def vector_text(document: Document) -> str:
    return f"{document.title} {document.content or ''}"


def vector_metadata(document: Document) -> Dict[str, Any]:
    return {
        "title": document.title,
        "filePath": document.file_path,
        "fileType": document.file_type,
        "fileSize": document.file_size or 0,
        "categories": [a.category_id for a in document.categories],
        "createdAt": to_millis(document.created_at),
    }


class DocumentStore:
    """Relational operations on documents and the catalog."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def existing_hashes(self) -> Dict[str, Tuple[str, str]]:
        """Map every stored file path to ``(document_id, content_hash)``."""
        result = await self.db.execute(select(Document.file_path, Document.id, Document.content_hash))
        return {path: (doc_id, content_hash) for path, doc_id, content_hash in result.all()}

    async def get(self, document_id: str) -> Document:
        document = await self.db.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def get_by_path(self, file_path: str) -> Optional[Document]:
        result = await self.db.execute(select(Document).where(Document.file_path == file_path))
        return result.scalar_one_or_none()

    async def upsert(
        self,
        file_path: str,
        title: str,
        file_type: str,
        file_size: int,
        content: str,
        summary: Optional[str],
        content_hash: str,
        modified_at: Optional[datetime],
        metadata: Optional[Dict[str, Any]],
    ) -> Tuple[Document, bool]:
        """Insert or update the row for ``file_path``. Returns ``(document, created)``."""
        now = datetime.now(UTC)
        document = await self.get_by_path(file_path)
        created = document is None
        if created:
            # Empty collections up front; a lazy load would need a greenlet
            document = Document(file_path=file_path, created_at=now, categories=[], keywords=[])
            self.db.add(document)

        document.title = title
        document.file_type = file_type
        document.file_size = file_size
        document.content = content
        document.summary = summary
        document.content_hash = content_hash
        document.modified_at = modified_at or now
        document.indexed_at = now
        document.document_metadata = metadata or {}
        await self.db.flush()
        return document, created

    async def replace_assignments(
        self,
        document: Document,
        categories: Sequence[ClassificationResult],
        keywords: Sequence[ExtractedKeyword],
    ) -> None:
        """Swap the document's category and keyword rows for new ones."""
        unloaded = inspect(document).unloaded
        if "categories" in unloaded or "keywords" in unloaded:
            await self.db.refresh(document, attribute_names=["categories", "keywords"])
        document.categories.clear()
        document.keywords.clear()
        # Old rows must be gone before the unique (document, keyword) rows come back
        await self.db.flush()

        seen = set()
        for result in categories:
            if result.category_id in seen:
                continue
            seen.add(result.category_id)
            document.categories.append(DocumentCategory(
                category_id=result.category_id,
                confidence=max(0.0, min(result.confidence, 1.0)),
            ))
        for keyword in keywords:
            document.keywords.append(Keyword(keyword=keyword.keyword, weight=keyword.weight))
        await self.db.flush()

    async def list(
        self,
        page: int = 1,
        limit: int = 20,
        category: Optional[str] = None,
        file_type: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Document], int]:
        query = select(Document)
        count_query = select(func.count(Document.id))
        if category:
            query = query.join(DocumentCategory).where(DocumentCategory.category_id == category)
            count_query = count_query.join(DocumentCategory).where(DocumentCategory.category_id == category)
        if file_type:
            query = query.where(Document.file_type == file_type)
            count_query = count_query.where(Document.file_type == file_type)

        column = Document.title if sort_by == "title" else Document.created_at
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc())
        query = query.offset((max(page, 1) - 1) * limit).limit(limit)

        total = (await self.db.execute(count_query)).scalar_one()
        documents = list((await self.db.execute(query)).scalars().all())
        return documents, total

    async def all(self) -> List[Document]:
        return list((await self.db.execute(select(Document))).scalars().all())

    async def delete(self, document_id: str) -> Document:
        document = await self.get(document_id)
        await self.db.delete(document)
        await self.db.flush()
        return document

    async def delete_all(self) -> int:
        await self.db.execute(delete(Keyword))
        await self.db.execute(delete(DocumentCategory))
        result = await self.db.execute(delete(Document))
        return result.rowcount or 0

    async def seed_categories(self) -> int:
        """Insert missing catalog rows and resync drifted ones.

        Also drops stale image assignments from documents that are not
        images. Returns the number of rows inserted or changed.
        """
        existing = {c.id: c for c in (await self.db.execute(select(Category))).scalars().all()}
        changed = 0
        for position, definition in enumerate(CATEGORY_DEFINITIONS, start=1):
            values = {
                "name": definition.name,
                "slug": definition.slug,
                "description": definition.description,
                "icon": definition.icon,
                "color": definition.color,
                "sort_order": position,
            }
            row = existing.get(definition.id)
            if row is None:
                self.db.add(Category(id=definition.id, **values))
                changed += 1
            elif any(getattr(row, key) != value for key, value in values.items()):
                for key, value in values.items():
                    setattr(row, key, value)
                changed += 1
        await self.db.flush()

        non_images = select(Document.id).where(Document.file_type != FileType.IMAGE.value)
        cleanup = await self.db.execute(
            delete(DocumentCategory)
            .where(DocumentCategory.category_id == IMAGE_CATEGORY_ID)
            .where(DocumentCategory.document_id.in_(non_images))
            .execution_options(synchronize_session=False)
        )
        if cleanup.rowcount:
            logger.info(f"Removed {cleanup.rowcount} stale image category assignments")

        if changed:
            logger.info(f"Seeded or updated {changed} categories")
        return changed

    async def category_counts(self) -> List[Tuple[Category, int]]:
        query = (
            select(Category, func.count(DocumentCategory.document_id))
            .outerjoin(DocumentCategory, DocumentCategory.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.sort_order)
        )
        return [(category, count) for category, count in (await self.db.execute(query)).all()]

    async def suggestions(self, q: str, limit: int = 5) -> List[str]:
        """Titles and keywords containing ``q``, titles first, without duplicates."""
        q = (q or "").strip()
        if len(q) < MIN_SUGGESTION_QUERY_LENGTH:
            return []
        pattern = f"%{q}%"

        titles = await self.db.execute(
            select(Document.title).where(Document.title.ilike(pattern)).distinct().limit(limit)
        )
        keywords = await self.db.execute(
            select(Keyword.keyword)
            .where(Keyword.keyword.ilike(pattern))
            .group_by(Keyword.keyword)
            .order_by(func.count(Keyword.id).desc())
            .limit(limit)
        )

        suggestions: List[str] = []
        for value in [*titles.scalars().all(), *keywords.scalars().all()]:
            if value not in suggestions:
                suggestions.append(value)
        return suggestions[:limit]


async def remove_document(
    db: AsyncSession,
    document_id: str,
    index: Optional[MeiliSearchClient] = None,
    vector_store: Optional[VectorStore] = None,
) -> Document:
    """Delete a document row, then drop its index and vector projections.

    The projections are removed best-effort; a failure is logged and the
    row deletion still stands.
    """
    document = await DocumentStore(db).delete(document_id)

    if index is not None:
        try:
            await index.delete_document(document_id)
        except SearchIndexError as e:
            logger.warning(f"Could not remove {document_id} from the search index: {e}")

    if vector_store is not None:
        try:
            vector_store.remove(document_id)
        except OSError as e:
            logger.warning(f"Could not remove {document_id} from the vector store: {e}")

    logger.info(f"Deleted document {document_id} ({document.file_path})")
    return document
