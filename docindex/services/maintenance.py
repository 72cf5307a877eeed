"""Maintenance operations: reconcile projections, corpus stats and clearing."""

import asyncio
import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.core.constants import ScanStatus
from docindex.core.exceptions import ScanInProgressError, SearchIndexError
from docindex.db.models import Document, ScanSession
from docindex.db.session import get_async_session
from docindex.services.documents import DocumentStore, to_index_document, vector_metadata, vector_text
from docindex.services.ingestion.service import SessionFactory, is_scan_running
from docindex.services.search.meilisearch import MeiliSearchClient
from docindex.services.search.vector_store import VectorStore

logger = logging.getLogger(__name__)

INDEX_BATCH_SIZE = 100
CLEAR_TARGETS = ("history", "all")


async def reindex_all(
    index: Optional[MeiliSearchClient],
    vector_store: VectorStore,
    session_factory: SessionFactory = get_async_session,
) -> Dict[str, Any]:
    """Rebuild the search index and the vector store from stored documents.

    The relational store is authoritative; both projections are rewritten
    from it. An unreachable index is reported in the result, the vector
    rebuild still runs.
    """
    if is_scan_running():
        raise ScanInProgressError("Cannot reindex while a scan is running")

    async with session_factory() as db:
        documents = await DocumentStore(db).all()
        index_documents = [to_index_document(d) for d in documents]
        vectors = [(d.id, vector_text(d), vector_metadata(d)) for d in documents]

    indexed = 0
    index_error = None
    if index is not None:
        try:
            await index.init_index()
            for start in range(0, len(index_documents), INDEX_BATCH_SIZE):
                batch = index_documents[start:start + INDEX_BATCH_SIZE]
                await index.add_documents(batch)
                indexed += len(batch)
        except SearchIndexError as e:
            index_error = str(e)
            logger.warning(f"Reindex stopped after {indexed} documents: {e}")

    def _rebuild_vectors() -> int:
        vector_store.clear()
        return vector_store.add_many(vectors)

    vector_count = await asyncio.to_thread(_rebuild_vectors)
    logger.info(f"Reindexed {indexed}/{len(documents)} documents, rebuilt {vector_count} vectors")
    return {
        "status": "completed" if index_error is None else "partial",
        "documents": len(documents),
        "indexed": indexed,
        "vectors": vector_count,
        "index_error": index_error,
    }


async def get_stats(db: AsyncSession, vector_store: Optional[VectorStore] = None) -> Dict[str, Any]:
    total = (await db.execute(select(func.count(Document.id)))).scalar_one()
    storage = (await db.execute(select(func.coalesce(func.sum(Document.file_size), 0)))).scalar_one()
    by_type = await db.execute(
        select(Document.file_type, func.count(Document.id)).group_by(Document.file_type)
    )
    category_counts = await DocumentStore(db).category_counts()
    last_scan = (await db.execute(
        select(ScanSession)
        .where(ScanSession.status == ScanStatus.COMPLETED.value)
        .order_by(ScanSession.completed_at.desc())
        .limit(1)
    )).scalar_one_or_none()

    return {
        "total_documents": total,
        "storage_bytes": int(storage or 0),
        "by_file_type": {file_type: count for file_type, count in by_type.all()},
        "by_category": {category.id: count for category, count in category_counts},
        "vector_count": len(vector_store) if vector_store is not None else None,
        "last_scan": None if last_scan is None else {
            "id": last_scan.id,
            "root_path": last_scan.root_path,
            "completed_at": last_scan.completed_at,
            "processed_files": last_scan.processed_files,
        },
    }


async def clear_data(
    db: AsyncSession,
    target: str,
    index: Optional[MeiliSearchClient] = None,
    vector_store: Optional[VectorStore] = None,
) -> Dict[str, Any]:
    """Clear scan history, or everything including the projections.

    Raises:
        ValueError: unknown target
        ScanInProgressError: a scan is running
    """
    if target not in CLEAR_TARGETS:
        raise ValueError(f"Unknown clear target: {target}")
    if is_scan_running():
        raise ScanInProgressError("Cannot clear data while a scan is running")

    sessions = (await db.execute(delete(ScanSession))).rowcount or 0
    result: Dict[str, Any] = {"target": target, "scan_sessions": sessions}
    if target == "history":
        await db.commit()
        logger.info(f"Cleared {sessions} scan sessions")
        return result

    result["documents"] = await DocumentStore(db).delete_all()
    await db.commit()

    if vector_store is not None:
        await asyncio.to_thread(vector_store.clear)
    if index is not None:
        try:
            await index.delete_index()
        except SearchIndexError as e:
            logger.warning(f"Could not delete the search index: {e}")
            result["index_error"] = str(e)

    logger.info(f"Cleared all data: {result}")
    return result
