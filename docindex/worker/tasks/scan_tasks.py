"""Celery tasks for scanning and reindexing."""

import asyncio
import logging

from docindex.core.exceptions import ScanInProgressError
from docindex.db.session import init_db
from docindex.services.ingestion.service import ScanService
from docindex.services.maintenance import reindex_all
from docindex.services.search.meilisearch import get_meili_client
from docindex.services.search.vector_store import get_vector_store
from docindex.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


def _get_loop() -> asyncio.AbstractEventLoop:
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_closed():
        # No usable event loop in this worker thread
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop


async def _scan(path: str) -> dict:
    await init_db()
    return await ScanService().scan_directory(path)


async def _reindex() -> dict:
    await init_db()
    return await reindex_all(await get_meili_client(), get_vector_store())


@celery_app.task(name="scan_directory")
def scan_directory(path: str) -> dict:
    """Scan a directory and ingest new or changed files.

    Args:
        path: Root directory to scan

    Returns:
        Scan summary with counters and per-file errors
    """
    logger.info(f"Starting scan task for: {path}")
    try:
        return _get_loop().run_until_complete(_scan(path))
    except ScanInProgressError as e:
        logger.warning(f"Scan of {path} rejected: {e}")
        return {"status": "rejected", "error": str(e), "root_path": path}


@celery_app.task(name="reindex_documents")
def reindex_documents() -> dict:
    """Rebuild the search index and vector store from stored documents."""
    logger.info("Starting reindex task")
    try:
        return _get_loop().run_until_complete(_reindex())
    except ScanInProgressError as e:
        logger.warning(f"Reindex rejected: {e}")
        return {"status": "rejected", "error": str(e)}
