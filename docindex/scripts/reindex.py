#!/usr/bin/env python
"""Rebuild the search index and vector store from the database."""

import argparse
import asyncio
import logging

from docindex.core.config import settings
from docindex.db.session import init_db
from docindex.services.maintenance import reindex_all
from docindex.services.search.meilisearch import get_meili_client
from docindex.services.search.vector_store import get_vector_store
from docindex.worker.tasks.scan_tasks import reindex_documents

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def run_async_reindex() -> dict:
    await init_db()
    result = await reindex_all(await get_meili_client(), get_vector_store())
    logger.info(f"Reindex {result['status']}: {result['indexed']} indexed, {result['vectors']} vectors")
    return result


def main():
    parser = argparse.ArgumentParser(description="Reconcile the search index and vector store")
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Run in this process instead of queuing a Celery task",
    )
    args = parser.parse_args()

    if args.use_async:
        asyncio.run(run_async_reindex())
    else:
        task = reindex_documents.delay()
        logger.info(f"Task queued with ID: {task.id}")


if __name__ == "__main__":
    main()
