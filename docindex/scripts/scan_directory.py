#!/usr/bin/env python
"""Scan a directory from the command line.

Runs the scan inline with ``--async``, otherwise queues it on the worker.
"""

import argparse
import asyncio
import logging

from docindex.core.config import settings
from docindex.db.session import init_db
from docindex.services.ingestion.service import ScanProgress, ScanService
from docindex.worker.tasks.scan_tasks import scan_directory

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Scan a directory and index its documents")
    parser.add_argument("path", type=str, help="Root directory to scan")
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Run the scan in this process instead of queuing a Celery task",
    )
    return parser.parse_args()


def log_progress(progress: ScanProgress) -> None:
    if progress.current_file:
        logger.info(f"[{progress.processed_files + 1}/{progress.total_files}] {progress.current_file}")


async def run_async_scan(path: str) -> dict:
    await init_db()
    result = await ScanService().scan_directory(path, on_progress=log_progress)
    logger.info(
        f"Scan {result['status']}: {result['new_files']} new, {result['updated_files']} updated, "
        f"{result['unchanged_files']} unchanged, {len(result['errors'])} errors"
    )
    for error in result["errors"]:
        logger.warning(error)
    return result


def run_celery_scan(path: str) -> dict:
    task = scan_directory.delay(path)
    logger.info(f"Task queued with ID: {task.id}")
    return {"task_id": task.id}


def main():
    """Main entry point."""
    args = parse_args()
    if args.use_async:
        asyncio.run(run_async_scan(args.path))
    else:
        run_celery_scan(args.path)


if __name__ == "__main__":
    main()
