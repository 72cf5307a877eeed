"""Celery app configuration."""

import logging

from celery import Celery
from celery.signals import setup_logging

from docindex.core.config import settings

celery_app = Celery(
    "docindex.worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["docindex.worker.tasks.scan_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_hijack_root_logger=False,
)


@setup_logging.connect
def configure_logging(**kwargs) -> None:
    """Use the API's log format in the worker instead of Celery's."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
