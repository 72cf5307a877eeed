"""Tasks package."""

from docindex.worker.tasks import scan_tasks

__all__ = ["scan_tasks"]
