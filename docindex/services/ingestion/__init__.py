"""File discovery, parsing and the scan orchestrator."""

from docindex.services.ingestion.file_service import FileService
from docindex.services.ingestion.parsers import parse_document, register_parser
from docindex.services.ingestion.service import ScanProgress, ScanService, cancel_active_scan

__all__ = [
    "FileService",
    "ScanProgress",
    "ScanService",
    "cancel_active_scan",
    "parse_document",
    "register_parser",
]
