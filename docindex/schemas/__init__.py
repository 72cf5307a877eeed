"""Pydantic schemas for API endpoints and data validation."""

from docindex.schemas.category import CategoryOut
from docindex.schemas.document import CategoryAssignment, DocumentDetail, DocumentList, DocumentSummary, KeywordOut
from docindex.schemas.scan import ScanCancelResult, ScanRequest, ScanSessionOut, ScanStarted
from docindex.schemas.search import HighlightOut, SearchResponseOut, SearchResultOut, SuggestionsOut
from docindex.schemas.settings import ClearRequest, ConnectionTestResult, SettingsUpdate

__all__ = [
    "CategoryOut",
    "CategoryAssignment",
    "DocumentDetail",
    "DocumentList",
    "DocumentSummary",
    "KeywordOut",
    "ScanCancelResult",
    "ScanRequest",
    "ScanSessionOut",
    "ScanStarted",
    "HighlightOut",
    "SearchResponseOut",
    "SearchResultOut",
    "SuggestionsOut",
    "ClearRequest",
    "ConnectionTestResult",
    "SettingsUpdate",
]
