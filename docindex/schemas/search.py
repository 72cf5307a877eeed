"""Pydantic schemas for search responses."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HighlightOut(BaseModel):
    field: str
    snippet: str
    matched_words: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SearchResultOut(BaseModel):
    id: str
    title: str
    file_path: str
    file_type: str
    file_size: int = 0
    summary: Optional[str] = None
    categories: List[Dict[str, str]] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    created_at: Optional[int] = Field(None, description="Milliseconds since the epoch")
    modified_at: Optional[int] = None
    score: float
    highlights: List[HighlightOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SearchResponseOut(BaseModel):
    results: List[SearchResultOut]
    total: int
    page: int
    limit: int
    total_pages: int
    query: str
    mode: str
    processing_time: int = Field(..., description="Milliseconds")
    degraded: bool = False

    model_config = ConfigDict(from_attributes=True)


class SuggestionsOut(BaseModel):
    query: str
    suggestions: List[str]
