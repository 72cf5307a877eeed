"""Pydantic schemas for stored documents."""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from docindex.db.models import Document
from docindex.services.classification.categories import category_name


class CategoryAssignment(BaseModel):
    id: str
    name: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class KeywordOut(BaseModel):
    keyword: str
    weight: float

    model_config = ConfigDict(from_attributes=True)


class DocumentSummary(BaseModel):
    """A document without its extracted text."""

    id: str
    title: str
    file_path: str
    file_type: str
    file_size: int
    summary: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    indexed_at: Optional[datetime] = None
    categories: List[CategoryAssignment] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        return cls(**_common_fields(document))


class DocumentDetail(DocumentSummary):
    content: Optional[str] = None
    keywords: List[KeywordOut] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Document) -> "DocumentDetail":
        return cls(
            **_common_fields(document),
            content=document.content,
            keywords=[KeywordOut.model_validate(k) for k in document.keywords],
            metadata=document.document_metadata or {},
        )


class DocumentList(BaseModel):
    items: List[DocumentSummary]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, documents: List[Document], total: int, page: int, limit: int) -> "DocumentList":
        return cls(
            items=[DocumentSummary.from_document(d) for d in documents],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )


def _common_fields(document: Document) -> Dict[str, Any]:
    return {
        "id": document.id,
        "title": document.title,
        "file_path": document.file_path,
        "file_type": document.file_type,
        "file_size": document.file_size or 0,
        "summary": document.summary,
        "created_at": document.created_at,
        "modified_at": document.modified_at,
        "indexed_at": document.indexed_at,
        "categories": [
            CategoryAssignment(
                id=a.category_id,
                name=category_name(a.category_id),
                confidence=a.confidence,
            )
            for a in document.categories
        ],
    }
