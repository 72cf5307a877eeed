"""Endpoints for browsing and deleting stored documents."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db, get_index, get_vectors
from docindex.core.exceptions import DocumentNotFoundError
from docindex.schemas.document import DocumentDetail, DocumentList
from docindex.services.ai.service import AIService
from docindex.services.documents import DocumentStore, remove_document
from docindex.services.search.meilisearch import MeiliSearchClient
from docindex.services.search.vector_store import VectorStore

logger = logging.getLogger(__name__)
router = APIRouter()


class QuestionRequest(BaseModel):
    question: str = Field(..., min_length=1)


@router.get("", response_model=DocumentList)
async def list_documents(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = None,
    file_type: Optional[str] = None,
    sort: str = Query("created_at", pattern="^(created_at|title)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
):
    documents, total = await DocumentStore(db).list(page, limit, category, file_type, sort, order)
    return DocumentList.build(documents, total, page, limit)


@router.get("/{document_id}", response_model=DocumentDetail)
async def get_document(document_id: str, db: AsyncSession = Depends(get_db)):
    try:
        document = await DocumentStore(db).get(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return DocumentDetail.from_document(document)


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    index: MeiliSearchClient = Depends(get_index),
    vectors: VectorStore = Depends(get_vectors),
) -> dict:
    try:
        await remove_document(db, document_id, index, vectors)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    await db.commit()
    return {"status": "deleted", "id": document_id}


@router.post("/{document_id}/qa")
async def ask_document(document_id: str, request: QuestionRequest, db: AsyncSession = Depends(get_db)) -> dict:
    """Answer a question from the document's extracted text."""
    try:
        document = await DocumentStore(db).get(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    answer = await AIService().answer_question(document.content or "", request.question)
    return {"id": document_id, "question": request.question, "answer": answer}
