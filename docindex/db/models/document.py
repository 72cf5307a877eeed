"""Document model and its per-document category and keyword rows."""

import uuid
from datetime import datetime, UTC
from typing import List, Dict, Any, Optional, TYPE_CHECKING

from sqlalchemy import String, Integer, Float, Text, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docindex.db.base_class import Base

if TYPE_CHECKING:
    from docindex.db.models.category import Category


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Document(Base):
    """A file discovered by a scan, with its extracted text and summary.

    ``file_path`` is unique across the corpus; ``content_hash`` is the
    change-detection digest of the file bytes at the time of the last scan.
    """

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String, index=True)
    file_path: Mapped[str] = mapped_column(String, unique=True, index=True)
    file_type: Mapped[str] = mapped_column(String, index=True)
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_hash: Mapped[str] = mapped_column(String, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    modified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=True)
    indexed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    document_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, default=dict, nullable=True)

    categories: Mapped[List["DocumentCategory"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    keywords: Mapped[List["Keyword"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Keyword.weight.desc()",
    )


class DocumentCategory(Base):
    """Classifier assignment of a document to a catalog category."""

    __tablename__ = "document_categories"

    document_id: Mapped[str] = mapped_column(
        String, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[str] = mapped_column(
        String, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    confidence: Mapped[float] = mapped_column(Float, default=1.0)

    document: Mapped["Document"] = relationship(back_populates="categories")
    category: Mapped["Category"] = relationship(lazy="selectin")


class Keyword(Base):
    __tablename__ = "keywords"
    __table_args__ = (
        UniqueConstraint("document_id", "keyword", name="uq_keywords_document_keyword"),
        {"extend_existing": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[str] = mapped_column(
        String, ForeignKey("documents.id", ondelete="CASCADE"), index=True
    )
    keyword: Mapped[str] = mapped_column(String, index=True)
    weight: Mapped[float] = mapped_column(Float, default=0.0)

    document: Mapped["Document"] = relationship(back_populates="keywords")
