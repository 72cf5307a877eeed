"""ScanSession model for tracking directory scans."""

import uuid
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from docindex.core.constants import ScanStatus
from docindex.db.base_class import Base


class ScanSession(Base):
    """One run of the scan orchestrator over a root path.

    Created as ``running`` before the walk starts and finalized exactly once
    as ``completed`` or ``failed``.
    """

    __tablename__ = "scan_sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    root_path: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String, default=ScanStatus.RUNNING.value, index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_files: Mapped[int] = mapped_column(Integer, default=0)
    processed_files: Mapped[int] = mapped_column(Integer, default=0)
    new_files: Mapped[int] = mapped_column(Integer, default=0)
    updated_files: Mapped[int] = mapped_column(Integer, default=0)
    errors: Mapped[List[str]] = mapped_column(JSON, default=list)
