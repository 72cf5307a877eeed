"""Pydantic schemas for scan requests and sessions."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScanRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Root directory to scan")


class ScanStarted(BaseModel):
    status: str
    message: str
    root_path: str


class ScanSessionOut(BaseModel):
    id: str
    root_path: str
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_files: int = 0
    processed_files: int = 0
    new_files: int = 0
    updated_files: int = 0
    errors: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ScanCancelResult(BaseModel):
    cancelled: bool
    message: str
