"""Endpoints for starting, following and cancelling directory scans."""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db
from docindex.core.exceptions import ScanInProgressError
from docindex.schemas.scan import ScanCancelResult, ScanRequest, ScanSessionOut, ScanStarted
from docindex.services.ingestion.service import (
    ScanService,
    cancel_active_scan,
    get_scan_session,
    is_scan_running,
    list_scan_sessions,
)

logger = logging.getLogger(__name__)
router = APIRouter()


async def run_scan(path: str) -> None:
    try:
        result = await ScanService().scan_directory(path)
        logger.info(f"Background scan finished: {result['status']}")
    except ScanInProgressError as e:
        logger.warning(f"Background scan for {path} not started: {e}")


@router.post("", response_model=ScanStarted, status_code=202)
async def start_scan(request: ScanRequest, background_tasks: BackgroundTasks):
    """Start a scan of ``path`` in the background; 409 if one is running."""
    if is_scan_running():
        raise HTTPException(status_code=409, detail="A scan is already running")

    background_tasks.add_task(run_scan, request.path)
    return ScanStarted(status="accepted", message="Scan started", root_path=request.path)


@router.get("/history", response_model=List[ScanSessionOut])
async def scan_history(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await list_scan_sessions(db, limit)


@router.post("/cancel", response_model=ScanCancelResult)
async def cancel_scan():
    if cancel_active_scan():
        return ScanCancelResult(cancelled=True, message="Cancellation requested")
    return ScanCancelResult(cancelled=False, message="No scan is running")


@router.get("/{scan_id}", response_model=ScanSessionOut)
async def get_scan(scan_id: str, db: AsyncSession = Depends(get_db)):
    session = await get_scan_session(db, scan_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Scan {scan_id} not found")
    return session
