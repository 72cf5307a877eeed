"""Endpoints for runtime settings and connection tests."""

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.api.deps import get_db
from docindex.schemas.settings import ConnectionTestResult, SettingsUpdate, SettingValue
from docindex.services.ai.service import AIService
from docindex.services.search.meilisearch import get_meili_client
from docindex.services.settings_service import SettingsService

router = APIRouter()


@router.get("", response_model=Dict[str, SettingValue])
async def get_settings(db: AsyncSession = Depends(get_db)):
    """Current settings with secrets masked."""
    return await SettingsService(db).get_status()


@router.put("", response_model=Dict[str, SettingValue])
async def update_settings(update: SettingsUpdate, db: AsyncSession = Depends(get_db)):
    service = SettingsService(db)
    await service.update(update.model_dump(exclude_none=True))
    return await service.get_status()


@router.post("/test/{target}", response_model=ConnectionTestResult)
async def test_connection(target: str):
    if target == "llm":
        return ConnectionTestResult(**await AIService().test_connection())
    if target == "meilisearch":
        client = await get_meili_client()
        return ConnectionTestResult(**await client.test_connection())
    raise HTTPException(status_code=400, detail=f"Unknown connection target: {target}")
