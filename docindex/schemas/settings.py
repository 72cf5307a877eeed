"""Pydantic schemas for runtime settings and maintenance requests."""

from typing import Literal, Optional

from pydantic import BaseModel


class SettingsUpdate(BaseModel):
    """Only fields sent with a non-empty value are stored."""

    api_mode: Optional[str] = None
    private_base_url: Optional[str] = None
    private_api_key: Optional[str] = None
    private_model_name: Optional[str] = None
    dashscope_api_key: Optional[str] = None
    meilisearch_host: Optional[str] = None
    meilisearch_api_key: Optional[str] = None


class ConnectionTestResult(BaseModel):
    success: bool
    message: str


class ClearRequest(BaseModel):
    target: Literal["history", "all"] = "history"


class SettingValue(BaseModel):
    """Read-back of one runtime setting; unset keys have an empty mask."""

    masked: str
    configured: bool
