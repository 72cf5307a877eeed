"""Runtime settings stored in the database with masked read-back."""

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docindex.db.models.app_setting import AppSetting
from docindex.db.session import get_async_session

logger = logging.getLogger(__name__)

SETTING_KEYS = (
    "api_mode",
    "private_base_url",
    "private_api_key",
    "private_model_name",
    "dashscope_api_key",
    "meilisearch_host",
    "meilisearch_api_key",
)

# Returned as-is by get_masked()
NON_SENSITIVE_KEYS = frozenset(["api_mode", "private_base_url", "private_model_name", "meilisearch_host"])

MASK = "********"

# Single-process cache, refreshed on every write through SettingsService
_settings_cache: Optional[Dict[str, str]] = None


def mask_value(key: str, value: str) -> str:
    if not value or key in NON_SENSITIVE_KEYS:
        return value
    if len(value) <= 8:
        return MASK
    return f"{value[:8]}***"


def invalidate_cache() -> None:
    global _settings_cache
    _settings_cache = None


class SettingsService:
    """Read and update the named runtime settings."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get_all(self) -> Dict[str, str]:
        global _settings_cache
        if _settings_cache is None:
            result = await self.db.execute(select(AppSetting))
            _settings_cache = {row.key: row.value for row in result.scalars().all()}
        return dict(_settings_cache)

    async def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = (await self.get_all()).get(key)
        return value if value else default

    async def get_masked(self) -> Dict[str, str]:
        values = await self.get_all()
        return {key: mask_value(key, values.get(key, "")) for key in SETTING_KEYS}

    async def get_status(self) -> Dict[str, Dict[str, Any]]:
        """Masked value plus whether a non-empty value is stored, per key."""
        values = await self.get_all()
        return {
            key: {"masked": mask_value(key, values.get(key, "")), "configured": bool(values.get(key))}
            for key in SETTING_KEYS
        }

    async def update(self, values: Mapping[str, Optional[str]]) -> Dict[str, str]:
        """Store every known key that was sent with a non-empty value.

        Missing keys, ``None`` and empty strings leave the stored value
        unchanged. Returns the masked settings after the update.
        """
        changed = []
        for key, value in values.items():
            if key not in SETTING_KEYS:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            if value is None or not str(value).strip():
                continue

            setting = await self.db.get(AppSetting, key)
            if setting is None:
                self.db.add(AppSetting(key=key, value=str(value).strip()))
            else:
                setting.value = str(value).strip()
            changed.append(key)

        if changed:
            await self.db.commit()
            invalidate_cache()
            logger.info(f"Updated settings: {', '.join(changed)}")

        return await self.get_masked()


async def load_runtime_settings() -> Dict[str, str]:
    """Return the cached runtime settings, reading them once if needed."""
    if _settings_cache is not None:
        return dict(_settings_cache)
    try:
        async with get_async_session() as session:
            return await SettingsService(session).get_all()
    except Exception as e:
        logger.warning(f"Could not load runtime settings, using environment only: {e}")
        return {}
