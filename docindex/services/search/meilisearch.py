"""HTTP client for the Meilisearch full-text index."""

import logging
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

import httpx

from docindex.core.config import settings
from docindex.core.exceptions import SearchIndexError
from docindex.services.settings_service import load_runtime_settings

logger = logging.getLogger(__name__)

INDEX_SETTINGS: Dict[str, Any] = {
    "searchableAttributes": ["title", "content", "summary", "keywords", "categoryNames"],
    "filterableAttributes": ["fileType", "categories", "createdAt", "modifiedAt"],
    "sortableAttributes": ["createdAt", "modifiedAt", "title", "fileSize"],
    "displayedAttributes": [
        "id", "title", "content", "summary", "fileType", "filePath", "categories",
        "categoryNames", "keywords", "createdAt", "modifiedAt", "fileSize",
    ],
    "pagination": {"maxTotalHits": 10000},
    "typoTolerance": {
        "enabled": True,
        "minWordSizeForTypos": {"oneTypo": 4, "twoTypos": 8},
    },
}

HIGHLIGHT_PRE_TAG = "<mark>"
HIGHLIGHT_POST_TAG = "</mark>"


def to_millis(value: Optional[datetime]) -> Optional[int]:
    """Epoch milliseconds; naive values read back from SQLite are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


@dataclass
class IndexDocument:
    """Document shape pushed to the index."""

    id: str
    title: str
    content: str
    summary: Optional[str]
    fileType: str
    filePath: str
    categories: List[str]
    categoryNames: List[str]
    keywords: List[str]
    createdAt: int
    modifiedAt: Optional[int]
    fileSize: int

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class MeiliSearchClient:
    """Async wrapper over the Meilisearch REST API for one index."""

    def __init__(
        self,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.host = (host or settings.MEILISEARCH_HOST).rstrip("/")
        self.api_key = settings.MEILISEARCH_API_KEY if api_key is None else api_key
        self.index_name = index_name or settings.MEILISEARCH_INDEX
        self.timeout = timeout or settings.MEILISEARCH_TIMEOUT
        self._transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.host}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise SearchIndexError(f"Meilisearch request {method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise SearchIndexError(
                f"Meilisearch {method} {path} returned {response.status_code}: {response.text[:300]}",
                status_code=response.status_code,
            )
        return response.json() if response.content else None

    async def health(self) -> bool:
        try:
            data = await self._request("GET", "/health")
        except SearchIndexError as e:
            logger.warning(f"Meilisearch health check failed: {e}")
            return False
        return bool(data) and data.get("status") == "available"

    async def init_index(self) -> None:
        """Create the index if needed and apply searchable/filterable/sortable settings."""
        try:
            await self._request("POST", "/indexes", json={"uid": self.index_name, "primaryKey": "id"})
        except SearchIndexError as e:
            # Creation is an async task; an existing index only fails later inside that task
            logger.debug(f"Index create request for {self.index_name}: {e}")
        await self._request("PATCH", f"/indexes/{self.index_name}/settings", json=INDEX_SETTINGS)
        logger.info(f"Meilisearch index {self.index_name} initialised")

    async def add_documents(self, documents: List[IndexDocument]) -> None:
        if not documents:
            return
        await self._request(
            "POST",
            f"/indexes/{self.index_name}/documents",
            params={"primaryKey": "id"},
            json=[d.to_dict() for d in documents],
        )

    async def delete_document(self, document_id: str) -> None:
        await self._request("DELETE", f"/indexes/{self.index_name}/documents/{document_id}")

    async def delete_index(self) -> None:
        await self._request("DELETE", f"/indexes/{self.index_name}")

    async def search(
        self,
        query: str,
        filter: Optional[str] = None,
        sort: Optional[List[str]] = None,
        limit: int = 20,
        offset: int = 0,
        attributes_to_highlight: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "q": query,
            "limit": limit,
            "offset": offset,
            "attributesToHighlight": attributes_to_highlight or ["title", "content", "summary"],
            "highlightPreTag": HIGHLIGHT_PRE_TAG,
            "highlightPostTag": HIGHLIGHT_POST_TAG,
            "attributesToCrop": ["content"],
            "cropLength": 200,
        }
        if filter:
            body["filter"] = filter
        if sort:
            body["sort"] = sort
        return await self._request("POST", f"/indexes/{self.index_name}/search", json=body)

    async def stats(self) -> Dict[str, Any]:
        return await self._request("GET", f"/indexes/{self.index_name}/stats")

    async def test_connection(self) -> Dict[str, object]:
        if await self.health():
            return {"success": True, "message": f"Meilisearch at {self.host} is available"}
        return {"success": False, "message": f"Meilisearch at {self.host} is not available"}


async def get_meili_client() -> MeiliSearchClient:
    """Build a client from runtime settings, falling back to the environment."""
    runtime = await load_runtime_settings()
    return MeiliSearchClient(
        host=runtime.get("meilisearch_host") or None,
        api_key=runtime.get("meilisearch_api_key") or None,
    )
