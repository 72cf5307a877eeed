"""AI-assisted classification, summarization, keywords, Q&A and image description.

Every method degrades instead of raising: callers get ``None``, an empty
list or a fixed fallback string and continue with the rule-based path.
"""

import logging
import re
from typing import Dict, List, Optional

from docindex.core.config import settings
from docindex.core.constants import IMAGE_FALLBACK_CONTENT
from docindex.services.ai import prompts
from docindex.services.ai.client import ChatClient, resolve_connection
from docindex.services.classification.categories import UNCATEGORIZED_ID, category_ids
from docindex.services.classification.classifier import ClassificationResult, forced_result
from docindex.services.settings_service import load_runtime_settings

logger = logging.getLogger(__name__)

CLASSIFY_EXCERPT_LENGTH = 3000
SUMMARY_INPUT_LENGTH = 4000
KEYWORDS_INPUT_LENGTH = 3000
QA_INPUT_LENGTH = 4000

_KEYWORD_SPLIT = re.compile(r"[,，、\n]")
_ID_STRIP = re.compile(r"[\"'`‘’“”\s.。]")


def parse_category_id(reply: Optional[str]) -> str:
    """Map a model reply to a catalog id; anything unrecognised is uncategorized."""
    if not reply:
        return UNCATEGORIZED_ID
    candidate = _ID_STRIP.sub("", reply).lower()
    return candidate if candidate in category_ids() else UNCATEGORIZED_ID


class AIService:
    """Facade over the chat client with per-task models and limits."""

    def __init__(self, client: Optional[ChatClient] = None):
        self._client = client

    async def _get_client(self) -> ChatClient:
        if self._client is None:
            runtime = await load_runtime_settings()
            self._client = ChatClient(resolve_connection(runtime))
        return self._client

    async def classify(self, content: str, title: str = "") -> Optional[ClassificationResult]:
        """Ask the model for exactly one category id.

        Returns ``None`` when the API could not be reached so the caller can
        use the rule engine instead.
        """
        client = await self._get_client()
        reply = await client.complete(
            [
                {"role": "system", "content": prompts.CLASSIFY_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": prompts.CLASSIFY_USER_TEMPLATE.format(
                        title=title or "未知",
                        content=(content or "")[:CLASSIFY_EXCERPT_LENGTH],
                    ),
                },
            ],
            model=client.connection.chat_model,
            max_tokens=20,
            temperature=0.1,
            timeout=settings.LLM_CLASSIFY_TIMEOUT,
        )
        if reply is None:
            return None

        category_id = parse_category_id(reply)
        if category_id == UNCATEGORIZED_ID and reply.strip().lower() != UNCATEGORIZED_ID:
            logger.info(f"Unrecognised category reply {reply[:50]!r}, using {UNCATEGORIZED_ID}")
        return forced_result(category_id, source="ai")

    async def summarize(self, content: str, max_length: int = 300) -> Optional[str]:
        if not content:
            return None
        client = await self._get_client()
        return await client.complete(
            [
                {"role": "system", "content": prompts.SUMMARY_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": prompts.SUMMARY_USER_TEMPLATE.format(
                        max_length=max_length,
                        content=content[:SUMMARY_INPUT_LENGTH],
                    ),
                },
            ],
            model=client.connection.fast_model,
        ) or None

    async def extract_keywords(self, content: str, count: int = 10) -> List[str]:
        if not content:
            return []
        client = await self._get_client()
        reply = await client.complete(
            [
                {"role": "system", "content": prompts.KEYWORDS_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": prompts.KEYWORDS_USER_TEMPLATE.format(
                        count=count,
                        content=content[:KEYWORDS_INPUT_LENGTH],
                    ),
                },
            ],
            model=client.connection.fast_model,
        )
        if not reply:
            return []
        return [k.strip() for k in _KEYWORD_SPLIT.split(reply) if k.strip()][:count]

    async def answer_question(self, content: str, question: str) -> str:
        client = await self._get_client()
        reply = await client.complete(
            [
                {"role": "system", "content": prompts.QA_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": prompts.QA_USER_TEMPLATE.format(
                        content=(content or "")[:QA_INPUT_LENGTH],
                        question=question,
                    ),
                },
            ],
            model=client.connection.chat_model,
        )
        return reply or prompts.QA_FALLBACK_ANSWER

    async def describe_image(self, base64_data: str, mime_type: str) -> str:
        """Describe an image with the vision model, or return the placeholder."""
        client = await self._get_client()
        reply = await client.complete(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{base64_data}"}},
                        {"type": "text", "text": prompts.IMAGE_PROMPT},
                    ],
                }
            ],
            model=client.connection.vision_model,
            max_tokens=1000,
            timeout=settings.LLM_VISION_TIMEOUT,
        )
        return reply or IMAGE_FALLBACK_CONTENT

    async def test_connection(self) -> Dict[str, object]:
        client = await self._get_client()
        if not client.configured:
            return {"success": False, "message": "API key is not configured"}
        reply = await client.complete(
            [{"role": "user", "content": prompts.CONNECTION_TEST_PROMPT}],
            model=client.connection.chat_model,
            max_tokens=5,
            timeout=10,
        )
        if reply is None:
            return {"success": False, "message": f"Could not reach {client.connection.base_url}"}
        return {"success": True, "message": f"Connected to {client.connection.chat_model}"}
