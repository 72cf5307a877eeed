"""Thin async client for an OpenAI-compatible chat-completion endpoint."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import openai
from openai import AsyncOpenAI

from docindex.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMConnection:
    base_url: str
    api_key: Optional[str]
    chat_model: str
    fast_model: str
    vision_model: str


def resolve_connection(runtime: Optional[Mapping[str, str]] = None) -> LLMConnection:
    """Pick endpoint, key and models from runtime settings, then the environment.

    ``api_mode == "private"`` routes every text call to the private
    deployment named by ``private_base_url`` and ``private_model_name``.
    """
    runtime = runtime or {}
    if runtime.get("api_mode") == "private" and runtime.get("private_base_url"):
        model = runtime.get("private_model_name") or settings.LLM_CHAT_MODEL
        return LLMConnection(
            base_url=runtime["private_base_url"],
            api_key=runtime.get("private_api_key") or "not-needed",
            chat_model=model,
            fast_model=model,
            vision_model=model,
        )
    return LLMConnection(
        base_url=settings.LLM_BASE_URL,
        api_key=runtime.get("dashscope_api_key") or settings.LLM_API_KEY,
        chat_model=settings.LLM_CHAT_MODEL,
        fast_model=settings.LLM_FAST_MODEL,
        vision_model=settings.LLM_VISION_MODEL,
    )


class ChatClient:
    """Send chat requests and return the reply text, or ``None`` on any failure.

    Every call carries its own timeout. Errors are logged here so callers
    only decide what to fall back to.
    """

    def __init__(self, connection: LLMConnection):
        self.connection = connection

    @property
    def configured(self) -> bool:
        return bool(self.connection.api_key)

    def _client(self, timeout: float) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self.connection.api_key,
            base_url=self.connection.base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        if not self.configured:
            logger.warning("Chat API key is not configured, skipping request")
            return None

        model = model or self.connection.chat_model
        timeout = timeout or settings.LLM_TIMEOUT
        client = self._client(timeout)
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=model,
                    messages=messages,
                    max_tokens=max_tokens or settings.LLM_MAX_TOKENS,
                    temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Chat request to {model} timed out after {timeout}s")
            return None
        except openai.APIStatusError as e:
            logger.warning(f"Chat request to {model} failed with HTTP {e.status_code}: {str(e)[:300]}")
            return None
        except openai.APIError as e:
            logger.warning(f"Chat request to {model} failed: {e}")
            return None
        finally:
            await client.close()

        if not response.choices:
            logger.warning(f"Chat response from {model} had no choices")
            return None
        return (response.choices[0].message.content or "").strip()
