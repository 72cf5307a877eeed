"""Tests for the AI service facade."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from docindex.core.constants import IMAGE_FALLBACK_CONTENT
from docindex.services.ai.client import ChatClient, LLMConnection, resolve_connection
from docindex.services.ai.prompts import QA_FALLBACK_ANSWER
from docindex.services.ai.service import AIService, parse_category_id


def _service(reply):
    client = MagicMock()
    client.connection = LLMConnection(
        base_url="http://llm.test/v1",
        api_key="key",
        chat_model="chat",
        fast_model="fast",
        vision_model="vision",
    )
    client.configured = True
    client.complete = AsyncMock(return_value=reply)
    return AIService(client=client), client


def test_parse_category_id():
    assert parse_category_id("tech") == "tech"
    assert parse_category_id(' "Meeting". ') == "meeting"
    assert parse_category_id("这是技术文档") == "other"
    assert parse_category_id(None) == "other"


def test_resolve_connection_private_mode():
    connection = resolve_connection({
        "api_mode": "private",
        "private_base_url": "http://10.0.0.5:8000/v1",
        "private_model_name": "local-model",
    })

    assert connection.base_url == "http://10.0.0.5:8000/v1"
    assert connection.api_key == "not-needed"
    assert connection.chat_model == connection.vision_model == "local-model"


def test_resolve_connection_default_uses_runtime_key():
    connection = resolve_connection({"api_mode": "private", "dashscope_api_key": "sk-runtime"})

    assert connection.api_key == "sk-runtime"
    assert connection.base_url != ""


@pytest.mark.asyncio
async def test_unconfigured_client_returns_none():
    client = ChatClient(LLMConnection("http://llm.test/v1", None, "chat", "fast", "vision"))

    assert await client.complete([{"role": "user", "content": "hi"}]) is None


@pytest.mark.asyncio
async def test_classify_maps_reply_to_category():
    service, client = _service("bidding")

    result = await service.classify("招标文件内容", "项目招标")

    assert result.category_id == "bidding"
    assert result.confidence == 1.0
    assert result.source == "ai"
    assert client.complete.await_args.kwargs["model"] == "chat"


@pytest.mark.asyncio
async def test_classify_unparseable_reply_is_uncategorized():
    service, _ = _service("I think this is a tech document")

    result = await service.classify("content")

    assert result.category_id == "other"


@pytest.mark.asyncio
async def test_classify_transport_failure_returns_none():
    service, _ = _service(None)

    assert await service.classify("content") is None


@pytest.mark.asyncio
async def test_summarize_and_keywords():
    service, client = _service("预算，评审、计划\n进度")

    assert await service.extract_keywords("text", count=3) == ["预算", "评审", "计划"]
    assert client.complete.await_args.kwargs["model"] == "fast"
    assert await service.summarize("") is None


@pytest.mark.asyncio
async def test_answer_question_fallback():
    service, _ = _service(None)

    assert await service.answer_question("content", "question?") == QA_FALLBACK_ANSWER


@pytest.mark.asyncio
async def test_describe_image():
    service, client = _service("a chart")

    assert await service.describe_image("aGVsbG8=", "image/png") == "a chart"
    message = client.complete.await_args.args[0][0]
    assert message["content"][0]["image_url"]["url"] == "data:image/png;base64,aGVsbG8="
    assert client.complete.await_args.kwargs["model"] == "vision"

    client.complete.return_value = None
    assert await service.describe_image("aGVsbG8=", "image/png") == IMAGE_FALLBACK_CONTENT


@pytest.mark.asyncio
async def test_test_connection():
    service, _ = _service("ok")
    assert (await service.test_connection())["success"] is True

    service, client = _service(None)
    assert (await service.test_connection())["success"] is False
    client.configured = False
    assert (await service.test_connection())["message"] == "API key is not configured"
