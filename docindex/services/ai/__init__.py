from docindex.services.ai.client import ChatClient, LLMConnection, resolve_connection
from docindex.services.ai.service import AIService, parse_category_id

__all__ = ["AIService", "ChatClient", "LLMConnection", "parse_category_id", "resolve_connection"]
