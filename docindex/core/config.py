from typing import Any
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    API_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "docindex"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"  # Frontend URL

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Local storage
    DATA_DIR: str = os.path.join(PROJECT_ROOT, "data")

    # Database
    SQLALCHEMY_DATABASE_URI: str | None = Field(default=None, validate_default=True)

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        data_dir = info.data.get("DATA_DIR") or os.path.join(PROJECT_ROOT, "data")
        return f"sqlite+aiosqlite:///{os.path.join(data_dir, 'db', 'documents.db')}"

    # Vector store
    VECTOR_STORE_PATH: str | None = Field(default=None, validate_default=True)
    VECTOR_DIMENSION: int = 384

    @field_validator("VECTOR_STORE_PATH", mode="before")
    def assemble_vector_path(cls, v: str | None, info: Any) -> Any:
        if isinstance(v, str):
            return v
        data_dir = info.data.get("DATA_DIR") or os.path.join(PROJECT_ROOT, "data")
        return os.path.join(data_dir, "vectors", "embeddings.json")

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"

    # Meilisearch
    MEILISEARCH_HOST: str = "http://localhost:7700"
    MEILISEARCH_API_KEY: str = ""
    MEILISEARCH_INDEX: str = "documents"
    MEILISEARCH_TIMEOUT: float = 10.0

    # Chat completion API (OpenAI-compatible, DashScope by default)
    LLM_BASE_URL: str = "https://dashscope.aliyuncs.com/compatible-mode/v1"
    LLM_API_KEY: str | None = None
    LLM_CHAT_MODEL: str = "qwen3.5-plus"
    LLM_FAST_MODEL: str = "qwen3.5-flash"
    LLM_VISION_MODEL: str = "qwen3-vl-plus"
    LLM_TIMEOUT: float = 25.0
    LLM_CLASSIFY_TIMEOUT: float = 40.0
    LLM_VISION_TIMEOUT: float = 55.0
    LLM_MAX_TOKENS: int = 1500
    LLM_TEMPERATURE: float = 0.3

    AI_CLASSIFICATION_ENABLED: bool = False
    AI_SUMMARY_ENABLED: bool = False

    # Scanning
    FILE_TIMEOUT_SECONDS: float = 120.0
    PDF_MIN_TEXT_LENGTH: int = 50

    # Classification (empirical, tune freely)
    CLASSIFIER_SCORE_CEILING: float = 15.0
    CLASSIFIER_CONFIDENCE_THRESHOLD: float = 0.1
    CLASSIFIER_MAX_CATEGORIES: int = 2
    SUMMARY_MAX_LENGTH: int = 300

    # Search
    SEMANTIC_SIMILARITY_THRESHOLD: float = 0.1
    HYBRID_FULLTEXT_WEIGHT: float = 0.7
    HYBRID_SEMANTIC_WEIGHT: float = 0.3

    # Test Database - SQLite in-memory for tests
    TEST_DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Allow extra fields from environment variables
    )


settings = Settings()
