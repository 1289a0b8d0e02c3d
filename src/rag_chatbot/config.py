"""Configuration management using pydantic-settings."""

import warnings
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are the AI chatbot of this website. Only answer based on the provided company "
    "knowledge and context. If unsure, still try to help using any relevant context retrieved."
)

DEFAULT_FALLBACK_REPLY = "Sorry, no appropriate response could be generated."


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmptyContextPolicy(str, Enum):
    """What to put in the prompt when no match clears the score threshold."""

    PLACEHOLDER = "placeholder"
    BEST_MATCH = "best_match"


class OpenAISettings(BaseSettings):
    """OpenAI embeddings + chat completions configuration."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_", case_sensitive=False)

    api_key: Optional[str] = Field(
        default=None, description="OpenAI API key. Env var: OPENAI_API_KEY"
    )
    base_url: Optional[str] = Field(
        default=None, description="Optional OpenAI base URL (advanced). Env var: OPENAI_BASE_URL"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name. Env var: OPENAI_EMBEDDING_MODEL",
    )
    embedding_dimension: int = Field(
        default=512,
        description="Embedding dimension (also used for Qdrant collection sizing). Env var: OPENAI_EMBEDDING_DIMENSION",
    )
    embedding_batch_size: int = Field(
        default=100,
        description="Inputs per embedding request. Env var: OPENAI_EMBEDDING_BATCH_SIZE",
    )
    chat_model: str = Field(
        default="gpt-3.5-turbo", description="Chat completion model. Env var: OPENAI_CHAT_MODEL"
    )
    timeout: float = Field(
        default=30.0, description="Request timeout in seconds. Env var: OPENAI_TIMEOUT"
    )
    max_retries: int = Field(
        default=1,
        description="Attempts per embedding/completion request; 1 means no retry. Env var: OPENAI_MAX_RETRIES",
    )

    @field_validator("embedding_dimension", "embedding_batch_size", "max_retries")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate positive integers."""
        if v < 1:
            raise ValueError("Value must be >= 1")
        return v

    @property
    def is_configured(self) -> bool:
        """Check if an API key is present."""
        return bool(self.api_key)


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_", case_sensitive=False)

    url: str = Field(default="http://localhost:6333", description="Qdrant connection URL")
    api_key: Optional[str] = Field(
        default=None, description="Qdrant API key (for Qdrant Cloud). Env var: QDRANT_API_KEY"
    )
    collection_name: str = Field(
        default="chatbot-knowledge",
        description="Collection (index) holding the knowledge records. Env var: QDRANT_COLLECTION_NAME",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")

    @property
    def is_cloud(self) -> bool:
        """Check if using Qdrant Cloud (has API key)."""
        return bool(self.api_key)


class RetrievalSettings(BaseSettings):
    """Retrieval and prompt assembly tuning."""

    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_", case_sensitive=False)

    top_k: int = Field(default=5, description="Neighbours requested per query. Env var: RETRIEVAL_TOP_K")
    score_threshold: float = Field(
        default=0.7,
        description="Matches must score strictly above this. Env var: RETRIEVAL_SCORE_THRESHOLD",
    )
    normalize_text: bool = Field(
        default=True,
        description="Trim + lowercase text on ingestion and query. Env var: RETRIEVAL_NORMALIZE_TEXT",
    )
    context_line_prefix: str = Field(
        default="",
        description="Prefix for each context line, e.g. '- '. Env var: RETRIEVAL_CONTEXT_LINE_PREFIX",
    )
    empty_context_policy: EmptyContextPolicy = Field(
        default=EmptyContextPolicy.PLACEHOLDER,
        description="placeholder or best_match. Env var: RETRIEVAL_EMPTY_CONTEXT_POLICY",
    )
    empty_context_placeholder: str = Field(
        default="None found",
        description="Context used when nothing is retrieved. Env var: RETRIEVAL_EMPTY_CONTEXT_PLACEHOLDER",
    )
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT, description="System message. Env var: RETRIEVAL_SYSTEM_PROMPT"
    )
    fallback_reply: str = Field(
        default=DEFAULT_FALLBACK_REPLY,
        description="Reply when the completion is empty. Env var: RETRIEVAL_FALLBACK_REPLY",
    )

    @field_validator("top_k")
    @classmethod
    def validate_top_k(cls, v: int) -> int:
        """Validate top_k."""
        if v < 1:
            raise ValueError("top_k must be >= 1")
        return v

    @field_validator("score_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Validate score threshold."""
        if not -1.0 <= v <= 1.0:
            raise ValueError("score_threshold must be between -1.0 and 1.0")
        return v

    @field_validator("empty_context_policy", mode="before")
    @classmethod
    def parse_policy(cls, v):
        """Parse policy from string."""
        if isinstance(v, str):
            return EmptyContextPolicy(v.lower())
        return v


class ServerSettings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    host: str = Field(default="0.0.0.0", description="Server host. Env var: HOST")
    port: int = Field(default=3001, description="HTTP server port. Env var: PORT")
    reload: bool = Field(
        default=False, description="Enable auto-reload (development only). Env var: RELOAD"
    )


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="rag-chatbot", description="Application name. Env var: APP_NAME")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment. Env var: ENVIRONMENT",
    )
    debug: bool = Field(default=False, description="Enable debug mode. Env var: DEBUG")
    log_level: str = Field(default="INFO", description="Logging level. Env var: LOG_LEVEL")

    # Sub-settings
    openai: Optional[OpenAISettings] = None
    qdrant: Optional[QdrantSettings] = None
    retrieval: Optional[RetrievalSettings] = None
    server: Optional[ServerSettings] = None

    @model_validator(mode="after")
    def initialize_nested_settings(self) -> "Settings":
        """Initialize nested settings to ensure they read from environment."""
        if self.openai is None:
            self.openai = OpenAISettings()
        if self.qdrant is None:
            self.qdrant = QdrantSettings()
        if self.retrieval is None:
            self.retrieval = RetrievalSettings()
        if self.server is None:
            self.server = ServerSettings()
        return self

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, v):
        """Parse environment from string."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                return Environment.DEVELOPMENT
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_configuration(self) -> None:
        """Warn about provider settings that will make requests fail.

        Missing keys are not fatal: the first provider call fails and the
        request surfaces a 500.
        """
        if not self.openai.is_configured:
            warnings.warn(
                "OPENAI_API_KEY is not set. /embed and /chat will fail until it is configured.",
                UserWarning,
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if _settings.is_production:
            _settings.validate_configuration()
    return _settings
