"""Configuration management for the RAGDesk application."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import InvalidConfigError

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a helpful documentation assistant. Answer the following question "
    "based on the provided context. If you don't have enough information, "
    "say so clearly."
)


DEFAULT_EMBEDDING_MODELS = {
    "openai": "text-embedding-3-small",
    "ollama": "mxbai-embed-large:latest",
}
DEFAULT_CHAT_MODELS = {
    "openai": "gpt-4.1-nano-2025-04-14",
    "ollama": "gemma3:12b",
}


def _split_keys(raw: str) -> tuple[str, ...]:
    return tuple(key.strip() for key in raw.split(",") if key.strip())


class Config:
    """Application configuration loaded from environment variables."""

    # OpenAI Configuration
    @classmethod
    def get_openai_api_key(cls) -> str:
        """Get OpenAI API key from environment variables.

        Returns:
            OpenAI API key from environment or empty string if not set.
        """
        return os.getenv("OPENAI_API_KEY", "")

    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL")

    # Ollama Configuration
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_TIMEOUT: float = float(os.getenv("OLLAMA_TIMEOUT", "60.0"))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()
    HTTPX_LOG_LEVEL: str = os.getenv("HTTPX_LOG_LEVEL", "WARNING").upper()

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Chunking Configuration
    CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "500"))
    CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "50"))

    # Embedding Configuration
    EMBEDDING_PROVIDER: str = os.getenv("EMBEDDING_PROVIDER", "openai").lower()
    EMBEDDING_MODEL: str = os.getenv(
        "EMBEDDING_MODEL",
        DEFAULT_EMBEDDING_MODELS.get(
            EMBEDDING_PROVIDER, DEFAULT_EMBEDDING_MODELS["openai"]
        ),
    )
    EMBEDDING_BATCH_SIZE: int = int(os.getenv("EMBEDDING_BATCH_SIZE", "100"))

    # Chat Model Configuration
    CHAT_PROVIDER: str = os.getenv("CHAT_PROVIDER", "openai").lower()
    CHAT_MODEL: str = os.getenv(
        "CHAT_MODEL",
        DEFAULT_CHAT_MODELS.get(CHAT_PROVIDER, DEFAULT_CHAT_MODELS["openai"]),
    )
    CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "500"))
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.2"))
    SYSTEM_INSTRUCTION: str = os.getenv(
        "SYSTEM_INSTRUCTION", DEFAULT_SYSTEM_INSTRUCTION
    )

    # Retrieval Configuration
    RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", "10"))
    RETRIEVAL_MIN_SCORE: float = float(os.getenv("RETRIEVAL_MIN_SCORE", "0.6"))
    CONTEXT_METADATA_KEYS: tuple[str, ...] = _split_keys(
        os.getenv("CONTEXT_METADATA_KEYS", "fileName,index")
    )

    # Conversation Memory Configuration
    MEMORY_WINDOW_SIZE: int = int(os.getenv("MEMORY_WINDOW_SIZE", "10"))
    MEMORY_MAX_CONVERSATIONS: int = int(os.getenv("MEMORY_MAX_CONVERSATIONS", "1000"))

    # Vector Store Configuration
    VECTOR_BACKEND: str = os.getenv("VECTOR_BACKEND", "memory").lower()
    FAISS_INDEX_PATH: Path = Path(
        os.getenv("FAISS_INDEX_PATH", "data/faiss/index.faiss")
    )

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "RAGDesk/1.0")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration values.

        Raises:
            InvalidConfigError: If an OpenAI provider is selected without
                OPENAI_API_KEY, or a numeric setting is out of range.
        """
        uses_openai = "openai" in {cls.EMBEDDING_PROVIDER, cls.CHAT_PROVIDER}
        if uses_openai and not cls.get_openai_api_key():
            msg = (
                "OPENAI_API_KEY is required. Please set it in .env file or environment."
            )
            raise InvalidConfigError(msg)

        if cls.CHUNK_OVERLAP >= cls.CHUNK_SIZE:
            msg = (
                f"CHUNK_OVERLAP ({cls.CHUNK_OVERLAP}) must be smaller than "
                f"CHUNK_SIZE ({cls.CHUNK_SIZE})"
            )
            raise InvalidConfigError(msg)

    @classmethod
    def embedding_model(cls, provider: str) -> str:
        """Resolve the embedding model for ``provider``.

        Returns:
            EMBEDDING_MODEL when ``provider`` is the configured one, otherwise
            that provider's default model.
        """
        if provider == cls.EMBEDDING_PROVIDER:
            return cls.EMBEDDING_MODEL
        return DEFAULT_EMBEDDING_MODELS[provider]

    @classmethod
    def chat_model(cls, provider: str) -> str:
        """Resolve the chat model for ``provider``.

        Returns:
            CHAT_MODEL when ``provider`` is the configured one, otherwise that
            provider's default model.
        """
        if provider == cls.CHAT_PROVIDER:
            return cls.CHAT_MODEL
        return DEFAULT_CHAT_MODELS[provider]

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment.

        Returns:
            True if environment is development.
        """
        return cls.ENVIRONMENT.lower() == "development"

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment.

        Returns:
            True if environment is production.
        """
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Configure logging once at application startup with:
        - Console output for all levels
        - Simple, readable format
        - Configurable level via environment variable
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        # Configure third-party library log levels via environment variables
        logging.getLogger("openai").setLevel(
            getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        )
        logging.getLogger("httpx").setLevel(
            getattr(logging, cls.HTTPX_LOG_LEVEL, logging.WARNING)
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound API calls.

        Returns:
            Mapping of header names to values used on outbound HTTP requests.
        """
        headers: dict[str, str] = {}

        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT

        return headers


config = Config()
