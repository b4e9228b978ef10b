"""Embedding providers: OpenAI and Ollama."""

from typing import Protocol, runtime_checkable

import httpx
import numpy as np
from openai import OpenAI, OpenAIError

from .config import config
from .exceptions import EmbeddingError, InvalidConfigError

logger = config.get_logger(__name__)


@runtime_checkable
class Embedder(Protocol):
    """Maps text to a fixed-dimension vector."""

    model: str

    def embed(self, text: str) -> np.ndarray: ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]: ...


class OpenAIEmbedder:
    """Handles OpenAI embeddings generation."""

    provider = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Initialize the OpenAIEmbedder with OpenAI API key and model.

        Args:
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses the configured
                OpenAI embedding model.
            base_url: Alternative API endpoint. If None, uses config.OPENAI_BASE_URL.
            batch_size: Texts per API request. If None, uses
                config.EMBEDDING_BATCH_SIZE.

        Raises:
            EmbeddingError: If no API key is available.
        """
        api_key = api_key or config.get_openai_api_key()
        if not api_key:
            msg = "OpenAI API key is required for the OpenAI embedding provider"
            raise EmbeddingError(msg)
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url or config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.embedding_model(self.provider)
        self.batch_size = batch_size or config.EMBEDDING_BATCH_SIZE

    def close(self) -> None:
        """Release the HTTP connections held by the OpenAI client."""
        self.client.close()

    def embed(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The embedding vector for the input text.

        Raises:
            EmbeddingError: If the OpenAI request fails.
        """
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
            )
            embedding = np.array(response.data[0].embedding, dtype=np.float32)
        except OpenAIError as exc:
            logger.exception("Error generating embedding")
            msg = f"OpenAI embedding request failed: {exc}"
            raise EmbeddingError(msg) from exc
        except (IndexError, TypeError, ValueError) as exc:
            msg = f"Malformed OpenAI embedding response: {exc}"
            raise EmbeddingError(msg) from exc
        else:
            return embedding

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Get embeddings for multiple texts in batches.

        Args:
            texts: List of input texts to generate embeddings for.

        Returns:
            list[np.ndarray]: List of embedding vectors for the input texts.

        Raises:
            EmbeddingError: If any OpenAI request fails.
        """
        embeddings = []

        for i in range(0, len(texts), self.batch_size):
            batch_texts = texts[i : i + self.batch_size]
            try:
                response = self.client.embeddings.create(
                    model=self.model,
                    input=batch_texts,
                )
            except OpenAIError as exc:
                logger.exception("Error generating batch embeddings")
                msg = f"OpenAI embedding request failed: {exc}"
                raise EmbeddingError(msg) from exc
            batch_embeddings = [
                np.array(data.embedding, dtype=np.float32) for data in response.data
            ]
            if len(batch_embeddings) != len(batch_texts):
                msg = (
                    f"OpenAI returned {len(batch_embeddings)} embeddings for "
                    f"{len(batch_texts)} texts"
                )
                raise EmbeddingError(msg)
            embeddings.extend(batch_embeddings)
            logger.info("Generated embeddings for batch %d", i // self.batch_size + 1)

        return embeddings


class OllamaEmbedder:
    """Embeddings from a local Ollama server."""

    provider = "ollama"

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.model = model or config.embedding_model(self.provider)
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.client = client or httpx.Client(
            timeout=timeout or config.OLLAMA_TIMEOUT,
            headers=config.get_api_headers(),
        )

    def close(self) -> None:
        self.client.close()

    def embed(self, text: str) -> np.ndarray:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Embed texts with a single ``/api/embed`` call.

        Returns:
            One vector per input text.

        Raises:
            EmbeddingError: On connection errors, HTTP errors or a malformed reply.
        """
        if not texts:
            return []

        logger.debug(
            "Ollama embedding request: model=%s texts=%d", self.model, len(texts)
        )
        try:
            response = self.client.post(
                f"{self.base_url}/api/embed",
                json={"model": self.model, "input": texts},
            )
            response.raise_for_status()
            vectors = [
                np.array(vector, dtype=np.float32)
                for vector in response.json()["embeddings"]
            ]
        except httpx.HTTPError as exc:
            logger.exception("Ollama embedding request failed (%s)", self.base_url)
            msg = f"Ollama embedding request failed: {exc}"
            raise EmbeddingError(msg) from exc
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed Ollama embedding response: {exc}"
            raise EmbeddingError(msg) from exc

        if len(vectors) != len(texts):
            msg = f"Ollama returned {len(vectors)} embeddings for {len(texts)} texts"
            raise EmbeddingError(msg)
        return vectors


def get_embedder(
    provider: str | None = None,
    *,
    api_key: str | None = None,
    model: str | None = None,
) -> OpenAIEmbedder | OllamaEmbedder:
    """Return a configured embedder for ``provider``.

    Raises:
        InvalidConfigError: If an unsupported provider is requested.
    """
    name = (provider or config.EMBEDDING_PROVIDER).lower()
    if name == "openai":
        return OpenAIEmbedder(api_key=api_key, model=model)
    if name == "ollama":
        return OllamaEmbedder(model=model)

    msg = f"Unsupported embedding provider: {provider}"
    raise InvalidConfigError(msg)
