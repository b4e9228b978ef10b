"""Test configuration and fixtures for RAGDesk tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Fake embedders and chat models
- OpenAI API response mocks
- Text processing fixtures
- Vector index fixtures
- Orchestrator and service factories
"""

import hashlib
import re
from collections.abc import Sequence
from contextlib import contextmanager
from unittest.mock import Mock, patch

import numpy as np
import pytest

from ragdesk import (
    ChatMessage,
    ContextInjector,
    ConversationMemory,
    EmbeddingError,
    FaissVectorIndex,
    InMemoryVectorIndex,
    OpenAIChatModel,
    OpenAIEmbedder,
    RAGOrchestrator,
    RAGService,
    Retriever,
    Segment,
    TextChunker,
)


class TestConstants:
    """Centralized test constants to avoid repetition across test files."""

    # API Configuration
    TEST_API_KEY = "test-key"
    TEST_EMBEDDING_MODEL = "text-embedding-3-small"
    TEST_CHAT_MODEL = "gpt-test"
    DEFAULT_EMBEDDING_DIMENSION = 64

    # Text Chunking Configuration
    SMALL_CHUNK_SIZE = 100
    SMALL_CHUNK_OVERLAP = 20
    DEFAULT_CHUNK_SIZE = 500
    DEFAULT_CHUNK_OVERLAP = 50

    # Scenario document
    CAT_DOCUMENT = "The cat sat on the mat. The dog ran in the park."
    CAT_QUESTION = "Where did the cat sit?"

    KEYWORD_VOCABULARY = (
        "the",
        "cat",
        "sat",
        "on",
        "mat",
        "dog",
        "ran",
        "in",
        "park",
        "where",
        "did",
        "sit",
    )


class MockEmbedder:
    """Mock embedder for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    model = "mock-embedding"

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        self.calls.append(list(texts))
        return [self.embed(text) for text in texts]


class KeywordEmbedder:
    """Bag-of-words embedder over a fixed vocabulary.

    Unlike hash embeddings, shared words produce predictable similarity.
    """

    model = "keyword-embedding"

    def __init__(
        self, vocabulary: Sequence[str] = TestConstants.KEYWORD_VOCABULARY
    ) -> None:
        self.vocabulary = {word: i for i, word in enumerate(vocabulary)}
        self.closed = False

    def embed(self, text: str) -> np.ndarray:
        vector = np.zeros(len(self.vocabulary), dtype=np.float32)
        for word in re.findall(r"[a-z]+", text.lower()):
            if word in self.vocabulary:
                vector[self.vocabulary[word]] += 1.0
        return vector

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        return [self.embed(text) for text in texts]

    def close(self) -> None:
        self.closed = True


class FailingEmbedder(MockEmbedder):
    """Embedder that succeeds for ``succeed_batches`` batches, then fails."""

    def __init__(self, succeed_batches: int = 0) -> None:
        super().__init__()
        self.succeed_batches = succeed_batches

    def embed(self, text: str) -> np.ndarray:
        msg = "embedding provider unavailable"
        raise EmbeddingError(msg)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        if len(self.calls) >= self.succeed_batches:
            msg = "embedding provider unavailable"
            raise EmbeddingError(msg)
        self.calls.append(list(texts))
        return [MockEmbedder.embed(self, text) for text in texts]


class MockChatModel:
    """Chat model that records its calls and returns a canned answer."""

    model = "mock-chat"

    def __init__(self, answer: str = "Test answer", error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def complete(
        self,
        system_instruction: str,
        conversation_window: Sequence[ChatMessage],
        prompt: str,
        temperature: float,
    ) -> str:
        self.calls.append(
            {
                "system_instruction": system_instruction,
                "conversation_window": list(conversation_window),
                "prompt": prompt,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.answer


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing OpenAI embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing OpenAI chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


@pytest.fixture
def openai_embeddings_api_mock():
    """Patch OpenAI embeddings.create; returns the bare mock."""
    with patch("openai.resources.embeddings.Embeddings.create") as mock_create:
        yield mock_create


@pytest.fixture
def openai_embeddings_response():
    """Builder for fake OpenAI embeddings responses."""
    return create_mock_openai_response


@pytest.fixture
def openai_embedder_factory():
    """Factory for creating OpenAIEmbedder instances with a test key."""

    def _create_embedder(api_key=None, model=None, batch_size=None):  # noqa: ANN202
        return OpenAIEmbedder(
            api_key=api_key or TestConstants.TEST_API_KEY,
            model=model or TestConstants.TEST_EMBEDDING_MODEL,
            batch_size=batch_size,
        )

    return _create_embedder


@pytest.fixture
def openai_chat_model():
    """OpenAIChatModel with a test key and model name."""
    return OpenAIChatModel(
        api_key=TestConstants.TEST_API_KEY, model=TestConstants.TEST_CHAT_MODEL
    )


@pytest.fixture
def openai_chat_mock_factory():
    """Factory mock fixture for an OpenAIChatModel's client.chat.completions.create."""

    @contextmanager
    def _mock_chat(  # noqa: ANN202
        chat_model, content: str | None = "Test response", side_effect=None
    ):
        with patch.object(chat_model.client.chat.completions, "create") as mock_create:
            if side_effect is not None:
                mock_create.side_effect = side_effect
            else:
                mock_create.return_value = create_mock_chat_response(content)
            yield mock_create

    return _mock_chat


@pytest.fixture
def text_chunker_factory():
    """Factory fixture that creates ``TextChunker`` instances on demand."""
    presets: dict[str, tuple[int, int]] = {
        "small": (
            TestConstants.SMALL_CHUNK_SIZE,
            TestConstants.SMALL_CHUNK_OVERLAP,
        ),
        "default": (
            TestConstants.DEFAULT_CHUNK_SIZE,
            TestConstants.DEFAULT_CHUNK_OVERLAP,
        ),
    }

    def _create_chunker(
        name: str = "default",
        *,
        chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> TextChunker:
        preset_chunk_size, preset_overlap = presets[name]
        return TextChunker(
            chunk_size=preset_chunk_size if chunk_size is None else chunk_size,
            overlap=preset_overlap if overlap is None else overlap,
        )

    return _create_chunker


@pytest.fixture(scope="session")
def mock_embedder():
    """Pre-configured MockEmbedder for consistent test embeddings."""
    return MockEmbedder()


@pytest.fixture
def keyword_embedder():
    return KeywordEmbedder()


@pytest.fixture
def memory_index():
    return InMemoryVectorIndex()


@pytest.fixture
def faiss_index(tmp_path):
    """FAISS index persisting under a temporary directory."""
    return FaissVectorIndex(index_path=tmp_path / "faiss" / "index.faiss")


@pytest.fixture(params=["memory", "faiss"])
def any_index(request, tmp_path):
    """Run a test against every vector index backend."""
    if request.param == "memory":
        return InMemoryVectorIndex()
    return FaissVectorIndex(index_path=tmp_path / "index.faiss")


@pytest.fixture
def sample_segments():
    """Sample segments with metadata only."""
    texts = [
        "Machine learning is a subset of artificial intelligence.",
        "Neural networks are computational models inspired by the brain.",
        "Deep learning uses multiple layers to learn complex patterns.",
        "Supervised learning uses labeled training data.",
        "Unsupervised learning finds patterns in unlabeled data.",
    ]
    return [
        Segment(
            text=text,
            metadata={"fileName": f"test_doc_{i // 3}.txt", "index": str(i % 3)},
            start=i * 100,
            end=i * 100 + len(text),
        )
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def sample_results():
    """Create sample retrieval results with scores for testing."""
    return [
        (
            Segment(
                text="Machine learning is a subset of artificial intelligence.",
                metadata={"fileName": "ml_doc.pdf", "index": "1"},
            ),
            0.8,
        ),
        (
            Segment(
                text="Deep learning uses neural networks with multiple layers.",
                metadata={"fileName": "dl_doc.pdf", "index": "2"},
            ),
            0.7,
        ),
    ]


@pytest.fixture
def mock_chat_model():
    return MockChatModel()


@pytest.fixture
def orchestrator_factory(memory_index):
    """Factory for RAGOrchestrator wired to in-memory collaborators."""

    def _create_orchestrator(  # noqa: ANN202
        embedder=None,
        chat_model=None,
        *,
        vector_index=None,
        top_k=10,
        min_score=0.1,
        window_size=10,
    ):
        embedder = embedder or KeywordEmbedder()
        retriever = Retriever(
            embedder,
            vector_index if vector_index is not None else memory_index,
            top_k=top_k,
            min_score=min_score,
        )
        return RAGOrchestrator(
            retriever,
            ContextInjector(metadata_keys=("fileName", "index")),
            ConversationMemory(window_size=window_size, max_conversations=100),
            chat_model or MockChatModel(),
            system_instruction="Answer from the context.",
            temperature=0.2,
        )

    return _create_orchestrator


@pytest.fixture
def rag_service_factory():
    """Factory for RAGService with fake providers and an in-memory index."""

    def _create_service(  # noqa: ANN202
        embedder=None,
        chat_model=None,
        **overrides,
    ) -> RAGService:
        overrides.setdefault("vector_backend", "memory")
        overrides.setdefault("min_score", 0.1)
        return RAGService.from_config(
            embedder=embedder or KeywordEmbedder(),
            chat_model=chat_model or MockChatModel(),
            **overrides,
        )

    return _create_service


@pytest.fixture
def failing_embedder_factory():
    """Factory for embedders that fail after a number of successful batches."""
    return FailingEmbedder


@pytest.fixture
def chat_model_factory():
    """Factory for MockChatModel instances with custom answers or errors."""
    return MockChatModel


@pytest.fixture
def mock_embedder_factory():
    """Factory for MockEmbedder instances of arbitrary dimension."""
    return MockEmbedder
