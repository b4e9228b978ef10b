"""RAGDesk - retrieval-augmented question answering over uploaded documents."""

from .chat import ChatModel, OllamaChatModel, OpenAIChatModel, get_chat_model
from .conversation import RAGOrchestrator
from .document_processing import DocumentLoader, TextChunker
from .embeddings import Embedder, OllamaEmbedder, OpenAIEmbedder, get_embedder
from .exceptions import (
    CompletionError,
    EmbeddingError,
    IngestionError,
    InvalidConfigError,
    OrchestrationError,
    RAGError,
    VectorIndexError,
)
from .ingestion import Ingestor
from .memory import ConversationMemory
from .models import ChatMessage, Document, IndexEntry, RetrievalResult, Segment
from .prompting import ContextInjector
from .retrieval import Retriever
from .service import RAGService
from .vector_store import (
    FaissVectorIndex,
    InMemoryVectorIndex,
    VectorIndex,
    get_vector_index,
)

__all__ = [
    "ChatMessage",
    "ChatModel",
    "CompletionError",
    "ContextInjector",
    "ConversationMemory",
    "Document",
    "DocumentLoader",
    "Embedder",
    "EmbeddingError",
    "FaissVectorIndex",
    "InMemoryVectorIndex",
    "IndexEntry",
    "IngestionError",
    "Ingestor",
    "InvalidConfigError",
    "OllamaChatModel",
    "OllamaEmbedder",
    "OpenAIChatModel",
    "OpenAIEmbedder",
    "OrchestrationError",
    "RAGError",
    "RAGOrchestrator",
    "RAGService",
    "Retriever",
    "RetrievalResult",
    "Segment",
    "TextChunker",
    "VectorIndex",
    "VectorIndexError",
    "get_chat_model",
    "get_embedder",
    "get_vector_index",
]
