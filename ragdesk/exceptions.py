"""Error hierarchy for the RAGDesk core."""


class RAGError(Exception):
    """Base class for every error raised by the RAG core."""


class InvalidConfigError(RAGError, ValueError):
    """Invalid chunking, retrieval or memory parameters (caller error)."""


class EmbeddingError(RAGError):
    """The embedding provider failed or is missing credentials."""


class CompletionError(RAGError):
    """The chat-completion provider failed or is missing credentials."""


class VectorIndexError(RAGError):
    """A vector index operation was rejected (e.g. dimension mismatch)."""


class IngestionError(RAGError):
    """Ingesting a document failed at the chunking, embedding or index stage."""


class OrchestrationError(RAGError):
    """Retrieval or completion failed while answering a question."""
