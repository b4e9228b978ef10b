"""Core-facing service: document ingestion and question answering."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import ExitStack
from pathlib import Path
from typing import TypeVar

from .chat import ChatModel, get_chat_model
from .config import config
from .conversation import RAGOrchestrator
from .document_processing import DocumentLoader, TextChunker
from .embeddings import Embedder, get_embedder
from .exceptions import IngestionError, OrchestrationError, RAGError
from .ingestion import Ingestor
from .memory import ConversationMemory
from .models import Document
from .prompting import ContextInjector
from .retrieval import Retriever
from .vector_store import FaissVectorIndex, VectorIndex, get_vector_index

logger = config.get_logger(__name__)

T = TypeVar("T")


class RAGService:
    """Owns one vector index and the collaborators working on it."""

    def __init__(  # noqa: PLR0913,PLR0917
        self,
        embedder: Embedder,
        chat_model: ChatModel,
        vector_index: VectorIndex,
        chunker: TextChunker,
        memory: ConversationMemory,
        retriever: Retriever,
        injector: ContextInjector,
        orchestrator: RAGOrchestrator,
        embedding_provider: str | None = None,
        chat_provider: str | None = None,
    ) -> None:
        self.embedder = embedder
        self.chat_model = chat_model
        self.vector_index = vector_index
        self.chunker = chunker
        self.memory = memory
        self.retriever = retriever
        self.injector = injector
        self.orchestrator = orchestrator
        self.ingestor = Ingestor(chunker, embedder, vector_index)
        self.embedding_provider = embedding_provider or config.EMBEDDING_PROVIDER
        self.chat_provider = chat_provider or config.CHAT_PROVIDER

    @classmethod
    def from_config(  # noqa: PLR0913
        cls,
        *,
        embedder: Embedder | None = None,
        chat_model: ChatModel | None = None,
        vector_index: VectorIndex | None = None,
        embedding_provider: str | None = None,
        chat_provider: str | None = None,
        embedding_model: str | None = None,
        chat_model_name: str | None = None,
        api_key: str | None = None,
        chunk_size: int | None = None,
        overlap: int | None = None,
        top_k: int | None = None,
        min_score: float | None = None,
        window_size: int | None = None,
        max_conversations: int | None = None,
        metadata_keys: Sequence[str] | None = None,
        system_instruction: str | None = None,
        temperature: float | None = None,
        vector_backend: str | None = None,
        index_path: Path | None = None,
    ) -> RAGService:
        """Build a service from config, with every option overridable.

        Provider clients are created here, so missing credentials fail now
        rather than on the first request.

        Returns:
            A ready-to-use RAGService.
        """
        embedding_provider = embedding_provider or config.EMBEDDING_PROVIDER
        chat_provider = chat_provider or config.CHAT_PROVIDER
        if embedder is None:
            embedder = get_embedder(
                embedding_provider, api_key=api_key, model=embedding_model
            )
        if chat_model is None:
            chat_model = get_chat_model(
                chat_provider, api_key=api_key, model=chat_model_name
            )
        if vector_index is None:
            vector_index = get_vector_index(
                vector_backend or config.VECTOR_BACKEND, index_path=index_path
            )
            if isinstance(vector_index, FaissVectorIndex):
                vector_index.load()

        chunker = TextChunker(
            chunk_size=chunk_size if chunk_size is not None else config.CHUNK_SIZE,
            overlap=overlap if overlap is not None else config.CHUNK_OVERLAP,
        )
        memory = ConversationMemory(
            window_size=window_size, max_conversations=max_conversations
        )
        retriever = Retriever(embedder, vector_index, top_k=top_k, min_score=min_score)
        injector = ContextInjector(metadata_keys=metadata_keys)
        orchestrator = RAGOrchestrator(
            retriever,
            injector,
            memory,
            chat_model,
            system_instruction=system_instruction,
            temperature=temperature,
        )
        logger.info(
            "RAG service ready (embedder=%s, chat=%s, index=%s)",
            embedding_provider,
            chat_provider,
            vector_index.backend,
        )
        return cls(
            embedder,
            chat_model,
            vector_index,
            chunker,
            memory,
            retriever,
            injector,
            orchestrator,
            embedding_provider=embedding_provider,
            chat_provider=chat_provider,
        )

    def _scoped_embedder(
        self, api_key: str | None, scope: ExitStack
    ) -> Embedder | None:
        if api_key is None:
            return None
        embedder = get_embedder(
            self.embedding_provider,
            api_key=api_key,
            model=getattr(self.embedder, "model", None),
        )
        return _close_with(scope, embedder)

    def _scoped_chat_model(
        self, api_key: str | None, scope: ExitStack
    ) -> ChatModel | None:
        if api_key is None:
            return None
        chat_model = get_chat_model(
            self.chat_provider,
            api_key=api_key,
            model=getattr(self.chat_model, "model", None),
        )
        return _close_with(scope, chat_model)

    def ingest_document(
        self,
        raw_bytes: bytes,
        metadata: Mapping[str, str] | None = None,
        *,
        embedding_api_key: str | None = None,
    ) -> int:
        """Decode and ingest one uploaded document.

        Args:
            raw_bytes: Document content.
            metadata: Document metadata; ``fileName`` selects the decoder.
            embedding_api_key: Credential for a short-lived embedder used for
                this call only and closed afterwards.

        Returns:
            Number of segments added to the index.

        Raises:
            IngestionError: If decoding, chunking, embedding or indexing fails.
        """
        metadata = dict(metadata or {})
        file_name = metadata.get("fileName")
        with ExitStack() as scope:
            try:
                text = DocumentLoader.load_bytes(raw_bytes, file_name=file_name)
                embedder = self._scoped_embedder(embedding_api_key, scope)
            except (RAGError, ValueError) as exc:
                msg = f"Failed to load document {file_name or '<unnamed>'}: {exc}"
                raise IngestionError(msg) from exc

            document = Document(text=text, metadata=metadata)
            return self.ingestor.ingest(document, embedder=embedder)

    def answer_question(
        self,
        conversation_id: int,
        question: str,
        *,
        chat_api_key: str | None = None,
        embedding_api_key: str | None = None,
    ) -> str:
        """Answer a question within a conversation.

        Args:
            conversation_id: Conversation memory key.
            question: The user's question.
            chat_api_key: Credential for a short-lived chat model used for this
                call only and closed afterwards.
            embedding_api_key: Credential for a short-lived query embedder.

        Returns:
            The answer text.

        Raises:
            OrchestrationError: If answering fails for any reason.
        """
        with ExitStack() as scope:
            try:
                chat_model = self._scoped_chat_model(chat_api_key, scope)
                embedder = self._scoped_embedder(embedding_api_key, scope)
            except RAGError as exc:
                msg = f"Failed to configure request collaborators: {exc}"
                raise OrchestrationError(msg) from exc

            return self.orchestrator.answer(
                conversation_id, question, chat_model=chat_model, embedder=embedder
            )

    def save(self) -> None:
        """Persist the vector index when its backend supports it."""
        if isinstance(self.vector_index, FaissVectorIndex):
            self.vector_index.save()
        else:
            logger.info(
                "%s index is not persistent; nothing saved", self.vector_index.backend
            )


def _close_with(scope: ExitStack, collaborator: T) -> T:
    """Register ``collaborator.close`` on ``scope`` when it has one."""  # noqa: DOC201
    close = getattr(collaborator, "close", None)
    if close is not None:
        scope.callback(close)
    return collaborator
