"""Retrieval-augmented answering with per-conversation memory."""

from collections.abc import Hashable

from .chat import ChatModel
from .config import config
from .embeddings import Embedder
from .exceptions import OrchestrationError, RAGError
from .memory import ConversationMemory
from .prompting import ContextInjector
from .retrieval import Retriever

logger = config.get_logger(__name__)


class RAGOrchestrator:
    """Answers questions from retrieved context and the conversation window.

    The orchestrator keeps no per-request state: collaborators that depend on
    request credentials can be passed to ``answer`` directly.
    """

    def __init__(  # noqa: PLR0913,PLR0917
        self,
        retriever: Retriever,
        injector: ContextInjector,
        memory: ConversationMemory,
        chat_model: ChatModel,
        system_instruction: str | None = None,
        temperature: float | None = None,
        top_k: int | None = None,
        min_score: float | None = None,
    ) -> None:
        """Initialize RAGOrchestrator.

        Args:
            retriever: Finds relevant segments for a question.
            injector: Renders segments into the prompt.
            memory: Conversation windows keyed by conversation id.
            chat_model: Default chat-completion collaborator.
            system_instruction: If None, uses config.SYSTEM_INSTRUCTION.
            temperature: If None, uses config.CHAT_TEMPERATURE.
            top_k: Retrieval size override; None keeps the retriever default.
            min_score: Retrieval threshold override; None keeps the retriever
                default.
        """
        self.retriever = retriever
        self.injector = injector
        self.memory = memory
        self.chat_model = chat_model
        self.system_instruction = (
            system_instruction
            if system_instruction is not None
            else config.SYSTEM_INSTRUCTION
        )
        self.temperature = (
            temperature if temperature is not None else config.CHAT_TEMPERATURE
        )
        self.top_k = top_k
        self.min_score = min_score

    def answer(
        self,
        conversation_id: Hashable,
        question: str,
        *,
        chat_model: ChatModel | None = None,
        embedder: Embedder | None = None,
    ) -> str:
        """Answer a question using RAG with conversation context.

        Steps run in a fixed order: retrieve, inject context and read the
        window, complete, record the turn, return.

        Args:
            conversation_id: Key of the conversation memory to use.
            question: The user's question.
            chat_model: Per-call chat model overriding the default one.
            embedder: Per-call query embedder overriding the retriever's.

        Returns:
            The answer text.

        Raises:
            OrchestrationError: If the question is empty, or retrieval or
                completion fails. Memory is left untouched in that case.
        """
        if not question or not question.strip():
            msg = "Question must not be empty"
            raise OrchestrationError(msg)

        logger.info(
            "Processing question for conversation %s: %s", conversation_id, question
        )

        try:
            retrieved = self.retriever.retrieve(
                question, k=self.top_k, min_score=self.min_score, embedder=embedder
            )
        except RAGError as exc:
            logger.exception("Retrieval failed for conversation %s", conversation_id)
            msg = f"Retrieval failed: {exc}"
            raise OrchestrationError(msg) from exc

        for i, (segment, score) in enumerate(retrieved):
            logger.info(
                "  Context %d: %s#%s (score: %.4f)",
                i + 1,
                segment.metadata.get("fileName", "unknown"),
                segment.metadata.get("index", "?"),
                score,
            )

        prompt = self.injector.inject(question, retrieved)
        window = self.memory.window(conversation_id)

        model = chat_model or self.chat_model
        try:
            answer = model.complete(
                self.system_instruction, window, prompt, self.temperature
            )
        except RAGError as exc:
            logger.exception("Completion failed for conversation %s", conversation_id)
            msg = f"Chat completion failed: {exc}"
            raise OrchestrationError(msg) from exc

        self.memory.append_turn(conversation_id, question, answer)
        return answer
