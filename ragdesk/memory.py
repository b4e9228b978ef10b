"""Per-conversation sliding-window chat memory."""

import threading
from collections import OrderedDict, deque
from collections.abc import Hashable
from dataclasses import dataclass, field

from .config import config
from .exceptions import InvalidConfigError
from .models import ChatMessage, Role

logger = config.get_logger(__name__)


@dataclass
class _ConversationState:
    messages: deque[ChatMessage]
    lock: threading.Lock = field(default_factory=threading.Lock)


class ConversationMemory:
    """Keeps the last ``window_size`` messages of every conversation.

    Operations on one conversation id are serialized by that conversation's
    lock; the registry lock is only held to look up, create or evict state, so
    distinct conversations never wait on each other. Conversations are kept
    in least-recently-used order and the oldest is dropped once more than
    ``max_conversations`` are tracked.
    """

    def __init__(
        self,
        window_size: int | None = None,
        max_conversations: int | None = None,
        *,
        unbounded: bool = False,
    ) -> None:
        """Initialize the memory.

        Args:
            window_size: Messages kept per conversation. If None, uses
                config.MEMORY_WINDOW_SIZE.
            max_conversations: Conversations kept before LRU eviction. If None,
                uses config.MEMORY_MAX_CONVERSATIONS.
            unbounded: Disable conversation eviction entirely.

        Raises:
            InvalidConfigError: If a size is below 1.
        """
        self.window_size = (
            window_size if window_size is not None else config.MEMORY_WINDOW_SIZE
        )
        self.max_conversations = (
            None
            if unbounded
            else (
                max_conversations
                if max_conversations is not None
                else config.MEMORY_MAX_CONVERSATIONS
            )
        )
        if self.window_size < 1:
            msg = f"window_size must be at least 1, got {self.window_size}"
            raise InvalidConfigError(msg)
        if self.max_conversations is not None and self.max_conversations < 1:
            msg = f"max_conversations must be at least 1, got {self.max_conversations}"
            raise InvalidConfigError(msg)

        self._registry_lock = threading.Lock()
        self._conversations: OrderedDict[Hashable, _ConversationState] = OrderedDict()

    def _state(
        self, conversation_id: Hashable, *, create: bool = True
    ) -> _ConversationState | None:
        """Look up a conversation, creating it when ``create`` is set.

        Returns:
            The conversation state, or None for an unknown id without ``create``.
        """
        with self._registry_lock:
            state = self._conversations.get(conversation_id)
            if state is not None:
                self._conversations.move_to_end(conversation_id)
                return state
            if not create:
                return None
            state = _ConversationState(messages=deque(maxlen=self.window_size))
            self._conversations[conversation_id] = state
            logger.debug("Created memory for conversation %s", conversation_id)
            if (
                self.max_conversations is not None
                and len(self._conversations) > self.max_conversations
            ):
                evicted_id, _ = self._conversations.popitem(last=False)
                logger.info("Evicted memory for conversation %s", evicted_id)
            return state

    def _is_registered(
        self, conversation_id: Hashable, state: _ConversationState
    ) -> bool:
        with self._registry_lock:
            return self._conversations.get(conversation_id) is state

    def _extend(self, conversation_id: Hashable, messages: list[ChatMessage]) -> None:
        # retry when the state was evicted or cleared before its lock was taken
        while True:
            state = self._state(conversation_id)
            with state.lock:
                if self._is_registered(conversation_id, state):
                    state.messages.extend(messages)
                    return

    def append(self, conversation_id: Hashable, role: Role, message: str) -> None:
        """Add a message, evicting the oldest one once the window is full."""
        self._extend(conversation_id, [ChatMessage(role=role, content=message)])

    def append_turn(
        self, conversation_id: Hashable, question: str, answer: str
    ) -> None:
        """Add a user question and its answer as one uninterrupted pair."""
        self._extend(
            conversation_id,
            [
                ChatMessage(role="user", content=question),
                ChatMessage(role="assistant", content=answer),
            ],
        )

    def window(self, conversation_id: Hashable) -> list[ChatMessage]:
        """Return the conversation's messages, oldest first.

        Reading an unknown conversation returns an empty list without
        registering it.
        """
        state = self._state(conversation_id, create=False)
        if state is None:
            return []
        with state.lock:
            return list(state.messages)

    def clear(self, conversation_id: Hashable) -> None:
        """Forget one conversation."""
        with self._registry_lock:
            self._conversations.pop(conversation_id, None)
        logger.info("Conversation %s memory cleared.", conversation_id)

    def __contains__(self, conversation_id: Hashable) -> bool:
        with self._registry_lock:
            return conversation_id in self._conversations

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._conversations)
