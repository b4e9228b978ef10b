"""Chat-completion providers: OpenAI and Ollama."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import httpx
from openai import OpenAI, OpenAIError

from .config import config
from .exceptions import CompletionError, InvalidConfigError
from .models import ChatMessage

logger = config.get_logger(__name__)


@runtime_checkable
class ChatModel(Protocol):
    """Produces an answer from a system instruction, history and prompt."""

    model: str

    def complete(
        self,
        system_instruction: str,
        conversation_window: Sequence[ChatMessage],
        prompt: str,
        temperature: float,
    ) -> str: ...


def build_messages(
    system_instruction: str,
    conversation_window: Sequence[ChatMessage],
    prompt: str,
) -> list[dict[str, str]]:
    """Assemble the role/content message list shared by chat providers.

    Returns:
        System message (when set), the window in order, then the user prompt.
    """
    messages: list[dict[str, str]] = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})
    messages.extend(
        {"role": message.role, "content": message.content}
        for message in conversation_window
    )
    messages.append({"role": "user", "content": prompt})
    return messages


class OpenAIChatModel:
    """Chat completions through the OpenAI API."""

    provider = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        base_url: str | None = None,
    ) -> None:
        """Initialize the OpenAI chat client.

        Args:
            api_key: OpenAI API key. If None, reads OPENAI_API_KEY.
            model: Chat model name. If None, uses the configured OpenAI chat model.
            max_tokens: Completion token cap. If None, uses config.CHAT_MAX_TOKENS.
            base_url: Alternative API endpoint. If None, uses config.OPENAI_BASE_URL.

        Raises:
            CompletionError: If no API key is available.
        """
        api_key = api_key or config.get_openai_api_key()
        if not api_key:
            msg = "OpenAI API key is required for the OpenAI chat provider"
            raise CompletionError(msg)
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url or config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.chat_model(self.provider)
        self.max_tokens = max_tokens or config.CHAT_MAX_TOKENS

    def close(self) -> None:
        """Release the HTTP connections held by the OpenAI client."""
        self.client.close()

    def complete(
        self,
        system_instruction: str,
        conversation_window: Sequence[ChatMessage],
        prompt: str,
        temperature: float,
    ) -> str:
        """Request a chat completion.

        Returns:
            The stripped answer text.

        Raises:
            CompletionError: If the request fails or the answer is empty.
        """
        messages = build_messages(system_instruction, conversation_window, prompt)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=temperature,
            )
        except OpenAIError as exc:
            logger.exception("Error requesting chat completion")
            msg = f"OpenAI chat completion failed: {exc}"
            raise CompletionError(msg) from exc

        if not response.choices:
            msg = "OpenAI returned no chat completion choices"
            raise CompletionError(msg)
        answer = response.choices[0].message.content
        if not isinstance(answer, str) or not answer.strip():
            msg = "OpenAI returned an empty chat completion"
            raise CompletionError(msg)
        return answer.strip()


class OllamaChatModel:
    """Chat completions from a local Ollama server."""

    provider = "ollama"

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.model = model or config.chat_model(self.provider)
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.client = client or httpx.Client(
            timeout=timeout or config.OLLAMA_TIMEOUT,
            headers=config.get_api_headers(),
        )

    def close(self) -> None:
        self.client.close()

    def complete(
        self,
        system_instruction: str,
        conversation_window: Sequence[ChatMessage],
        prompt: str,
        temperature: float,
    ) -> str:
        """Send a non-streaming ``/api/chat`` request.

        Returns:
            The stripped answer text.

        Raises:
            CompletionError: On connection errors, HTTP errors or an empty answer.
        """
        payload = {
            "model": self.model,
            "messages": build_messages(system_instruction, conversation_window, prompt),
            "stream": False,
            "options": {"temperature": temperature},
        }
        logger.info(
            "Ollama chat request: model=%s messages=%d",
            self.model,
            len(payload["messages"]),
        )
        try:
            response = self.client.post(f"{self.base_url}/api/chat", json=payload)
            response.raise_for_status()
            answer = response.json()["message"]["content"]
        except httpx.HTTPError as exc:
            logger.exception("Ollama chat request failed (%s)", self.base_url)
            msg = f"Ollama chat completion failed: {exc}"
            raise CompletionError(msg) from exc
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed Ollama chat response: {exc}"
            raise CompletionError(msg) from exc

        if not isinstance(answer, str) or not answer.strip():
            msg = "Ollama returned an empty chat completion"
            raise CompletionError(msg)
        return answer.strip()


def get_chat_model(
    provider: str | None = None,
    *,
    api_key: str | None = None,
    model: str | None = None,
) -> OpenAIChatModel | OllamaChatModel:
    """Return a configured chat model for ``provider``.

    Raises:
        InvalidConfigError: If an unsupported provider is requested.
    """
    name = (provider or config.CHAT_PROVIDER).lower()
    if name == "openai":
        return OpenAIChatModel(api_key=api_key, model=model)
    if name == "ollama":
        return OllamaChatModel(model=model)

    msg = f"Unsupported chat provider: {provider}"
    raise InvalidConfigError(msg)
