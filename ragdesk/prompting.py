"""Context injection: render retrieved segments into the user prompt."""

from collections.abc import Sequence

from .config import config
from .models import RetrievalResult, Segment

logger = config.get_logger(__name__)

DEFAULT_PROMPT_TEMPLATE = (
    "{prompt}\n\nAnswer using the following information:\n{contents}"
)


class ContextInjector:
    """Appends retrieved segments, with selected metadata, to a base prompt.

    Output depends only on the inputs and follows the retrieval ranking, so
    identical inputs always yield byte-identical prompts.
    """

    def __init__(
        self,
        metadata_keys: Sequence[str] | None = None,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
    ) -> None:
        """Initialize the injector.

        Args:
            metadata_keys: Metadata fields rendered under each segment. If None,
                uses config.CONTEXT_METADATA_KEYS.
            prompt_template: Format string with ``{prompt}`` and ``{contents}``.
        """
        self.metadata_keys = tuple(
            metadata_keys if metadata_keys is not None else config.CONTEXT_METADATA_KEYS
        )
        self.prompt_template = prompt_template

    @staticmethod
    def format_segment(segment: Segment, metadata_keys: Sequence[str]) -> str:
        """Render one segment as a labeled block.

        Returns:
            ``content: ...`` followed by one ``key: value`` line per selected
            key present in the segment metadata.
        """
        lines = [f"content: {segment.text}"]
        lines.extend(
            f"{key}: {segment.metadata[key]}"
            for key in metadata_keys
            if key in segment.metadata
        )
        return "\n".join(lines)

    def inject(
        self,
        base_prompt: str,
        retrieval_result: RetrievalResult,
        metadata_keys: Sequence[str] | None = None,
    ) -> str:
        """Build the augmented prompt.

        Returns:
            ``base_prompt`` unchanged when nothing was retrieved, otherwise the
            prompt followed by the rendered context blocks.
        """
        if not retrieval_result:
            logger.info("No retrieved context; prompt passed through unchanged")
            return base_prompt

        keys = self.metadata_keys if metadata_keys is None else tuple(metadata_keys)
        contents = "\n\n".join(
            self.format_segment(segment, keys) for segment, _score in retrieval_result
        )
        return self.prompt_template.format(prompt=base_prompt, contents=contents)
