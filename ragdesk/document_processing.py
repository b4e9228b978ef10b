"""Document loading and text chunking functionality."""

import io
from collections.abc import Mapping, Sequence
from pathlib import Path

import pypdf
from pypdf.errors import PyPdfError

from .config import config
from .exceptions import InvalidConfigError
from .models import Document, Segment

logger = config.get_logger(__name__)

TEXT_EXTENSIONS = {"", ".txt", ".md", ".markdown", ".rst", ".csv", ".json", ".html"}


class DocumentLoader:
    """Handles decoding of PDF and plain-text documents."""

    @staticmethod
    def load_pdf(raw_bytes: bytes) -> str:
        """Extract text content from PDF bytes.

        Returns:
            The extracted text content from the PDF as a string.

        Raises:
            ValueError: If pypdf cannot parse the bytes.
        """
        try:
            pdf_reader = pypdf.PdfReader(io.BytesIO(raw_bytes))
            text = ""
            for page_num, page in enumerate(pdf_reader.pages):
                page_text = page.extract_text()
                text += f"\n--- Page {page_num + 1} ---\n{page_text}\n"
        except PyPdfError as exc:
            logger.exception("Error loading PDF")
            msg = f"Unreadable PDF document: {exc}"
            raise ValueError(msg) from exc
        else:
            return text

    @staticmethod
    def load_text(raw_bytes: bytes) -> str:
        """Decode UTF-8 text content.

        Returns:
            The decoded text.
        """
        try:
            text = raw_bytes.decode("utf-8")
        except UnicodeDecodeError:
            logger.exception("Error decoding text document")
            raise
        else:
            return text

    @classmethod
    def load_bytes(cls, raw_bytes: bytes, file_name: str | None = None) -> str:
        """Decode raw document bytes based on the file name extension.

        Args:
            raw_bytes: Document content as uploaded.
            file_name: Original file name; plain text is assumed when missing.

        Returns:
            The text content of the document as a string.

        Raises:
            ValueError: If the file type is not supported.
        """
        file_ext = Path(file_name).suffix.lower() if file_name else ""
        if file_ext == ".pdf":
            return cls.load_pdf(raw_bytes)
        if file_ext in TEXT_EXTENSIONS:
            return cls.load_text(raw_bytes)
        msg = f"Unsupported file type: {file_ext}"
        raise ValueError(msg)

    @classmethod
    def load_document(cls, file_path: Path) -> str:
        """Load a document from disk.

        Returns:
            The text content of the document as a string.
        """
        return cls.load_bytes(file_path.read_bytes(), file_name=file_path.name)


class TextChunker:
    """Handles text chunking with fixed length and overlap strategy."""

    def __init__(self, chunk_size: int = 500, overlap: int = 50) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: Maximum number of characters in each segment.
            overlap: Number of characters shared by consecutive segments.

        Raises:
            InvalidConfigError: If the sizes cannot produce progressing chunks.
        """
        if chunk_size < 1:
            msg = f"chunk_size must be positive, got {chunk_size}"
            raise InvalidConfigError(msg)
        if overlap < 0:
            msg = f"overlap must not be negative, got {overlap}"
            raise InvalidConfigError(msg)
        if overlap >= chunk_size:
            msg = f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            raise InvalidConfigError(msg)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def split(self, document: Document) -> list[Segment]:
        """Split a document into overlapping segments carrying its metadata.

        Returns:
            Segments in document order.
        """
        return self.chunk_text(document.text, metadata=document.metadata)

    def chunk_text(
        self, text: str, metadata: Mapping[str, str] | None = None
    ) -> list[Segment]:
        """Split text into overlapping chunks.

        Segments are raw slices of ``text``; consecutive segments share exactly
        ``overlap`` characters.

        Returns:
            A list of Segment objects representing the text chunks.
        """
        base_metadata = dict(metadata or {})
        segments: list[Segment] = []
        start = 0
        text_length = len(text)
        min_boundary = max(self.chunk_size // 2, self.overlap)

        while start < text_length:
            end = min(start + self.chunk_size, text_length)
            chunk_text = text[start:end]

            # Ensure we don't break in the middle of a word (except for last chunk)
            if end < text_length and not chunk_text[-1].isspace():
                last_space = max(chunk_text.rfind(" "), chunk_text.rfind("\n"))
                if last_space > min_boundary:
                    end = start + last_space
                    chunk_text = text[start:end]

            segments.append(
                Segment(
                    text=chunk_text,
                    metadata={**base_metadata, "index": str(len(segments))},
                    start=start,
                    end=end,
                )
            )

            if end >= text_length:
                break
            start = end - self.overlap

        logger.info("Text split into %d chunks", len(segments))
        return segments

    @staticmethod
    def join_segments(segments: Sequence[Segment]) -> str:
        """Rebuild the source text from consecutive overlapping segments.

        Returns:
            The concatenated text with the overlapping prefixes removed.
        """
        if not segments:
            return ""
        parts = [segments[0].text]
        for previous, current in zip(segments, segments[1:], strict=False):
            parts.append(current.text[previous.end - current.start :])
        return "".join(parts)
