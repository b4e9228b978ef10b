"""Data models for the RAG application."""

from dataclasses import dataclass, field
from typing import Literal

import numpy as np

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Document:
    """Raw document text with its metadata (e.g. ``fileName``)."""

    text: str
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Segment:
    """A slice of a document, the unit stored in the vector index.

    ``start`` and ``end`` are character offsets into the source document text.
    """

    text: str
    metadata: dict[str, str] = field(default_factory=dict)
    start: int = 0
    end: int = 0


@dataclass(frozen=True)
class IndexEntry:
    """Stored embedding together with the segment it was computed from."""

    embedding: np.ndarray
    segment: Segment

    @property
    def metadata(self) -> dict[str, str]:
        return self.segment.metadata


@dataclass(frozen=True)
class ChatMessage:
    """Represents a single message in a conversation window."""

    role: Role
    content: str


RetrievalResult = list[tuple[Segment, float]]
